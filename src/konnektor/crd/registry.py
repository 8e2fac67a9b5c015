"""Registry of the custom resource kinds the operator watches."""

import importlib
import logging
import pkgutil
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CRDInfo:
    """Where a kind lives in the Kubernetes API and which model validates its spec."""

    model: type
    group: str
    version: str
    kind: str
    plural: str
    scope: str = "Namespaced"

    @property
    def api_version(self):
        return f"{self.group}/{self.version}"


class CRDRegistry:
    """Process-wide map of kind to CRDInfo, filled by the ``register`` decorator."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._kinds = {}
        return cls._instance

    @classmethod
    def register(cls, group, version, kind, plural=None, scope="Namespaced"):
        """Decorator registering a spec model for a kind.

        Args:
            group: API group (e.g., 'kafka.strimzi.io')
            version: API version (e.g., 'v1beta1')
            kind: Kind name (e.g., 'KafkaConnect')
            plural: Plural name (defaults to kind.lower() + 's')
            scope: 'Namespaced' or 'Cluster'
        """

        def decorator(model_class):
            info = CRDInfo(
                model=model_class,
                group=group,
                version=version,
                kind=kind,
                plural=plural or f"{kind.lower()}s",
                scope=scope,
            )
            model_class._crd_group = info.group
            model_class._crd_version = info.version
            model_class._crd_kind = info.kind
            model_class._crd_plural = info.plural

            registry = cls()
            previous = registry._kinds.get(kind)
            if previous is not None and previous.model is not model_class:
                raise ValueError(f"Kind {kind} is already registered to {previous.model.__name__}")
            registry._kinds[kind] = info
            logger.debug(f"Registered CRD: {info.api_version}/{kind}")
            return model_class

        return decorator

    def discover_models(self, package_paths=None):
        """Import every module of the given packages so their models register.

        Args:
            package_paths: List of package paths to search (e.g., ['konnektor.models'])
        """
        for package_path in package_paths or ["konnektor.models"]:
            try:
                package = importlib.import_module(package_path)
            except ImportError as e:
                logger.warning(f"Could not discover models in {package_path}: {e}")
                continue

            for module in pkgutil.iter_modules(getattr(package, "__path__", [])):
                importlib.import_module(f"{package_path}.{module.name}")
                logger.debug(f"Discovered models in {package_path}.{module.name}")

    def get_model_by_kind(self, kind):
        """Return the CRDInfo of a kind, e.g. 'KafkaConnector'.

        Raises:
            KeyError: if no model of that kind has been registered
        """
        try:
            return self._kinds[kind]
        except KeyError:
            raise KeyError(f"No CRD registered for kind {kind}") from None

    def list_registered_models(self):
        """Registered kinds as '<group>/<version>/<kind>'."""
        return [f"{info.api_version}/{kind}" for kind, info in self._kinds.items()]
