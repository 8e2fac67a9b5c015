import kopf
import logging
import kubernetes
import os

from konnektor import config
from konnektor.crd.registry import CRDRegistry
from konnektor.operator import build_dispatcher
from konnektor.services.connect_api import ConnectApiClient
from konnektor.services.deployment import KubernetesConnectDeployment
from konnektor.services.resource_store import KubernetesResourceStore

# Import handlers so kopf registers them
from konnektor import handlers  # noqa: F401

logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

# Global dispatcher instance
dispatcher = None


@kopf.on.startup()
async def startup_fn(settings: kopf.OperatorSettings, **kwargs):
    """Configure the operator and start the reconciliation dispatcher."""
    global dispatcher

    logger.info("Konnektor Operator is starting up...")

    # Load Kubernetes configuration
    try:
        kubernetes.config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes config")
    except kubernetes.config.ConfigException:
        kubernetes.config.load_kube_config()
        logger.info("Loaded local Kubernetes config")

    registry = CRDRegistry()
    registry.discover_models()
    logger.info(f"Watching kinds: {registry.list_registered_models()}")

    dispatcher = build_dispatcher(
        KubernetesResourceStore(registry=registry),
        ConnectApiClient(),
        KubernetesConnectDeployment(),
        namespace=config.get_watch_namespace(),
        resync_interval=config.get_resync_interval(),
        worker_limit=config.get_worker_limit(),
        retry_delay=config.get_retry_delay(),
    )

    # Configure operator settings
    settings.batching.worker_limit = config.get_worker_limit()
    settings.posting.enabled = config.get_posting_enabled()
    settings.watching.server_timeout = config.get_server_timeout()

    # Unreachable resource store at this point is fatal
    await dispatcher.start()

    logger.info(f"Namespace: {config.get_watch_namespace() or 'all namespaces'}")
    logger.info(f"Worker limit: {settings.batching.worker_limit}")
    logger.info(f"Full reconciliation interval: {config.get_resync_interval()}s")
    logger.info("Konnektor Operator startup complete")


@kopf.on.cleanup()
async def cleanup_fn(**kwargs):
    """Let in-flight reconciliations finish before shutting down."""
    logger.info("Konnektor Operator is shutting down...")

    if dispatcher:
        await dispatcher.stop()

    logger.info("Konnektor Operator shutdown complete")


def main():
    namespace = config.get_watch_namespace()
    try:
        kopf.run(
            clusterwide=namespace is None,
            namespaces=[namespace] if namespace else [],
            liveness_endpoint=config.get_liveness_endpoint(),
        )
    except KeyboardInterrupt:
        logger.info("Operator stopped by user")
    except Exception as e:
        logger.error(f"Operator failed: {e}")
        raise
