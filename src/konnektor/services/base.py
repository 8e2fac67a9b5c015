""" Shared status handling for the Connect reconcilers.
"""

import logging

from pydantic import ValidationError

from konnektor.crd.base import CRDCondition
from konnektor.exceptions import InvalidResourceException

logger = logging.getLogger(__name__)


def parse_spec(resource, model):
    """ Validate the spec of a resource body against its pydantic model.

    Raises:
        InvalidResourceException: naming the missing or malformed field
    """
    spec = resource.get("spec")
    if spec is None:
        raise InvalidResourceException("spec property is required")
    try:
        return model.model_validate(spec)
    except ValidationError as e:
        problems = [
            f"spec.{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
        raise InvalidResourceException("; ".join(problems)) from e


class StatusReconciler:
    """ Base class for reconcilers that report their outcome as resource status.
    """

    status_model = None

    def __init__(self, store):
        self.store = store

    def previous_conditions(self, resource):
        status = resource.get("status") or {}
        return [CRDCondition.model_validate(c) for c in status.get("conditions") or []]

    async def update_status(self, reconciliation, resource, status):
        """ Write ``status`` back unless the resource already carries it.

        Returns:
            bool: whether a write was made
        """
        current = self.status_model.model_validate(resource.get("status") or {})
        if current.to_patch() == status.to_patch():
            logger.debug(f"{reconciliation}: status unchanged")
            return False

        logger.debug(f"{reconciliation}: updating status to {status.to_patch()}")
        await self.store.patch_status(
            reconciliation.kind, reconciliation.namespace, reconciliation.name, status.to_patch()
        )
        return True
