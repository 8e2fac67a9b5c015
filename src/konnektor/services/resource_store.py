""" Access to the custom resources the operator watches.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import kubernetes
from kubernetes.client.exceptions import ApiException

from konnektor.crd.registry import CRDRegistry

logger = logging.getLogger(__name__)


class ResourceStore(ABC):
    """ Get, list and status-patch operations on custom resources by kind.

    Resources are plain dicts shaped like the Kubernetes API returns them.
    The spec of a resource is never written through this interface.
    """

    @abstractmethod
    async def get(self, kind, namespace, name):
        """ Return the resource, or None if it does not exist.
        """

    @abstractmethod
    async def list(self, kind, namespace=None, labels=None):
        """ List resources of a kind, optionally in one namespace and matching labels.
        """

    @abstractmethod
    async def patch_status(self, kind, namespace, name, status):
        """ Replace the status of a resource with ``status``.
        """


def label_selector(labels):
    """ Render a label dict as a Kubernetes equality-based selector.
    """
    if not labels:
        return None
    return ",".join(f"{key}={value}" for key, value in sorted(labels.items()))


class KubernetesResourceStore(ResourceStore):
    """ ResourceStore backed by the Kubernetes CustomObjectsApi.

    The kubernetes client is synchronous, so every call runs in a worker
    thread to keep other reconciliations progressing.
    """

    def __init__(self, api=None, registry=None):
        self.api = api or kubernetes.client.CustomObjectsApi()
        self.registry = registry or CRDRegistry()

    def _crd(self, kind):
        info = self.registry.get_model_by_kind(kind)
        return info.group, info.version, info.plural

    async def get(self, kind, namespace, name):
        group, version, plural = self._crd(kind)
        try:
            return await asyncio.to_thread(
                self.api.get_namespaced_custom_object,
                group, version, namespace, plural, name,
            )
        except ApiException as e:
            if e.status == 404:
                return None
            raise

    async def list(self, kind, namespace=None, labels=None):
        group, version, plural = self._crd(kind)
        selector = label_selector(labels)
        kwargs = {"label_selector": selector} if selector else {}
        if namespace:
            result = await asyncio.to_thread(
                self.api.list_namespaced_custom_object,
                group, version, namespace, plural, **kwargs,
            )
        else:
            result = await asyncio.to_thread(
                self.api.list_cluster_custom_object, group, version, plural, **kwargs
            )
        return result.get("items", [])

    async def patch_status(self, kind, namespace, name, status):
        group, version, plural = self._crd(kind)
        current = await self.get(kind, namespace, name)
        if current is None:
            logger.info(f"{kind} {namespace}/{name} is gone, not updating its status")
            return None

        # A merge patch only drops keys that are explicitly nulled
        patch = dict(status)
        for key in (current.get("status") or {}):
            patch.setdefault(key, None)

        return await asyncio.to_thread(
            self.api.patch_namespaced_custom_object_status,
            group, version, namespace, plural, name, {"status": patch},
        )
