""" Readiness of the workers backing a Connect cluster.

Generating the Deployment, Service and config manifests of a cluster is the
job of a separate subsystem; the reconcilers only need to know whether the
workers are up so the REST API is reachable.
"""

import asyncio
import logging
from abc import ABC, abstractmethod

import kubernetes
from kubernetes.client.exceptions import ApiException

from konnektor.models.connect import deployment_name

logger = logging.getLogger(__name__)


class ConnectDeployment(ABC):
    """ Converges the deployment of a Connect cluster.
    """

    @abstractmethod
    async def reconcile(self, kind, cluster, spec):
        """ Return True once the cluster's workers are ready to serve REST calls.
        """


class KubernetesConnectDeployment(ConnectDeployment):
    """ Reads readiness from the ``<cluster>-connect`` Deployment.
    """

    def __init__(self, api=None):
        self.api = api or kubernetes.client.AppsV1Api()

    async def reconcile(self, kind, cluster, spec):
        meta = cluster["metadata"]
        name = deployment_name(meta["name"])
        try:
            deployment = await asyncio.to_thread(
                self.api.read_namespaced_deployment, name, meta["namespace"]
            )
        except ApiException as e:
            if e.status == 404:
                logger.info(f"Deployment {meta['namespace']}/{name} does not exist yet")
                return False
            raise

        ready = (deployment.status.ready_replicas or 0) if deployment.status else 0
        logger.debug(f"Deployment {meta['namespace']}/{name}: {ready}/{spec.replicas} ready")
        return ready >= spec.replicas
