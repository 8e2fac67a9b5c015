""" Reconciler for KafkaConnect and KafkaConnectS2I resources.
"""

import logging

from konnektor import conditions
from konnektor.crd.registry import CRDRegistry
from konnektor.exceptions import (
    ConnectRestException,
    DeploymentNotReady,
    ReconciliationException,
)
from konnektor.models.connect import (
    KAFKA_CONNECTOR,
    KafkaConnectStatus,
    deployment_name,
    service_name,
    service_url,
)
from konnektor.reconciler import Reconciliation, ResourceKey

from .association import connectors_for_cluster, endpoint_for, manages_connectors
from .base import StatusReconciler, parse_spec

logger = logging.getLogger(__name__)


class ClusterReconciler(StatusReconciler):
    """ Converges one Connect cluster and then resyncs the connectors bound to it.

    Bound connectors are handed to ``requeue`` so that they are serialised
    with their own watch-driven passes. Without a ``requeue`` callable they
    are reconciled inline, one after the other.
    """

    status_model = KafkaConnectStatus

    def __init__(self, store, api, deployment, connectors, requeue=None):
        super().__init__(store)
        self.api = api
        self.deployment = deployment
        self.connectors = connectors
        self.requeue = requeue
        self.registry = CRDRegistry()

    async def reconcile(self, reconciliation):
        kind = reconciliation.kind
        cluster = await self.store.get(kind, reconciliation.namespace, reconciliation.name)
        if cluster is None:
            # Bound connectors must notice their cluster is gone
            logger.info(f"{reconciliation}: cluster deleted")
            await self._resync_connectors(reconciliation)
            return

        endpoint = None
        error = None
        try:
            spec = parse_spec(cluster, self.registry.get_model_by_kind(kind).model)
            if not await self.deployment.reconcile(kind, cluster, spec):
                raise DeploymentNotReady(
                    f"Deployment {deployment_name(reconciliation.name)} does not have "
                    f"{spec.replicas} ready replicas"
                )
            endpoint = endpoint_for(kind, cluster)
            if manages_connectors(cluster):
                await self._remove_orphans(reconciliation, endpoint)
        except ReconciliationException as e:
            logger.warning(f"{reconciliation}: {e.reason}: {e.message}")
            error = e

        status = KafkaConnectStatus(
            conditions=conditions.conditions_for(error, self.previous_conditions(cluster)),
            observedGeneration=cluster["metadata"].get("generation"),
        )
        if endpoint is not None:
            status.url = service_url(endpoint.name, endpoint.namespace, endpoint.port)
            status.serviceName = service_name(endpoint.name)
            status.port = endpoint.port
        await self.update_status(reconciliation, cluster, status)

        await self._resync_connectors(reconciliation)

    async def _remove_orphans(self, reconciliation, endpoint):
        """ Delete connectors the cluster runs but no resource binds to it.

        This covers connectors re-labelled to another cluster and deletions
        whose watch event was missed. Failures here leave the cluster's
        status alone and are attempted again on its next pass.
        """
        try:
            running = await self.api.list(endpoint.host, endpoint.port)
        except ConnectRestException as e:
            logger.warning(f"{reconciliation}: cannot list connectors to remove orphans: {e}")
            return
        bound = await connectors_for_cluster(self.store, endpoint.namespace, endpoint.name)
        desired = {c["metadata"]["name"] for c in bound}

        for name in sorted(set(running) - desired):
            logger.info(f"{reconciliation}: deleting connector {name} which has no resource")
            try:
                await self.api.delete(endpoint.host, endpoint.port, name)
            except ConnectRestException as e:
                if not e.not_found:
                    logger.warning(f"{reconciliation}: could not delete connector {name}: {e}")

    async def _resync_connectors(self, reconciliation):
        bound = await connectors_for_cluster(
            self.store, reconciliation.namespace, reconciliation.name
        )
        if bound:
            logger.info(f"{reconciliation}: resyncing {len(bound)} connector(s)")

        for connector in bound:
            key = ResourceKey(KAFKA_CONNECTOR, reconciliation.namespace, connector["metadata"]["name"])
            trigger = f"{reconciliation.kind} {reconciliation.name}"
            if self.requeue is not None:
                self.requeue(key, trigger)
            else:
                await self.connectors.reconcile(Reconciliation(trigger, key))
