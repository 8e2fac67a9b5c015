""" Reconciler for KafkaConnector resources.
"""

import logging

from konnektor import conditions
from konnektor.exceptions import ConnectRestException, ReconciliationException
from konnektor.models.connect import (
    KAFKA_CONNECTOR,
    KafkaConnectorSpec,
    KafkaConnectorStatus,
    build_connector_config,
)

from .association import resolve_cluster
from .base import StatusReconciler, parse_spec

logger = logging.getLogger(__name__)


class ConnectorReconciler(StatusReconciler):
    """ Converges one KafkaConnector against the REST API of its cluster.

    Each pass upserts the connector configuration, lines the runtime pause
    state up with ``spec.pause`` and records the runtime status. Failures
    are never raised to the caller: they end up as NotReady conditions and
    the next watch event or resync tries again. Only errors of the resource
    store itself propagate.
    """

    status_model = KafkaConnectorStatus

    def __init__(self, store, api):
        super().__init__(store)
        self.api = api

    async def reconcile(self, reconciliation):
        connector = await self.store.get(
            KAFKA_CONNECTOR, reconciliation.namespace, reconciliation.name
        )
        if connector is None:
            await self.delete(reconciliation, reconciliation.last_seen)
            return

        spec = None
        snapshot = None
        error = None
        try:
            spec = parse_spec(connector, KafkaConnectorSpec)
            endpoint = await resolve_cluster(self.store, connector)
            snapshot = await self._converge(reconciliation, endpoint, spec)
        except ReconciliationException as e:
            logger.warning(f"{reconciliation}: {e.reason}: {e.message}")
            error = e

        status = KafkaConnectorStatus(
            conditions=conditions.conditions_for(error, self.previous_conditions(connector)),
            observedGeneration=connector["metadata"].get("generation"),
            connectorStatus=snapshot.model_dump(mode="json", exclude_none=True) if snapshot else None,
            tasksMax=spec.tasksMax if spec else None,
        )
        await self.update_status(reconciliation, connector, status)
        if error is None:
            logger.info(f"{reconciliation}: connector is {snapshot.state}")

    async def _converge(self, reconciliation, endpoint, spec):
        name = reconciliation.name
        host, port = endpoint.host, endpoint.port

        logger.debug(f"{reconciliation}: PUT config to {endpoint.kind} {endpoint.name}")
        await self.api.create_or_update(host, port, name, build_connector_config(name, spec))
        snapshot = await self.api.status(host, port, name)

        if spec.pause != snapshot.paused:
            try:
                if spec.pause:
                    logger.info(f"{reconciliation}: pausing connector")
                    await self.api.pause(host, port, name)
                else:
                    logger.info(f"{reconciliation}: resuming connector")
                    await self.api.resume(host, port, name)
            except ConnectRestException as e:
                if not e.not_found:
                    raise
                # Deleted behind our back; the next pass recreates it
                logger.warning(f"{reconciliation}: connector vanished while changing pause state")
                return snapshot
            snapshot = await self.api.status(host, port, name)

        return snapshot

    async def delete(self, reconciliation, last_seen):
        """ Remove a deleted connector from the cluster it was last bound to.

        A connector whose cluster is gone or no longer manages connectors is
        left alone, as is one whose last state was never seen; a cluster's
        own pass removes whatever connectors it runs without a resource.
        """
        if last_seen is None:
            logger.info(f"{reconciliation}: connector is gone and its last state is unknown")
            return

        try:
            endpoint = await resolve_cluster(self.store, last_seen, require_ready=False)
        except ReconciliationException as e:
            logger.info(f"{reconciliation}: not deleting connector from Connect: {e}")
            return

        try:
            await self.api.delete(endpoint.host, endpoint.port, reconciliation.name)
            logger.info(f"{reconciliation}: deleted connector from {endpoint.kind} {endpoint.name}")
        except ConnectRestException as e:
            if e.not_found:
                logger.info(f"{reconciliation}: connector was already absent from {endpoint.name}")
                return
            logger.warning(
                f"{reconciliation}: could not delete connector, leaving it to the "
                f"next pass of {endpoint.kind} {endpoint.name}: {e}"
            )
