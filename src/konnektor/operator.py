"""Assembly of the reconcilers and the dispatcher that drives them."""

from konnektor.models.connect import KAFKA_CONNECT, KAFKA_CONNECT_S2I, KAFKA_CONNECTOR
from konnektor.services.cluster_reconciler import ClusterReconciler
from konnektor.services.connector_reconciler import ConnectorReconciler
from konnektor.services.dispatcher import WatchDispatcher


def build_dispatcher(store, api, deployment, **settings):
    """Wire reconcilers for the three watched kinds into a WatchDispatcher.

    Args:
        store: ResourceStore the reconcilers read and write status through
        api: ConnectApi used to reach the Connect clusters
        deployment: ConnectDeployment reporting cluster readiness
        settings: keyword arguments for WatchDispatcher (namespace,
            resync_interval, worker_limit, retry_delay)
    """
    connectors = ConnectorReconciler(store, api)
    clusters = ClusterReconciler(store, api, deployment, connectors)
    dispatcher = WatchDispatcher(
        store,
        {
            KAFKA_CONNECT: clusters,
            KAFKA_CONNECT_S2I: clusters,
            KAFKA_CONNECTOR: connectors,
        },
        **settings,
    )
    clusters.requeue = dispatcher.enqueue
    return dispatcher
