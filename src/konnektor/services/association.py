""" Binding of connectors to the Connect cluster named by their label.

The binding is a plain name reference, so it is looked up again on every
pass: the label can be added, removed or repointed, and the cluster can come
and go, at any time.
"""

import logging
from dataclasses import dataclass

from konnektor import conditions
from konnektor.exceptions import (
    ClusterNotReady,
    InvalidResourceException,
    ManagementDisabled,
    MissingAssociation,
    NoSuchResourceException,
)
from konnektor.models.connect import (
    CLUSTER_KINDS,
    CLUSTER_LABEL,
    KAFKA_CONNECT,
    KAFKA_CONNECTOR,
    REST_API_PORT,
    USE_CONNECTOR_RESOURCES_ANNOTATION,
    service_host,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConnectEndpoint:
    """Where the REST API of a resolved cluster can be reached."""

    kind: str
    namespace: str
    name: str
    host: str
    port: int = REST_API_PORT


def cluster_name_of(connector):
    """ The cluster a connector's label points at, or None.
    """
    labels = connector["metadata"].get("labels") or {}
    return labels.get(CLUSTER_LABEL) or None


def manages_connectors(cluster):
    """ Whether a cluster opted in to connector management through its annotation.
    """
    annotations = cluster["metadata"].get("annotations") or {}
    return annotations.get(USE_CONNECTOR_RESOURCES_ANNOTATION, "false").lower() == "true"


def endpoint_for(kind, cluster):
    meta = cluster["metadata"]
    return ConnectEndpoint(
        kind=kind,
        namespace=meta["namespace"],
        name=meta["name"],
        host=service_host(meta["name"], meta["namespace"]),
    )


async def find_cluster(store, namespace, name):
    """ Find the one Connect cluster of either kind with the given name.

    Returns:
        (kind, cluster) or (None, None) when neither kind exists
    """
    found = []
    for kind in CLUSTER_KINDS:
        cluster = await store.get(kind, namespace, name)
        if cluster is not None:
            found.append((kind, cluster))

    if len(found) > 1:
        raise InvalidResourceException(
            f"Both KafkaConnect and KafkaConnectS2I resources named '{name}' "
            f"exist in namespace {namespace}."
        )
    return found[0] if found else (None, None)


async def resolve_cluster(store, connector, require_ready=True):
    """ Resolve the REST endpoint of the cluster a connector is bound to.

    Args:
        store: ResourceStore to look the cluster up in
        connector: KafkaConnector resource body
        require_ready: also fail unless the cluster reports Ready

    Raises:
        MissingAssociation: the connector has no cluster label
        NoSuchResourceException: no cluster of that name exists
        ManagementDisabled: the cluster does not manage connectors
        ClusterNotReady: the cluster is not Ready for its current spec
    """
    meta = connector["metadata"]
    namespace = meta["namespace"]
    cluster_name = cluster_name_of(connector)
    if cluster_name is None:
        raise MissingAssociation(
            f"Resource lacks label '{CLUSTER_LABEL}': "
            "No connect cluster in which to create this connector."
        )

    kind, cluster = await find_cluster(store, namespace, cluster_name)
    if cluster is None:
        raise NoSuchResourceException(
            f"{KAFKA_CONNECT} resource '{cluster_name}' identified by label "
            f"'{CLUSTER_LABEL}' does not exist in namespace {namespace}."
        )

    if not manages_connectors(cluster):
        raise ManagementDisabled(
            f"{kind} cluster is not configured with annotation "
            f"{USE_CONNECTOR_RESOURCES_ANNOTATION}"
        )

    if require_ready and not conditions.is_ready(cluster):
        raise ClusterNotReady(f"{kind} cluster '{cluster_name}' is not ready")

    logger.debug(f"Connector {namespace}/{meta['name']} is bound to {kind} {cluster_name}")
    return endpoint_for(kind, cluster)


async def connectors_for_cluster(store, namespace, cluster_name):
    """ All connector resources whose label currently names ``cluster_name``.
    """
    return await store.list(
        KAFKA_CONNECTOR, namespace=namespace, labels={CLUSTER_LABEL: cluster_name}
    )
