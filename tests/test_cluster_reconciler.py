import pytest

from fakes import NAMESPACE, NO_SPEC, conditions_of, create_connect, create_connector, host_of
from konnektor.exceptions import ConnectRestException
from konnektor.models.connect import KAFKA_CONNECT, KAFKA_CONNECT_S2I, KAFKA_CONNECTOR
from konnektor.reconciler import Reconciliation, ResourceKey
from konnektor.services.cluster_reconciler import ClusterReconciler
from konnektor.services.connector_reconciler import ConnectorReconciler


def reconciliation(name="cluster", kind=KAFKA_CONNECT):
    return Reconciliation("test", ResourceKey(kind, NAMESPACE, name))


@pytest.fixture
def clusters(store, api, deployment):
    return ClusterReconciler(store, api, deployment, ConnectorReconciler(store, api))


@pytest.mark.asyncio
async def test_ready_cluster_status(store, clusters):
    create_connect(store)

    await clusters.reconcile(reconciliation())

    status = store.status_of(KAFKA_CONNECT, NAMESPACE, "cluster")
    assert conditions_of(store, KAFKA_CONNECT, "cluster")["Ready"]["status"] == "True"
    assert status["observedGeneration"] == 1
    assert status["url"] == "http://cluster-connect-api.ns.svc:8083"
    assert status["serviceName"] == "cluster-connect-api"
    assert status["port"] == 8083


@pytest.mark.asyncio
async def test_s2i_cluster(store, api, clusters):
    create_connect(store, kind=KAFKA_CONNECT_S2I, spec={"insecureSourceRepository": True})
    create_connector(store)

    await clusters.reconcile(reconciliation(kind=KAFKA_CONNECT_S2I))

    assert conditions_of(store, KAFKA_CONNECT_S2I, "cluster")["Ready"]["status"] == "True"
    assert list(api.connectors_on(host_of("cluster"))) == ["connector"]


@pytest.mark.asyncio
async def test_unchanged_status_is_not_rewritten(store, clusters):
    create_connect(store)

    await clusters.reconcile(reconciliation())
    writes = len(store.status_patches)
    await clusters.reconcile(reconciliation())

    assert len(store.status_patches) == writes


@pytest.mark.asyncio
async def test_missing_spec(store, api, deployment, clusters):
    create_connect(store, spec=NO_SPEC)

    await clusters.reconcile(reconciliation())

    found = conditions_of(store, KAFKA_CONNECT, "cluster")
    assert found["NotReady"]["reason"] == "InvalidResourceException"
    assert found["NotReady"]["message"] == "spec property is required"
    assert deployment.calls == []
    assert api.calls == []


@pytest.mark.asyncio
async def test_deployment_not_ready(store, api, deployment, clusters):
    deployment.ready = False
    create_connect(store, spec={"replicas": 2})
    create_connector(store)

    await clusters.reconcile(reconciliation())

    found = conditions_of(store, KAFKA_CONNECT, "cluster")
    assert found["Ready"]["status"] == "False"
    assert found["NotReady"]["reason"] == "DeploymentNotReady"
    assert "url" not in store.status_of(KAFKA_CONNECT, NAMESPACE, "cluster")
    assert api.count("create_or_update") == 0
    connector = conditions_of(store, KAFKA_CONNECTOR, "connector")
    assert connector["NotReady"]["reason"] == "ClusterNotReady"


@pytest.mark.asyncio
async def test_ready_cluster_reconciles_bound_connectors(store, api, clusters):
    create_connector(store, name="a")
    create_connector(store, name="b")
    create_connector(store, name="other", cluster="elsewhere")
    create_connect(store)

    await clusters.reconcile(reconciliation())

    assert sorted(api.connectors_on(host_of("cluster"))) == ["a", "b"]
    for name in ("a", "b"):
        assert conditions_of(store, KAFKA_CONNECTOR, name)["Ready"]["status"] == "True"
    assert conditions_of(store, KAFKA_CONNECTOR, "other") == {}


@pytest.mark.asyncio
async def test_requeue_hands_connectors_to_dispatcher(store, api, deployment):
    requeued = []
    clusters = ClusterReconciler(
        store,
        api,
        deployment,
        ConnectorReconciler(store, api),
        requeue=lambda key, trigger: requeued.append((key, trigger)),
    )
    create_connector(store)
    create_connect(store)

    await clusters.reconcile(reconciliation())

    assert requeued == [
        (ResourceKey(KAFKA_CONNECTOR, NAMESPACE, "connector"), "KafkaConnect cluster")
    ]
    assert api.count("create_or_update") == 0


@pytest.mark.asyncio
async def test_orphans_are_removed(store, api, clusters):
    host = host_of("cluster")
    api.connectors_on(host).update({"connector": False, "leftover": False})
    create_connector(store)
    create_connect(store)

    await clusters.reconcile(reconciliation())

    assert api.count("delete", host=host, name="leftover") == 1
    assert list(api.connectors_on(host)) == ["connector"]


@pytest.mark.asyncio
async def test_failed_orphan_removal_keeps_cluster_ready(store, api, clusters):
    host = host_of("cluster")
    api.connectors_on(host)["stray"] = False
    api.failures["delete"] = ConnectRestException(
        "DELETE", "/connectors/stray", 409, "Conflict", "Cannot complete request during a rebalance"
    )
    create_connector(store)
    create_connect(store)

    await clusters.reconcile(reconciliation())

    assert api.count("delete", host=host, name="stray") == 1
    assert conditions_of(store, KAFKA_CONNECT, "cluster")["Ready"]["status"] == "True"
    assert conditions_of(store, KAFKA_CONNECTOR, "connector")["Ready"]["status"] == "True"
    assert "stray" in api.connectors_on(host)


@pytest.mark.asyncio
async def test_unlistable_cluster_still_reconciles_connectors(store, api, clusters):
    api.failures["list"] = ConnectRestException(
        "GET", "/connectors", 0, "ConnectTimeout", "timed out"
    )
    create_connector(store)
    create_connect(store)

    await clusters.reconcile(reconciliation())

    assert api.count("delete") == 0
    assert conditions_of(store, KAFKA_CONNECT, "cluster")["Ready"]["status"] == "True"
    assert conditions_of(store, KAFKA_CONNECTOR, "connector")["Ready"]["status"] == "True"


@pytest.mark.asyncio
async def test_unmanaged_cluster_keeps_its_connectors(store, api, clusters):
    host = host_of("cluster")
    api.connectors_on(host)["manual"] = False
    create_connect(store, managed=False)

    await clusters.reconcile(reconciliation())

    assert api.calls == []
    assert conditions_of(store, KAFKA_CONNECT, "cluster")["Ready"]["status"] == "True"


@pytest.mark.asyncio
async def test_deleted_cluster_fails_bound_connectors(store, api, clusters):
    create_connector(store)
    create_connect(store)
    await clusters.reconcile(reconciliation())
    api.calls.clear()

    store.delete(KAFKA_CONNECT, NAMESPACE, "cluster")
    await clusters.reconcile(reconciliation())

    found = conditions_of(store, KAFKA_CONNECTOR, "connector")
    assert found["NotReady"]["reason"] == "NoSuchResourceException"
    assert api.count("delete") == 0
