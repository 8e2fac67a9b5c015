"""Kafka Connect CRD models."""

from pydantic import Field
from typing import List, Optional, Dict, Any

from konnektor.crd.registry import CRDRegistry
from konnektor.crd.base import CRDSpec, CRDStatus

GROUP = "kafka.strimzi.io"

KAFKA_CONNECT = "KafkaConnect"
KAFKA_CONNECT_S2I = "KafkaConnectS2I"
KAFKA_CONNECTOR = "KafkaConnector"

CLUSTER_KINDS = (KAFKA_CONNECT, KAFKA_CONNECT_S2I)

CLUSTER_LABEL = "strimzi.io/cluster"
USE_CONNECTOR_RESOURCES_ANNOTATION = "strimzi.io/use-connector-resources"

REST_API_PORT = 8083


class ConnectClusterSpec(CRDSpec):
    """Fields common to both kinds of Connect cluster."""

    replicas: int = Field(default=1, ge=0, description="Number of Connect workers")
    image: Optional[str] = Field(default=None, description="Container image for the workers")
    version: Optional[str] = Field(default=None, description="Kafka Connect version")
    bootstrapServers: Optional[str] = Field(
        default=None, description="Bootstrap servers of the Kafka cluster"
    )
    config: Dict[str, Any] = Field(
        default_factory=dict, description="Kafka Connect worker configuration"
    )

    class Config:
        # Deployment settings belong to manifest generation, not to this model
        extra = "allow"


@CRDRegistry.register(GROUP, "v1beta1", KAFKA_CONNECT, "kafkaconnects")
class KafkaConnectSpec(ConnectClusterSpec):
    """KafkaConnect CRD specification."""


@CRDRegistry.register(GROUP, "v1beta1", KAFKA_CONNECT_S2I, "kafkaconnects2is")
class KafkaConnectS2ISpec(ConnectClusterSpec):
    """KafkaConnectS2I CRD specification."""

    insecureSourceRepository: bool = Field(
        default=False, description="Whether the S2I source image repository is insecure"
    )


@CRDRegistry.register(GROUP, "v1alpha1", KAFKA_CONNECTOR, "kafkaconnectors")
class KafkaConnectorSpec(CRDSpec):
    """KafkaConnector CRD specification."""

    class_name: Optional[str] = Field(
        default=None, alias="class", description="Class of the connector plugin"
    )
    tasksMax: Optional[int] = Field(
        default=None, ge=1, description="Maximum number of tasks for the connector"
    )
    config: Dict[str, Any] = Field(
        default_factory=dict, description="Connector configuration"
    )
    pause: bool = Field(default=False, description="Whether the connector should be paused")

    class Config:
        extra = "forbid"
        populate_by_name = True


class KafkaConnectStatus(CRDStatus):
    """Status of a KafkaConnect or KafkaConnectS2I resource."""

    url: Optional[str] = None
    serviceName: Optional[str] = None
    port: Optional[int] = None


class KafkaConnectorStatus(CRDStatus):
    """Status of a KafkaConnector resource."""

    connectorStatus: Optional[Dict[str, Any]] = None
    tasksMax: Optional[int] = None


class ConnectorState(CRDSpec):
    state: str
    worker_id: Optional[str] = None
    trace: Optional[str] = None

    class Config:
        extra = "allow"


class TaskState(ConnectorState):
    id: int


class RunningConnectorSnapshot(CRDSpec):
    """A connector's runtime state as reported by GET /connectors/{name}/status."""

    name: str
    connector: ConnectorState
    tasks: List[TaskState] = Field(default_factory=list)
    type: Optional[str] = None

    class Config:
        extra = "allow"

    @property
    def state(self):
        return self.connector.state

    @property
    def paused(self):
        return self.connector.state == "PAUSED"


def deployment_name(cluster_name):
    return f"{cluster_name}-connect"


def service_name(cluster_name):
    """Name of the Service fronting the REST API of a Connect cluster."""
    return f"{cluster_name}-connect-api"


def service_host(cluster_name, namespace):
    return f"{service_name(cluster_name)}.{namespace}.svc"


def service_url(cluster_name, namespace, port=REST_API_PORT):
    return f"http://{service_host(cluster_name, namespace)}:{port}"


def _config_value(value):
    if isinstance(value, bool):
        return "true" if value else "false"
    return value if isinstance(value, str) else str(value)


def build_connector_config(name, spec):
    """Build the body of PUT /connectors/{name}/config from a connector spec."""
    config = {
        str(key): _config_value(value) for key, value in spec.config.items() if value is not None
    }
    if spec.class_name:
        config["connector.class"] = spec.class_name
    if spec.tasksMax is not None:
        config["tasks.max"] = str(spec.tasksMax)
    config["name"] = name
    return config


__all__ = [
    "ConnectClusterSpec",
    "KafkaConnectSpec",
    "KafkaConnectS2ISpec",
    "KafkaConnectorSpec",
    "KafkaConnectStatus",
    "KafkaConnectorStatus",
    "RunningConnectorSnapshot",
]
