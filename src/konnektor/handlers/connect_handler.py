""" Kopf handlers feeding watch events of the Connect resources to the dispatcher.
"""

import logging

import kopf

from konnektor.models.connect import (
    KAFKA_CONNECT,
    KAFKA_CONNECT_S2I,
    KAFKA_CONNECTOR,
    KafkaConnectSpec,
    KafkaConnectS2ISpec,
    KafkaConnectorSpec,
)
from konnektor.services.dispatcher import ADDED

logger = logging.getLogger(__name__)


def get_dispatcher():
    """ Get the dispatcher created at startup.
    """
    from konnektor.main import dispatcher

    if not dispatcher:
        logger.error("Dispatcher not initialised")
    return dispatcher


def _resource(model):
    return model._crd_group, model._crd_version, model._crd_plural


def forward_event(kind, event):
    """ Hand a raw watch event over to the dispatcher.

    Kopf reports objects found by its initial listing with no event type;
    those count as additions. Must run on the event loop, hence the async
    handlers below.
    """
    dispatcher = get_dispatcher()
    if dispatcher is None:
        return
    body = event["object"]
    event_type = event.get("type") or ADDED
    logger.debug(f"{event_type} {kind} {body['metadata'].get('namespace')}/{body['metadata'].get('name')}")
    dispatcher.submit(kind, event_type, body)


@kopf.on.event(*_resource(KafkaConnectSpec))
async def kafka_connect_event(event, **kwargs):
    forward_event(KAFKA_CONNECT, event)


@kopf.on.event(*_resource(KafkaConnectS2ISpec))
async def kafka_connect_s2i_event(event, **kwargs):
    forward_event(KAFKA_CONNECT_S2I, event)


@kopf.on.event(*_resource(KafkaConnectorSpec))
async def kafka_connector_event(event, **kwargs):
    forward_event(KAFKA_CONNECTOR, event)


@kopf.on.probe(id="dispatcher")
async def dispatcher_health(**kwargs):
    """ Liveness report: passes in flight and time of the last resync.
    """
    dispatcher = get_dispatcher()
    if dispatcher is None:
        return {"status": "not_initialised"}
    return dispatcher.health()
