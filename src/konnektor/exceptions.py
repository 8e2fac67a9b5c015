"""Exceptions raised while reconciling Connect clusters and connectors.

The class name of each exception doubles as the ``reason`` of the status
condition it is reported under.
"""


class ReconciliationException(Exception):
    """Base class for failures reported on a resource's status."""

    @property
    def reason(self):
        return type(self).__name__

    @property
    def message(self):
        return str(self)


class InvalidResourceException(ReconciliationException):
    """The desired spec of a resource is malformed."""


class MissingAssociation(ReconciliationException):
    """A connector carries no cluster label."""


class NoSuchResourceException(ReconciliationException):
    """A referenced resource does not exist."""


class ManagementDisabled(ReconciliationException):
    """The cluster exists but does not manage connectors through resources."""


class ClusterNotReady(ReconciliationException):
    """The cluster exists but its status is not (yet) Ready."""


class DeploymentNotReady(ReconciliationException):
    """The cluster's deployment has not reached its desired replica count."""


class ConnectRestException(ReconciliationException):
    """A call to the Kafka Connect REST API failed.

    ``status`` is the HTTP status code, or 0 when no response was received.
    """

    def __init__(self, method, path, status, reason, body):
        self.method = method
        self.path = path
        self.status = status
        self.http_reason = reason
        self.body = body
        super().__init__(f"{method} {path} returned {status} ({reason}): {body}")

    @property
    def not_found(self):
        return self.status == 404
