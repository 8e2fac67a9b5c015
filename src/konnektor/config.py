""" Operator configuration read from the environment.
"""

import os


def get_watch_namespace():
    """ Namespace to watch, or None to watch all namespaces.
    """
    return os.environ.get("WATCH_NAMESPACE", "").strip() or None


def get_resync_interval():
    """ Seconds between two full resyncs of every watched resource.
    """
    return float(os.environ.get("FULL_RECONCILIATION_INTERVAL", "120"))


def get_worker_limit():
    return int(os.getenv("WORKER_LIMIT", "5"))


def get_retry_delay():
    """ Seconds before a pass that raised is attempted again.
    """
    return float(os.environ.get("RETRY_DELAY", "10"))


def get_rest_timeout():
    return float(os.environ.get("CONNECT_REST_TIMEOUT", "30"))


def get_posting_enabled():
    return os.getenv("POSTING_ENABLED", "false").lower() == "true"


def get_server_timeout():
    return int(os.getenv("SERVER_TIMEOUT", "60"))


def get_liveness_endpoint():
    """ URL kopf serves liveness probes on, e.g. http://0.0.0.0:8080/healthz.
    """
    return os.environ.get("LIVENESS_ENDPOINT") or None
