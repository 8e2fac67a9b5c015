"""Reconciliation services for konnektor operator."""

from . import association
from . import base
from . import cluster_reconciler
from . import connect_api
from . import connector_reconciler
from . import deployment
from . import dispatcher
from . import resource_store

__all__ = [
    "association",
    "base",
    "cluster_reconciler",
    "connect_api",
    "connector_reconciler",
    "deployment",
    "dispatcher",
    "resource_store",
]
