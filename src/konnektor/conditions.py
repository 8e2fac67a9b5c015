""" Status conditions and generation tracking for Connect resources.

A reconciliation pass always writes the whole condition set. A successful pass
leaves a single ``Ready`` condition; a failed one leaves ``Ready=False`` and
``NotReady=True`` carrying the same reason and message.
"""

import datetime

from konnektor.crd.base import CRDCondition

READY = "Ready"
NOT_READY = "NotReady"

TRUE = "True"
FALSE = "False"


def now():
    return datetime.datetime.now(datetime.timezone.utc).replace(microsecond=0)


def _carry_transition_time(condition, previous):
    """ Keep the previous timestamp when the condition did not change.
    """
    for old in previous:
        if old.same_as(condition) and old.lastTransitionTime is not None:
            condition.lastTransitionTime = old.lastTransitionTime
            return condition
    condition.lastTransitionTime = now()
    return condition


def ready_conditions(previous=()):
    """ Conditions for a pass that completed without error.
    """
    return [_carry_transition_time(CRDCondition(type=READY, status=TRUE), previous)]


def not_ready_conditions(reason, message, previous=()):
    """ Conditions for a pass that failed with ``reason``.
    """
    return [
        _carry_transition_time(
            CRDCondition(type=READY, status=FALSE, reason=reason, message=message),
            previous,
        ),
        _carry_transition_time(
            CRDCondition(type=NOT_READY, status=TRUE, reason=reason, message=message),
            previous,
        ),
    ]


def conditions_for(error=None, previous=()):
    """ Conditions for the outcome of a pass.

    Args:
        error: the ReconciliationException the pass ended with, or None
        previous: conditions currently stored on the resource
    """
    if error is None:
        return ready_conditions(previous)
    return not_ready_conditions(error.reason, error.message, previous)


def find_condition(resource, condition_type):
    """ Return the condition dict of the given type from a resource body, or None.
    """
    status = resource.get("status") or {}
    for condition in status.get("conditions") or []:
        if condition.get("type") == condition_type:
            return condition
    return None


def is_current(resource):
    """ Whether the resource's status was computed from its current spec.
    """
    status = resource.get("status") or {}
    generation = (resource.get("metadata") or {}).get("generation")
    observed = status.get("observedGeneration")
    return generation is not None and observed == generation


def is_ready(resource):
    """ Whether the resource reports Ready=True for its current generation.
    """
    condition = find_condition(resource, READY)
    return is_current(resource) and condition is not None and condition.get("status") == TRUE

