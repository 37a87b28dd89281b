"""Observation of shutdown delay and graceful termination durations."""

from __future__ import annotations

from .listers import NotFoundError
from .nested import NestedFieldError, nested_string, nested_string_slice, pruned, set_nested_field
from .resources import AWS_PLATFORM_TYPE, SINGLE_REPLICA_TOPOLOGY_MODE

SHUTDOWN_DELAY_DURATION_PATH = ("apiServerArguments", "shutdown-delay-duration")
GRACEFUL_TERMINATION_DURATION_PATH = ("gracefulTerminationDuration",)


def _get_infrastructure(listers):
    """Return the cluster infrastructure, or None when it does not exist."""
    try:
        return listers.infrastructure_lister.get("cluster")
    except NotFoundError:
        return None


def _platform_value(infra, single_replica, aws):
    if infra is None:
        return None
    if infra.control_plane_topology == SINGLE_REPLICA_TOPOLOGY_MODE:
        return single_replica
    if infra.platform_type == AWS_PLATFORM_TYPE:
        return aws
    return None


def observe_shutdown_delay_duration(listers, recorder, existing_config):
    """Override shutdown-delay-duration for single-replica clusters and AWS.

    Returns the observed config, pruned to the shutdown-delay-duration path,
    and the list of errors met on the way.
    """
    errs = []
    try:
        infra = _get_infrastructure(listers)
    except Exception as err:
        return pruned(existing_config, SHUTDOWN_DELAY_DURATION_PATH), [err]

    observed = _platform_value(infra, "0s", "129s")
    if observed is None:
        return {}, errs

    current = ""
    try:
        current_slice = nested_string_slice(existing_config, *SHUTDOWN_DELAY_DURATION_PATH)
    except NestedFieldError as err:
        errs.append(ValueError(f"unable to extract shutdown delay duration from the existing config: {err}"))
    else:
        if current_slice:
            current = current_slice[0]

    if current != observed:
        observed_config = {}
        set_nested_field(observed_config, [observed], *SHUTDOWN_DELAY_DURATION_PATH)
        return pruned(observed_config, SHUTDOWN_DELAY_DURATION_PATH), errs

    return pruned(existing_config, SHUTDOWN_DELAY_DURATION_PATH), errs


def observe_graceful_termination_duration(listers, recorder, existing_config):
    """Set gracefulTerminationDuration for single-replica clusters and AWS.

    Returns the observed config, pruned to the gracefulTerminationDuration
    path, and the list of errors met on the way.
    """
    errs = []
    try:
        infra = _get_infrastructure(listers)
    except Exception as err:
        return pruned(existing_config, GRACEFUL_TERMINATION_DURATION_PATH), [err]

    observed = _platform_value(infra, "15", "194")
    if observed is None:
        return {}, errs

    current = ""
    try:
        current = nested_string(existing_config, *GRACEFUL_TERMINATION_DURATION_PATH) or ""
    except NestedFieldError as err:
        errs.append(
            ValueError(
                "unable to extract gracefulTerminationDuration from the existing config: "
                f"{err}, path = {list(GRACEFUL_TERMINATION_DURATION_PATH)}"
            )
        )

    if current != observed:
        observed_config = {}
        set_nested_field(observed_config, observed, *GRACEFUL_TERMINATION_DURATION_PATH)
        return pruned(observed_config, GRACEFUL_TERMINATION_DURATION_PATH), errs

    return pruned(existing_config, GRACEFUL_TERMINATION_DURATION_PATH), errs