"""Observation of the default node selector."""

from __future__ import annotations

import json
import logging

from .listers import NotFoundError
from .nested import NestedFieldError, nested_string, set_nested_field

log = logging.getLogger(__name__)

DEFAULT_NODE_SELECTOR_PATH = ("projectConfig", "defaultNodeSelector")


def observe_default_node_selector(listers, recorder, existing_config):
    """Read defaultNodeSelector from the cluster scheduler configuration.

    Returns the observed config and the list of errors met on the way.
    """
    errs = []
    prev_observed = {}
    try:
        current = nested_string(existing_config, *DEFAULT_NODE_SELECTOR_PATH) or ""
    except NestedFieldError as err:
        return prev_observed, [err]
    if current:
        set_nested_field(prev_observed, current, *DEFAULT_NODE_SELECTOR_PATH)

    observed = {}
    try:
        scheduler = listers.scheduler_lister.get("cluster")
    except NotFoundError:
        log.warning("scheduler.config.openshift.io/cluster: not found")
        return observed, errs
    except Exception:
        return prev_observed, errs

    selector = scheduler.default_node_selector
    if selector:
        set_nested_field(observed, selector, *DEFAULT_NODE_SELECTOR_PATH)
        if selector != current:
            recorder.event(
                "ObserveDefaultNodeSelectorChanged",
                f"default node selector changed to {json.dumps(selector)}",
            )
    return observed, errs