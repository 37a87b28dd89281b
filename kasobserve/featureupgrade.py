"""Upgradeable condition derived from the cluster feature set."""

from __future__ import annotations

import json
from dataclasses import dataclass

from .resources import LATENCY_SENSITIVE

CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

FEATURE_GATES_ALLOWING_UPGRADE = frozenset({"", LATENCY_SENSITIVE})


@dataclass(frozen=True)
class OperatorCondition:
    """A condition reported in operator status."""

    type: str
    status: str
    reason: str = ""
    message: str = ""


def new_upgradeable_condition(feature_gate):
    """Return whether the feature set of ``feature_gate`` allows upgrades."""
    feature_set = feature_gate.feature_set
    if feature_set in FEATURE_GATES_ALLOWING_UPGRADE:
        return OperatorCondition(
            type="FeatureGatesUpgradeable",
            status=CONDITION_TRUE,
            reason="AllowedFeatureGates_" + feature_set,
        )
    return OperatorCondition(
        type="FeatureGatesUpgradeable",
        status=CONDITION_FALSE,
        reason="RestrictedFeatureGates_" + feature_set,
        message=f"{json.dumps(feature_set)} does not allow updates",
    )