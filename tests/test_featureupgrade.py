import pytest

from kasobserve.featureupgrade import OperatorCondition, new_upgradeable_condition
from kasobserve.resources import FeatureGate


@pytest.mark.parametrize(
    "features, expected",
    [
        (
            "",
            OperatorCondition(
                reason="AllowedFeatureGates_", status="True", type="FeatureGatesUpgradeable"
            ),
        ),
        (
            "other",
            OperatorCondition(
                reason="RestrictedFeatureGates_other",
                status="False",
                type="FeatureGatesUpgradeable",
                message='"other" does not allow updates',
            ),
        ),
        (
            "TechPreviewNoUpgrade",
            OperatorCondition(
                reason="RestrictedFeatureGates_TechPreviewNoUpgrade",
                status="False",
                type="FeatureGatesUpgradeable",
                message='"TechPreviewNoUpgrade" does not allow updates',
            ),
        ),
        (
            "LatencySensitive",
            OperatorCondition(
                reason="AllowedFeatureGates_LatencySensitive",
                status="True",
                type="FeatureGatesUpgradeable",
                message="",
            ),
        ),
    ],
    ids=["default", "unknown", "techpreview", "latencysensitive"],
)
def test_new_upgradeable_condition(features, expected):
    assert new_upgradeable_condition(FeatureGate(feature_set=features)) == expected