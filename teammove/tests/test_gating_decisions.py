"""Tests for plan guard, feature gate and limit guard outcomes."""
import pytest

from teammove.core.errors import UnknownPlanTierError
from teammove.features.gating.service import (
    GateMode,
    GateOutcome,
    decide_gate,
    evaluate_feature_gate,
    evaluate_limit_guard,
    evaluate_plan_guard,
    evaluate_resource_usage,
)
from teammove.features.plans.permissions import get_plan_features, get_plan_limits
from teammove.models.plan import PlanData, PlanTier


def _plan(tier, **overrides):
    tier = PlanTier(tier)
    return PlanData(
        company_id="c1",
        tier=tier,
        name=tier.value.title(),
        features=overrides.pop("features", get_plan_features(tier)),
        limits=get_plan_limits(tier),
        **overrides,
    )


@pytest.mark.parametrize(
    "has_access,mode,has_fallback,expected",
    [
        (True, GateMode.HIDE, False, GateOutcome.CONTENT),
        (True, GateMode.BLOCK, True, GateOutcome.CONTENT),
        (True, GateMode.ALERT, False, GateOutcome.CONTENT),
        (False, GateMode.HIDE, False, GateOutcome.NOTHING),
        (False, GateMode.HIDE, True, GateOutcome.NOTHING),
        (False, GateMode.BLOCK, False, GateOutcome.UPGRADE_PROMPT),
        (False, GateMode.BLOCK, True, GateOutcome.FALLBACK),
        (False, GateMode.ALERT, False, GateOutcome.CONTENT_WITH_WARNING),
    ],
)
def test_decide_gate(has_access, mode, has_fallback, expected):
    assert decide_gate(has_access, mode, has_fallback) is expected


def test_block_is_the_default_mode():
    assert decide_gate(False) is GateOutcome.UPGRADE_PROMPT


def test_mode_accepts_wire_string():
    assert decide_gate(False, "alert") is GateOutcome.CONTENT_WITH_WARNING


class TestPlanGuard:
    def test_sufficient_plan_shows_content(self):
        decision = evaluate_plan_guard(_plan("PRO"), required_plan="ESSENTIEL")
        assert decision.has_access is True
        assert decision.outcome is GateOutcome.CONTENT
        assert decision.message is None

    def test_insufficient_plan_gets_upgrade_prompt(self):
        decision = evaluate_plan_guard(_plan("DECOUVERTE"), required_plan="PRO", feature_label="the CRM")
        assert decision.has_access is False
        assert decision.outcome is GateOutcome.UPGRADE_PROMPT
        assert "ESSENTIEL" in decision.message
        assert "the CRM" in decision.message

    def test_tier_passes_but_feature_withheld(self):
        plan = _plan("PRO", features=get_plan_features("DECOUVERTE"))
        decision = evaluate_plan_guard(plan, required_plan="PRO", required_feature="hasCRM", mode="hide")
        assert decision.has_access is False
        assert decision.outcome is GateOutcome.NOTHING

    def test_no_plan_data_denies(self):
        decision = evaluate_plan_guard(None, required_plan="DECOUVERTE")
        assert decision.has_access is False
        assert decision.outcome is GateOutcome.UPGRADE_PROMPT

    def test_unknown_required_plan_raises(self):
        with pytest.raises(UnknownPlanTierError):
            evaluate_plan_guard(_plan("PRO"), required_plan="GOLD")

    def test_feature_gate_alert_mode(self):
        decision = evaluate_feature_gate(_plan("ESSENTIEL"), "hasAPI", mode=GateMode.ALERT, feature_label="API access")
        assert decision.outcome is GateOutcome.CONTENT_WITH_WARNING
        assert "PRO" in decision.message

    def test_feature_gate_unknown_feature_denied(self):
        decision = evaluate_feature_gate(_plan("PREMIUM"), "hasTimeTravel")
        assert decision.has_access is False
        assert decision.message == "This feature requires a higher plan."


class TestLimitGuard:
    def test_usage_under_threshold(self):
        usage = evaluate_resource_usage("ESSENTIEL", "vehicles", 10)
        assert usage.percentage == pytest.approx(20.0)
        assert usage.is_near_limit is False
        assert usage.is_at_limit is False
        assert usage.remaining == 40
        assert evaluate_limit_guard("ESSENTIEL", "vehicles", 10).outcome is GateOutcome.CONTENT

    def test_near_limit_warns_at_80_percent(self):
        decision = evaluate_limit_guard("ESSENTIEL", "vehicles", 40)
        assert decision.usage.is_near_limit is True
        assert decision.usage.can_add is True
        assert decision.outcome is GateOutcome.CONTENT_WITH_WARNING
        assert "40 of 50" in decision.warning

    def test_just_below_threshold_has_no_warning(self):
        decision = evaluate_limit_guard("ESSENTIEL", "vehicles", 39)
        assert decision.outcome is GateOutcome.CONTENT
        assert decision.warning is None

    def test_at_limit_blocks_creation(self):
        decision = evaluate_limit_guard("DECOUVERTE", "events", 2)
        assert decision.usage.is_at_limit is True
        assert decision.usage.percentage == 100.0
        assert decision.usage.remaining == 0
        assert decision.outcome is GateOutcome.UPGRADE_PROMPT
        assert "2" in decision.warning

    def test_percentage_is_capped(self):
        # Over the limit after a downgrade
        usage = evaluate_resource_usage("DECOUVERTE", "participants", 25)
        assert usage.percentage == 100.0
        assert usage.remaining == 0

    def test_unlimited_has_no_percentage(self):
        usage = evaluate_resource_usage("PREMIUM", "vehicles", 500)
        assert usage.limit is None
        assert usage.percentage == 0.0
        assert usage.remaining is None
        assert usage.is_at_limit is False

    def test_zero_limit_is_at_limit(self):
        decision = evaluate_limit_guard("DECOUVERTE", "vehicles", 0)
        assert decision.usage.percentage == 0.0
        assert decision.usage.is_at_limit is True
        assert decision.outcome is GateOutcome.UPGRADE_PROMPT
