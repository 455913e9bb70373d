"""
teammove/features/gating/service.py

Gate and guard decisions for plan-protected content.

The dashboard wraps protected screens in one of three policies:
- hide: render nothing when access is denied
- block (default): render a fallback or an upgrade prompt
- alert: render the content anyway behind a warning banner

Limit guards add a usage bar on top of can_add_resource. These functions
only pick the outcome; rendering stays with the client.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from teammove.features.plans.permissions import (
    NEAR_LIMIT_THRESHOLD,
    TierLike,
    can_add_resource,
    get_upgrade_message,
    has_sufficient_plan,
    parse_tier,
    plan_data_has_feature,
)
from teammove.models.plan import PlanData, PlanTier, ResourceType


class GateMode(str, Enum):
    HIDE = "hide"
    BLOCK = "block"
    ALERT = "alert"


class GateOutcome(str, Enum):
    CONTENT = "content"
    NOTHING = "nothing"
    FALLBACK = "fallback"
    UPGRADE_PROMPT = "upgrade_prompt"
    CONTENT_WITH_WARNING = "content_with_warning"


@dataclass(frozen=True)
class GateDecision:
    outcome: GateOutcome
    has_access: bool
    message: Optional[str] = None


@dataclass(frozen=True)
class ResourceUsage:
    resource: ResourceType
    current: int
    can_add: bool
    limit: Optional[int]
    reason: Optional[str]
    percentage: float
    is_near_limit: bool
    is_at_limit: bool
    remaining: Optional[int]


@dataclass(frozen=True)
class LimitGuardDecision:
    outcome: GateOutcome
    usage: ResourceUsage
    warning: Optional[str] = None


def decide_gate(has_access: bool, mode: Union[GateMode, str] = GateMode.BLOCK, has_fallback: bool = False) -> GateOutcome:
    if has_access:
        return GateOutcome.CONTENT
    mode = GateMode(mode)
    if mode is GateMode.HIDE:
        return GateOutcome.NOTHING
    if mode is GateMode.ALERT:
        return GateOutcome.CONTENT_WITH_WARNING
    return GateOutcome.FALLBACK if has_fallback else GateOutcome.UPGRADE_PROMPT


def evaluate_plan_guard(
    plan_data: Optional[PlanData],
    required_plan: Optional[TierLike] = None,
    required_feature: Optional[str] = None,
    mode: Union[GateMode, str] = GateMode.BLOCK,
    feature_label: str = "this feature",
    has_fallback: bool = False,
) -> GateDecision:
    """
    Decide what a plan guard shows.

    Access requires the tier requirement (if any) AND the feature flag (if
    any). Without plan data nothing is granted. When denied, `message` is
    the upgrade copy for the company's current tier.
    """
    if required_plan is not None:
        required_plan = parse_tier(required_plan)

    if plan_data is None:
        has_access = False
    else:
        has_access = has_sufficient_plan(plan_data.tier, required_plan)
        if has_access and required_feature:
            has_access = plan_data_has_feature(plan_data, required_feature)

    outcome = decide_gate(has_access, mode, has_fallback)
    message = None
    if not has_access:
        current = plan_data.tier if plan_data is not None else PlanTier.DECOUVERTE
        message = get_upgrade_message(current, feature_label)
    return GateDecision(outcome=outcome, has_access=has_access, message=message)


def evaluate_feature_gate(
    plan_data: Optional[PlanData],
    feature: str,
    mode: Union[GateMode, str] = GateMode.BLOCK,
    feature_label: Optional[str] = None,
    has_fallback: bool = False,
) -> GateDecision:
    return evaluate_plan_guard(
        plan_data,
        required_feature=feature,
        mode=mode,
        feature_label=feature_label or feature,
        has_fallback=has_fallback,
    )


def evaluate_resource_usage(tier: TierLike, resource: Union[ResourceType, str], current_count: int) -> ResourceUsage:
    decision = can_add_resource(tier, resource, current_count)
    limit = decision.limit

    if limit:
        percentage = min(current_count / limit * 100, 100.0)
        remaining = max(limit - current_count, 0)
    else:
        percentage = 0.0
        remaining = None if limit is None else 0

    return ResourceUsage(
        resource=ResourceType(resource),
        current=current_count,
        can_add=decision.can_add,
        limit=limit,
        reason=decision.reason,
        percentage=percentage,
        is_near_limit=percentage >= NEAR_LIMIT_THRESHOLD,
        is_at_limit=not decision.can_add,
        remaining=remaining,
    )


def evaluate_limit_guard(tier: TierLike, resource: Union[ResourceType, str], current_count: int) -> LimitGuardDecision:
    """Block creation at the limit, warn from the near-limit threshold on."""
    usage = evaluate_resource_usage(tier, resource, current_count)
    if usage.is_at_limit:
        return LimitGuardDecision(
            outcome=GateOutcome.UPGRADE_PROMPT,
            usage=usage,
            warning=usage.reason,
        )
    if usage.is_near_limit:
        return LimitGuardDecision(
            outcome=GateOutcome.CONTENT_WITH_WARNING,
            usage=usage,
            warning=f"You are using {usage.current} of {usage.limit} {usage.resource.value} ({usage.percentage:.0f}%)",
        )
    return LimitGuardDecision(outcome=GateOutcome.CONTENT, usage=usage)
