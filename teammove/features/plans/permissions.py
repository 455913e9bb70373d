"""
teammove/features/plans/permissions.py

Plan permission rules: tier ranking, resource limits, feature flags and
upgrade messaging.

Everything here is pure: no I/O, no framework state. The same functions
back the dashboard-facing endpoints and the server-side quota checks in
teammove.features.quotas.service, so the two can never disagree.
"""

from typing import Any, Dict, Mapping, Optional, Union

from teammove.core.errors import InvalidResourceCountError, UnknownPlanTierError, ValidationError
from teammove.models.plan import PlanData, PlanFeatures, PlanLimits, PlanTier, ResourceDecision, ResourceType


TierLike = Union[PlanTier, str]

PLAN_ORDER = (PlanTier.DECOUVERTE, PlanTier.ESSENTIEL, PlanTier.PRO, PlanTier.PREMIUM)

# Minimum fill ratio (percent) at which the dashboard warns about a quota
NEAR_LIMIT_THRESHOLD = 80


def parse_tier(value: TierLike) -> PlanTier:
    """Return the PlanTier for an enum member or its exact wire string.

    Unrecognized values raise UnknownPlanTierError; there is no fallback to
    the lowest tier.
    """
    if isinstance(value, PlanTier):
        return value
    try:
        return PlanTier(value)
    except ValueError:
        raise UnknownPlanTierError(
            f"Unknown plan tier: {value!r}",
            details={"tier": str(value)},
        )


def parse_resource(value: Union[ResourceType, str]) -> ResourceType:
    if isinstance(value, ResourceType):
        return value
    try:
        return ResourceType(value)
    except ValueError:
        raise ValidationError(
            f"Unknown resource type: {value!r}",
            code="unknown_resource_type",
            details={"resource": str(value)},
        )


def plan_rank(tier: TierLike) -> int:
    tier = parse_tier(tier)
    if tier is PlanTier.DECOUVERTE:
        return 0
    if tier is PlanTier.ESSENTIEL:
        return 1
    if tier is PlanTier.PRO:
        return 2
    if tier is PlanTier.PREMIUM:
        return 3
    raise UnknownPlanTierError(f"Unknown plan tier: {tier!r}")


def has_sufficient_plan(user_tier: Optional[TierLike], required_tier: Optional[TierLike] = None) -> bool:
    """True when user_tier ranks at or above required_tier.

    No requirement always passes. No user tier (plan not loaded) fails any
    requirement.
    """
    user = parse_tier(user_tier) if user_tier is not None else None
    required = parse_tier(required_tier) if required_tier is not None else None
    if required is None:
        return True
    if user is None:
        return False
    return plan_rank(user) >= plan_rank(required)


# ---------------------------------------------------------------------------
# Limits
# ---------------------------------------------------------------------------

def get_plan_limits(tier: TierLike) -> PlanLimits:
    """
    Static resource caps for a tier.

    DECOUVERTE counts events per calendar year; participant and vehicle caps
    apply per event on every tier.
    """
    tier = parse_tier(tier)
    if tier is PlanTier.DECOUVERTE:
        return PlanLimits(max_events=2, max_participants=10, max_vehicles=0)
    if tier is PlanTier.ESSENTIEL:
        return PlanLimits(max_events=None, max_participants=500, max_vehicles=50)
    if tier is PlanTier.PRO:
        return PlanLimits(max_events=None, max_participants=5000, max_vehicles=100)
    if tier is PlanTier.PREMIUM:
        return PlanLimits(max_events=None, max_participants=10000, max_vehicles=None)
    raise UnknownPlanTierError(f"Unknown plan tier: {tier!r}")


def get_limit(tier: TierLike, resource: Union[ResourceType, str]) -> Optional[int]:
    limits = get_plan_limits(tier)
    resource = parse_resource(resource)
    if resource is ResourceType.EVENTS:
        return limits.max_events
    if resource is ResourceType.PARTICIPANTS:
        return limits.max_participants
    return limits.max_vehicles


def _validate_count(current_count: Any) -> int:
    if isinstance(current_count, bool) or not isinstance(current_count, int) or current_count < 0:
        raise InvalidResourceCountError(
            f"Resource count must be a non-negative integer, got {current_count!r}",
            details={"current": repr(current_count)},
        )
    return current_count


def can_add_resource(tier: TierLike, resource: Union[ResourceType, str], current_count: int) -> ResourceDecision:
    """
    Decide whether one more resource of the given type may be created.

    Args:
        tier: Company tier
        resource: events | participants | vehicles
        current_count: How many already exist (non-negative int)

    Returns:
        ResourceDecision; `reason` is set whenever `can_add` is False.

    Raises:
        UnknownPlanTierError: tier is not one of the four tiers
        InvalidResourceCountError: current_count is negative, a bool or not an int
    """
    tier = parse_tier(tier)
    resource = parse_resource(resource)
    current_count = _validate_count(current_count)
    limit = get_limit(tier, resource)

    if limit is None:
        return ResourceDecision(can_add=True, limit=None)

    if limit == 0:
        return ResourceDecision(
            can_add=False,
            limit=0,
            reason=f"This feature is not available on your {tier.value} plan",
        )

    if current_count >= limit:
        return ResourceDecision(
            can_add=False,
            limit=limit,
            reason=f"You have reached the limit of {limit} {resource.value} for your {tier.value} plan (quota reached)",
        )

    return ResourceDecision(can_add=True, limit=limit)


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

def get_plan_features(tier: TierLike) -> PlanFeatures:
    tier = parse_tier(tier)
    if tier is PlanTier.DECOUVERTE:
        return PlanFeatures()
    if tier is PlanTier.ESSENTIEL:
        return PlanFeatures(has_advanced_reporting=True, has_notifications=True)
    if tier is PlanTier.PRO:
        return PlanFeatures(
            has_advanced_reporting=True,
            has_notifications=True,
            has_crm=True,
            has_api=True,
            has_custom_logo=True,
            has_dedicated_support=True,
            has_integrations=True,
        )
    if tier is PlanTier.PREMIUM:
        return PlanFeatures(
            has_advanced_reporting=True,
            has_notifications=True,
            has_crm=True,
            has_api=True,
            has_custom_logo=True,
            has_white_label=True,
            has_dedicated_support=True,
            has_integrations=True,
        )
    raise UnknownPlanTierError(f"Unknown plan tier: {tier!r}")


# camelCase wire name -> snake_case field name
FEATURE_ALIASES: Dict[str, str] = {
    field.alias: name for name, field in PlanFeatures.model_fields.items()
}


def resolve_feature_name(feature_name: str) -> Optional[str]:
    """Map a wire or field feature name to the PlanFeatures field, or None."""
    if feature_name in PlanFeatures.model_fields:
        return feature_name
    return FEATURE_ALIASES.get(feature_name)


def feature_enabled(features: Union[PlanFeatures, Mapping[str, Any], None], feature_name: str) -> bool:
    """Look a flag up in a PlanFeatures or a plain mapping (either naming)."""
    if features is None:
        return False
    if isinstance(features, PlanFeatures):
        field = resolve_feature_name(feature_name)
        return bool(field and getattr(features, field) is True)
    if features.get(feature_name) is True:
        return True
    field = resolve_feature_name(feature_name)
    if field is None:
        return False
    alias = PlanFeatures.model_fields[field].alias
    return features.get(field) is True or features.get(alias) is True


def has_feature(tier: Optional[TierLike], feature_name: str) -> bool:
    """Whether the tier unlocks the feature. Unknown feature names are denied."""
    if tier is None:
        return False
    return feature_enabled(get_plan_features(tier), feature_name)


def plan_data_has_feature(plan_data: Optional[PlanData], feature_name: str) -> bool:
    if plan_data is None:
        return False
    return feature_enabled(plan_data.features, feature_name)


# ---------------------------------------------------------------------------
# Upgrade messaging
# ---------------------------------------------------------------------------

def get_next_plan(tier: TierLike) -> Optional[PlanTier]:
    rank = plan_rank(tier)
    if rank + 1 >= len(PLAN_ORDER):
        return None
    return PLAN_ORDER[rank + 1]


def get_upgrade_message(tier: TierLike, feature_label: str) -> str:
    next_plan = get_next_plan(tier)
    if next_plan is None:
        return "This feature requires a higher plan."
    return f"Upgrade to the {next_plan.value} plan to unlock {feature_label}."


def requires_quote(tier: TierLike) -> bool:
    """PRO and PREMIUM are sold on quote and activated by an admin."""
    return plan_rank(tier) >= plan_rank(PlanTier.PRO)
