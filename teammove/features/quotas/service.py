"""
teammove/features/quotas/service.py

Server-side plan enforcement.

Every mutation that creates a quota-bound resource, and every endpoint
behind a feature flag, goes through here. The checks reuse the pure
functions in teammove.features.plans.permissions, so the API refuses
exactly what the dashboard hides.

Counting and inserting share one DB session but no row lock is taken: two
concurrent creates can both pass a check at limit - 1.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional, Union
import logging
from fastapi import Depends
from sqlalchemy import select, func

from teammove.core.auth import get_current_company_id
from teammove.core.database import get_db_session, events, participants, vehicles
from teammove.core.errors import FeatureUnavailableError, PermissionError, QuotaExceededError, ValidationError
from teammove.features.plans.permissions import (
    can_add_resource,
    get_upgrade_message,
    parse_resource,
    plan_data_has_feature,
    resolve_feature_name,
)
from teammove.features.plans.service import get_current_plan_data
from teammove.models.plan import PlanData, PlanTier, ResourceDecision, ResourceType


logger = logging.getLogger(__name__)

FEATURE_LABELS = {
    "has_advanced_reporting": "advanced reporting",
    "has_notifications": "notifications",
    "has_crm": "the CRM",
    "has_api": "API access",
    "has_custom_logo": "custom branding",
    "has_white_label": "white label",
    "has_dedicated_support": "dedicated support",
    "has_integrations": "integrations",
}


class EnforcementStatus(str, Enum):
    ALLOW = "ALLOW"
    BLOCK = "BLOCK"


@dataclass(frozen=True)
class QuotaCheck:
    status: EnforcementStatus
    resource: ResourceType
    tier: PlanTier
    current: int
    decision: ResourceDecision


def _normalize_now(now: Optional[datetime]) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def _count(session, company_id: str, resource: ResourceType, tier: PlanTier, event_id: Optional[str], now: datetime) -> int:
    if resource is ResourceType.EVENTS:
        query = select(func.count()).select_from(events).where(events.c.company_id == company_id)
        if tier is PlanTier.DECOUVERTE:
            # Annual quota: only events created this calendar year count
            year_start = datetime(now.year, 1, 1, tzinfo=timezone.utc)
            query = query.where(events.c.created_at >= year_start)
        return session.execute(query).scalar_one()

    if not event_id:
        raise ValidationError(
            f"event_id is required to count {resource.value}",
            code="event_required",
            details={"resource": resource.value},
        )
    table = participants if resource is ResourceType.PARTICIPANTS else vehicles
    return session.execute(
        select(func.count()).select_from(table).where(table.c.event_id == event_id)
    ).scalar_one()


def count_resources(
    company_id: str,
    resource: Union[ResourceType, str],
    event_id: Optional[str] = None,
    now: Optional[datetime] = None,
    *,
    session=None,
    tier: Optional[PlanTier] = None,
) -> int:
    """
    Live count used for quota checks.

    Events are counted per company (per calendar year on DECOUVERTE);
    participants and vehicles are counted per event.
    """
    resource = parse_resource(resource)
    if tier is None:
        tier = get_current_plan_data(company_id).tier
    now = _normalize_now(now)
    if session is not None:
        return _count(session, company_id, resource, tier, event_id, now)
    with get_db_session() as own_session:
        return _count(own_session, company_id, resource, tier, event_id, now)


def _ensure_active(plan_data: PlanData) -> None:
    if not plan_data.is_active:
        raise PermissionError(
            "Company account is inactive",
            code="company_inactive",
            details={"company_id": plan_data.company_id},
        )


def enforce_resource_limit(
    company_id: str,
    resource: Union[ResourceType, str],
    event_id: Optional[str] = None,
    *,
    session=None,
    now: Optional[datetime] = None,
) -> QuotaCheck:
    """
    Check that one more resource may be created.

    Returns:
        QuotaCheck with status ALLOW

    Raises:
        QuotaExceededError: plan limit reached (or resource unavailable on the tier)
        PermissionError: company is inactive
    """
    resource = parse_resource(resource)
    plan_data = get_current_plan_data(company_id)
    _ensure_active(plan_data)

    current = count_resources(company_id, resource, event_id, now, session=session, tier=plan_data.tier)
    decision = can_add_resource(plan_data.tier, resource, current)

    log_extra = {
        "company_id": company_id,
        "tier": plan_data.tier.value,
        "resource": resource.value,
        "event_id": event_id,
        "current": current,
        "limit": decision.limit,
    }

    if not decision.can_add:
        logger.warning("[quotas] BLOCK", extra={**log_extra, "enforcement_status": EnforcementStatus.BLOCK.value})
        raise QuotaExceededError(
            decision.reason or "Plan limit reached",
            details={
                "resource": resource.value,
                "limit": decision.limit,
                "current": current,
                "tier": plan_data.tier.value,
                "upgrade_message": get_upgrade_message(plan_data.tier, f"more {resource.value}"),
            },
        )

    logger.info("[quotas] ALLOW", extra={**log_extra, "enforcement_status": EnforcementStatus.ALLOW.value})
    return QuotaCheck(
        status=EnforcementStatus.ALLOW,
        resource=resource,
        tier=plan_data.tier,
        current=current,
        decision=decision,
    )


def enforce_feature(company_id: str, feature: str) -> PlanData:
    """
    Require a feature flag on the company's plan.

    Raises:
        FeatureUnavailableError: flag is off (or unknown) for the plan
        PermissionError: company is inactive
    """
    plan_data = get_current_plan_data(company_id)
    _ensure_active(plan_data)

    if plan_data_has_feature(plan_data, feature):
        return plan_data

    field = resolve_feature_name(feature)
    label = FEATURE_LABELS.get(field, feature)
    logger.warning(
        "[quotas] feature blocked",
        extra={"company_id": company_id, "tier": plan_data.tier.value, "feature": feature},
    )
    raise FeatureUnavailableError(
        get_upgrade_message(plan_data.tier, label),
        details={"feature": feature, "tier": plan_data.tier.value},
    )


def require_feature(feature: str) -> Callable[..., PlanData]:
    """
    FastAPI dependency factory guarding a route behind a feature flag.

    Usage:
        @router.get("/crm/contacts")
        def contacts(plan: PlanData = Depends(require_feature("hasCRM"))):
            ...
    """
    def dependency(company_id: str = Depends(get_current_company_id)) -> PlanData:
        return enforce_feature(company_id, feature)

    return dependency
