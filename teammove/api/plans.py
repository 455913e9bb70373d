"""
Plan API routes.

- GET  /api/plans: Active plan catalog
- GET  /api/plans/current-features: Caller's PlanData (poll target)
- GET  /api/plans/navigation: Dashboard menu for the caller's plan
- GET  /api/plans/limits/{resource}: Live usage against a plan limit
- GET  /api/plans/access: Gate decision for a plan/feature requirement
- GET  /api/plans/history: Plan changes, newest first
- POST /api/plans/upgrade-request: Ask for a higher tier
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Response
from pydantic import BaseModel

from teammove.core.auth import get_current_company_id
from teammove.core.config import settings
from teammove.features.events.service import get_event
from teammove.features.gating.service import (
    GateDecision,
    GateMode,
    LimitGuardDecision,
    evaluate_limit_guard,
    evaluate_plan_guard,
)
from teammove.features.plans.menu import get_navigation
from teammove.features.plans.permissions import parse_resource
from teammove.features.plans.service import (
    get_current_plan_data,
    get_plan_history,
    list_plans,
    request_upgrade,
)
from teammove.features.quotas.service import count_resources
from teammove.models.company import UpgradeResult
from teammove.models.plan import MenuItem, Plan, PlanData, PlanHistoryEntry


router = APIRouter(prefix="/api/plans", tags=["plans"])


class NavigationResponse(BaseModel):
    items: List[MenuItem]
    settings: List[MenuItem]


class UpgradeRequest(BaseModel):
    tier: str


@router.get("", response_model=List[Plan])
def get_plans():
    return list_plans()


@router.get("/current-features", response_model=PlanData)
def current_features(response: Response, company_id: str = Depends(get_current_company_id)):
    """
    Current plan of the caller's company.

    Clients re-fetch this every `x-plan-poll-interval` seconds and right
    after an upgrade so the dashboard picks up plan changes.
    """
    response.headers["x-plan-poll-interval"] = str(settings.PLAN_POLL_INTERVAL_SECONDS)
    response.headers["cache-control"] = "no-store"
    return get_current_plan_data(company_id)


@router.get("/navigation", response_model=NavigationResponse)
def navigation(company_id: str = Depends(get_current_company_id)):
    plan_data = get_current_plan_data(company_id)
    return get_navigation(plan_data.tier, plan_data.features)


@router.get("/limits/{resource}", response_model=LimitGuardDecision)
def resource_limit(
    resource: str,
    event_id: Optional[str] = Query(None),
    company_id: str = Depends(get_current_company_id),
):
    """Usage of a resource against the plan limit, with the guard outcome."""
    resource_type = parse_resource(resource)
    if event_id:
        get_event(company_id, event_id)
    plan_data = get_current_plan_data(company_id)
    current = count_resources(company_id, resource_type, event_id, tier=plan_data.tier)
    return evaluate_limit_guard(plan_data.tier, resource_type, current)


@router.get("/access", response_model=GateDecision)
def access(
    required_plan: Optional[str] = Query(None),
    required_feature: Optional[str] = Query(None),
    mode: GateMode = Query(GateMode.BLOCK),
    feature_label: Optional[str] = Query(None),
    has_fallback: bool = Query(False),
    company_id: str = Depends(get_current_company_id),
):
    plan_data = get_current_plan_data(company_id)
    return evaluate_plan_guard(
        plan_data,
        required_plan=required_plan,
        required_feature=required_feature,
        mode=mode,
        feature_label=feature_label or required_feature or "this feature",
        has_fallback=has_fallback,
    )


@router.get("/history", response_model=List[PlanHistoryEntry])
def history(company_id: str = Depends(get_current_company_id)):
    return get_plan_history(company_id)


@router.post("/upgrade-request", response_model=UpgradeResult)
def upgrade_request(body: UpgradeRequest, company_id: str = Depends(get_current_company_id)):
    return request_upgrade(company_id, body.tier)
