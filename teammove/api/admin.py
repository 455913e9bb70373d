"""
Admin API routes for plan and company operations.

All routes require the X-Admin-Key header.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from pydantic import BaseModel

from teammove.core.admin_auth import AdminActor, require_admin
from teammove.features.companies.service import set_company_active
from teammove.features.plans.service import approve_quote, change_plan, list_pending_quotes
from teammove.models.company import Company, PendingQuote
from teammove.models.plan import PlanData

router = APIRouter(prefix="/api/admin", tags=["admin"])


class ApproveQuoteRequest(BaseModel):
    tier: str


class ChangePlanRequest(BaseModel):
    tier: str
    reason: Optional[str] = None


class CompanyStatusRequest(BaseModel):
    is_active: bool


@router.get("/quotes", response_model=List[PendingQuote])
def pending_quotes(actor: AdminActor = Depends(require_admin)):
    """Companies waiting for a PRO/PREMIUM quote."""
    return list_pending_quotes()


@router.post("/quotes/{company_id}/approve", response_model=PlanData)
def approve(company_id: str, body: ApproveQuoteRequest, actor: AdminActor = Depends(require_admin)):
    return approve_quote(company_id, body.tier, approved_by=actor.actor_id)


@router.post("/companies/{company_id}/plan", response_model=PlanData)
def set_plan(company_id: str, body: ChangePlanRequest, actor: AdminActor = Depends(require_admin)):
    """Move a company to any tier (downgrades included)."""
    return change_plan(company_id, body.tier, changed_by=actor.actor_id, reason=body.reason)


@router.put("/companies/{company_id}/status", response_model=Company)
def set_status(company_id: str, body: CompanyStatusRequest, actor: AdminActor = Depends(require_admin)):
    """Suspend or reactivate a company."""
    return set_company_active(company_id, body.is_active, changed_by=actor.actor_id)
