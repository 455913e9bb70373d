"""
teammove/models/company.py

Company accounts and the state around their subscription.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from teammove.models.plan import PlanData, PlanTier


class Company(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company_id: str = Field(alias="companyId")
    name: str
    email: str
    is_active: bool = Field(default=True, alias="isActive")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class RegistrationResult(BaseModel):
    """A newly registered company and the plan it starts on."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company: Company
    plan: PlanData


class PendingQuote(BaseModel):
    """A PRO/PREMIUM request waiting for admin approval."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company_id: str = Field(alias="companyId")
    company_name: str = Field(alias="companyName")
    email: str
    current_tier: PlanTier = Field(alias="currentTier")
    requested_tier: Optional[PlanTier] = Field(default=None, alias="requestedTier")
    requested_at: Optional[datetime] = Field(default=None, alias="requestedAt")


class UpgradeResult(BaseModel):
    """
    Outcome of an upgrade request.

    status is "quote_pending" for tiers sold on quote, or "checkout_required"
    when the tier is activated by the billing flow (payment happens there).
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    status: str
    current_tier: PlanTier = Field(alias="currentTier")
    requested_tier: PlanTier = Field(alias="requestedTier")
    message: str
    checkout_path: Optional[str] = Field(default=None, alias="checkoutPath")
