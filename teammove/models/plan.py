"""
teammove/models/plan.py

Plan value objects: tiers, limits, feature flags and the composite PlanData
the dashboard fetches from /api/plans/current-features.

Wire names are camelCase (hasCRM, maxEvents, quotePending) because that is
what the dashboard and the stored plan catalog use; Python code works with
the snake_case field names.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class PlanTier(str, Enum):
    """Subscription tiers. Values are persisted and compared as-is."""
    DECOUVERTE = "DECOUVERTE"
    ESSENTIEL = "ESSENTIEL"
    PRO = "PRO"
    PREMIUM = "PREMIUM"


class ResourceType(str, Enum):
    EVENTS = "events"
    PARTICIPANTS = "participants"
    VEHICLES = "vehicles"


class PlanLimits(BaseModel):
    """Per-tier caps. None means unlimited, 0 means unavailable."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_events: Optional[int] = Field(alias="maxEvents")
    max_participants: Optional[int] = Field(alias="maxParticipants")
    max_vehicles: Optional[int] = Field(alias="maxVehicles")


class PlanFeatures(BaseModel):
    """Boolean capabilities unlocked by a tier. Never customized per company."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    has_advanced_reporting: bool = Field(default=False, alias="hasAdvancedReporting")
    has_notifications: bool = Field(default=False, alias="hasNotifications")
    has_crm: bool = Field(default=False, alias="hasCRM")
    has_api: bool = Field(default=False, alias="hasAPI")
    has_custom_logo: bool = Field(default=False, alias="hasCustomLogo")
    has_white_label: bool = Field(default=False, alias="hasWhiteLabel")
    has_dedicated_support: bool = Field(default=False, alias="hasDedicatedSupport")
    has_integrations: bool = Field(default=False, alias="hasIntegrations")


class PlanData(BaseModel):
    """What a company currently has: tier, flags, limits and quote state."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company_id: str = Field(alias="companyId")
    tier: PlanTier
    name: str
    features: PlanFeatures
    limits: PlanLimits
    quote_pending: bool = Field(default=False, alias="quotePending")
    requested_tier: Optional[PlanTier] = Field(default=None, alias="requestedTier")
    is_active: bool = Field(default=True, alias="isActive")


class Plan(BaseModel):
    """A row of the plan catalog."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    tier: PlanTier
    name: str
    description: Optional[str] = None
    monthly_price: str = Field(alias="monthlyPrice")
    annual_price: str = Field(alias="annualPrice")
    features: PlanFeatures
    limits: PlanLimits
    requires_quote: bool = Field(default=False, alias="requiresQuote")
    is_active: bool = Field(default=True, alias="isActive")


class ResourceDecision(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    can_add: bool = Field(alias="canAdd")
    limit: Optional[int] = None
    reason: Optional[str] = None


class MenuItem(BaseModel):
    """A dashboard navigation entry, optionally gated by tier and/or feature."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    icon: str  # Lucide icon name
    url: str
    required_plan: Optional[PlanTier] = Field(default=None, alias="requiredPlan")
    required_feature: Optional[str] = Field(default=None, alias="requiredFeature")
    description: Optional[str] = None
    badge: Optional[str] = None


class PlanHistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    company_id: str = Field(alias="companyId")
    old_tier: Optional[PlanTier] = Field(default=None, alias="oldTier")
    new_tier: PlanTier = Field(alias="newTier")
    reason: Optional[str] = None
    changed_by: Optional[str] = Field(default=None, alias="changedBy")
    created_at: datetime = Field(alias="createdAt")
