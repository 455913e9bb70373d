"""
Dashboard navigation per plan.

Items are gated twice: by tier (which groups are appended) and, when the
caller passes the company's feature flags, by feature. A tier can unlock a
route that is still withheld until its feature is active, e.g. while a
quote is pending.
"""

from typing import Any, Dict, List, Mapping, Optional, Union

from teammove.features.plans.permissions import TierLike, feature_enabled, has_sufficient_plan
from teammove.models.plan import MenuItem, PlanFeatures, PlanTier


BASE_MENU_ITEMS = (
    MenuItem(title="Dashboard", icon="LayoutDashboard", url="/dashboard",
             description="Overview of your activity"),
    MenuItem(title="Events", icon="Calendar", url="/events",
             description="Manage your events"),
    MenuItem(title="Participants", icon="Users", url="/participants",
             description="Manage participants"),
)

ESSENTIEL_MENU_ITEMS = (
    MenuItem(title="Vehicles", icon="Car", url="/vehicles",
             required_plan=PlanTier.ESSENTIEL,
             description="Manage up to 50 vehicles"),
    MenuItem(title="Reporting", icon="FileText", url="/reporting",
             required_plan=PlanTier.ESSENTIEL, required_feature="hasAdvancedReporting",
             description="Advanced reports", badge="Essentiel"),
    MenuItem(title="Notifications", icon="Bell", url="/notifications",
             required_plan=PlanTier.ESSENTIEL, required_feature="hasNotifications",
             description="Real-time notifications", badge="Essentiel"),
    MenuItem(title="Messaging", icon="MessageSquare", url="/broadcast",
             required_plan=PlanTier.ESSENTIEL, required_feature="hasNotifications",
             description="Broadcast messages to participants", badge="Essentiel"),
)

PRO_MENU_ITEMS = (
    MenuItem(title="CRM", icon="Users2", url="/crm",
             required_plan=PlanTier.PRO, required_feature="hasCRM",
             description="Customer relationship management", badge="Pro"),
    MenuItem(title="Statistics", icon="BarChart3", url="/advanced-stats",
             required_plan=PlanTier.PRO, required_feature="hasAdvancedReporting",
             description="Advanced statistics", badge="Pro"),
    MenuItem(title="Vehicles", icon="Car", url="/vehicles",
             required_plan=PlanTier.PRO,
             description="Manage up to 100 vehicles"),
    MenuItem(title="Branding", icon="Palette", url="/branding",
             required_plan=PlanTier.PRO, required_feature="hasCustomLogo",
             description="Customize the dashboard logo", badge="Pro"),
)

PREMIUM_MENU_ITEMS = (
    MenuItem(title="Integrations", icon="Puzzle", url="/integrations",
             required_plan=PlanTier.PREMIUM, required_feature="hasIntegrations",
             description="Custom integrations", badge="Premium"),
    MenuItem(title="API", icon="Code", url="/api-access",
             required_plan=PlanTier.PREMIUM, required_feature="hasAPI",
             description="Full API access", badge="Premium"),
    MenuItem(title="Vehicles", icon="Car", url="/vehicles",
             required_plan=PlanTier.PREMIUM,
             description="Unlimited vehicles"),
)

# Always shown, appended after the plan items by the navigation endpoint
SETTINGS_MENU_ITEMS = (
    MenuItem(title="Settings", icon="Settings", url="/settings",
             description="Account settings"),
    MenuItem(title="Billing", icon="CreditCard", url="/billing",
             description="Manage your subscription"),
    MenuItem(title="Support", icon="HelpCircle", url="/support",
             description="Contact support"),
)


def _dedupe_by_url(items: List[MenuItem]) -> List[MenuItem]:
    # Last entry per URL wins, kept at the slot where the URL first appeared
    unique: Dict[str, MenuItem] = {}
    for item in items:
        unique[item.url] = item
    return list(unique.values())


def get_menu_items_for_plan(
    tier: TierLike,
    features: Union[PlanFeatures, Mapping[str, Any], None] = None,
) -> List[MenuItem]:
    """
    Build the ordered navigation for a tier.

    Args:
        tier: Company tier
        features: Optional feature flags; items whose required_feature is
            not True in it are dropped.

    Returns:
        Menu items with unique URLs.
    """
    items = list(BASE_MENU_ITEMS)

    if has_sufficient_plan(tier, PlanTier.ESSENTIEL):
        items.extend(ESSENTIEL_MENU_ITEMS)

    if has_sufficient_plan(tier, PlanTier.PRO):
        items = [
            item for item in items
            if not (item.url == "/vehicles" and item.required_plan is PlanTier.ESSENTIEL)
        ]
        items.extend(PRO_MENU_ITEMS)

    if has_sufficient_plan(tier, PlanTier.PREMIUM):
        items = [
            item for item in items
            if not (item.url == "/vehicles" and item.required_plan is PlanTier.PRO)
        ]
        items.extend(PREMIUM_MENU_ITEMS)

    items = _dedupe_by_url(items)

    if features is not None:
        items = [
            item for item in items
            if item.required_feature is None or feature_enabled(features, item.required_feature)
        ]

    return items


def get_navigation(tier: TierLike, features: Optional[PlanFeatures] = None) -> Dict[str, List[MenuItem]]:
    return {
        "items": get_menu_items_for_plan(tier, features),
        "settings": list(SETTINGS_MENU_ITEMS),
    }
