"""
teammove/features/plans/service.py

Plan catalog and subscription lifecycle.

Handles:
- Plan seeding (DECOUVERTE, ESSENTIEL, PRO, PREMIUM)
- Current plan lookup per company (cached, see cache.py)
- Admin plan changes and quote approval
- Upgrade requests (quote for PRO/PREMIUM, checkout for ESSENTIEL)
- Plan history
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
from sqlalchemy import select, insert, update

from teammove.core.database import (
    get_db_session,
    plans,
    companies,
    company_plan_state,
    plan_history,
)
from teammove.core.errors import ConflictError, NotFoundError, ValidationError
from teammove.features.plans import cache
from teammove.features.plans.permissions import (
    TierLike,
    get_plan_features,
    get_plan_limits,
    parse_tier,
    plan_rank,
    requires_quote,
)
from teammove.models.company import PendingQuote, UpgradeResult
from teammove.models.plan import Plan, PlanData, PlanHistoryEntry, PlanTier


logger = logging.getLogger(__name__)

# Catalog copy and prices (EUR). PRO and PREMIUM are priced on quote.
DEFAULT_PLANS = {
    PlanTier.DECOUVERTE: {
        "name": "Découverte",
        "description": "Free plan to discover TEAMMOVE",
        "monthly_price": "0.00",
        "annual_price": "0.00",
    },
    PlanTier.ESSENTIEL: {
        "name": "Essentiel",
        "description": "For growing companies",
        "monthly_price": "25.99",
        "annual_price": "300.00",
    },
    PlanTier.PRO: {
        "name": "Pro",
        "description": "Complete solution for professionals",
        "monthly_price": "0.00",
        "annual_price": "0.00",
    },
    PlanTier.PREMIUM: {
        "name": "Premium",
        "description": "Tailor-made solution with white label",
        "monthly_price": "0.00",
        "annual_price": "0.00",
    },
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def plan_features_payload(tier: TierLike) -> Dict[str, Any]:
    """Stored features JSON: flags and limits under their wire names."""
    payload = get_plan_features(tier).model_dump(by_alias=True)
    payload.update(get_plan_limits(tier).model_dump(by_alias=True))
    return payload


def seed_plans() -> None:
    """
    Seed the plan catalog (idempotent).

    Existing rows are rewritten so the stored features always match the
    permission tables.
    """
    with get_db_session() as session:
        for position, (tier, config) in enumerate(DEFAULT_PLANS.items()):
            values = dict(
                name=config["name"],
                description=config["description"],
                monthly_price=config["monthly_price"],
                annual_price=config["annual_price"],
                features=plan_features_payload(tier),
                requires_quote=requires_quote(tier),
                is_active=True,
                position=position,
            )
            existing = session.execute(
                select(plans.c.tier).where(plans.c.tier == tier.value)
            ).first()
            if existing:
                session.execute(update(plans).where(plans.c.tier == tier.value).values(**values))
            else:
                session.execute(insert(plans).values(tier=tier.value, **values))

    logger.info("[plans] catalog seeded", extra={"plan_count": len(DEFAULT_PLANS)})


def _plan_from_row(row) -> Plan:
    tier = parse_tier(row.tier)
    return Plan(
        tier=tier,
        name=row.name,
        description=row.description,
        monthly_price=row.monthly_price,
        annual_price=row.annual_price,
        features=get_plan_features(tier),
        limits=get_plan_limits(tier),
        requires_quote=row.requires_quote,
        is_active=row.is_active,
    )


def list_plans(active_only: bool = True) -> List[Plan]:
    query = select(plans).order_by(plans.c.position)
    if active_only:
        query = query.where(plans.c.is_active == True)  # noqa: E712
    with get_db_session() as session:
        rows = session.execute(query).fetchall()
    return [_plan_from_row(row) for row in rows]


def get_plan(tier: TierLike) -> Optional[Plan]:
    """Get catalog entry by tier."""
    tier = parse_tier(tier)
    with get_db_session() as session:
        row = session.execute(select(plans).where(plans.c.tier == tier.value)).first()
    return _plan_from_row(row) if row else None


def _load_state(session, company_id: str):
    row = session.execute(
        select(
            company_plan_state,
            companies.c.is_active.label("company_active"),
            plans.c.name.label("plan_name"),
            plans.c.is_active.label("plan_active"),
        )
        .select_from(
            company_plan_state
            .join(companies, companies.c.company_id == company_plan_state.c.company_id)
            .join(plans, plans.c.tier == company_plan_state.c.tier)
        )
        .where(company_plan_state.c.company_id == company_id)
    ).first()
    if not row:
        raise NotFoundError(f"No plan found for company {company_id}", details={"company_id": company_id})
    return row


def _plan_data_from_state(row) -> PlanData:
    tier = parse_tier(row.tier)
    return PlanData(
        company_id=row.company_id,
        tier=tier,
        name=row.plan_name,
        features=get_plan_features(tier),
        limits=get_plan_limits(tier),
        quote_pending=bool(row.quote_pending),
        requested_tier=parse_tier(row.requested_tier) if row.requested_tier else None,
        is_active=bool(row.company_active and row.plan_active),
    )


def get_current_plan_data(company_id: str, *, use_cache: bool = True) -> PlanData:
    """
    Current plan of a company.

    Raises:
        NotFoundError: company has no plan state
    """
    if use_cache:
        cached = cache.get_cached_plan(company_id)
        if cached is not None:
            return cached

    with get_db_session() as session:
        plan_data = _plan_data_from_state(_load_state(session, company_id))

    cache.set_cached_plan(company_id, plan_data)
    return plan_data


def record_history(session, company_id: str, old_tier: Optional[str], new_tier: str, reason: Optional[str], changed_by: Optional[str]) -> None:
    session.execute(
        insert(plan_history).values(
            company_id=company_id,
            old_tier=old_tier,
            new_tier=new_tier,
            reason=reason,
            changed_by=changed_by,
            created_at=_utcnow(),
        )
    )


def change_plan(company_id: str, tier: TierLike, changed_by: str, reason: Optional[str] = None) -> PlanData:
    """
    Move a company to another tier (admin action; downgrades allowed).

    Clears any pending quote, writes history and drops the cached plan.
    """
    tier = parse_tier(tier)
    now = _utcnow()

    with get_db_session() as session:
        state = _load_state(session, company_id)
        session.execute(
            update(company_plan_state)
            .where(company_plan_state.c.company_id == company_id)
            .values(tier=tier.value, quote_pending=False, requested_tier=None, updated_at=now)
        )
        record_history(
            session,
            company_id,
            state.tier,
            tier.value,
            reason or f"Plan changed from {state.tier} to {tier.value}",
            changed_by,
        )

    cache.invalidate_plan(company_id)
    logger.info(
        "[plans] plan changed",
        extra={"company_id": company_id, "old_tier": state.tier, "new_tier": tier.value, "changed_by": changed_by},
    )
    return get_current_plan_data(company_id)


def approve_quote(company_id: str, tier: TierLike, approved_by: str) -> PlanData:
    """
    Activate a quoted tier after manual review.

    Raises:
        ValidationError: tier is not sold on quote (PRO/PREMIUM only)
        ConflictError: company has no pending quote
    """
    tier = parse_tier(tier)
    if not requires_quote(tier):
        raise ValidationError(
            f"{tier.value} is not sold on quote",
            code="quote_tier_invalid",
            details={"tier": tier.value},
        )

    now = _utcnow()
    with get_db_session() as session:
        state = _load_state(session, company_id)
        if not state.quote_pending:
            raise ConflictError(
                f"Company {company_id} has no pending quote",
                code="no_pending_quote",
                details={"company_id": company_id},
            )
        session.execute(
            update(company_plan_state)
            .where(company_plan_state.c.company_id == company_id)
            .values(
                tier=tier.value,
                quote_pending=False,
                requested_tier=None,
                quote_approved_at=now,
                approved_by=approved_by,
                updated_at=now,
            )
        )
        record_history(session, company_id, state.tier, tier.value, f"Quote approved for {tier.value}", approved_by)

    cache.invalidate_plan(company_id)
    logger.info(
        "[plans] quote approved",
        extra={"company_id": company_id, "new_tier": tier.value, "approved_by": approved_by},
    )
    return get_current_plan_data(company_id)


def request_upgrade(company_id: str, tier: TierLike) -> UpgradeResult:
    """
    Ask for a higher tier.

    PRO/PREMIUM put the company in quote-pending state until an admin
    approves. ESSENTIEL is activated by the billing checkout, so we only
    point the caller there.

    Raises:
        ValidationError: requested tier is not above the current one
    """
    tier = parse_tier(tier)

    with get_db_session() as session:
        state = _load_state(session, company_id)
        current = parse_tier(state.tier)
        if plan_rank(tier) <= plan_rank(current):
            raise ValidationError(
                f"Company is already on {current.value}; {tier.value} is not an upgrade",
                code="not_an_upgrade",
                details={"current_tier": current.value, "requested_tier": tier.value},
            )

        if requires_quote(tier):
            session.execute(
                update(company_plan_state)
                .where(company_plan_state.c.company_id == company_id)
                .values(quote_pending=True, requested_tier=tier.value, updated_at=_utcnow())
            )
            result = UpgradeResult(
                status="quote_pending",
                current_tier=current,
                requested_tier=tier,
                message=f"Your request for the {tier.value} plan has been sent. Our team will get back to you with a quote.",
            )
        else:
            result = UpgradeResult(
                status="checkout_required",
                current_tier=current,
                requested_tier=tier,
                message=f"Complete the payment to activate the {tier.value} plan.",
                checkout_path=f"/billing?plan={tier.value}",
            )

    if result.status == "quote_pending":
        cache.invalidate_plan(company_id)
    logger.info(
        "[plans] upgrade requested",
        extra={"company_id": company_id, "current_tier": current.value, "requested_tier": tier.value, "upgrade_status": result.status},
    )
    return result


def list_pending_quotes() -> List[PendingQuote]:
    with get_db_session() as session:
        rows = session.execute(
            select(
                company_plan_state.c.company_id,
                company_plan_state.c.tier,
                company_plan_state.c.requested_tier,
                company_plan_state.c.updated_at,
                companies.c.name,
                companies.c.email,
            )
            .select_from(company_plan_state.join(companies, companies.c.company_id == company_plan_state.c.company_id))
            .where(company_plan_state.c.quote_pending == True)  # noqa: E712
            .order_by(company_plan_state.c.updated_at)
        ).fetchall()

    return [
        PendingQuote(
            company_id=row.company_id,
            company_name=row.name,
            email=row.email,
            current_tier=parse_tier(row.tier),
            requested_tier=parse_tier(row.requested_tier) if row.requested_tier else None,
            requested_at=row.updated_at,
        )
        for row in rows
    ]


def get_plan_history(company_id: str) -> List[PlanHistoryEntry]:
    """Plan changes for a company, newest first."""
    with get_db_session() as session:
        rows = session.execute(
            select(plan_history)
            .where(plan_history.c.company_id == company_id)
            .order_by(plan_history.c.created_at.desc(), plan_history.c.id.desc())
        ).fetchall()

    return [
        PlanHistoryEntry(
            company_id=row.company_id,
            old_tier=parse_tier(row.old_tier) if row.old_tier else None,
            new_tier=parse_tier(row.new_tier),
            reason=row.reason,
            changed_by=row.changed_by,
            created_at=row.created_at,
        )
        for row in rows
    ]
