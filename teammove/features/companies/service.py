"""
teammove/features/companies/service.py

Company registration.

DECOUVERTE and ESSENTIEL start right away (ESSENTIEL payment is handled by
the billing flow). PRO and PREMIUM are sold on quote: the company starts
on DECOUVERTE with the requested tier recorded until an admin approves.
"""

from datetime import datetime, timezone
import logging
import uuid
from sqlalchemy import select, insert, update
from sqlalchemy.exc import IntegrityError

from teammove.core.database import get_db_session, companies, company_plan_state
from teammove.core.errors import ConflictError, NotFoundError, ValidationError
from teammove.features.plans.cache import invalidate_plan
from teammove.features.plans.permissions import TierLike, parse_tier, requires_quote
from teammove.features.plans.service import DEFAULT_PLANS, get_current_plan_data, record_history
from teammove.models.company import Company, RegistrationResult
from teammove.models.plan import PlanTier


logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if "@" not in email or email.startswith("@") or email.endswith("@"):
        raise ValidationError("A valid email address is required", code="invalid_email")
    return email


def register_company(name: str, email: str, tier: TierLike = PlanTier.DECOUVERTE) -> RegistrationResult:
    """
    Create a company and its plan state.

    Raises:
        ValidationError: blank name, bad email or unknown tier
        ConflictError: email already registered
    """
    name = (name or "").strip()
    if not name:
        raise ValidationError("Company name is required", code="invalid_company_name")
    email = _normalize_email(email)
    requested = parse_tier(tier)

    quoted = requires_quote(requested)
    active_tier = PlanTier.DECOUVERTE if quoted else requested
    company_id = str(uuid.uuid4())
    now = datetime.now(timezone.utc)

    try:
        with get_db_session() as session:
            existing = session.execute(
                select(companies.c.company_id).where(companies.c.email == email)
            ).first()
            if existing:
                raise ConflictError(
                    "A company is already registered with this email",
                    code="email_taken",
                )

            session.execute(
                insert(companies).values(
                    company_id=company_id,
                    name=name,
                    email=email,
                    is_active=True,
                    created_at=now,
                )
            )
            session.execute(
                insert(company_plan_state).values(
                    company_id=company_id,
                    tier=active_tier.value,
                    quote_pending=quoted,
                    requested_tier=requested.value if quoted else None,
                    updated_at=now,
                )
            )
            reason = (
                f"Quote requested for {DEFAULT_PLANS[requested]['name']}"
                if quoted
                else "Initial registration"
            )
            record_history(session, company_id, None, active_tier.value, reason, "registration")
    except IntegrityError as e:
        # Concurrent registration with the same email
        raise ConflictError("A company is already registered with this email", code="email_taken") from e

    logger.info(
        "[companies] registered",
        extra={"company_id": company_id, "tier": active_tier.value, "quote_pending": quoted},
    )

    return RegistrationResult(
        company=Company(company_id=company_id, name=name, email=email, is_active=True, created_at=now),
        plan=get_current_plan_data(company_id),
    )


def get_company(company_id: str) -> Company:
    with get_db_session() as session:
        row = session.execute(select(companies).where(companies.c.company_id == company_id)).first()
    if not row:
        raise NotFoundError(f"Company {company_id} not found", details={"company_id": company_id})
    return Company(
        company_id=row.company_id,
        name=row.name,
        email=row.email,
        is_active=row.is_active,
        created_at=row.created_at,
    )


def set_company_active(company_id: str, is_active: bool, changed_by: str) -> Company:
    """
    Activate or suspend a company.

    Suspended companies keep their plan but every quota and feature check
    refuses them. The cached plan is dropped so the change applies at once.
    """
    with get_db_session() as session:
        result = session.execute(
            update(companies)
            .where(companies.c.company_id == company_id)
            .values(is_active=is_active)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Company {company_id} not found", details={"company_id": company_id})

    invalidate_plan(company_id)
    logger.info(
        "[companies] active flag changed",
        extra={"company_id": company_id, "is_active": is_active, "changed_by": changed_by},
    )
    return get_company(company_id)
