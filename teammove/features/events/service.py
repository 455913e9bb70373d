"""
teammove/features/events/service.py

Events, participants and vehicles. Each create is checked against the
company's plan before the row is written.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
import logging
import uuid
from sqlalchemy import select, insert, func
from sqlalchemy.exc import IntegrityError

from teammove.core.database import get_db_session, events, participants, vehicles
from teammove.core.errors import ConflictError, NotFoundError, PermissionError
from teammove.features.quotas.service import enforce_resource_limit
from teammove.models.event import Event, EventCreate, Participant, ParticipantCreate, Vehicle, VehicleCreate
from teammove.models.plan import ResourceType


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _event_from_row(row) -> Event:
    return Event(
        event_id=row.event_id,
        company_id=row.company_id,
        title=row.title,
        location=row.location,
        starts_at=row.starts_at,
        created_at=row.created_at,
    )


def _get_owned_event(session, company_id: str, event_id: str):
    row = session.execute(select(events).where(events.c.event_id == event_id)).first()
    if not row:
        raise NotFoundError(f"Event {event_id} not found", details={"event_id": event_id})
    if row.company_id != company_id:
        raise PermissionError("Event belongs to another company", details={"event_id": event_id})
    return row


def get_event(company_id: str, event_id: str) -> Event:
    with get_db_session() as session:
        return _event_from_row(_get_owned_event(session, company_id, event_id))


def list_events(company_id: str) -> List[Event]:
    with get_db_session() as session:
        rows = session.execute(
            select(events).where(events.c.company_id == company_id).order_by(events.c.created_at.desc())
        ).fetchall()
    return [_event_from_row(row) for row in rows]


def create_event(company_id: str, payload: EventCreate, *, now: Optional[datetime] = None) -> Event:
    """
    Create an event.

    Raises:
        QuotaExceededError: yearly event quota reached (DECOUVERTE)
    """
    event_id = str(uuid.uuid4())
    created_at = now or _utcnow()

    with get_db_session() as session:
        enforce_resource_limit(company_id, ResourceType.EVENTS, session=session, now=created_at)
        session.execute(
            insert(events).values(
                event_id=event_id,
                company_id=company_id,
                title=payload.title,
                location=payload.location,
                starts_at=payload.starts_at,
                created_at=created_at,
            )
        )

    logger.info("[events] created", extra={"company_id": company_id, "event_id": event_id})
    return Event(
        event_id=event_id,
        company_id=company_id,
        title=payload.title,
        location=payload.location,
        starts_at=payload.starts_at,
        created_at=created_at,
    )


def add_participant(company_id: str, event_id: str, payload: ParticipantCreate) -> Participant:
    """
    Register a participant on one of the company's events.

    Raises:
        NotFoundError: unknown event
        PermissionError: event owned by another company
        QuotaExceededError: participant limit for the event reached
        ConflictError: email already registered on this event
    """
    participant_id = str(uuid.uuid4())
    created_at = _utcnow()
    email = payload.email.strip().lower() if payload.email else None

    try:
        with get_db_session() as session:
            _get_owned_event(session, company_id, event_id)
            enforce_resource_limit(company_id, ResourceType.PARTICIPANTS, event_id, session=session)
            session.execute(
                insert(participants).values(
                    participant_id=participant_id,
                    event_id=event_id,
                    name=payload.name,
                    email=email,
                    role=payload.role,
                    created_at=created_at,
                )
            )
    except IntegrityError as e:
        raise ConflictError(
            "This participant is already registered for the event",
            code="participant_exists",
            details={"event_id": event_id},
        ) from e

    logger.info(
        "[events] participant added",
        extra={"company_id": company_id, "event_id": event_id, "participant_id": participant_id},
    )
    return Participant(
        participant_id=participant_id,
        event_id=event_id,
        name=payload.name,
        email=email,
        role=payload.role,
        created_at=created_at,
    )


def add_vehicle(company_id: str, event_id: str, payload: VehicleCreate) -> Vehicle:
    """
    Add a carpool vehicle to an event. DECOUVERTE has no vehicles at all.

    Raises:
        NotFoundError: unknown event
        PermissionError: event owned by another company
        QuotaExceededError: vehicle limit for the event reached
    """
    vehicle_id = str(uuid.uuid4())
    created_at = _utcnow()

    with get_db_session() as session:
        _get_owned_event(session, company_id, event_id)
        enforce_resource_limit(company_id, ResourceType.VEHICLES, event_id, session=session)
        session.execute(
            insert(vehicles).values(
                vehicle_id=vehicle_id,
                event_id=event_id,
                driver_name=payload.driver_name,
                seats=payload.seats,
                created_at=created_at,
            )
        )

    logger.info(
        "[events] vehicle added",
        extra={"company_id": company_id, "event_id": event_id, "vehicle_id": vehicle_id},
    )
    return Vehicle(
        vehicle_id=vehicle_id,
        event_id=event_id,
        driver_name=payload.driver_name,
        seats=payload.seats,
        created_at=created_at,
    )


def get_reporting_summary(company_id: str) -> Dict[str, Any]:
    """Totals across the company's events (advanced reporting)."""
    with get_db_session() as session:
        event_count = session.execute(
            select(func.count()).select_from(events).where(events.c.company_id == company_id)
        ).scalar_one()
        participant_count = session.execute(
            select(func.count())
            .select_from(participants.join(events, events.c.event_id == participants.c.event_id))
            .where(events.c.company_id == company_id)
        ).scalar_one()
        driver_count = session.execute(
            select(func.count())
            .select_from(participants.join(events, events.c.event_id == participants.c.event_id))
            .where(events.c.company_id == company_id)
            .where(participants.c.role == "driver")
        ).scalar_one()
        vehicle_row = session.execute(
            select(func.count(), func.coalesce(func.sum(vehicles.c.seats), 0))
            .select_from(vehicles.join(events, events.c.event_id == vehicles.c.event_id))
            .where(events.c.company_id == company_id)
        ).first()

    vehicle_count, seat_count = vehicle_row
    return {
        "events": event_count,
        "participants": participant_count,
        "drivers": driver_count,
        "vehicles": vehicle_count,
        "seats": int(seat_count),
    }


def list_contacts(company_id: str) -> List[Dict[str, Any]]:
    """Distinct participant contacts across events (CRM view)."""
    with get_db_session() as session:
        rows = session.execute(
            select(
                participants.c.email,
                func.max(participants.c.name).label("name"),
                func.count().label("event_count"),
            )
            .select_from(participants.join(events, events.c.event_id == participants.c.event_id))
            .where(events.c.company_id == company_id)
            .where(participants.c.email.is_not(None))
            .group_by(participants.c.email)
            .order_by(participants.c.email)
        ).fetchall()
    return [{"email": row.email, "name": row.name, "eventCount": row.event_count} for row in rows]
