"""
Event routes plus the feature-gated reporting and CRM views.

Creates are refused with 403 quota_exceeded once the plan limit is reached;
gated views answer 403 feature_unavailable below the required plan.
"""
from typing import Any, Dict, List
from fastapi import APIRouter, Depends

from teammove.core.auth import get_current_company_id
from teammove.features.events.service import (
    add_participant,
    add_vehicle,
    create_event,
    get_reporting_summary,
    list_contacts,
    list_events,
)
from teammove.features.quotas.service import require_feature
from teammove.models.event import Event, EventCreate, Participant, ParticipantCreate, Vehicle, VehicleCreate
from teammove.models.plan import PlanData


router = APIRouter(prefix="/api", tags=["events"])


@router.get("/events", response_model=List[Event])
def get_events(company_id: str = Depends(get_current_company_id)):
    return list_events(company_id)


@router.post("/events", response_model=Event, status_code=201)
def post_event(body: EventCreate, company_id: str = Depends(get_current_company_id)):
    return create_event(company_id, body)


@router.post("/events/{event_id}/participants", response_model=Participant, status_code=201)
def post_participant(event_id: str, body: ParticipantCreate, company_id: str = Depends(get_current_company_id)):
    return add_participant(company_id, event_id, body)


@router.post("/events/{event_id}/vehicles", response_model=Vehicle, status_code=201)
def post_vehicle(event_id: str, body: VehicleCreate, company_id: str = Depends(get_current_company_id)):
    return add_vehicle(company_id, event_id, body)


@router.get("/reporting/summary")
def reporting_summary(plan: PlanData = Depends(require_feature("hasAdvancedReporting"))) -> Dict[str, Any]:
    return get_reporting_summary(plan.company_id)


@router.get("/crm/contacts")
def crm_contacts(plan: PlanData = Depends(require_feature("hasCRM"))) -> Dict[str, Any]:
    contacts = list_contacts(plan.company_id)
    return {"count": len(contacts), "contacts": contacts}
