"""
Company registration route.

Address lookup, captcha and the account's user login are handled by other
services; this only creates the company and its plan state.
"""
from fastapi import APIRouter
from pydantic import BaseModel

from teammove.features.companies.service import register_company
from teammove.models.company import RegistrationResult
from teammove.models.plan import PlanTier


router = APIRouter(prefix="/api/companies", tags=["companies"])


class RegisterCompanyRequest(BaseModel):
    name: str
    email: str
    tier: str = PlanTier.DECOUVERTE.value


@router.post("/register", response_model=RegistrationResult, status_code=201)
def register(body: RegisterCompanyRequest):
    return register_company(body.name, body.email, body.tier)
