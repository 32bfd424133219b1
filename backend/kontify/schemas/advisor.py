from datetime import date

from pydantic import BaseModel, EmailStr

from kontify.models.advisor import AdvisorRole, AdvisorStatus, BillingStatus, FiscalSpecialization


class AdvisorResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    role: AdvisorRole
    specialization: FiscalSpecialization | None = None
    status: AdvisorStatus
    billing_status: BillingStatus
    renewal_date: date | None = None

    class Config:
        from_attributes = True


class AdvisorStatusUpdate(BaseModel):
    status: AdvisorStatus


class AdvisorStatusResponse(BaseModel):
    success: bool
    id: int
    status: AdvisorStatus
