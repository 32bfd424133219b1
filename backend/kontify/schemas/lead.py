from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from kontify.models.lead import LeadSource, LeadStatus


class LeadCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    email: EmailStr
    query_details: str = Field(min_length=1, max_length=20000)


class LeadUpdate(BaseModel):
    # Clients send the whole lead back; only the triage fields are read.
    status: LeadStatus
    asesor_id: int | None = None


class AssignmentHistoryEntry(BaseModel):
    asesor_id: int
    assigned_at: datetime
    assigned_by: int

    class Config:
        from_attributes = True


class LeadResponse(BaseModel):
    id: int
    name: str
    email: EmailStr
    query_details: str
    status: LeadStatus
    asesor_id: int | None
    created_at: datetime
    source: LeadSource
    assignment_history: list[AssignmentHistoryEntry] = []

    class Config:
        from_attributes = True
