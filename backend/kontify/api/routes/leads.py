import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session, selectinload

from kontify.core.database import get_db
from kontify.core.deps import get_current_advisor, require_roles
from kontify.core.rate_limit import limiter
from kontify.models.advisor import Advisor, AdvisorRole
from kontify.models.lead import Lead, LeadSource, LeadStatus
from kontify.schemas.lead import LeadCreate, LeadResponse, LeadUpdate
from kontify.services.audit import audit_event
from kontify.services.lifecycle import TransitionFailure, apply_transition

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])

FAILURE_STATUS_CODES = {
    TransitionFailure.not_admin: 403,
    TransitionFailure.terminal_state: 409,
    TransitionFailure.illegal_transition: 409,
    TransitionFailure.missing_advisor: 422,
    TransitionFailure.ineligible_advisor: 422,
}


def _create(db: Session, payload: LeadCreate, source: LeadSource) -> Lead:
    lead = Lead(
        name=payload.name.strip(),
        email=payload.email,
        query_details=payload.query_details,
        status=LeadStatus.pending,
        source=source,
    )
    db.add(lead)
    db.commit()
    db.refresh(lead)
    logger.info("lead %s created from %s", lead.id, source.value)
    return lead


@router.post("", response_model=LeadResponse, status_code=201)
@limiter.limit("30/minute")
def create_lead(request: Request, payload: LeadCreate, db: Session = Depends(get_db)):
    # Public: the chatbot submits without credentials.
    lead = _create(db, payload, LeadSource.chatbot)
    audit_event(db, "lead_create", details=f"lead_id={lead.id} source=chatbot")
    return lead


@router.post("/manual", response_model=LeadResponse, status_code=201)
def create_manual_lead(
    payload: LeadCreate,
    db: Session = Depends(get_db),
    current: Advisor = Depends(require_roles(AdvisorRole.admin)),
):
    lead = _create(db, payload, LeadSource.manual)
    audit_event(db, "lead_create", actor=current, details=f"lead_id={lead.id} source=manual")
    return lead


@router.get("", response_model=list[LeadResponse])
def list_leads(db: Session = Depends(get_db), current: Advisor = Depends(get_current_advisor)):
    query = db.query(Lead).options(selectinload(Lead.assignment_history))
    if current.role != AdvisorRole.admin:
        query = query.filter(Lead.asesor_id == current.id)
    return query.order_by(Lead.created_at.desc(), Lead.id.desc()).all()


@router.get("/{lead_id}", response_model=LeadResponse)
def get_lead(lead_id: int, db: Session = Depends(get_db), current: Advisor = Depends(get_current_advisor)):
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")
    if current.role != AdvisorRole.admin and lead.asesor_id != current.id:
        raise HTTPException(status_code=403, detail="Advisors can only view their assigned leads")
    return lead


@router.put("/{lead_id}", response_model=LeadResponse)
def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    db: Session = Depends(get_db),
    current: Advisor = Depends(require_roles(AdvisorRole.admin)),
):
    lead = db.query(Lead).filter(Lead.id == lead_id).first()
    if not lead:
        raise HTTPException(status_code=404, detail="Lead not found")

    advisor = None
    if payload.status == LeadStatus.assigned and payload.asesor_id is not None:
        advisor = db.query(Advisor).filter(Advisor.id == payload.asesor_id).first()
        if not advisor:
            raise HTTPException(status_code=422, detail="Advisor not found")

    previous = lead.status
    result = apply_transition(db, lead, payload.status, current, advisor)
    if not result.ok:
        db.rollback()
        raise HTTPException(status_code=FAILURE_STATUS_CODES[result.failure], detail=result.message)

    db.commit()
    db.refresh(lead)
    audit_event(
        db,
        "lead_update",
        actor=current,
        details=f"lead_id={lead.id} status={previous.value}->{lead.status.value} asesor_id={lead.asesor_id}",
    )
    return lead
