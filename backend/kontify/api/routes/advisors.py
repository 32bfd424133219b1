from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from kontify.core.database import get_db
from kontify.core.deps import require_roles
from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus
from kontify.schemas.advisor import AdvisorResponse, AdvisorStatusResponse, AdvisorStatusUpdate
from kontify.services.audit import audit_event

router = APIRouter(prefix="/advisors", tags=["advisors"])


@router.get("", response_model=list[AdvisorResponse])
def list_advisors(db: Session = Depends(get_db), _: Advisor = Depends(require_roles(AdvisorRole.admin))):
    # Stable order matters: analysis suggestions pick the first match.
    return db.query(Advisor).order_by(Advisor.id.asc()).all()


@router.put("/{advisor_id}/status", response_model=AdvisorStatusResponse)
def set_advisor_status(
    advisor_id: int,
    payload: AdvisorStatusUpdate,
    db: Session = Depends(get_db),
    current: Advisor = Depends(require_roles(AdvisorRole.admin)),
):
    if current.id == advisor_id:
        raise HTTPException(status_code=400, detail="Cannot change your own status")
    advisor = db.query(Advisor).filter(Advisor.id == advisor_id).first()
    if not advisor:
        raise HTTPException(status_code=404, detail="Advisor not found")

    if advisor.status != payload.status:
        advisor.status = payload.status
        if payload.status == AdvisorStatus.inactive:
            advisor.session_version += 1
        db.commit()
        audit_event(
            db,
            "advisor_status_update",
            actor=current,
            details=f"target_advisor_id={advisor.id} status={payload.status.value}",
        )
    return AdvisorStatusResponse(success=True, id=advisor.id, status=advisor.status)
