from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kontify.core.database import get_db
from kontify.core.deps import require_roles
from kontify.models.advisor import Advisor, AdvisorRole
from kontify.models.audit import AuditLog
from kontify.schemas.audit import AuditLogResponse

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=list[AuditLogResponse])
def list_audit_logs(
    user_id: int | None = Query(default=None),
    action: str | None = Query(default=None, max_length=120),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
    _: Advisor = Depends(require_roles(AdvisorRole.admin)),
):
    query = db.query(AuditLog)
    if user_id is not None:
        query = query.filter(AuditLog.user_id == user_id)
    if action:
        query = query.filter(AuditLog.action == action)
    return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
