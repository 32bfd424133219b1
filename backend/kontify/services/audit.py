from sqlalchemy.orm import Session

from kontify.models.advisor import Advisor
from kontify.models.audit import AuditLog


def audit_event(
    db: Session,
    action: str,
    actor: Advisor | None = None,
    ip_address: str | None = None,
    details: str | None = None,
) -> None:
    entry = AuditLog(
        user_id=actor.id if actor else None,
        user_name=actor.name if actor else "system",
        action=action,
        ip_address=ip_address,
        details=details,
    )
    db.add(entry)
    db.commit()
