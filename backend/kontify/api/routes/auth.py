import logging
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from kontify.core.config import get_settings
from kontify.core.database import get_db
from kontify.core.deps import get_current_advisor
from kontify.core.rate_limit import limiter
from kontify.core.security import create_access_token, verify_password
from kontify.models.advisor import Advisor, AdvisorStatus
from kontify.schemas.advisor import AdvisorResponse
from kontify.schemas.auth import LoginRequest, LoginResponse
from kontify.services.audit import audit_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None


@router.post("/login", response_model=LoginResponse)
@limiter.limit("20/minute")
def login(request: Request, payload: LoginRequest, db: Session = Depends(get_db)):
    settings = get_settings()
    advisor = db.query(Advisor).filter(Advisor.email == payload.email).first()
    now = datetime.now(timezone.utc).replace(tzinfo=None)

    if not advisor:
        logger.info("login failed: unknown email")
        raise HTTPException(status_code=401, detail="Incorrect email or password")

    if advisor.locked_until and advisor.locked_until > now:
        raise HTTPException(status_code=423, detail="Account is temporarily locked")

    if not verify_password(payload.password, advisor.password_hash):
        advisor.failed_login_attempts += 1
        if advisor.failed_login_attempts >= settings.LOGIN_MAX_ATTEMPTS:
            advisor.locked_until = now + timedelta(minutes=settings.LOGIN_LOCK_MINUTES)
            advisor.failed_login_attempts = 0
            logger.warning("advisor %s locked after repeated failed logins", advisor.id)
        db.commit()
        audit_event(db, "login_failed", actor=advisor, ip_address=_client_ip(request))
        raise HTTPException(status_code=401, detail="Incorrect email or password")

    if advisor.status != AdvisorStatus.active:
        raise HTTPException(status_code=403, detail="Advisor inactive")

    advisor.failed_login_attempts = 0
    advisor.locked_until = None
    db.commit()

    token = create_access_token(str(advisor.id), advisor.session_version)
    audit_event(db, "login_success", actor=advisor, ip_address=_client_ip(request))
    return LoginResponse(advisor=AdvisorResponse.model_validate(advisor), token=token)


@router.post("/logout")
def logout(current: Advisor = Depends(get_current_advisor), db: Session = Depends(get_db)):
    # Bumping the session version invalidates every token issued so far.
    current.session_version += 1
    db.commit()
    audit_event(db, "logout", actor=current)
    return {"success": True}


@router.get("/me", response_model=AdvisorResponse)
def me(current: Advisor = Depends(get_current_advisor)):
    return current
