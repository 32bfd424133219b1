import logging

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from kontify.core.database import get_db
from kontify.core.security import decode_token
from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


def get_current_advisor(db: Session = Depends(get_db), token: str = Depends(oauth2_scheme)) -> Advisor:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        if payload.get("typ") != "access":
            raise credentials_exception
        advisor_id = payload.get("sub")
        token_session_version = payload.get("sv")
        if not advisor_id or token_session_version is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    advisor = db.query(Advisor).filter(Advisor.id == int(advisor_id)).first()
    if not advisor:
        raise credentials_exception
    if advisor.status != AdvisorStatus.active:
        raise HTTPException(status_code=403, detail="Advisor inactive")
    if advisor.session_version != int(token_session_version):
        raise HTTPException(status_code=401, detail="Session revoked")

    return advisor


def require_roles(*roles: AdvisorRole):
    def role_dependency(current: Advisor = Depends(get_current_advisor)) -> Advisor:
        if current.role not in roles:
            logger.warning("advisor %s (%s) denied: requires %s", current.id, current.role.value, [r.value for r in roles])
            raise HTTPException(status_code=403, detail="Insufficient permissions")
        return current

    return role_dependency
