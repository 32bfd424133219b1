import logging
import os
from datetime import date

from email_validator import EmailNotValidError, validate_email

from kontify.core.database import Base, SessionLocal, engine
from kontify.core.logging_config import configure_logging
from kontify.core.security import get_password_hash
from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus, FiscalSpecialization

logger = logging.getLogger(__name__)


def create_advisor(
    email: str,
    name: str,
    password: str,
    role: AdvisorRole,
    specialization: FiscalSpecialization | None = None,
    renewal_date: date | None = None,
) -> Advisor | None:
    # Stored emails must pass the same checks the API schemas apply.
    email = validate_email(email, check_deliverability=False).normalized
    db = SessionLocal()
    try:
        existing = db.query(Advisor).filter(Advisor.email == email).first()
        if existing:
            logger.info("advisor already exists: %s", email)
            return None

        advisor = Advisor(
            email=email,
            name=name,
            password_hash=get_password_hash(password),
            role=role,
            specialization=specialization,
            status=AdvisorStatus.active,
            renewal_date=renewal_date,
        )
        db.add(advisor)
        db.commit()
        db.refresh(advisor)
        logger.info("created %s: %s", role.value, email)
        return advisor
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    Base.metadata.create_all(bind=engine)
    # Credentials come from the environment, never from the repo.
    admin_email = os.getenv("BOOTSTRAP_ADMIN_EMAIL")
    admin_password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    if admin_email and admin_password:
        try:
            create_advisor(admin_email, "Administrador Kontify", admin_password, AdvisorRole.admin)
        except EmailNotValidError as exc:
            logger.error("bootstrap failed: BOOTSTRAP_ADMIN_EMAIL is not usable (%s)", exc)
            raise SystemExit(1) from exc
    else:
        logger.warning("bootstrap skipped: set BOOTSTRAP_ADMIN_EMAIL and BOOTSTRAP_ADMIN_PASSWORD to create an admin")
