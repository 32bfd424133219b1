from datetime import date, datetime
import enum

from sqlalchemy import Date, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from kontify.core.database import Base


class AdvisorRole(str, enum.Enum):
    admin = "admin"
    asesor = "asesor"


class FiscalSpecialization(str, enum.Enum):
    impuestos_corporativos = "Impuestos Corporativos"
    personas_fisicas = "Personas Físicas"
    comercio_exterior_iva = "Comercio Exterior e IVA"
    nomina_seguridad_social = "Nómina y Seguridad Social"
    general = "General"


class AdvisorStatus(str, enum.Enum):
    active = "active"
    inactive = "inactive"


class BillingStatus(str, enum.Enum):
    active = "active"
    pending_payment = "pending_payment"
    expired = "expired"


class Advisor(Base):
    __tablename__ = "asesores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[AdvisorRole] = mapped_column(Enum(AdvisorRole), default=AdvisorRole.asesor, nullable=False)
    specialization: Mapped[FiscalSpecialization | None] = mapped_column(Enum(FiscalSpecialization))
    status: Mapped[AdvisorStatus] = mapped_column(Enum(AdvisorStatus), default=AdvisorStatus.active, nullable=False)
    billing_status: Mapped[BillingStatus] = mapped_column(Enum(BillingStatus), default=BillingStatus.active, nullable=False)
    renewal_date: Mapped[date | None] = mapped_column(Date)

    failed_login_attempts: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    locked_until: Mapped[datetime | None] = mapped_column(DateTime)
    session_version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
