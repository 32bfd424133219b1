from datetime import datetime
import enum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kontify.core.database import Base


class LeadStatus(str, enum.Enum):
    pending = "pending"
    assigned = "assigned"
    rejected = "rejected"
    completed = "completed"


class LeadSource(str, enum.Enum):
    chatbot = "chatbot"
    manual = "manual"


class Lead(Base):
    __tablename__ = "consultas"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    query_details: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[LeadStatus] = mapped_column(Enum(LeadStatus), default=LeadStatus.pending, nullable=False)
    asesor_id: Mapped[int | None] = mapped_column(ForeignKey("asesores.id"), index=True)
    source: Mapped[LeadSource] = mapped_column(Enum(LeadSource), default=LeadSource.chatbot, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    asesor = relationship("Advisor")
    assignment_history: Mapped[list["AssignmentHistory"]] = relationship(
        back_populates="lead",
        order_by="AssignmentHistory.id",
        cascade="all, delete-orphan",
    )


class AssignmentHistory(Base):
    __tablename__ = "consulta_asignaciones"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    lead_id: Mapped[int] = mapped_column(ForeignKey("consultas.id"), index=True, nullable=False)
    asesor_id: Mapped[int] = mapped_column(ForeignKey("asesores.id"), nullable=False)
    assigned_by: Mapped[int] = mapped_column(ForeignKey("asesores.id"), nullable=False)
    assigned_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)

    lead: Mapped[Lead] = relationship(back_populates="assignment_history")
