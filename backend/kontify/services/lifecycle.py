"""
Lead lifecycle rules.

A lead starts ``pending`` and may move to ``assigned`` or ``rejected``; an
``assigned`` lead may move to ``completed``. ``rejected`` and ``completed`` are
terminal. Only admins move leads, and an assignment needs an active ``asesor``.

The same validation runs in the API (authoritative) and in the gateway client
(to avoid pointless round trips). Failures are returned, never raised.
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Protocol, TypeVar

from sqlalchemy.orm import Session

from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus, FiscalSpecialization
from kontify.models.lead import AssignmentHistory, Lead, LeadStatus

logger = logging.getLogger(__name__)


class AdvisorLike(Protocol):
    id: int
    role: AdvisorRole
    status: AdvisorStatus
    specialization: FiscalSpecialization | None


A = TypeVar("A", bound=AdvisorLike)


ALLOWED_TRANSITIONS: dict[LeadStatus, frozenset[LeadStatus]] = {
    LeadStatus.pending: frozenset({LeadStatus.assigned, LeadStatus.rejected}),
    LeadStatus.assigned: frozenset({LeadStatus.completed}),
    LeadStatus.rejected: frozenset(),
    LeadStatus.completed: frozenset(),
}
TERMINAL_STATES = frozenset({LeadStatus.rejected, LeadStatus.completed})


class TransitionFailure(str, enum.Enum):
    not_admin = "not_admin"
    terminal_state = "terminal_state"
    illegal_transition = "illegal_transition"
    missing_advisor = "missing_advisor"
    ineligible_advisor = "ineligible_advisor"
    save_failed = "save_failed"


@dataclass(frozen=True)
class TransitionResult:
    ok: bool
    failure: TransitionFailure | None = None
    message: str = ""

    @classmethod
    def success(cls) -> "TransitionResult":
        return cls(ok=True)

    @classmethod
    def fail(cls, failure: TransitionFailure, message: str) -> "TransitionResult":
        return cls(ok=False, failure=failure, message=message)


def is_eligible_target(advisor: AdvisorLike | None) -> bool:
    return (
        advisor is not None
        and advisor.role == AdvisorRole.asesor
        and advisor.status == AdvisorStatus.active
        and advisor.specialization is not None
    )


def advisor_reference_consistent(status: LeadStatus, asesor_id: int | None) -> bool:
    if status == LeadStatus.assigned:
        return asesor_id is not None
    if status in (LeadStatus.pending, LeadStatus.rejected):
        return asesor_id is None
    return True


def validate_transition(
    current: LeadStatus,
    target: LeadStatus,
    actor_role: AdvisorRole,
    advisor: AdvisorLike | None = None,
) -> TransitionResult:
    if actor_role != AdvisorRole.admin:
        return TransitionResult.fail(TransitionFailure.not_admin, "Only admins can change a lead's status")
    if current in TERMINAL_STATES:
        return TransitionResult.fail(TransitionFailure.terminal_state, f"Lead is already {current.value}")
    if target not in ALLOWED_TRANSITIONS[current]:
        return TransitionResult.fail(
            TransitionFailure.illegal_transition,
            f"Cannot move a lead from {current.value} to {target.value}",
        )
    if target == LeadStatus.assigned:
        if advisor is None:
            return TransitionResult.fail(TransitionFailure.missing_advisor, "Select an advisor before assigning")
        if not is_eligible_target(advisor):
            return TransitionResult.fail(
                TransitionFailure.ineligible_advisor,
                "Advisor must be an active asesor with a specialization",
            )
    return TransitionResult.success()


def apply_transition(
    db: Session,
    lead: Lead,
    target: LeadStatus,
    actor: Advisor,
    advisor: Advisor | None = None,
) -> TransitionResult:
    """Validate and apply a transition to a persisted lead.

    The lead is only mutated when the transition is valid. Nothing is committed;
    the caller owns the unit of work.
    """
    result = validate_transition(lead.status, target, actor.role, advisor)
    if not result.ok:
        logger.info(
            "lead %s: %s -> %s refused for advisor %s (%s)",
            lead.id,
            lead.status.value,
            target.value,
            actor.id,
            result.failure.value if result.failure else "",
        )
        return result

    previous = lead.status
    lead.status = target
    if target == LeadStatus.assigned:
        lead.asesor_id = advisor.id
        lead.assignment_history.append(
            AssignmentHistory(asesor_id=advisor.id, assigned_by=actor.id, assigned_at=datetime.utcnow())
        )
    elif target == LeadStatus.rejected:
        lead.asesor_id = None
    db.flush()

    logger.info("lead %s: %s -> %s by advisor %s", lead.id, previous.value, target.value, actor.id)
    return result


def suggest_advisor(suggested: FiscalSpecialization | str, advisors: Iterable[A]) -> A | None:
    """First eligible advisor, in list order, whose specialization matches."""
    try:
        wanted = FiscalSpecialization(suggested)
    except ValueError:
        logger.warning("unknown specialization suggested: %r", suggested)
        return None
    for advisor in advisors:
        if advisor.specialization == wanted and is_eligible_target(advisor):
            return advisor
    return None
