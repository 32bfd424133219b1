"""
Triage of a single lead from the admin console.

The controller holds a snapshot of the lead plus the advisor roster, runs the
optional AI analysis to pre-select an advisor, and drives the status changes.
Every change is checked locally with the same rules the API enforces; the
snapshot is only replaced once the backend has accepted the update.
"""
import logging

from kontify.client.gateway import BackendGateway
from kontify.models.advisor import AdvisorRole
from kontify.models.lead import LeadStatus
from kontify.schemas.advisor import AdvisorResponse
from kontify.schemas.analysis import AIAnalysis
from kontify.schemas.lead import LeadResponse
from kontify.services.lifecycle import TransitionFailure, TransitionResult, suggest_advisor, validate_transition

logger = logging.getLogger(__name__)

ANALYSIS_SUGGESTED = "Análisis completado. Se sugiere a {name}."
ANALYSIS_DONE = "Análisis de IA completado."
ANALYSIS_FAILED = "Error al realizar el análisis de IA."
SAVE_FAILED = "No se pudo guardar el cambio. Intenta de nuevo."


class TriageController:
    def __init__(
        self,
        gateway: BackendGateway,
        lead: LeadResponse,
        advisors: list[AdvisorResponse],
        current: AdvisorResponse,
    ):
        self.gateway = gateway
        self.lead = lead
        self.advisors = advisors
        self.current = current
        self.selected_advisor_id: int | None = lead.asesor_id
        self.analysis: AIAnalysis | None = None
        self.notice: str | None = None

    @property
    def can_analyze(self) -> bool:
        return self.current.role == AdvisorRole.admin and self.lead.status == LeadStatus.pending

    @property
    def selected_advisor(self) -> AdvisorResponse | None:
        if self.selected_advisor_id is None:
            return None
        return next((a for a in self.advisors if a.id == self.selected_advisor_id), None)

    def select_advisor(self, advisor_id: int | None) -> None:
        self.selected_advisor_id = advisor_id

    def run_analysis(self) -> AIAnalysis | None:
        if not self.can_analyze:
            return None

        analysis = self.gateway.analyze_query(self.lead.query_details)
        if analysis is None:
            self.notice = ANALYSIS_FAILED
            return None

        self.analysis = analysis
        match = suggest_advisor(analysis.suggested_specialization, self.advisors)
        if match is not None:
            self.selected_advisor_id = match.id
            self.notice = ANALYSIS_SUGGESTED.format(name=match.name)
        else:
            # A manual pick made before the analysis stays in place.
            self.notice = ANALYSIS_DONE
        return analysis

    def assign(self) -> TransitionResult:
        return self._transition(LeadStatus.assigned, self.selected_advisor)

    def reject(self) -> TransitionResult:
        return self._transition(LeadStatus.rejected)

    def complete(self) -> TransitionResult:
        return self._transition(LeadStatus.completed)

    def _transition(self, target: LeadStatus, advisor: AdvisorResponse | None = None) -> TransitionResult:
        result = validate_transition(self.lead.status, target, self.current.role, advisor)
        if not result.ok:
            self.notice = result.message
            return result

        if target == LeadStatus.assigned:
            asesor_id = advisor.id
        elif target == LeadStatus.rejected:
            asesor_id = None
        else:
            asesor_id = self.lead.asesor_id
        candidate = self.lead.model_copy(update={"status": target, "asesor_id": asesor_id})

        saved = self.gateway.update_lead(candidate)
        if saved is None:
            logger.warning("lead %s: %s not saved", self.lead.id, target.value)
            self.notice = SAVE_FAILED
            return TransitionResult.fail(TransitionFailure.save_failed, SAVE_FAILED)

        self.lead = saved
        self.selected_advisor_id = saved.asesor_id
        self.notice = None
        return result
