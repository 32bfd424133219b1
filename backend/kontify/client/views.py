"""
View models for the Kontify console.

Each view loads its snapshot by firing the independent gateway calls on a
thread pool and joining them. A view owns a ``ViewScope``; once the scope is
closed, results that arrive late are dropped instead of being applied to a view
nobody is looking at.
"""
import logging
import threading
from concurrent.futures import CancelledError, ThreadPoolExecutor
from typing import Any, Callable

from kontify.client.gateway import BackendGateway
from kontify.client.settings import get_client_settings
from kontify.client.triage import TriageController
from kontify.models.advisor import AdvisorStatus
from kontify.models.lead import LeadStatus
from kontify.schemas.advisor import AdvisorResponse
from kontify.schemas.analytics import DashboardStats
from kontify.schemas.audit import AuditLogResponse
from kontify.schemas.lead import LeadResponse
from kontify.services.reports import EXPORT_COLUMNS, LeadFilters, export_rows, filter_leads, rows_to_csv

logger = logging.getLogger(__name__)


class ViewScope:
    def __init__(self, max_workers: int | None = None):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or get_client_settings().MAX_WORKERS,
            thread_name_prefix="kontify-view",
        )
        self._closed = threading.Event()

    @property
    def active(self) -> bool:
        return not self._closed.is_set()

    def gather(self, *calls: Callable[[], Any]) -> tuple | None:
        """Run ``calls`` concurrently and return their results in order.

        Returns ``None`` when the scope was closed before every call finished.
        """
        if not self.active:
            return None
        try:
            futures = [self._executor.submit(call) for call in calls]
            results = tuple(f.result() for f in futures)
        except CancelledError:
            return None
        except RuntimeError:
            # Submitting after shutdown; anything else is a real error.
            if self.active:
                raise
            return None
        return results if self.active else None

    def deliver(self, apply: Callable[[], None]) -> bool:
        if not self.active:
            return False
        apply()
        return True

    def close(self) -> None:
        self._closed.set()
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "ViewScope":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class _View:
    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        self.gateway = gateway
        self.scope = scope or ViewScope()
        self.loaded = False

    def close(self) -> None:
        self.scope.close()


class LeadsView(_View):
    """Admin triage list: every lead plus the advisor roster."""

    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        super().__init__(gateway, scope)
        self.leads: list[LeadResponse] = []
        self.advisors: list[AdvisorResponse] = []

    def load(self) -> bool:
        results = self.scope.gather(self.gateway.list_leads, self.gateway.list_advisors)
        if results is None:
            return False

        def apply() -> None:
            self.leads, self.advisors = results
            self.loaded = True

        return self.scope.deliver(apply)

    def leads_with_status(self, status: LeadStatus) -> list[LeadResponse]:
        return [lead for lead in self.leads if lead.status == status]

    def open_triage(self, lead_id: int) -> TriageController | None:
        lead = next((lead for lead in self.leads if lead.id == lead_id), None)
        current = self.gateway.session.advisor
        if lead is None or current is None:
            return None
        return TriageController(self.gateway, lead, self.advisors, current)

    def apply_saved(self, saved: LeadResponse) -> None:
        self.leads = [saved if lead.id == saved.id else lead for lead in self.leads]


class MyLeadsView(_View):
    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        super().__init__(gateway, scope)
        self.leads: list[LeadResponse] = []

    def load(self) -> bool:
        results = self.scope.gather(self.gateway.list_leads)
        if results is None:
            return False

        def apply() -> None:
            (self.leads,) = results
            self.loaded = True

        return self.scope.deliver(apply)


class DashboardView(_View):
    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        super().__init__(gateway, scope)
        self.stats: DashboardStats | None = None
        self.recent: list[LeadResponse] = []

    def load(self, recent_count: int = 5) -> bool:
        results = self.scope.gather(self.gateway.dashboard_stats, self.gateway.list_leads)
        if results is None:
            return False
        stats, leads = results

        def apply() -> None:
            self.stats = stats
            self.recent = sorted(leads, key=lambda lead: lead.created_at, reverse=True)[:recent_count]
            self.loaded = True

        return self.scope.deliver(apply)


class ReportsView(_View):
    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        super().__init__(gateway, scope)
        self.leads: list[LeadResponse] = []
        self.advisors: list[AdvisorResponse] = []
        self.filters = LeadFilters()

    def load(self) -> bool:
        results = self.scope.gather(self.gateway.list_leads, self.gateway.list_advisors)
        if results is None:
            return False

        def apply() -> None:
            self.leads, self.advisors = results
            self.loaded = True

        return self.scope.deliver(apply)

    def set_filters(self, **changes: Any) -> None:
        for key, value in changes.items():
            if not hasattr(self.filters, key):
                raise AttributeError(f"unknown report filter: {key}")
            setattr(self.filters, key, value)

    @property
    def filtered(self) -> list[LeadResponse]:
        return filter_leads(self.leads, self.filters)

    def export_csv(self) -> bytes | None:
        """CSV bytes for the filtered leads, or ``None`` when nothing matches."""
        rows = export_rows(self.filtered, self.advisors)
        if not rows:
            logger.info("nothing to export for filters %s", self.filters)
            return None
        return rows_to_csv(rows, fieldnames=EXPORT_COLUMNS)


class ExpertsView(_View):
    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        super().__init__(gateway, scope)
        self.advisors: list[AdvisorResponse] = []

    def load(self) -> bool:
        results = self.scope.gather(self.gateway.list_advisors)
        if results is None:
            return False

        def apply() -> None:
            (self.advisors,) = results
            self.loaded = True

        return self.scope.deliver(apply)

    def toggle_status(self, advisor_id: int) -> bool:
        advisor = next((a for a in self.advisors if a.id == advisor_id), None)
        if advisor is None:
            return False
        target = AdvisorStatus.inactive if advisor.status == AdvisorStatus.active else AdvisorStatus.active
        if not self.gateway.set_advisor_status(advisor_id, target):
            return False
        updated = advisor.model_copy(update={"status": target})
        self.advisors = [updated if a.id == advisor_id else a for a in self.advisors]
        return True


class AuditLogView(_View):
    def __init__(self, gateway: BackendGateway, scope: ViewScope | None = None):
        super().__init__(gateway, scope)
        self.logs: list[AuditLogResponse] = []
        self.advisors: list[AdvisorResponse] = []
        self.user_id: int | None = None
        self.action: str | None = None

    def load(self) -> bool:
        results = self.scope.gather(self.gateway.list_audit_logs, self.gateway.list_advisors)
        if results is None:
            return False

        def apply() -> None:
            self.logs, self.advisors = results
            self.loaded = True

        return self.scope.deliver(apply)

    @property
    def actions(self) -> list[str]:
        return sorted({log.action for log in self.logs})

    @property
    def filtered(self) -> list[AuditLogResponse]:
        return [
            log
            for log in self.logs
            if (self.user_id is None or log.user_id == self.user_id)
            and (self.action is None or log.action == self.action)
        ]
