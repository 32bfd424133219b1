"""
HTTP client for the Kontify API.

Every public method degrades instead of raising: lists come back empty,
single objects come back ``None`` and flags come back ``False``. Failures are
logged. A 401/403 on a protected call tears the session down first.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

import requests
from pydantic import TypeAdapter, ValidationError

from kontify.client.session import Session
from kontify.client.settings import ClientSettings, get_client_settings
from kontify.errors import AuthExpired, AuthFailure, NetworkFailure
from kontify.models.advisor import AdvisorStatus
from kontify.schemas.advisor import AdvisorResponse
from kontify.schemas.analysis import AIAnalysis, AnalysisResponse
from kontify.schemas.analytics import DashboardStats
from kontify.schemas.audit import AuditLogResponse
from kontify.schemas.auth import LoginResponse
from kontify.schemas.chat import ChatCompletionResponse, ChatHistoryMessage
from kontify.schemas.lead import LeadResponse
from kontify.services.reports import LeadFilters

logger = logging.getLogger(__name__)

T = TypeVar("T")

_leads = TypeAdapter(list[LeadResponse])
_advisors = TypeAdapter(list[AdvisorResponse])
_audit_logs = TypeAdapter(list[AuditLogResponse])


@dataclass
class LoginResult:
    advisor: AdvisorResponse
    token: str


def _detail(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("message") or "")
    return ""


class BackendGateway:
    def __init__(
        self,
        session: Session,
        settings: ClientSettings | None = None,
        http: requests.Session | None = None,
    ):
        self.session = session
        self.settings = settings or get_client_settings()
        self.http = http or requests.Session()

    def _url(self, path: str) -> str:
        return f"{self.settings.API_BASE_URL.rstrip('/')}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, *, protected: bool = True, **kwargs: Any) -> requests.Response:
        headers = {"Accept": "application/json"}
        if protected:
            if not self.session.is_authenticated:
                raise AuthExpired(401, "not signed in")
            headers.update(self.session.auth_headers())

        try:
            response = self.http.request(
                method,
                self._url(path),
                headers=headers,
                timeout=self.settings.REQUEST_TIMEOUT_SECONDS,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise NetworkFailure(f"{method} {path}: {exc}") from exc

        if protected and response.status_code in (401, 403):
            detail = _detail(response)
            self.session.tear_down(f"{response.status_code} on {method} {path}")
            raise AuthExpired(response.status_code, detail)
        if not response.ok:
            raise NetworkFailure(f"{method} {path}: {response.status_code} {_detail(response)}", response.status_code)
        return response

    def _guarded(self, label: str, default: T, call: Callable[[], T]) -> T:
        try:
            return call()
        except AuthExpired as exc:
            logger.warning("%s: session expired (%s)", label, exc)
        except (NetworkFailure, ValidationError, ValueError) as exc:
            logger.error("%s failed: %s", label, exc)
        return default

    # Authentication

    def login(self, email: str, password: str) -> LoginResult | None:
        def call() -> LoginResult | None:
            try:
                response = self._request("POST", "/auth/login", protected=False, json={"email": email, "password": password})
            except NetworkFailure as exc:
                if exc.status_code in (401, 403, 423):
                    raise AuthFailure(str(exc)) from exc
                raise
            body = LoginResponse.model_validate(response.json())
            self.session.authenticate(body.advisor, body.token)
            return LoginResult(advisor=body.advisor, token=body.token)

        try:
            return self._guarded("login", None, call)
        except AuthFailure as exc:
            logger.info("login rejected: %s", exc)
            return None

    def logout(self) -> None:
        if self.session.is_authenticated:
            self._guarded("logout", None, lambda: self._request("POST", "/auth/logout"))
        self.session.tear_down("logout")

    # Leads

    def list_leads(self) -> list[LeadResponse]:
        return self._guarded("list leads", [], lambda: _leads.validate_python(self._request("GET", "/leads").json()))

    def create_lead(self, name: str, email: str, query_details: str) -> LeadResponse | None:
        payload = {"name": name, "email": email, "query_details": query_details}
        return self._guarded(
            "create lead",
            None,
            lambda: LeadResponse.model_validate(self._request("POST", "/leads", protected=False, json=payload).json()),
        )

    def update_lead(self, lead: LeadResponse) -> LeadResponse | None:
        return self._guarded(
            f"update lead {lead.id}",
            None,
            lambda: LeadResponse.model_validate(
                self._request("PUT", f"/leads/{lead.id}", json=lead.model_dump(mode="json")).json()
            ),
        )

    # Advisors

    def list_advisors(self) -> list[AdvisorResponse]:
        return self._guarded("list advisors", [], lambda: _advisors.validate_python(self._request("GET", "/advisors").json()))

    def set_advisor_status(self, advisor_id: int, status: AdvisorStatus) -> bool:
        def call() -> bool:
            body = self._request("PUT", f"/advisors/{advisor_id}/status", json={"status": status.value}).json()
            return bool(body.get("success"))

        return self._guarded(f"set advisor {advisor_id} status", False, call)

    # Reports

    def dashboard_stats(self) -> DashboardStats:
        empty = DashboardStats(total_leads=0, pending_leads=0, assigned_leads=0, completed_leads=0, rejected_leads=0)
        return self._guarded(
            "dashboard stats",
            empty,
            lambda: DashboardStats.model_validate(self._request("GET", "/reports/dashboard").json()),
        )

    def export_leads_csv(self, filters: LeadFilters | None = None) -> bytes | None:
        params: dict[str, str] = {}
        if filters:
            for key in ("status", "source", "asesor_id", "start_date", "end_date"):
                value = getattr(filters, key)
                if value is not None:
                    params[key] = value.value if hasattr(value, "value") else str(value)
        return self._guarded(
            "export leads csv",
            None,
            lambda: self._request("GET", "/reports/leads.csv", params=params).content,
        )

    def list_audit_logs(self, limit: int = 100) -> list[AuditLogResponse]:
        return self._guarded(
            "list audit logs",
            [],
            lambda: _audit_logs.validate_python(self._request("GET", "/audit", params={"limit": limit}).json()),
        )

    # AI providers

    def chat_complete(self, history: list[ChatHistoryMessage]) -> str | None:
        payload = {"history": [m.model_dump() for m in history]}
        return self._guarded(
            "chat completion",
            None,
            lambda: ChatCompletionResponse.model_validate(
                self._request("POST", "/chat/complete", protected=False, json=payload).json()
            ).reply,
        )

    def analyze_query(self, query: str) -> AIAnalysis | None:
        return self._guarded(
            "analyze query",
            None,
            lambda: AnalysisResponse.model_validate(self._request("POST", "/analysis", json={"query": query}).json()).analysis,
        )
