"""
Shared fixtures: an in-memory database, a TestClient over the API, advisor
factories with ready-made bearer headers, a stand-in AI provider, and a fake
HTTP transport for the console client.
"""
import json
import os
from types import SimpleNamespace

# Settings are read once at import time, so the environment goes first.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["ALLOWED_HOSTS"] = '["*"]'
os.environ["SECRET_KEY"] = "test-secret-key-with-enough-length-for-hs512"
os.environ["OPENAI_API_KEY"] = ""

import pytest
import requests
from fastapi.testclient import TestClient

from kontify.client.gateway import BackendGateway
from kontify.client.session import MemorySessionStore, Session
from kontify.client.settings import ClientSettings
from kontify.core.database import Base, SessionLocal, engine
from kontify.core.security import create_access_token, get_password_hash
from kontify.errors import ProviderFailure
from kontify.main import app
from kontify.models.advisor import Advisor, AdvisorRole, AdvisorStatus, FiscalSpecialization
from kontify.models.lead import Lead, LeadSource, LeadStatus
from kontify.schemas.advisor import AdvisorResponse
from kontify.schemas.analysis import AIAnalysis, Priority
from kontify.services.providers import get_ai_provider

PASSWORD = "Sup3r-secreto!"


class FakeProvider:
    def __init__(self):
        self.reply = "¿Podrías darme más detalles de tu situación?"
        self.analysis = AIAnalysis(
            summary="Dudas sobre cuotas patronales.",
            priority=Priority.high,
            suggested_specialization=FiscalSpecialization.nomina_seguridad_social.value,
        )
        self.fail = False
        self.chat_calls = []
        self.analysis_calls = []

    def complete_chat(self, history):
        self.chat_calls.append(history)
        if self.fail:
            raise ProviderFailure("provider down")
        return self.reply

    def analyze_query(self, query):
        self.analysis_calls.append(query)
        if self.fail:
            raise ProviderFailure("provider down")
        return self.analysis


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    app.dependency_overrides.clear()


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def provider():
    fake = FakeProvider()
    app.dependency_overrides[get_ai_provider] = lambda: fake
    return fake


@pytest.fixture
def make_advisor(db):
    def _make(
        email,
        name="Asesor",
        role=AdvisorRole.asesor,
        specialization=FiscalSpecialization.general,
        status=AdvisorStatus.active,
    ):
        advisor = Advisor(
            email=email,
            name=name,
            password_hash=get_password_hash(PASSWORD),
            role=role,
            specialization=specialization if role == AdvisorRole.asesor else None,
            status=status,
        )
        db.add(advisor)
        db.commit()
        db.refresh(advisor)
        return advisor

    return _make


@pytest.fixture
def admin(make_advisor):
    return make_advisor("admin@kontify.mx", name="Administradora", role=AdvisorRole.admin)


@pytest.fixture
def asesor(make_advisor):
    return make_advisor(
        "nomina@kontify.mx",
        name="Laura Nómina",
        specialization=FiscalSpecialization.nomina_seguridad_social,
    )


def bearer(advisor):
    return {"Authorization": f"Bearer {create_access_token(str(advisor.id), advisor.session_version)}"}


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def admin_headers(admin):
    return bearer(admin)


@pytest.fixture
def asesor_headers(asesor):
    return bearer(asesor)


@pytest.fixture
def make_lead(db):
    def _make(name="Cliente", status=LeadStatus.pending, asesor_id=None, source=LeadSource.manual, **extra):
        lead = Lead(
            name=name,
            email=extra.pop("email", "cliente@correo.mx"),
            query_details=extra.pop("query_details", "Necesito ayuda con mi declaración anual."),
            status=status,
            asesor_id=asesor_id,
            source=source,
            **extra,
        )
        db.add(lead)
        db.commit()
        db.refresh(lead)
        return lead

    return _make


def http_response(status_code=200, body=None, content=None):
    response = requests.Response()
    response.status_code = status_code
    if body is not None:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    else:
        response._content = content or b""
    return response


class FakeHttp:
    """Stands in for ``requests.Session``; answers by (method, path)."""

    def __init__(self, base_url):
        self.base_url = base_url
        self.routes = {}
        self.calls = []

    def on(self, method, path, status_code=200, body=None, content=None, raises=None):
        self.routes[(method, path)] = (status_code, body, content, raises)

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        path = url[len(self.base_url):]
        self.calls.append(SimpleNamespace(method=method, path=path, headers=headers or {}, kwargs=kwargs))
        if (method, path) not in self.routes:
            return http_response(404, {"detail": "Not Found"})
        status_code, body, content, raises = self.routes[(method, path)]
        if raises is not None:
            raise raises
        return http_response(status_code, body, content)

    def paths(self, method=None):
        return [c.path for c in self.calls if method is None or c.method == method]


API = "http://api.test/api/v1"


@pytest.fixture
def client_settings(tmp_path):
    return ClientSettings(API_BASE_URL=API, SESSION_FILE=tmp_path / "session.json", MAX_WORKERS=2)


@pytest.fixture
def http():
    return FakeHttp(API)


@pytest.fixture
def session():
    return Session(MemorySessionStore())


@pytest.fixture
def gateway(session, client_settings, http):
    return BackendGateway(session, settings=client_settings, http=http)


def advisor_payload(id, name, role="asesor", specialization="General", status="active"):
    return {
        "id": id,
        "name": name,
        "email": f"asesor{id}@kontify.mx",
        "role": role,
        "specialization": specialization if role == "asesor" else None,
        "status": status,
        "billing_status": "active",
        "renewal_date": None,
    }


def lead_payload(id, status="pending", asesor_id=None, source="chatbot", created_at="2024-03-01T10:00:00", **extra):
    return {
        "id": id,
        "name": extra.get("name", f"Cliente {id}"),
        "email": f"cliente{id}@correo.mx",
        "query_details": extra.get("query_details", "Tengo una duda sobre el IMSS."),
        "status": status,
        "asesor_id": asesor_id,
        "created_at": created_at,
        "source": source,
        "assignment_history": [],
    }


@pytest.fixture
def signed_in(session):
    def _sign_in(role="admin"):
        advisor = AdvisorResponse.model_validate(advisor_payload(1, "Administradora", role=role))
        session.authenticate(advisor, "token-123")
        return advisor

    return _sign_in


@pytest.fixture
def advisor_json():
    return advisor_payload


@pytest.fixture
def lead_json():
    return lead_payload
