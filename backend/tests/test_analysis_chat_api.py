from kontify.models.audit import AuditLog


def _history(*visitor_texts):
    history = []
    for i, text in enumerate(visitor_texts):
        if i:
            history.append({"role": "assistant", "content": "¿Algo más?"})
        history.append({"role": "user", "content": text})
    return history


def test_chat_reply_is_public(client, provider):
    response = client.post("/api/v1/chat/complete", json={"history": _history("Tengo dudas de IVA")})

    assert response.status_code == 200
    assert response.json() == {"success": True, "reply": provider.reply}
    assert len(provider.chat_calls) == 1


def test_chat_refuses_when_turn_limit_reached(client, provider):
    response = client.post("/api/v1/chat/complete", json={"history": _history("uno", "dos", "tres")})
    assert response.status_code == 422
    assert provider.chat_calls == []


def test_chat_needs_visitor_last(client, provider):
    history = _history("hola") + [{"role": "assistant", "content": "¿En qué te ayudo?"}]
    assert client.post("/api/v1/chat/complete", json={"history": history}).status_code == 422
    assert client.post("/api/v1/chat/complete", json={"history": []}).status_code == 422


def test_chat_provider_failure_is_503(client, provider):
    provider.fail = True
    response = client.post("/api/v1/chat/complete", json={"history": _history("hola")})
    assert response.status_code == 503


def test_analysis_for_admins(client, db, provider, admin_headers, asesor_headers):
    payload = {"query": "Mis cuotas del IMSS subieron y no sé por qué."}

    assert client.post("/api/v1/analysis", json=payload).status_code == 401
    assert client.post("/api/v1/analysis", json=payload, headers=asesor_headers).status_code == 403

    response = client.post("/api/v1/analysis", json=payload, headers=admin_headers)
    assert response.status_code == 200
    analysis = response.json()["analysis"]
    assert analysis["priority"] == "High"
    assert analysis["suggested_specialization"] == "Nómina y Seguridad Social"
    assert provider.analysis_calls == [payload["query"]]
    assert db.query(AuditLog).filter(AuditLog.action == "lead_analysis").count() == 1


def test_analysis_provider_failure_is_503(client, provider, admin_headers):
    provider.fail = True
    response = client.post("/api/v1/analysis", json={"query": "IVA"}, headers=admin_headers)
    assert response.status_code == 503


def test_health_and_request_id(client):
    response = client.get("/health", headers={"x-request-id": "abc-123"})
    assert response.json() == {"status": "ok"}
    assert response.headers["x-request-id"] == "abc-123"
    assert response.headers["x-frame-options"] == "DENY"


def test_analysis_passes_unlisted_specialization_through(client, provider, admin_headers):
    provider.analysis = provider.analysis.model_copy(update={"suggested_specialization": "Contabilidad"})

    response = client.post("/api/v1/analysis", json={"query": "ISR"}, headers=admin_headers)

    assert response.status_code == 200
    assert response.json()["analysis"]["suggested_specialization"] == "Contabilidad"
