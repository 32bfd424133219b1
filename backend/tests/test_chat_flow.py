from concurrent.futures import ThreadPoolExecutor

import pytest

from kontify.client.chat import (
    FALLBACK_REPLY,
    GREETING,
    PLACEHOLDER_EMAIL,
    PLACEHOLDER_NAME,
    ChatIntakeFlow,
    Speaker,
    TurnKind,
)


def _flow(gateway, client_settings, http, lead_json):
    http.on("POST", "/chat/complete", body={"success": True, "reply": "Cuéntame más."})
    http.on("POST", "/leads", status_code=201, body=lead_json(11))
    return ChatIntakeFlow(gateway, settings=client_settings)


def test_starts_with_greeting(gateway, client_settings):
    flow = ChatIntakeFlow(gateway, settings=client_settings)
    assert [(t.speaker, t.text) for t in flow.transcript] == [(Speaker.assistant, GREETING)]
    assert flow.accepting_input


def test_third_message_files_exactly_one_lead(gateway, client_settings, http, lead_json):
    flow = _flow(gateway, client_settings, http, lead_json)

    flow.send("Tengo dudas con el IMSS")
    flow.send("Soy patrón con 5 empleados")
    assert flow.lead_future is None
    assert http.paths("POST") == ["/chat/complete", "/chat/complete"]

    closing = flow.send("Mi correo es ana@correo.mx")
    lead = flow.lead_future.result(timeout=5)

    assert lead.id == 11
    assert flow.ended
    assert closing[-1].kind == TurnKind.link
    assert closing[-1].url == client_settings.WHATSAPP_APPOINTMENT_URL
    assert http.paths("POST").count("/leads") == 1

    filed = [c for c in http.calls if c.path == "/leads"][0].kwargs["json"]
    assert filed["name"] == PLACEHOLDER_NAME
    assert filed["email"] == PLACEHOLDER_EMAIL
    lines = filed["query_details"].split("\n")
    assert lines[0] == f"bot: {GREETING}"
    assert lines[1] == "user: Tengo dudas con el IMSS"
    assert lines[2] == "bot: Cuéntame más."
    assert lines[-1] == "user: Mi correo es ana@correo.mx"
    assert len(lines) == 6

    assert flow.send("¿Sigues ahí?") is None
    assert http.paths("POST").count("/leads") == 1


def test_model_sees_history_without_greeting(gateway, client_settings, http, lead_json):
    flow = _flow(gateway, client_settings, http, lead_json)
    flow.send("uno")
    flow.send("dos")

    second = http.calls[1].kwargs["json"]["history"]
    assert second == [
        {"role": "user", "content": "uno"},
        {"role": "assistant", "content": "Cuéntame más."},
        {"role": "user", "content": "dos"},
    ]


def test_provider_failure_appends_apology(gateway, client_settings, http):
    http.on("POST", "/chat/complete", status_code=503, body={"detail": "Chat assistant unavailable"})
    flow = ChatIntakeFlow(gateway, settings=client_settings)

    appended = flow.send("hola")

    assert [t.text for t in appended] == ["hola", FALLBACK_REPLY]
    assert flow.visitor_count == 1
    assert flow.accepting_input


def test_empty_and_busy_input_is_ignored(gateway, client_settings, http, lead_json):
    flow = _flow(gateway, client_settings, http, lead_json)

    assert flow.send("   ") is None
    flow.busy = True
    assert flow.send("hola") is None
    assert flow.visitor_count == 0
    assert http.calls == []


def test_lead_failure_is_only_logged(gateway, client_settings, http, caplog):
    http.on("POST", "/chat/complete", body={"success": True, "reply": "ok"})
    http.on("POST", "/leads", status_code=500, body={"detail": "boom"})
    flow = ChatIntakeFlow(gateway, settings=client_settings)

    for text in ("uno", "dos", "tres"):
        flow.send(text)

    assert flow.lead_future.result(timeout=5) is None
    assert flow.ended
    assert "lead was not filed" in caplog.text


def test_closing_releases_its_own_worker(gateway, client_settings, http, lead_json):
    flow = _flow(gateway, client_settings, http, lead_json)

    for text in ("uno", "dos", "tres"):
        flow.send(text)

    assert flow.lead_future.result(timeout=5).id == 11
    with pytest.raises(RuntimeError):
        flow._executor.submit(lambda: None)


def test_injected_executor_stays_open(gateway, client_settings, http, lead_json):
    http.on("POST", "/chat/complete", body={"success": True, "reply": "Cuéntame más."})
    http.on("POST", "/leads", status_code=201, body=lead_json(11))
    executor = ThreadPoolExecutor(max_workers=1)
    flow = ChatIntakeFlow(gateway, settings=client_settings, executor=executor)

    try:
        for text in ("uno", "dos", "tres"):
            flow.send(text)
        assert flow.lead_future.result(timeout=5).id == 11
        assert executor.submit(lambda: "sigue").result(timeout=5) == "sigue"
    finally:
        executor.shutdown()


def test_abandoned_conversation_files_nothing(gateway, client_settings, http, lead_json):
    flow = _flow(gateway, client_settings, http, lead_json)
    flow.send("uno")

    flow.close()

    assert flow.send("dos") is None
    assert flow.lead_future is None
    assert http.paths("POST") == ["/chat/complete"]
