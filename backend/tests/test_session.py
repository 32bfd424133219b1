import json

from kontify.client.session import (
    TOKEN_SLOT,
    USER_SLOT,
    FileSessionStore,
    MemorySessionStore,
    Session,
    SessionState,
)
from kontify.schemas.advisor import AdvisorResponse


def _advisor(advisor_json, role="admin"):
    return AdvisorResponse.model_validate(advisor_json(1, "Administradora", role=role))


def test_empty_store_gives_empty_session():
    session = Session.restore(MemorySessionStore())
    assert session.state == SessionState.empty
    assert not session.is_authenticated
    assert session.auth_headers() == {}


def test_authenticate_persists_both_slots(advisor_json):
    store = MemorySessionStore()
    session = Session.restore(store)

    session.authenticate(_advisor(advisor_json), "tok")

    assert session.is_authenticated
    assert session.is_admin
    assert session.auth_headers() == {"Authorization": "Bearer tok"}
    assert store.slots[TOKEN_SLOT] == "tok"
    assert json.loads(store.slots[USER_SLOT])["id"] == 1

    restored = Session.restore(store)
    assert restored.is_authenticated
    assert restored.advisor == session.advisor


def test_corrupt_slots_are_cleared():
    store = MemorySessionStore({USER_SLOT: "{not json", TOKEN_SLOT: "tok"})
    session = Session.restore(store)

    assert session.state == SessionState.empty
    assert store.slots == {}


def test_tear_down_clears_and_notifies_once(advisor_json):
    store = MemorySessionStore()
    session = Session(store)
    reasons = []
    session.on_teardown(reasons.append)
    session.authenticate(_advisor(advisor_json, role="asesor"), "tok")
    assert not session.is_admin

    session.tear_down("403 on GET /leads")
    session.tear_down("logout")

    assert session.state == SessionState.torn_down
    assert session.token is None
    assert store.slots == {}
    assert reasons == ["403 on GET /leads"]


def test_file_store_round_trip(tmp_path, advisor_json):
    path = tmp_path / "nested" / "session.json"
    session = Session.restore(FileSessionStore(path))
    session.authenticate(_advisor(advisor_json), "tok")

    assert path.exists()
    assert oct(path.stat().st_mode & 0o777) == "0o600"
    assert Session.restore(FileSessionStore(path)).token == "tok"

    session.tear_down()
    assert not path.exists()


def test_unreadable_file_store_is_empty(tmp_path):
    path = tmp_path / "session.json"
    path.write_text("[]", encoding="utf-8")
    assert FileSessionStore(path).load() == {}
    path.write_text("{{{", encoding="utf-8")
    assert not Session.restore(FileSessionStore(path)).is_authenticated
