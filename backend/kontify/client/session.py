"""
Client session: who is signed in and with which bearer token.

A ``Session`` is created once per client (``Session.restore``) and handed to
the gateway. It moves ``empty -> authenticated -> torn_down``; any 401/403 from
a protected call tears it down and clears the persisted slots so no stale token
is reused.
"""
import enum
import json
import logging
import threading
from pathlib import Path
from typing import Callable, Protocol

from pydantic import ValidationError

from kontify.models.advisor import AdvisorRole
from kontify.schemas.advisor import AdvisorResponse

logger = logging.getLogger(__name__)

USER_SLOT = "kontify_user"
TOKEN_SLOT = "kontify_token"


class SessionState(str, enum.Enum):
    empty = "empty"
    authenticated = "authenticated"
    torn_down = "torn_down"


class SessionStore(Protocol):
    def load(self) -> dict[str, str]: ...

    def save(self, slots: dict[str, str]) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStore:
    def __init__(self, slots: dict[str, str] | None = None):
        self.slots = dict(slots or {})

    def load(self) -> dict[str, str]:
        return dict(self.slots)

    def save(self, slots: dict[str, str]) -> None:
        self.slots = dict(slots)

    def clear(self) -> None:
        self.slots = {}


class FileSessionStore:
    """JSON file holding the two session slots."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("unreadable session file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def save(self, slots: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(slots), encoding="utf-8")
        self.path.chmod(0o600)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class Session:
    def __init__(self, store: SessionStore):
        self.store = store
        self.advisor: AdvisorResponse | None = None
        self.token: str | None = None
        self.state = SessionState.empty
        self._listeners: list[Callable[[str], None]] = []
        self._lock = threading.Lock()

    @classmethod
    def restore(cls, store: SessionStore) -> "Session":
        session = cls(store)
        slots = store.load()
        raw_user, token = slots.get(USER_SLOT), slots.get(TOKEN_SLOT)
        if not raw_user or not token:
            return session
        try:
            session.advisor = AdvisorResponse.model_validate_json(raw_user)
        except ValidationError:
            logger.warning("discarding corrupt persisted session")
            store.clear()
            return session
        session.token = token
        session.state = SessionState.authenticated
        return session

    @property
    def is_authenticated(self) -> bool:
        return self.state == SessionState.authenticated and bool(self.token)

    @property
    def is_admin(self) -> bool:
        # Display hint only; the server decides what an advisor may do.
        return self.advisor is not None and self.advisor.role == AdvisorRole.admin

    def authenticate(self, advisor: AdvisorResponse, token: str) -> None:
        with self._lock:
            self.advisor = advisor
            self.token = token
            self.state = SessionState.authenticated
            self.store.save({USER_SLOT: advisor.model_dump_json(), TOKEN_SLOT: token})
        logger.info("signed in as advisor %s (%s)", advisor.id, advisor.role.value)

    def on_teardown(self, callback: Callable[[str], None]) -> None:
        self._listeners.append(callback)

    def tear_down(self, reason: str = "logout") -> None:
        with self._lock:
            if self.state == SessionState.torn_down and self.token is None:
                return
            self.advisor = None
            self.token = None
            self.state = SessionState.torn_down
            self.store.clear()
        logger.info("session torn down: %s", reason)
        for callback in list(self._listeners):
            callback(reason)

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
