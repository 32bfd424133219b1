class KontifyError(Exception):
    """Base class for errors raised inside Kontify."""


class AuthFailure(KontifyError):
    """Credentials were rejected at login."""


class AuthExpired(KontifyError):
    """A protected call came back 401/403; the session is no longer valid."""

    def __init__(self, status_code: int, detail: str = ""):
        super().__init__(f"{status_code}: {detail}" if detail else str(status_code))
        self.status_code = status_code
        self.detail = detail


class ProviderFailure(KontifyError):
    """An AI provider was unreachable or answered with something unusable."""


class NetworkFailure(KontifyError):
    """The backend could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
