"""Error taxonomy shared by the store, the orchestrator and the web layer."""


class PanelError(Exception):
    """Base class; message is safe to show in a notification."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConflictError(PanelError):
    """A unique field (username, email) is already held by another account."""

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class StoreUnavailableError(PanelError):
    """The database could not be reached or failed mid-operation."""


class AuthorizationError(PanelError):
    """The viewer may not perform the requested action."""


class LoginRequired(AuthorizationError):
    """No authenticated viewer on a request that needs one."""

    def __init__(self, message: str = "Login required.") -> None:
        super().__init__(message)
