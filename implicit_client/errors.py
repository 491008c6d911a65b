"""
Error taxonomy for the implicit flow.
"""


class ImplicitFlowError(Exception):
    """Base class for all implicit-flow failures."""


class DiscoveryFetchError(ImplicitFlowError):
    """Provider metadata could not be fetched or parsed."""


class AuthorizationError(ImplicitFlowError):
    """The provider answered the redirect-back with an error."""

    def __init__(self, error: str, error_description: str | None = None):
        self.error = error
        self.error_description = error_description or error
        super().__init__(self.error_description)


class InvalidStateError(ImplicitFlowError):
    """Returned state does not match the pending one (CSRF check)."""

    def __init__(self, received: str | None):
        self.received = received
        super().__init__(f"Invalid state: {received}")


class UserInfoFetchError(ImplicitFlowError):
    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class SessionExpiredOrInvalid(ImplicitFlowError):
    """A restored session was rejected by the UserInfo endpoint; handled by dropping the restored record."""
