"""Security-layer exceptions. Typed, no HTTP."""


class SecurityError(Exception):
    """Base for all security-layer errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class AuthorizationError(SecurityError):
    """Raised when the caller's role does not hold the required permission."""


class AuthenticationError(SecurityError):
    """Raised when a bearer token is malformed, badly signed or expired."""
