from typing import Any, Optional


class LinearAPIError(RuntimeError):
    """The remote call failed: network error, non-2xx status or malformed payload."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class LinearAuthError(LinearAPIError, PermissionError):
    """Linear rejected the credentials or the caller lacks access."""


class LinearNotFoundError(LinearAPIError):
    """A single-entity lookup returned nothing."""


class LinearGraphQLError(LinearAPIError):
    """The GraphQL response carried an ``errors`` array."""

    def __init__(self, message: str, errors: Optional[list[dict[str, Any]]] = None, status_code: Optional[int] = None):
        super().__init__(message, status_code=status_code)
        self.errors = errors or []


class EntityValidationError(ValueError):
    """An assembled entity does not match its canonical shape."""

    def __init__(self, kind: str, violations: list[str]):
        self.kind = kind
        self.violations = violations
        summary = "; ".join(violations) if violations else "unknown violation"
        super().__init__(f"Invalid {kind} payload: {summary}")
