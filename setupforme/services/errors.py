"""
Service-layer exceptions.

Services raise these; routers translate them into HTTPExceptions using the
status code and machine-readable kind carried by each class.
"""

from typing import Dict


class SetupForMeError(Exception):
    """Base class for errors surfaced to API callers."""
    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, str]:
        return {"error": self.kind, "message": self.message}


class ValidationError(SetupForMeError):
    """Malformed or missing input."""
    kind = "validation"
    status_code = 400


class AuthorizationError(SetupForMeError):
    """Acting identity does not own the record."""
    kind = "authorization"
    status_code = 403


class NotFoundError(SetupForMeError):
    """No such record."""
    kind = "not_found"
    status_code = 404


class ConflictError(SetupForMeError):
    """Duplicate unique key (e.g., an email that is already registered)."""
    kind = "conflict"
    status_code = 409


class DependencyError(SetupForMeError):
    """Storage or outbound service failure."""
    kind = "dependency"
    status_code = 500
