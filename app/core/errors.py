# app/core/errors.py
"""
Domain error taxonomy shared by every workflow service.

Services raise these; the HTTP layer maps them once in
app.core.error_handlers so status codes stay consistent across routes.

    InvalidError           400  malformed input / disallowed enum value
    ForbiddenError         403  role or ownership mismatch
    NotFoundError          404  missing program / phase / candidature / ...
    ConflictError          409  duplicate membership / response / score
    InvalidTransitionError 409  rejected program status transition
"""
from __future__ import annotations

from typing import Any, Dict, Optional


class DomainError(Exception):
    status_code: int = 500
    code: str = "internal"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class InvalidError(DomainError):
    status_code = 400
    code = "invalid"


class ForbiddenError(DomainError):
    status_code = 403
    code = "forbidden"


class NotFoundError(DomainError):
    """
    Raised when a referenced row does not exist.

    resource/resource_id end up in `details` for logs and API consumers.
    """

    status_code = 404
    code = "not_found"

    def __init__(self, resource: str, resource_id: Any = None) -> None:
        msg = f"{resource} not found"
        if resource_id is not None:
            msg = f"{resource} {resource_id} not found"
        super().__init__(msg, {"resource": resource, "id": resource_id})
        self.resource = resource
        self.resource_id = resource_id


class ConflictError(DomainError):
    status_code = 409
    code = "conflict"


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"

    def __init__(self, current: str, target: str, reason: str) -> None:
        super().__init__(reason, {"from": current, "to": target})
        self.current = current
        self.target = target
        self.reason = reason
