"""
Error taxonomy shared by the service layer and the HTTP client.

Server code raises these and a single Flask error handler turns them into
JSON. Client code never raises them: every call returns ``Ok`` or ``Err``
and screens render the error through ``present``.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

GENERIC_TRANSPORT_MESSAGE = "Could not reach the library service. Please try again."


class DomainError(Exception):
    code = "error"
    http_status = 400
    severity = "error"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"success": False, "code": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class PreconditionError(DomainError):
    """Missing token, nothing loaded yet. Never retried."""
    code = "precondition_failed"
    http_status = 428


class ValidationError(DomainError):
    code = "validation_error"
    http_status = 400


class AuthenticationError(DomainError):
    code = "unauthorized"
    http_status = 401


class StateConflictError(DomainError):
    """The request is no longer in a state that allows the transition."""
    code = "state_conflict"
    http_status = 409


class PermissionDeniedError(DomainError):
    code = "forbidden"
    http_status = 403


class NotFoundError(DomainError):
    code = "not_found"
    http_status = 404


class TransportError(DomainError):
    code = "transport_error"
    http_status = 502


class LocationUnavailableWarning(DomainError):
    code = "location_unavailable"
    http_status = 404
    severity = "warning"


@dataclass(frozen=True)
class Ok:
    value: Any = None
    ok = True

    def unwrap(self):
        return self.value


@dataclass(frozen=True)
class Err:
    error: DomainError
    ok = False

    def unwrap(self):
        raise self.error


@dataclass(frozen=True)
class Notice:
    message: str
    severity: str = "error"


def present(error: Exception) -> Notice:
    if isinstance(error, TransportError):
        return Notice(GENERIC_TRANSPORT_MESSAGE, error.severity)
    if isinstance(error, DomainError):
        # state conflicts and validation messages are shown verbatim
        return Notice(error.message, error.severity)
    return Notice(GENERIC_TRANSPORT_MESSAGE, "error")


def error_response(error: DomainError):
    from flask import jsonify

    return jsonify(error.to_dict()), error.http_status
