"""
Borrow request state machine.

Every status check in the server and in the client goes through this module.
``transition`` never raises; it returns ``Ok(new_status)`` or ``Err(error)``
and the caller decides whether to ``unwrap()``.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from bookstore.errors import (
    Err,
    Ok,
    PermissionDeniedError,
    StateConflictError,
    ValidationError,
)
from bookstore.utils.status import (
    TERMINAL_STATUSES,
    BorrowStatus,
    ExtensionStatus,
    Role,
    normalize_status,
)


@dataclass(frozen=True)
class TransitionRule:
    source: BorrowStatus
    target: BorrowStatus
    actors: frozenset
    required: tuple = ()


def _rule(source, target, actors, required=()):
    return TransitionRule(source, target, frozenset(actors), tuple(required))


_ADMIN = Role.ADMIN
_CUSTOMER = Role.CUSTOMER
_COURIER = Role.DELIVERY_MANAGER

TRANSITIONS = {
    (r.source, r.target): r
    for r in (
        _rule(BorrowStatus.PENDING, BorrowStatus.APPROVED, {_ADMIN}, ["delivery_manager_id"]),
        _rule(BorrowStatus.PENDING, BorrowStatus.REJECTED, {_ADMIN}, ["reason"]),
        _rule(BorrowStatus.PENDING, BorrowStatus.CANCELLED, {_CUSTOMER}),
        _rule(BorrowStatus.APPROVED, BorrowStatus.ACTIVE, {_COURIER, _ADMIN}),
        _rule(BorrowStatus.ACTIVE, BorrowStatus.RETURN_REQUESTED, {_CUSTOMER, _ADMIN}),
        _rule(BorrowStatus.RETURN_REQUESTED, BorrowStatus.RETURN_APPROVED, {_ADMIN}),
        _rule(BorrowStatus.RETURN_REQUESTED, BorrowStatus.ACTIVE, {_ADMIN}, ["reason"]),
        _rule(BorrowStatus.RETURN_APPROVED, BorrowStatus.RETURN_ASSIGNED, {_ADMIN}, ["delivery_manager_id"]),
        _rule(BorrowStatus.RETURN_ASSIGNED, BorrowStatus.OUT_FOR_DELIVERY, {_COURIER}),
        _rule(BorrowStatus.OUT_FOR_DELIVERY, BorrowStatus.RETURNED, {_COURIER, _ADMIN}),
    )
}

_REQUIRED_MESSAGES = {
    "delivery_manager_id": "A delivery manager must be selected",
    "reason": "A reason is required",
}

# free-text inputs; anything other than a str is rejected
_TEXT_INPUTS = frozenset({"reason"})


def _blank(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


def transition(current, target, actor, **inputs):
    target_status = BorrowStatus.parse(target)
    if target_status is None:
        return Err(ValidationError(f"Unknown status '{target}'"))

    current_status = BorrowStatus.parse(current)
    rule = TRANSITIONS.get((current_status, target_status)) if current_status else None
    if rule is None:
        shown = current_status.value if current_status else normalize_status(current) or "unknown"
        return Err(StateConflictError(
            f"Request is '{shown}' and cannot move to '{target_status.value}'",
            details={"current": shown, "target": target_status.value},
        ))

    role = normalize_status(actor)
    if role not in {a.value for a in rule.actors}:
        return Err(PermissionDeniedError(
            f"Role '{role or 'anonymous'}' may not move a request to '{target_status.value}'"
        ))

    for name in rule.required:
        value = inputs.get(name)
        if _blank(value):
            return Err(ValidationError(_REQUIRED_MESSAGES.get(name, f"{name} is required")))
        if name in _TEXT_INPUTS and not isinstance(value, str):
            return Err(ValidationError(f"{name.capitalize()} must be text"))

    return Ok(target_status)


def allowed_targets(current, actor) -> list:
    current_status = BorrowStatus.parse(current)
    role = normalize_status(actor)
    return [
        rule.target
        for (source, _target), rule in TRANSITIONS.items()
        if source == current_status and role in {a.value for a in rule.actors}
    ]


# -----------------------------
# Guard predicates
# -----------------------------
def _has_delivery_person(request) -> bool:
    return getattr(request, "delivery_person_id", None) is not None


def can_approve_or_reject(request) -> bool:
    # exact stored value only, padded/cased variants do not unlock admin actions
    return getattr(request, "status", None) == BorrowStatus.PENDING.value


def is_delivery_active(request) -> bool:
    return (
        normalize_status(getattr(request, "status", None)) == BorrowStatus.OUT_FOR_DELIVERY.value
        and _has_delivery_person(request)
    )


def should_show_return_actions(request) -> bool:
    return normalize_status(getattr(request, "status", None)) in {
        BorrowStatus.RETURN_REQUESTED.value,
        BorrowStatus.RETURN_APPROVED.value,
    }


def should_show_assigned_delivery_manager(request) -> bool:
    return (
        normalize_status(getattr(request, "status", None)) == BorrowStatus.RETURN_ASSIGNED.value
        and _has_delivery_person(request)
    )


def can_request_return(request) -> bool:
    return BorrowStatus.parse(getattr(request, "status", None)) == BorrowStatus.ACTIVE


def is_terminal(request) -> bool:
    return BorrowStatus.parse(getattr(request, "status", None)) in TERMINAL_STATUSES


def is_overdue(request, now: datetime | None = None) -> bool:
    """Derived flag; only an active loan can be overdue."""
    due = getattr(request, "due_date", None)
    if due is None or not can_request_return(request):
        return False
    return (now or datetime.utcnow()) > due


def can_be_extended(request, now: datetime | None = None) -> bool:
    if not can_request_return(request) or is_overdue(request, now):
        return False
    extensions = getattr(request, "extensions", None) or []
    return not any(
        normalize_status(getattr(e, "status", None)) == ExtensionStatus.PENDING.value
        for e in extensions
    )
