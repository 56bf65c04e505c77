import re
from enum import Enum

_NON_WORD = re.compile(r"[^A-Za-z0-9_]")


def normalize_status(value) -> str:
    """
    Canonical form used for every status comparison:
    lowercase -> trim -> spaces/hyphens to underscore -> drop anything outside [A-Za-z0-9_].
    """
    if value is None:
        return ""
    if isinstance(value, Enum):
        value = value.value
    text = str(value).lower().strip()
    text = text.replace(" ", "_").replace("-", "_")
    return _NON_WORD.sub("", text)


class BorrowStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    ACTIVE = "active"
    RETURN_REQUESTED = "return_requested"
    RETURN_APPROVED = "return_approved"
    RETURN_ASSIGNED = "return_assigned"
    OUT_FOR_DELIVERY = "out_for_delivery"
    RETURNED = "returned"

    @classmethod
    def parse(cls, value):
        """Normalized lookup; returns None for unknown values."""
        key = normalize_status(value)
        # overdue/late are derived flags upstream, the stored state is still active
        if key in LEGACY_ACTIVE_ALIASES:
            return cls.ACTIVE
        try:
            return cls(key)
        except ValueError:
            return None


LEGACY_ACTIVE_ALIASES = frozenset({"overdue", "late", "extended", "delivered"})

TERMINAL_STATUSES = frozenset({
    BorrowStatus.RETURNED,
    BorrowStatus.REJECTED,
    BorrowStatus.CANCELLED,
})


class ReturnStatus(str, Enum):
    PENDING_PICKUP = "pending_pickup"
    IN_RETURN = "in_return"
    RETURNING_TO_LIBRARY = "returning_to_library"
    RETURNED_SUCCESSFULLY = "returned_successfully"
    LATE_RETURN = "late_return"
    CANCELLED = "cancelled"


class FineStatus(str, Enum):
    UNPAID = "unpaid"
    PAID = "paid"
    WAIVED = "waived"


class ExtensionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class DeliveryStatus(str, Enum):
    ONLINE = "online"
    BUSY = "busy"
    OFFLINE = "offline"


class Role(str, Enum):
    CUSTOMER = "customer"
    ADMIN = "admin"
    DELIVERY_MANAGER = "delivery_manager"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
