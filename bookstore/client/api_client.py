from __future__ import annotations

import logging

import requests

from bookstore.client.records import BorrowRecord
from bookstore.client.session import ClientSession
from bookstore.errors import (
    GENERIC_TRANSPORT_MESSAGE,
    Err,
    LocationUnavailableWarning,
    Ok,
    PreconditionError,
    StateConflictError,
    TransportError,
    ValidationError,
)
from bookstore.utils.status import PaymentMethod, normalize_status

logger = logging.getLogger(__name__)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class LendingApiClient:
    """
    One method per backend operation. Every method returns ``Ok`` or ``Err``;
    nothing here raises into the caller.
    """

    def __init__(self, http=None, timeout: float = 10):
        self.http = http or requests.Session()
        self.timeout = timeout

    # -----------------------------
    # Plumbing
    # -----------------------------
    def _send(self, session: ClientSession, method: str, path: str, json=None, params=None, auth=True,
              allow_unsuccessful=False):
        if auth and not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))

        headers = session.headers() if auth else {"Accept": "application/json"}
        url = session.url(path)
        try:
            resp = self.http.request(method, url, json=json, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"[client] {method} {url} failed: {e}")
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE))

        try:
            payload = resp.json()
        except ValueError:
            logger.warning(f"[client] {method} {url} returned non-JSON (HTTP {resp.status_code})")
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE))
        if not isinstance(payload, dict):
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE))

        if resp.status_code == 409:
            return Err(StateConflictError(
                payload.get("message") or "This request was changed by someone else",
                details=payload.get("details"),
            ))
        if resp.status_code == 404 and payload.get("code") == LocationUnavailableWarning.code:
            return Err(LocationUnavailableWarning(payload.get("message") or "Location is not available yet"))
        unsuccessful = payload.get("success") is False and not allow_unsuccessful
        if not 200 <= resp.status_code < 300 or unsuccessful:
            logger.info(f"[client] {method} {url} -> HTTP {resp.status_code} {payload.get('code')}")
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE, details={"status": resp.status_code}))

        return Ok(payload)

    def _data(self, session, method, path, parse=None, **kw):
        result = self._send(session, method, path, **kw)
        if not result.ok:
            return result
        data = result.value.get("data")
        if parse is None:
            return Ok(data)
        try:
            return Ok(parse(data))
        except (KeyError, TypeError, ValueError) as e:
            logger.warning(f"[client] {method} {path} unexpected payload: {e}")
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE))

    # -----------------------------
    # Auth
    # -----------------------------
    def login(self, session: ClientSession, username: str, password: str):
        if _blank(username) or _blank(password):
            return Err(ValidationError("Username and password are required"))
        result = self._send(session, "POST", "/auth/login",
                            json={"username": username, "password": password}, auth=False)
        if not result.ok:
            return result
        try:
            user = result.value["user"]
            return Ok(session.signed_in(result.value["access_token"], int(user["id"]), user["role"]))
        except (KeyError, TypeError, ValueError):
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE))

    # -----------------------------
    # Borrowings
    # -----------------------------
    def list_borrowings(self, session: ClientSession, status: str = None, search: str = None):
        params = {}
        if status:
            params["status"] = normalize_status(status)
        if search:
            params["search"] = search
        return self._data(session, "GET", "/borrow/borrowings/", params=params,
                          parse=lambda rows: [BorrowRecord.from_json(r) for r in rows])

    def get_borrowing(self, session: ClientSession, borrow_id: int):
        return self._data(session, "GET", f"/borrow/borrowings/{borrow_id}/", parse=BorrowRecord.from_json)

    def create_request(self, session: ClientSession, book_id: int, borrow_period_days: int = None,
                       delivery_address: str = None):
        body = {"book_id": book_id, "borrow_period_days": borrow_period_days, "delivery_address": delivery_address}
        return self._data(session, "POST", "/borrow/requests/", json=body, parse=BorrowRecord.from_json)

    def approve(self, session: ClientSession, borrow_id: int, delivery_manager_id):
        if not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))
        if _blank(delivery_manager_id):
            return Err(ValidationError("A delivery manager must be selected"))
        return self._data(session, "POST", f"/borrow/requests/{borrow_id}/approve",
                          json={"delivery_manager_id": delivery_manager_id}, parse=BorrowRecord.from_json)

    def reject(self, session: ClientSession, borrow_id: int, reason: str):
        if not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))
        if _blank(reason):
            return Err(ValidationError("A reason is required"))
        return self._data(session, "POST", f"/borrow/requests/{borrow_id}/reject",
                          json={"reason": reason.strip()}, parse=BorrowRecord.from_json)

    def cancel(self, session: ClientSession, borrow_id: int):
        return self._data(session, "POST", f"/borrow/requests/{borrow_id}/cancel", parse=BorrowRecord.from_json)

    def mark_delivered(self, session: ClientSession, borrow_id: int):
        return self._data(session, "POST", f"/borrow/borrowings/{borrow_id}/delivered", parse=BorrowRecord.from_json)

    def list_delivery_managers(self, session: ClientSession):
        return self._data(session, "GET", "/borrow/delivery-managers/")

    def delivery_location(self, session: ClientSession, borrow_id: int):
        result = self._send(session, "GET", f"/borrow/borrowings/{borrow_id}/delivery-location/",
                            allow_unsuccessful=True)
        if not result.ok:
            return result
        payload = result.value
        # a 2xx without success or data is a soft miss, not a failure
        if payload.get("success") is False or not payload.get("data"):
            return Err(LocationUnavailableWarning(payload.get("message") or "Location is not available yet"))
        location = payload["data"].get("location") if isinstance(payload["data"], dict) else None
        location = location or {}
        if location.get("latitude") is None or location.get("longitude") is None:
            return Err(LocationUnavailableWarning("Location is not available yet"))
        try:
            return Ok({"latitude": float(location["latitude"]), "longitude": float(location["longitude"])})
        except (TypeError, ValueError):
            return Err(TransportError(GENERIC_TRANSPORT_MESSAGE))

    def request_extension(self, session: ClientSession, borrow_id: int, extension_days: int):
        return self._data(session, "POST", f"/borrow/borrowings/{borrow_id}/extend",
                          json={"extension_days": extension_days})

    # -----------------------------
    # Return leg
    # -----------------------------
    def request_return(self, session: ClientSession, borrow_id: int):
        return self._data(session, "POST", f"/borrow/borrowings/{borrow_id}/return-request")

    def approve_return(self, session: ClientSession, return_id: int):
        return self._data(session, "POST", f"/returns/requests/{return_id}/approve")

    def decline_return(self, session: ClientSession, return_id: int, reason: str):
        if not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))
        if _blank(reason):
            return Err(ValidationError("A reason is required"))
        return self._data(session, "POST", f"/returns/requests/{return_id}/decline", json={"reason": reason.strip()})

    def assign_return_delivery_manager(self, session: ClientSession, return_id: int, delivery_manager_id):
        if not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))
        if _blank(delivery_manager_id):
            return Err(ValidationError("A delivery manager must be selected"))
        return self._data(session, "POST", f"/returns/requests/{return_id}/assign",
                          json={"delivery_manager_id": delivery_manager_id})

    # -----------------------------
    # Fines
    # -----------------------------
    def my_fines(self, session: ClientSession):
        return self._data(session, "GET", "/returns/fines/my-fines/")

    def select_fine_payment_method(self, session: ClientSession, fine_id: int, method: str):
        if not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))
        key = normalize_status(method)
        if key not in (PaymentMethod.CASH.value, PaymentMethod.CARD.value):
            return Err(ValidationError("Choose cash or card"))
        return self._data(session, "POST", f"/returns/fines/{fine_id}/select-payment-method/",
                          json={"payment_method": key})

    def confirm_card_payment(self, session: ClientSession, fine_id: int, card_number: str, expiry: str, cvv: str):
        if not session.is_authenticated:
            return Err(PreconditionError("You need to sign in first"))
        if _blank(card_number) or _blank(expiry) or _blank(cvv):
            return Err(ValidationError("Card number, expiry and CVV are required"))
        body = {"card_number": card_number, "expiry": expiry, "cvv": cvv}
        return self._data(session, "POST", f"/returns/fines/{fine_id}/confirm-card-payment/", json=body)
