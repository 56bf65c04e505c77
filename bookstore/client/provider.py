from __future__ import annotations

import logging

from bookstore.client.debounce import Debouncer
from bookstore.config import Config
from bookstore.errors import Err, Ok, PreconditionError, StateConflictError, present

logger = logging.getLogger(__name__)


class BorrowingProvider:
    """
    State behind one borrowings screen.

    Mutations never touch local records: the previous state stays on screen
    until the server accepts the change, then everything is fetched again.
    After ``dispose`` late responses are dropped.
    """

    def __init__(self, client, session, debouncer: Debouncer = None):
        self.client = client
        self.session = session
        self.debouncer = debouncer or Debouncer(Config.SEARCH_DEBOUNCE_SECONDS)

        self.records = []
        self.current = None
        self.location = None
        self.fines = []
        self.notice = None
        self.loading = False
        self.status_filter = None
        self.search_text = ""
        self._alive = True

    @property
    def is_alive(self) -> bool:
        return self._alive

    def dispose(self):
        self._alive = False
        self.debouncer.cancel()

    # -----------------------------
    # Plumbing
    # -----------------------------
    def _run(self, call, apply):
        if not self._alive:
            return Err(PreconditionError("This screen is closed"))
        if self.loading:
            return Err(PreconditionError("Please wait for the current action to finish"))

        self.loading = True
        try:
            result = call()
        finally:
            if self._alive:
                self.loading = False

        if not self._alive:
            logger.debug("[provider] dropped result for a disposed screen")
            return result
        if result.ok:
            apply(result.value)
        else:
            self.notice = present(result.error)
        return result

    def _find(self, borrow_id: int):
        if self.current is not None and self.current.id == borrow_id:
            return self.current
        return next((r for r in self.records if r.id == borrow_id), None)

    def _not_loaded(self):
        err = PreconditionError("Load the request before changing it")
        self.notice = present(err)
        return Err(err)

    def _set_records(self, records):
        self.records = records

    def _set_current(self, record):
        self.current = record

    def _resync(self, borrow_id: int = None):
        self._run(
            lambda: self.client.list_borrowings(self.session, status=self.status_filter, search=self.search_text),
            self._set_records,
        )
        if borrow_id is not None and self.current is not None and self.current.id == borrow_id:
            self._run(lambda: self.client.get_borrowing(self.session, borrow_id), self._set_current)

    def _mutate(self, borrow_id: int, call):
        if self._find(borrow_id) is None:
            return self._not_loaded()
        self.notice = None
        result = self._run(call, lambda _value: None)
        # a conflict means our copy is stale; resync instead of retrying
        if result.ok or isinstance(getattr(result, "error", None), StateConflictError):
            conflict_notice = self.notice
            self._resync(borrow_id)
            if conflict_notice is not None:
                self.notice = conflict_notice
        return result

    # -----------------------------
    # Reads
    # -----------------------------
    def load(self, status: str = None):
        self.status_filter = status
        self.notice = None
        return self._run(
            lambda: self.client.list_borrowings(self.session, status=status, search=self.search_text),
            self._set_records,
        )

    def load_detail(self, borrow_id: int):
        self.notice = None
        return self._run(lambda: self.client.get_borrowing(self.session, borrow_id), self._set_current)

    def search(self, text: str):
        self.search_text = (text or "").strip()
        self.debouncer.call(self._search_now, self.search_text)

    def _search_now(self, text: str):
        if not self._alive:
            return None
        return self._run(
            lambda: self.client.list_borrowings(self.session, status=self.status_filter, search=text),
            self._set_records,
        )

    def load_fines(self):
        return self._run(lambda: self.client.my_fines(self.session), self._set_fines)

    def _set_fines(self, fines):
        self.fines = fines or []

    def _set_location(self, location):
        self.location = location

    def fetch_delivery_location(self, borrow_id: int):
        record = self._find(borrow_id)
        if record is None:
            return self._not_loaded()
        if not record.is_delivery_active():
            self.location = None
            return Ok(None)

        self.notice = None
        result = self._run(lambda: self.client.delivery_location(self.session, borrow_id), self._set_location)
        if not result.ok and self._alive:
            self.location = None
        return result

    # -----------------------------
    # Mutations
    # -----------------------------
    def approve(self, borrow_id: int, delivery_manager_id):
        return self._mutate(borrow_id, lambda: self.client.approve(self.session, borrow_id, delivery_manager_id))

    def reject(self, borrow_id: int, reason: str):
        return self._mutate(borrow_id, lambda: self.client.reject(self.session, borrow_id, reason))

    def mark_delivered(self, borrow_id: int):
        return self._mutate(borrow_id, lambda: self.client.mark_delivered(self.session, borrow_id))

    def request_return(self, borrow_id: int):
        return self._mutate(borrow_id, lambda: self.client.request_return(self.session, borrow_id))

    def approve_return(self, borrow_id: int):
        record = self._find(borrow_id)
        if record is None or record.return_request_id is None:
            return self._not_loaded()
        return self._mutate(borrow_id, lambda: self.client.approve_return(self.session, record.return_request_id))

    def assign_return_delivery_manager(self, borrow_id: int, delivery_manager_id):
        record = self._find(borrow_id)
        if record is None or record.return_request_id is None:
            return self._not_loaded()
        return self._mutate(
            borrow_id,
            lambda: self.client.assign_return_delivery_manager(
                self.session, record.return_request_id, delivery_manager_id
            ),
        )

    def _fine_action(self, call):
        self.notice = None
        result = self._run(call, lambda _value: None)
        if result.ok:
            self.load_fines()
        return result

    def select_fine_payment_method(self, fine_id: int, method: str):
        return self._fine_action(lambda: self.client.select_fine_payment_method(self.session, fine_id, method))

    def confirm_card_payment(self, fine_id: int, card_number: str, expiry: str, cvv: str):
        return self._fine_action(
            lambda: self.client.confirm_card_payment(self.session, fine_id, card_number, expiry, cvv)
        )
