import unittest

from bookstore.client import BorrowRecord, BorrowingProvider, ClientSession, Debouncer
from bookstore.errors import (
    Err,
    LocationUnavailableWarning,
    Ok,
    PreconditionError,
    StateConflictError,
    TransportError,
    GENERIC_TRANSPORT_MESSAGE,
)
from tests.test_debounce import FakeTimers


def record(id, status="pending", **extra):
    return BorrowRecord.from_json(dict({"id": id, "status": status, "due_date": "2030-01-01T00:00:00"}, **extra))


class FakeClient:
    """Scripted LendingApiClient: each method pops its next canned result."""

    def __init__(self):
        self.script = {}
        self.calls = []
        self.during_call = None

    def queue(self, name, *results):
        self.script.setdefault(name, []).extend(results)

    def _answer(self, name, *args, **kwargs):
        self.calls.append((name, args, kwargs))
        if self.during_call is not None:
            hook, self.during_call = self.during_call, None
            hook()
        return self.script[name].pop(0)

    def __getattr__(self, name):
        if name.startswith("_"):
            raise AttributeError(name)
        return lambda session, *args, **kwargs: self._answer(name, *args, **kwargs)

    def names(self):
        return [c[0] for c in self.calls]


class TestBorrowingProvider(unittest.TestCase):

    def setUp(self):
        self.client = FakeClient()
        self.timers = FakeTimers()
        self.provider = BorrowingProvider(
            self.client, ClientSession("http://x", token="t", role="admin"),
            debouncer=Debouncer(0.5, timer_factory=self.timers),
        )
        self.client.queue("list_borrowings", Ok([record(1)]))
        self.provider.load()
        self.client.calls.clear()

    def test_success_refetches_instead_of_patching(self):
        before = self.provider.records
        self.client.queue("approve", Ok(record(1, "approved")))
        self.client.queue("list_borrowings", Ok([record(1, "approved")]))

        result = self.provider.approve(1, 4)
        self.assertTrue(result.ok)
        self.assertEqual(self.client.names(), ["approve", "list_borrowings"])
        self.assertIsNot(self.provider.records, before)
        self.assertEqual(self.provider.records[0].status, "approved")
        self.assertIsNone(self.provider.notice)
        self.assertFalse(self.provider.loading)

    def test_failure_keeps_prior_state(self):
        before = self.provider.records
        self.client.queue("approve", Err(TransportError(GENERIC_TRANSPORT_MESSAGE)))

        self.provider.approve(1, 4)
        self.assertIs(self.provider.records, before)
        self.assertEqual(self.provider.records[0].status, "pending")
        self.assertEqual(self.provider.notice.message, GENERIC_TRANSPORT_MESSAGE)
        self.assertEqual(self.client.names(), ["approve"])

    def test_conflict_resyncs_and_keeps_the_server_message(self):
        self.client.queue("reject", Err(StateConflictError("Request is 'approved' and cannot move to 'rejected'")))
        self.client.queue("list_borrowings", Ok([record(1, "approved")]))

        self.provider.reject(1, "late")
        self.assertEqual(self.client.names(), ["reject", "list_borrowings"])
        self.assertEqual(self.provider.records[0].status, "approved")
        self.assertEqual(self.provider.notice.message, "Request is 'approved' and cannot move to 'rejected'")

    def test_detail_is_refetched_after_mutation(self):
        self.client.queue("get_borrowing", Ok(record(1)))
        self.provider.load_detail(1)
        self.client.calls.clear()

        self.client.queue("mark_delivered", Ok(record(1, "active")))
        self.client.queue("list_borrowings", Ok([record(1, "active")]))
        self.client.queue("get_borrowing", Ok(record(1, "active")))
        self.provider.mark_delivered(1)
        self.assertEqual(self.client.names(), ["mark_delivered", "list_borrowings", "get_borrowing"])
        self.assertEqual(self.provider.current.status, "active")

    def test_mutation_needs_a_loaded_request(self):
        result = self.provider.approve(99, 4)
        self.assertIsInstance(result.error, PreconditionError)
        self.assertEqual(self.client.calls, [])
        self.assertIsNotNone(self.provider.notice)

    def test_late_result_after_dispose_is_dropped(self):
        before = self.provider.records
        self.client.queue("list_borrowings", Ok([record(2)]))
        self.client.during_call = self.provider.dispose

        self.provider.load()
        self.assertIs(self.provider.records, before)
        self.assertFalse(self.provider.is_alive)
        self.assertIsInstance(self.provider.load().error, PreconditionError)

    def test_no_reentry_while_loading(self):
        nested = []
        self.client.queue("list_borrowings", Ok([record(1)]))
        self.client.during_call = lambda: nested.append(self.provider.load())

        self.provider.load()
        self.assertIsInstance(nested[0].error, PreconditionError)
        self.assertEqual(self.client.names(), ["list_borrowings"])

    def test_location_only_while_out_for_delivery(self):
        self.assertEqual(self.provider.fetch_delivery_location(1).unwrap(), None)
        self.assertEqual(self.client.calls, [])

        self.client.queue("list_borrowings", Ok([record(2, "out_for_delivery", delivery_person_id=4)]))
        self.provider.load()
        self.client.queue("delivery_location", Err(LocationUnavailableWarning("No location yet")))
        self.provider.fetch_delivery_location(2)
        self.assertEqual(self.provider.notice.severity, "warning")
        self.assertIsNone(self.provider.location)

        self.client.queue("delivery_location", Ok({"latitude": 1.0, "longitude": 2.0}))
        self.provider.fetch_delivery_location(2)
        self.assertEqual(self.provider.location, {"latitude": 1.0, "longitude": 2.0})

    def test_return_actions_use_the_return_request(self):
        self.client.queue("list_borrowings", Ok([record(3, "return_requested", return_request_id=30)]))
        self.provider.load()
        self.client.calls.clear()

        self.client.queue("approve_return", Ok({"id": 30}))
        self.client.queue("list_borrowings", Ok([record(3, "return_approved", return_request_id=30)]))
        self.provider.approve_return(3)
        self.assertEqual(self.client.calls[0][:2], ("approve_return", (30,)))
        self.assertEqual(self.provider.records[0].status, "return_approved")

    def test_search_is_debounced(self):
        self.client.queue("list_borrowings", Ok([record(7)]))
        for text in ("d", "du", "dune"):
            self.provider.search(text)
        self.assertEqual(self.client.calls, [])

        for timer in self.timers.created:
            timer.fire()
        self.assertEqual(len(self.client.calls), 1)
        self.assertEqual(self.client.calls[0][2]["search"], "dune")
        self.assertEqual(self.provider.records[0].id, 7)

    def test_dispose_cancels_pending_search(self):
        self.provider.search("dune")
        self.provider.dispose()
        self.assertTrue(self.timers.created[0].cancelled)

    def test_fine_payment_reloads_fines(self):
        self.client.queue("select_fine_payment_method", Ok({"id": 1, "payment_method": "card"}))
        self.client.queue("my_fines", Ok([{"id": 1, "payment_method": "card"}]))
        self.provider.select_fine_payment_method(1, "card")
        self.assertEqual(self.client.names(), ["select_fine_payment_method", "my_fines"])
        self.assertEqual(self.provider.fines[0]["payment_method"], "card")


if __name__ == "__main__":
    unittest.main()
