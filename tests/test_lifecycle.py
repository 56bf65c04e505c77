import unittest
from datetime import datetime, timedelta
from types import SimpleNamespace

from bookstore.errors import PermissionDeniedError, StateConflictError, ValidationError
from bookstore.services import lifecycle
from bookstore.utils.status import BorrowStatus


class TestTransition(unittest.TestCase):

    def test_happy_path_through_the_table(self):
        steps = [
            ("pending", "approved", "admin", {"delivery_manager_id": 4}),
            ("approved", "active", "delivery_manager", {}),
            ("active", "return_requested", "customer", {}),
            ("return_requested", "return_approved", "admin", {}),
            ("return_approved", "return_assigned", "admin", {"delivery_manager_id": 4}),
            ("return_assigned", "out_for_delivery", "delivery_manager", {}),
            ("out_for_delivery", "returned", "delivery_manager", {}),
        ]
        for current, target, actor, inputs in steps:
            with self.subTest(current=current, target=target):
                result = lifecycle.transition(current, target, actor, **inputs)
                self.assertTrue(result.ok)
                self.assertEqual(result.unwrap(), BorrowStatus(target))

    def test_skipping_return_steps_is_a_state_conflict(self):
        result = lifecycle.transition("approved", "return_assigned", "admin", delivery_manager_id=4)
        self.assertFalse(result.ok)
        self.assertIsInstance(result.error, StateConflictError)
        self.assertEqual(result.error.http_status, 409)
        with self.assertRaises(StateConflictError):
            result.unwrap()

    def test_terminal_states_have_no_exits(self):
        for current in ("returned", "rejected", "cancelled"):
            with self.subTest(current=current):
                self.assertEqual(lifecycle.allowed_targets(current, "admin"), [])
                self.assertFalse(lifecycle.transition(current, "active", "admin", reason="x").ok)

    def test_status_input_is_normalized(self):
        self.assertTrue(lifecycle.transition(" Out-For-Delivery ", "Returned", "admin").ok)

    def test_wrong_actor(self):
        result = lifecycle.transition("pending", "approved", "customer", delivery_manager_id=4)
        self.assertIsInstance(result.error, PermissionDeniedError)

    def test_required_inputs(self):
        result = lifecycle.transition("pending", "approved", "admin")
        self.assertIsInstance(result.error, ValidationError)
        self.assertEqual(result.error.message, "A delivery manager must be selected")

        result = lifecycle.transition("pending", "rejected", "admin", reason="   ")
        self.assertIsInstance(result.error, ValidationError)
        self.assertEqual(result.error.message, "A reason is required")

    def test_reason_must_be_text(self):
        for reason in (123, ["late"], {"text": "late"}):
            result = lifecycle.transition("pending", "rejected", "admin", reason=reason)
            self.assertIsInstance(result.error, ValidationError)
            self.assertEqual(result.error.message, "Reason must be text")

        self.assertTrue(lifecycle.transition("pending", "approved", "admin", delivery_manager_id=4).ok)

    def test_unknown_target(self):
        self.assertIsInstance(lifecycle.transition("pending", "teleported", "admin").error, ValidationError)

    def test_allowed_targets(self):
        self.assertEqual(
            set(lifecycle.allowed_targets("pending", "admin")),
            {BorrowStatus.APPROVED, BorrowStatus.REJECTED},
        )
        self.assertEqual(lifecycle.allowed_targets("pending", "customer"), [BorrowStatus.CANCELLED])


class TestDerivedFlags(unittest.TestCase):

    def setUp(self):
        self.now = datetime(2024, 5, 10, 12, 0)

    def test_overdue_only_when_active_and_past_due(self):
        active = SimpleNamespace(status="active", due_date=self.now - timedelta(minutes=1))
        self.assertTrue(lifecycle.is_overdue(active, self.now))

        on_time = SimpleNamespace(status="active", due_date=self.now)
        self.assertFalse(lifecycle.is_overdue(on_time, self.now))

        returned = SimpleNamespace(status="returned", due_date=self.now - timedelta(days=3))
        self.assertFalse(lifecycle.is_overdue(returned, self.now))

    def test_can_be_extended(self):
        due = self.now + timedelta(days=2)
        self.assertTrue(lifecycle.can_be_extended(SimpleNamespace(status="active", due_date=due), self.now))

        pending_ext = SimpleNamespace(status="pending")
        busy = SimpleNamespace(status="active", due_date=due, extensions=[pending_ext])
        self.assertFalse(lifecycle.can_be_extended(busy, self.now))

        late = SimpleNamespace(status="active", due_date=self.now - timedelta(days=1))
        self.assertFalse(lifecycle.can_be_extended(late, self.now))


if __name__ == "__main__":
    unittest.main()
