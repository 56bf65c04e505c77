from bookstore.models import Book, BorrowRequest, ReturnRequest
from bookstore.utils.status import BorrowStatus, ReturnStatus
from tests.base import ApiTestCase


class TestBorrowFlow(ApiTestCase):
    """End-to-end walk through the lifecycle over HTTP."""

    def test_full_lifecycle(self):
        resp = self.post("/borrow/requests/", self.customer, {"book_id": self.book_id, "delivery_address": "Elm st 4"})
        self.assertEqual(resp.status_code, 201)
        borrow = resp.get_json()["data"]
        borrow_id = borrow["id"]
        self.assertEqual(borrow["status"], "pending")
        self.assertIsNotNone(borrow["due_date"])
        self.assertTrue(borrow["can_approve_or_reject"])

        managers = self.get("/borrow/delivery-managers/", self.admin).get_json()["data"]
        self.assertEqual({m["username"] for m in managers}, {"dave", "olga"})

        resp = self.post(f"/borrow/requests/{borrow_id}/approve", self.admin, {"delivery_manager_id": self.courier})
        self.assertEqual(resp.status_code, 200)
        data = resp.get_json()["data"]
        self.assertEqual(data["status"], "approved")
        self.assertEqual(data["delivery_person_id"], self.courier)
        self.assertIsNotNone(data["approval_date"])
        self.assertEqual(self.reload(Book, self.book_id).available_copies, 1)

        resp = self.post(f"/borrow/borrowings/{borrow_id}/delivered", self.courier)
        self.assertEqual(resp.get_json()["data"]["status"], "active")

        resp = self.post(f"/borrow/borrowings/{borrow_id}/return-request", self.customer)
        self.assertEqual(resp.status_code, 201)
        return_id = resp.get_json()["data"]["id"]
        self.assertEqual(resp.get_json()["data"]["status"], ReturnStatus.PENDING_PICKUP.value)

        self.assertEqual(self.post(f"/returns/requests/{return_id}/approve", self.admin).status_code, 200)
        resp = self.post(f"/returns/requests/{return_id}/assign", self.admin, {"delivery_manager_id": self.courier})
        self.assertEqual(resp.get_json()["data"]["borrow_status"], "return_assigned")

        resp = self.post(f"/returns/requests/{return_id}/start", self.courier)
        self.assertEqual(resp.get_json()["data"]["status"], ReturnStatus.IN_RETURN.value)
        self.assertEqual(self.reload(BorrowRequest, borrow_id).status, BorrowStatus.OUT_FOR_DELIVERY.value)

        self.post(f"/returns/requests/{return_id}/pickup", self.courier)
        resp = self.post(f"/returns/requests/{return_id}/complete", self.courier)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["data"]["status"], ReturnStatus.RETURNED_SUCCESSFULLY.value)

        borrow = self.reload(BorrowRequest, borrow_id)
        self.assertEqual(borrow.status, BorrowStatus.RETURNED.value)
        self.assertIsNotNone(borrow.final_return_date)
        self.assertIsNone(borrow.fine)
        self.assertEqual(self.reload(Book, self.book_id).available_copies, 2)

    def test_approve_needs_an_available_manager(self):
        borrow_id = self.make_borrow()

        resp = self.post(f"/borrow/requests/{borrow_id}/approve", self.admin, {})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["message"], "A delivery manager must be selected")

        resp = self.post(f"/borrow/requests/{borrow_id}/approve", self.admin,
                         {"delivery_manager_id": self.offline_courier})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(self.reload(BorrowRequest, borrow_id).status, "pending")
        self.assertEqual(self.reload(Book, self.book_id).available_copies, 2)

    def test_second_decision_is_a_conflict(self):
        borrow_id = self.make_borrow()
        self.post(f"/borrow/requests/{borrow_id}/reject", self.admin, {"reason": "Damaged copy"})

        resp = self.post(f"/borrow/requests/{borrow_id}/approve", self.admin, {"delivery_manager_id": self.courier})
        self.assertEqual(resp.status_code, 409)
        body = resp.get_json()
        self.assertEqual(body["code"], "state_conflict")
        self.assertIn("rejected", body["message"])

    def test_reject_requires_reason(self):
        borrow_id = self.make_borrow()
        resp = self.post(f"/borrow/requests/{borrow_id}/reject", self.admin, {"reason": "  "})
        self.assertEqual(resp.status_code, 400)

        resp = self.post(f"/borrow/requests/{borrow_id}/reject", self.admin, {"reason": "Out of stock"})
        data = resp.get_json()["data"]
        self.assertEqual(data["status"], "rejected")
        self.assertEqual(data["rejection_reason"], "Out of stock")

    def test_reject_reason_must_be_text(self):
        borrow_id = self.make_borrow()
        resp = self.post(f"/borrow/requests/{borrow_id}/reject", self.admin, {"reason": 123})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["code"], "validation_error")
        self.assertEqual(self.reload(BorrowRequest, borrow_id).status, "pending")

    def test_admin_can_start_a_return(self):
        borrow_id = self.make_borrow(status="active", delivery_person_id=self.courier)
        resp = self.post(f"/borrow/borrowings/{borrow_id}/return-request", self.admin)
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["data"]["status"], ReturnStatus.PENDING_PICKUP.value)

        ret = ReturnRequest.query.filter_by(borrow_id=borrow_id).one()
        self.assertEqual(ret.status, ReturnStatus.PENDING_PICKUP.value)
        self.assertEqual(self.reload(BorrowRequest, borrow_id).status, BorrowStatus.RETURN_REQUESTED.value)

    def test_courier_cannot_start_a_return(self):
        borrow_id = self.make_borrow(status="active", delivery_person_id=self.courier)
        self.assertEqual(self.post(f"/borrow/borrowings/{borrow_id}/return-request", self.courier).status_code, 403)

    def test_customer_cancel_only_while_pending(self):
        borrow_id = self.make_borrow()
        self.assertEqual(self.post(f"/borrow/requests/{borrow_id}/cancel", self.other_customer).status_code, 403)
        self.assertEqual(self.post(f"/borrow/requests/{borrow_id}/cancel", self.customer).status_code, 200)
        self.assertEqual(self.post(f"/borrow/requests/{borrow_id}/cancel", self.customer).status_code, 409)

    def test_customers_cannot_approve(self):
        borrow_id = self.make_borrow()
        resp = self.post(f"/borrow/requests/{borrow_id}/approve", self.customer, {"delivery_manager_id": self.courier})
        self.assertEqual(resp.status_code, 403)

    def test_missing_token(self):
        resp = self.http.get("/borrow/borrowings/")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.get_json()["success"])


class TestBorrowListing(ApiTestCase):

    def test_scoped_by_role(self):
        mine = self.make_borrow()
        self.make_borrow(customer_id=self.other_customer)
        assigned = self.make_borrow(status="approved", delivery_person_id=self.courier)

        ids = [b["id"] for b in self.get("/borrow/borrowings/", self.customer).get_json()["data"]]
        self.assertIn(mine, ids)
        self.assertEqual(len(ids), 2)

        ids = [b["id"] for b in self.get("/borrow/borrowings/", self.courier).get_json()["data"]]
        self.assertEqual(ids, [assigned])

        self.assertEqual(len(self.get("/borrow/borrowings/", self.admin).get_json()["data"]), 3)

    def test_status_filter_is_normalized_and_overdue_is_derived(self):
        self.make_borrow(status="active", due_date=self.days_ago(1, hours=12))
        self.make_borrow(status="active", due_date=self.days_ahead(5))
        self.make_borrow(status="return_requested")

        rows = self.get("/borrow/borrowings/?status=Return-Requested", self.admin).get_json()["data"]
        self.assertEqual([r["status"] for r in rows], ["return_requested"])

        rows = self.get("/borrow/borrowings/?status=overdue", self.admin).get_json()["data"]
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]["status"], "active")
        self.assertTrue(rows[0]["is_overdue"])
        self.assertEqual(rows[0]["days_overdue"], 2)

        resp = self.get("/borrow/borrowings/?status=nonsense", self.admin)
        self.assertEqual(resp.status_code, 400)

    def test_search_by_title_and_customer(self):
        self.make_borrow()
        self.assertEqual(len(self.get("/borrow/borrowings/?search=dun", self.admin).get_json()["data"]), 1)
        self.assertEqual(len(self.get("/borrow/borrowings/?search=Alice", self.admin).get_json()["data"]), 1)
        self.assertEqual(len(self.get("/borrow/borrowings/?search=zzz", self.admin).get_json()["data"]), 0)

    def test_detail_visibility(self):
        borrow_id = self.make_borrow()
        resp = self.get(f"/borrow/borrowings/{borrow_id}/", self.customer)
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.get_json()["data"]["allowed_transitions"], ["cancelled"])
        admin_view = self.get(f"/borrow/borrowings/{borrow_id}/", self.admin).get_json()["data"]
        self.assertEqual(set(admin_view["allowed_transitions"]), {"approved", "rejected"})
        self.assertEqual(self.get(f"/borrow/borrowings/{borrow_id}/", self.other_customer).status_code, 403)
        self.assertEqual(self.get("/borrow/borrowings/999/", self.admin).status_code, 404)


class TestDeliveryLocation(ApiTestCase):

    def test_only_while_out_for_delivery(self):
        borrow_id = self.make_borrow(status="return_assigned", delivery_person_id=self.courier)
        resp = self.get(f"/borrow/borrowings/{borrow_id}/delivery-location/", self.customer)
        self.assertEqual(resp.status_code, 409)

    def test_absent_location_is_a_warning(self):
        borrow_id = self.make_borrow(status="out_for_delivery", delivery_person_id=self.courier)
        resp = self.get(f"/borrow/borrowings/{borrow_id}/delivery-location/", self.customer)
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.get_json()["code"], "location_unavailable")

    def test_shared_location(self):
        borrow_id = self.make_borrow(status="out_for_delivery", delivery_person_id=self.courier)
        resp = self.put("/delivery/location", self.courier, {"latitude": 41.01, "longitude": 28.97})
        self.assertEqual(resp.status_code, 200)

        resp = self.get(f"/borrow/borrowings/{borrow_id}/delivery-location/", self.customer)
        self.assertEqual(resp.status_code, 200)
        location = resp.get_json()["data"]["location"]
        self.assertAlmostEqual(location["latitude"], 41.01)
        self.assertAlmostEqual(location["longitude"], 28.97)

    def test_location_range_checked(self):
        resp = self.put("/delivery/location", self.courier, {"latitude": 91, "longitude": 0})
        self.assertEqual(resp.status_code, 400)


class TestDeliveryStatus(ApiTestCase):

    def test_going_offline_hides_from_approval(self):
        self.assertEqual(self.put("/delivery/status", self.courier, {"status": "Offline"}).status_code, 200)
        borrow_id = self.make_borrow()
        resp = self.post(f"/borrow/requests/{borrow_id}/approve", self.admin, {"delivery_manager_id": self.courier})
        self.assertEqual(resp.status_code, 400)

    def test_unknown_status(self):
        self.assertEqual(self.put("/delivery/status", self.courier, {"status": "asleep"}).status_code, 400)
