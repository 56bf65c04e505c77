import unittest
from datetime import datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

from bookstore.services.discount_service import calculate_discount, is_currently_valid
from tests.base import ApiTestCase


def make_discount(**overrides):
    data = dict(
        discount_type="percentage", value=Decimal("10"), minimum_amount=None, maximum_discount=None,
        usage_limit=None, usage_count=0, is_active=True, start_date=None, end_date=None,
    )
    data.update(overrides)
    return SimpleNamespace(**data)


class TestDiscountCalculator(unittest.TestCase):

    def test_percentage_is_capped(self):
        d = make_discount(value=Decimal("10"), maximum_discount=Decimal("15"))
        self.assertEqual(calculate_discount(d, 200), Decimal("15.00"))

    def test_fixed_below_minimum(self):
        d = make_discount(discount_type="fixed_amount", value=Decimal("20"), minimum_amount=Decimal("50"))
        self.assertEqual(calculate_discount(d, 10), Decimal("0"))

    def test_percentage_plain(self):
        self.assertEqual(calculate_discount(make_discount(value=Decimal("12.5")), "80"), Decimal("10.00"))

    def test_validity_window_and_usage(self):
        now = datetime(2024, 6, 1)
        self.assertTrue(is_currently_valid(make_discount(), now))
        self.assertFalse(is_currently_valid(make_discount(is_active=False), now))
        self.assertFalse(is_currently_valid(make_discount(start_date=now + timedelta(days=1)), now))
        self.assertFalse(is_currently_valid(make_discount(end_date=now - timedelta(seconds=1)), now))
        self.assertFalse(is_currently_valid(make_discount(usage_limit=3, usage_count=3), now))
        self.assertEqual(calculate_discount(make_discount(usage_limit=1, usage_count=1), 100, now), Decimal("0"))


class TestDiscountApi(ApiTestCase):

    def test_create_and_apply(self):
        resp = self.post("/discounts/", self.admin, {
            "code": "spring10", "discount_type": "percentage", "value": 10, "maximum_discount": 15,
        })
        self.assertEqual(resp.status_code, 201)
        self.assertEqual(resp.get_json()["data"]["code"], "SPRING10")

        resp = self.post("/discounts/apply", self.customer, {"code": "SPRING10", "amount": 200})
        self.assertEqual(resp.status_code, 200)
        data = resp.get_json()["data"]
        self.assertEqual(data["discount"], 15.0)
        self.assertEqual(data["final_amount"], 185.0)

        listed = self.get("/discounts/", self.admin).get_json()["data"]
        self.assertEqual(listed[0]["usage_count"], 1)

    def test_percentage_over_hundred_rejected(self):
        resp = self.post("/discounts/", self.admin, {"code": "X", "discount_type": "percentage", "value": 150})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["code"], "validation_error")

    def test_unknown_code(self):
        resp = self.post("/discounts/apply", self.customer, {"code": "NOPE", "amount": 10})
        self.assertEqual(resp.status_code, 404)

    def test_customers_cannot_create(self):
        resp = self.post("/discounts/", self.customer, {"code": "X", "discount_type": "fixed_amount", "value": 5})
        self.assertEqual(resp.status_code, 403)


if __name__ == "__main__":
    unittest.main()
