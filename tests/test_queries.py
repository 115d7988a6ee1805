import unittest
from datetime import datetime, timedelta, timezone

from runesse.errors import NotFoundError, UnauthorizedError, ValidationError
from runesse.extensions import db
from runesse.models import Request
from runesse.services import queries
from runesse.services.ledger import get_request_ledger, record_reimbursement
from runesse.services.request_service import create_request, take_request
from tests.base import RunesseTestCase


def _create(**fields):
    data = {"buyer_email": "b@x.com", "product_link": "http://x"}
    data.update(fields)
    return create_request(**data)


class TestPublicAndAdminListings(RunesseTestCase):
    def setUp(self):
        super().setUp()
        self.first = _create(delivery_address_text="1 Main St", delivery_mobile="9999999999").id
        self.second = _create(product_name="Second").id

    def test_public_listing_hides_delivery_details(self):
        requests = queries.list_public_requests()

        self.assertEqual(len(requests), 2)
        for r in requests:
            self.assertIsNone(r["deliveryAddressText"])
            self.assertIsNone(r["deliveryMobile"])
        # The record itself still has them
        stored = db.session.get(Request, self.first)
        self.assertEqual(stored.delivery_address_text, "1 Main St")

    def test_newest_first(self):
        ids = [r["id"] for r in queries.list_public_requests()]
        self.assertEqual(ids, [self.second, self.first])

    def test_admin_listing_has_every_field(self):
        requests = queries.list_admin_requests()
        first = next(r for r in requests if r["id"] == self.first)

        self.assertEqual(first["deliveryAddressText"], "1 Main St")
        self.assertEqual(first["deliveryMobile"], "9999999999")
        self.assertIsInstance(first["createdAt"], str)
        self.assertEqual([r["id"] for r in requests], [self.second, self.first])

    def test_admin_detail(self):
        self.assertEqual(queries.get_admin_request(self.first)["deliveryMobile"], "9999999999")
        with self.assertRaises(NotFoundError):
            queries.get_admin_request("missing")


class TestActiveCards(RunesseTestCase):
    def test_only_active_cards_in_public_shape(self):
        self.add_card(label="Regalia", issuer="HDFC", network="VISA", last4="1234")
        self.add_card(label="Old", issuer="SBI", is_active=False)

        cards = queries.list_active_cards()

        self.assertEqual(len(cards), 1)
        self.assertEqual(
            set(cards[0]),
            {"id", "label", "issuer", "brand", "network", "country", "last4"},
        )
        self.assertEqual(cards[0]["last4"], "1234")

    def test_newest_cards_first(self):
        now = datetime.now(timezone.utc)
        self.add_card(label="Oldest", created_at=now - timedelta(days=2))
        self.add_card(label="Newest", created_at=now)
        self.add_card(label="Middle", created_at=now - timedelta(days=1))

        cards = queries.list_active_cards()

        self.assertEqual([c["label"] for c in cards], ["Newest", "Middle", "Oldest"])


class TestBuyerRequests(RunesseTestCase):
    def test_unknown_buyer_gets_empty_list(self):
        _create(buyer_email="ghost@x.com")
        self.assertEqual(queries.list_buyer_requests("ghost@x.com"), [])
        self.assertEqual(queries.list_buyer_requests(None), [])

    def test_known_buyer_sees_own_requests_only(self):
        self.add_user("b@x.com")
        mine = _create(delivery_mobile="9999999999").id
        _create(buyer_email="other@x.com")

        requests = queries.list_buyer_requests("b@x.com")

        self.assertEqual([r["id"] for r in requests], [mine])
        self.assertIsNone(requests[0]["deliveryMobile"])


class TestCardholderViews(RunesseTestCase):
    def test_address_only_for_matched_cardholder(self):
        req_id = _create(delivery_address_text="1 Main St").id

        data, can_see = queries.get_cardholder_request(req_id, "holder@x.com")
        self.assertFalse(can_see)
        self.assertIsNone(data["deliveryAddressText"])

        take_request(req_id, cardholder_email="holder@x.com")

        data, can_see = queries.get_cardholder_request(req_id, "HOLDER@x.com")
        self.assertTrue(can_see)
        self.assertEqual(data["deliveryAddressText"], "1 Main St")

        data, can_see = queries.get_cardholder_request(req_id, "other@x.com")
        self.assertFalse(can_see)

    def test_detail_requires_identity(self):
        req_id = _create().id
        with self.assertRaises(UnauthorizedError):
            queries.get_cardholder_request(req_id, None)

    def test_inbox_filters_by_card_preferences(self):
        self.add_card("holder@x.com", label="Regalia", issuer="HDFC", network="VISA")
        any_card = _create().id
        hdfc = _create(requested_issuer=" hdfc ").id
        hdfc_visa = _create(requested_issuer="HDFC", requested_network="visa").id
        sbi = _create(requested_issuer="SBI").id
        wrong_label = _create(requested_issuer="HDFC", requested_card_label="Infinia").id
        taken = _create().id
        take_request(taken, cardholder_email="holder@x.com")

        data = queries.get_cardholder_inbox("holder@x.com")

        inbox_ids = {r["id"] for r in data["inbox"]}
        self.assertEqual(inbox_ids, {any_card, hdfc, hdfc_visa})
        self.assertNotIn(sbi, inbox_ids)
        self.assertNotIn(wrong_label, inbox_ids)
        self.assertEqual([r["id"] for r in data["myRequests"]], [taken])
        self.assertEqual(len(data["savedCards"]), 1)

    def test_inbox_empty_without_cards(self):
        _create()
        data = queries.get_cardholder_inbox("holder@x.com")
        self.assertEqual(data["inbox"], [])

    def test_inbox_requires_identity(self):
        with self.assertRaises(UnauthorizedError):
            queries.get_cardholder_inbox(None)


class TestLedger(RunesseTestCase):
    def test_reimbursement_is_recorded(self):
        req_id = _create().id
        take_request(req_id, cardholder_email="holder@x.com")

        entry = record_reimbursement(request_id=req_id, amount="1499.50", method="UPI", utr="UTR123")

        self.assertEqual(entry.event_type, "MANUAL_REIMBURSEMENT_COMPLETED")
        self.assertEqual(entry.meta["matchedCardholderEmail"], "holder@x.com")
        items = get_request_ledger(req_id)
        self.assertEqual(
            [i["eventType"] for i in items],
            ["REQUEST_CREATED", "CARDHOLDER_ACCEPTED", "MANUAL_REIMBURSEMENT_COMPLETED"],
        )
        self.assertEqual(items[-1]["amount"], 1499.5)
        self.assertEqual(items[-1]["currency"], "INR")

    def test_reimbursement_validation(self):
        req_id = _create().id
        for amount in (None, "", "abc", 0, -5):
            with self.subTest(amount=amount):
                with self.assertRaises(ValidationError):
                    record_reimbursement(request_id=req_id, amount=amount)
        with self.assertRaises(NotFoundError):
            record_reimbursement(request_id="missing", amount=10)

    def test_ledger_for_unknown_request(self):
        with self.assertRaises(NotFoundError):
            get_request_ledger("missing")


if __name__ == "__main__":
    unittest.main()
