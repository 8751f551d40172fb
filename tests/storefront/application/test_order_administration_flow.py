import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from storefront.ordering.administration import OrderAdministration
from storefront.ordering.order import Order
from storefront.ordering.placement import OrderDraft, OrderLine, place_order
from storefront.ordering.tracking import orders_for_user, track_order


@pytest.fixture()
def widget(make_product):
    return make_product("Widget", price="10.00", stock=10)


@pytest.fixture()
def place(widget):
    def _place(quantity=3, email="ada@example.com", user_id=None):
        return place_order(
            OrderDraft(
                email=email,
                first_name="Ada",
                last_name="Lovelace",
                shipping_address={
                    "street": "1 Main St",
                    "city": "Springfield",
                    "postal_code": "62701",
                    "country": "US",
                },
                payment_method="card",
                payment_status="paid",
                transaction_id="txn_1",
                user_id=user_id,
                lines=[OrderLine(product_id=str(widget.id), quantity=quantity)],
            )
        )

    return _place


@pytest.fixture()
def admin(outbox):
    return OrderAdministration()


def _reload(order):
    return current_domain.repository_for(Order).get(order.id)


class TestCancellation:
    def test_restores_stock_and_notifies(self, place, widget, admin, outbox, stock_of):
        order = place(quantity=3)
        assert stock_of(widget) == 7

        result = admin.cancel(str(order.id), reason="Customer request")

        assert result["changed"] is True
        assert result["previous_status"] == "pending"
        assert result["new_status"] == "cancelled"
        assert stock_of(widget) == 10

        stored = _reload(order)
        assert stored.order_status == "cancelled"
        assert "Cancelled: Customer request" in stored.notes
        assert outbox.sent_emails[-1]["subject"] == f"Order #{order.order_number} Cancelled"

    def test_twice_is_a_no_op(self, place, widget, admin, outbox, stock_of):
        order = place(quantity=3)
        admin.cancel(str(order.id))
        sent = len(outbox.sent_emails)

        result = admin.cancel(str(order.id))

        assert result["changed"] is False
        assert stock_of(widget) == 10
        assert len(outbox.sent_emails) == sent

    def test_shipped_order_cannot_be_cancelled(self, place, widget, admin, stock_of):
        order = place(quantity=3)
        admin.mark_shipped(str(order.id), tracking_number="1Z999")

        with pytest.raises(ValidationError) as exc:
            admin.cancel(str(order.id))

        assert "Cannot cancel an order that has been shipped or delivered" in exc.value.messages["order_status"]
        assert stock_of(widget) == 7
        assert _reload(order).order_status == "shipped"

    def test_status_update_to_cancelled_restores_stock(self, place, widget, admin, stock_of):
        order = place(quantity=2)

        result = admin.update_status(str(order.id), "cancelled")

        assert result["new_status"] == "cancelled"
        assert stock_of(widget) == 10

    def test_unknown_order(self, admin):
        with pytest.raises(ObjectNotFoundError):
            admin.cancel("does-not-exist")


class TestStatusChanges:
    def test_processing_sends_status_update(self, place, admin, outbox):
        order = place()

        result = admin.update_status(str(order.id), "processing")

        assert result["changed"] is True
        assert outbox.sent_emails[-1]["subject"] == f"Order #{order.order_number} Update: Processing"

    def test_same_status_sends_nothing(self, place, admin, outbox):
        order = place()

        result = admin.update_status(str(order.id), "pending")

        assert result["changed"] is False
        assert outbox.sent_emails == []

    def test_invalid_transition_is_rejected(self, place, admin):
        order = place()
        admin.update_status(str(order.id), "shipped")
        admin.update_status(str(order.id), "delivered")

        with pytest.raises(ValidationError):
            admin.update_status(str(order.id), "processing")

    def test_delivered_sends_delivery_email(self, place, admin, outbox):
        order = place()
        admin.update_status(str(order.id), "shipped")

        admin.update_status(str(order.id), "delivered")

        assert outbox.sent_emails[-1]["subject"] == "Your Order Has Been Delivered"

    def test_mark_shipped_records_tracking(self, place, admin, outbox):
        order = place()

        result = admin.mark_shipped(str(order.id), tracking_number="1Z999", carrier="UPS")

        stored = _reload(order)
        assert result["new_status"] == "shipped"
        assert stored.tracking_number == "1Z999"
        assert stored.carrier == "UPS"
        assert outbox.sent_emails[-1]["subject"] == "Your Order Has Shipped!"
        assert "1Z999" in outbox.sent_emails[-1]["body"]

    def test_notification_failure_does_not_undo_change(self, place, admin, outbox):
        order = place()
        outbox.configure(raise_on_send=ConnectionError("SMTP down"))

        result = admin.update_status(str(order.id), "processing")

        assert result["changed"] is True
        assert _reload(order).order_status == "processing"


class TestPaymentStatusAndNotes:
    def test_payment_status(self, place, admin, outbox):
        order = place()

        result = admin.update_payment_status(str(order.id), "refunded")

        assert result == {
            "order_id": str(order.id),
            "order_number": order.order_number,
            "changed": True,
            "previous_status": "paid",
            "new_status": "refunded",
        }
        assert _reload(order).payment_status == "refunded"
        assert outbox.sent_emails == []

    def test_notes_accumulate(self, place, admin):
        order = place()

        admin.add_note(str(order.id), "Called the customer")
        result = admin.add_note(str(order.id), "Left a voicemail")

        lines = result["notes"].splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("Called the customer")
        assert lines[1].endswith("Left a voicemail")


class TestLookups:
    def test_track_order_matches_email_case_insensitively(self, place):
        order = place(email="Ada@Example.com")

        assert track_order(order.order_number.lower(), " ada@example.COM ").id == order.id
        assert track_order(order.order_number, "someone@else.com") is None
        assert track_order("CC0000000000", "ada@example.com") is None
        assert track_order(order.order_number, "") is None

    def test_orders_for_user(self, place):
        first = place(quantity=1, user_id="user-1")
        second = place(quantity=1, user_id="user-1")
        place(quantity=1, user_id="user-2")

        orders = orders_for_user("user-1")

        assert {order.id for order in orders} == {first.id, second.id}
