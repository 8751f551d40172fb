import pytest

from storefront.notifications.service import OrderNotificationService
from storefront.ordering.placement import OrderDraft, OrderLine, place_order


@pytest.fixture()
def order(make_product):
    product = make_product("Desk Lamp", price="24.50", stock=5)
    return place_order(
        OrderDraft(
            email="grace@example.com",
            first_name="Grace",
            last_name="Hopper",
            shipping_address={
                "street": "9 Harbor Rd",
                "city": "Arlington",
                "state": "VA",
                "postal_code": "22201",
                "country": "US",
            },
            payment_method="manual_transfer",
            payment_status="pending",
            transaction_id="BT-ABC1234567",
            shipping_method_name="Express",
            shipping_cost="12.00",
            lines=[OrderLine(product_id=str(product.id), quantity=2)],
        )
    )


@pytest.fixture()
def notifier():
    return OrderNotificationService()


class TestEmails:
    def test_confirmation(self, order, notifier, outbox):
        assert notifier.send_order_confirmation(order.order_number) is True

        email = outbox.sent_to("grace@example.com")[0]
        assert email["subject"] == f"Order #{order.order_number} Confirmed"
        assert "2 x Desk Lamp @ $24.50 = $49.00" in email["body"]
        assert "Shipping (Express): $12.00" in email["body"]
        assert "Total: $61.00" in email["body"]
        assert "Reference: BT-ABC1234567" in email["body"]

    def test_status_update(self, order, notifier, outbox):
        assert notifier.send_status_update(order.order_number, "processing") is True
        assert outbox.sent_emails[-1]["subject"] == f"Order #{order.order_number} Update: Processing"

    def test_shipping_notification(self, order, notifier, outbox):
        notifier.send_shipping_notification(
            order.order_number,
            tracking_number="1Z999",
            carrier="UPS",
            tracking_url="https://track.example/1Z999",
        )

        body = outbox.sent_emails[-1]["body"]
        assert "Carrier: UPS" in body
        assert "Tracking Number: 1Z999" in body
        assert "Track your package: https://track.example/1Z999" in body

    def test_delivery_confirmation(self, order, notifier, outbox):
        assert notifier.send_delivery_confirmation(order.order_number) is True
        assert outbox.sent_emails[-1]["subject"] == "Your Order Has Been Delivered"

    def test_cancellation_with_reason(self, order, notifier, outbox):
        notifier.send_cancellation_notification(order.order_number, reason="Out of stock")

        email = outbox.sent_emails[-1]
        assert email["subject"] == f"Order #{order.order_number} Cancelled"
        assert "Reason: Out of stock" in email["body"]


class TestStatusChangeRouting:
    @pytest.mark.parametrize(
        "new_status,subject_fragment",
        [
            ("processing", "Update: Processing"),
            ("shipped", "Has Shipped"),
            ("delivered", "Has Been Delivered"),
            ("cancelled", "Cancelled"),
        ],
    )
    def test_picks_email_for_new_status(self, order, notifier, outbox, new_status, subject_fragment):
        assert notifier.notify_status_change(order.order_number, "pending", new_status) is True
        assert subject_fragment in outbox.sent_emails[-1]["subject"]

    def test_unchanged_status_sends_nothing(self, order, notifier, outbox):
        assert notifier.notify_status_change(order.order_number, "pending", "pending") is False
        assert outbox.sent_emails == []


class TestFailures:
    def test_unknown_order(self, notifier, outbox):
        assert notifier.send_order_confirmation("CC0000000000") is False
        assert outbox.sent_emails == []

    def test_channel_reports_failure(self, order, notifier, outbox):
        outbox.configure(should_succeed=False, failure_reason="Mailbox full")
        assert notifier.send_order_confirmation(order.order_number) is False

    def test_channel_raises(self, order, notifier, outbox):
        outbox.configure(raise_on_send=TimeoutError("SMTP timeout"))
        assert notifier.send_order_confirmation(order.order_number) is False
