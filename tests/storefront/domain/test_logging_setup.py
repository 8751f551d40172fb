import logging

import pytest
import structlog

from storefront.utils.logging import (
    add_context,
    clear_context,
    configure_logging,
    get_log_level,
    redact_payment_secrets,
)


@pytest.fixture()
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


class TestLogLevel:
    @pytest.mark.parametrize(
        "env,expected",
        [("production", "INFO"), ("development", "DEBUG"), ("test", "WARNING")],
    )
    def test_follows_environment(self, monkeypatch, env, expected):
        for name in ("ENV", "ENVIRONMENT", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("PROTEAN_ENV", env)
        assert get_log_level() == expected

    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"


class TestContext:
    def test_bind_and_clear_selected_keys(self, restore_logging):
        add_context(session_id="sess-1", order_number="CC2026123456")

        clear_context("order_number")

        assert structlog.contextvars.get_contextvars() == {"session_id": "sess-1"}

    def test_clear_everything(self, restore_logging):
        add_context(session_id="sess-1")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}


def test_configure_writes_log_files(tmp_path, monkeypatch, restore_logging):
    monkeypatch.setenv("PROTEAN_ENV", "production")
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    configure_logging(tmp_path)
    structlog.get_logger("storefront.test").critical("payment_captured_without_order", transaction_id="txn_1")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "txn_1" in (tmp_path / "storefront.log").read_text()
    assert "payment_captured_without_order" in (tmp_path / "storefront_error.log").read_text()


class TestPaymentSecretRedaction:
    def test_masks_tokens_and_credentials(self):
        event = redact_payment_secrets(
            None, "info", {"event": "charge", "payment_data": {"token": "tok_visa"}, "api_key": "sk_live", "amount": 25}
        )

        assert event == {"event": "charge", "payment_data": "***", "api_key": "***", "amount": 25}

    def test_leaves_absent_values_alone(self):
        assert redact_payment_secrets(None, "info", {"event": "x", "token": None}) == {"event": "x", "token": None}


def test_secrets_never_reach_log_file(tmp_path, monkeypatch, restore_logging):
    monkeypatch.setenv("PROTEAN_ENV", "production")
    monkeypatch.delenv("ENV", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)

    configure_logging(tmp_path)
    structlog.get_logger("storefront.test").warning("charge_attempt", card_token="tok_secret_4242")
    for handler in logging.getLogger().handlers:
        handler.flush()

    text = (tmp_path / "storefront.log").read_text()
    assert "charge_attempt" in text
    assert "tok_secret_4242" not in text
