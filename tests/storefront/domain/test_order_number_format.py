"""Tests for order number generation."""

import random
import re
from datetime import UTC, datetime

from storefront.ordering.numbering import MAX_ATTEMPTS, generate_order_number

NOW = datetime(2026, 3, 14, tzinfo=UTC)


class TestOrderNumberFormat:
    def test_prefix_year_and_six_digits(self):
        number = generate_order_number(exists=lambda _: False, prefix="CC", now=NOW, rng=random.Random(1))
        assert re.fullmatch(r"CC2026\d{6}", number)

    def test_prefix_from_settings(self, monkeypatch):
        monkeypatch.setenv("ORDER_NUMBER_PREFIX", "SF")
        number = generate_order_number(exists=lambda _: False, now=NOW)
        assert number.startswith("SF2026")

    def test_skips_taken_numbers(self):
        taken = set()
        rng = random.Random(7)
        first = generate_order_number(exists=taken.__contains__, prefix="CC", now=NOW, rng=rng)
        taken.add(first)

        # Replay the same sequence so the first candidate collides
        rng = random.Random(7)
        second = generate_order_number(exists=taken.__contains__, prefix="CC", now=NOW, rng=rng)
        assert second != first

    def test_falls_back_to_time_after_max_attempts(self):
        calls = []

        def always_taken(candidate):
            calls.append(candidate)
            return True

        number = generate_order_number(exists=always_taken, prefix="CC", now=NOW)
        assert len(calls) == MAX_ATTEMPTS
        assert re.fullmatch(r"CC2026\d{6}", number)
