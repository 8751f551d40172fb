"""Order numbers: ``<prefix><year><6 digits>``, e.g. ``CC2026048213``."""

import random
import time
from collections.abc import Callable
from datetime import UTC, datetime

import structlog
from protean.utils.globals import current_domain

from storefront.config import load_settings
from storefront.ordering.order import Order

logger = structlog.get_logger(__name__)

MAX_ATTEMPTS = 100


def order_number_exists(order_number: str) -> bool:
    repo = current_domain.repository_for(Order)
    return bool(repo._dao.query.filter(order_number=order_number).all().items)


def generate_order_number(
    exists: Callable[[str], bool] = order_number_exists,
    prefix: str | None = None,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> str:
    """Random candidates are checked against stored orders.

    After ``MAX_ATTEMPTS`` collisions the last six digits of the Unix time are
    used instead. Uniqueness is finally enforced by the unique constraint on
    ``Order.order_number``.
    """
    prefix = prefix if prefix is not None else load_settings().order_number_prefix
    year = (now or datetime.now(UTC)).year
    rng = rng or random.SystemRandom()

    for _ in range(MAX_ATTEMPTS):
        candidate = f"{prefix}{year}{rng.randint(0, 999999):06d}"
        if not exists(candidate):
            return candidate

    fallback = f"{prefix}{year}{str(int(time.time()))[-6:]}"
    logger.warning("order_number_fallback", order_number=fallback, attempts=MAX_ATTEMPTS)
    return fallback
