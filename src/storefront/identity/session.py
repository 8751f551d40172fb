"""Explicit per-visitor session state.

A ``Session`` wraps whatever mapping the web layer keeps per visitor and
exposes typed accessors for the keys the storefront relies on. Anything
that does not have the expected shape raises ``SessionCorrupted`` instead
of being silently coerced.

Stored layout::

    {
        "cart": {"<product_id>": {"quantity": 2, "added_at": "<iso>"}},
        "user": {"id": "...", "email": "...", "role": "customer", "wholesale": False},
        "last_order": {"number": "CC2026123456", "email": "..."},
        "bank_transfer": {...},
        "flash": {"success": "..."},
    }
"""

from collections.abc import MutableMapping
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import uuid4

from storefront.identity.roles import Role

CART_KEY = "cart"
USER_KEY = "user"
LAST_ORDER_KEY = "last_order"
BANK_TRANSFER_KEY = "bank_transfer"
FLASH_KEY = "flash"


class SessionCorrupted(Exception):
    """Session storage does not have the expected shape."""

    def __init__(self, key: str, detail: str) -> None:
        self.key = key
        self.detail = detail
        super().__init__(f"Session key {key!r} is malformed: {detail}")


@dataclass(frozen=True)
class CartLine:
    product_id: str
    quantity: int
    added_at: datetime

    def to_storage(self) -> dict:
        return {"quantity": self.quantity, "added_at": self.added_at.isoformat()}


class Session:
    def __init__(self, data: MutableMapping | None = None, session_id: str | None = None) -> None:
        self._data = data if data is not None else {}
        self.session_id = session_id or str(uuid4())

    @property
    def data(self) -> MutableMapping:
        return self._data

    # -------------------------------------------------------------------
    # Cart lines
    # -------------------------------------------------------------------
    def _raw_cart(self) -> dict:
        raw = self._data.get(CART_KEY)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise SessionCorrupted(CART_KEY, f"expected a mapping, got {type(raw).__name__}")
        return raw

    def cart_lines(self) -> dict[str, CartLine]:
        """Return the cart as ``{product_id: CartLine}`` in insertion order."""
        lines = {}
        for product_id, entry in self._raw_cart().items():
            if not isinstance(entry, dict):
                raise SessionCorrupted(CART_KEY, f"entry for {product_id} is not a mapping")
            quantity = entry.get("quantity")
            if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
                raise SessionCorrupted(CART_KEY, f"quantity for {product_id} must be a positive integer")
            added_at = entry.get("added_at")
            try:
                added = datetime.fromisoformat(added_at) if added_at else datetime.now(UTC)
            except (TypeError, ValueError) as exc:
                raise SessionCorrupted(CART_KEY, f"added_at for {product_id} is not a timestamp") from exc
            lines[str(product_id)] = CartLine(product_id=str(product_id), quantity=quantity, added_at=added)
        return lines

    def cart_line(self, product_id: str) -> CartLine | None:
        return self.cart_lines().get(str(product_id))

    def put_cart_line(self, line: CartLine) -> None:
        cart = dict(self._raw_cart())
        cart[line.product_id] = line.to_storage()
        self._data[CART_KEY] = cart

    def drop_cart_line(self, product_id: str) -> bool:
        cart = dict(self._raw_cart())
        if str(product_id) not in cart:
            return False
        del cart[str(product_id)]
        self._data[CART_KEY] = cart
        return True

    def clear_cart(self) -> None:
        self._data[CART_KEY] = {}

    # -------------------------------------------------------------------
    # Authenticated user
    # -------------------------------------------------------------------
    def _user(self) -> dict:
        raw = self._data.get(USER_KEY)
        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise SessionCorrupted(USER_KEY, f"expected a mapping, got {type(raw).__name__}")
        return raw

    def login(self, user_id: str, email: str, role: Role = Role.CUSTOMER, wholesale: bool = False) -> None:
        self._data[USER_KEY] = {
            "id": str(user_id),
            "email": email,
            "role": role.value,
            "wholesale": bool(wholesale),
        }

    def logout(self) -> None:
        self._data.pop(USER_KEY, None)

    @property
    def is_authenticated(self) -> bool:
        return bool(self._user().get("id"))

    @property
    def user_id(self) -> str | None:
        return self._user().get("id")

    @property
    def email(self) -> str | None:
        return self._user().get("email")

    @property
    def role(self) -> Role:
        try:
            return Role.parse(self._user().get("role"))
        except ValueError as exc:
            raise SessionCorrupted(USER_KEY, str(exc)) from exc

    @property
    def is_wholesale(self) -> bool:
        return bool(self._user().get("wholesale", False))

    def has_role(self, required: Role) -> bool:
        return self.is_authenticated and self.role.includes(required)

    # -------------------------------------------------------------------
    # Post-checkout state
    # -------------------------------------------------------------------
    @property
    def last_order_number(self) -> str | None:
        return self._data.get(LAST_ORDER_KEY, {}).get("number")

    @property
    def last_order_email(self) -> str | None:
        return self._data.get(LAST_ORDER_KEY, {}).get("email")

    def record_last_order(self, order_number: str, email: str) -> None:
        self._data[LAST_ORDER_KEY] = {"number": order_number, "email": email}

    @property
    def bank_transfer_details(self) -> dict | None:
        return self._data.get(BANK_TRANSFER_KEY)

    @bank_transfer_details.setter
    def bank_transfer_details(self, details: dict | None) -> None:
        if details is None:
            self._data.pop(BANK_TRANSFER_KEY, None)
        else:
            self._data[BANK_TRANSFER_KEY] = dict(details)

    # -------------------------------------------------------------------
    # Flash messages
    # -------------------------------------------------------------------
    def flash(self, kind: str, message: str) -> None:
        flashes = dict(self._data.get(FLASH_KEY) or {})
        flashes[kind] = message
        self._data[FLASH_KEY] = flashes

    def pop_flash(self, kind: str) -> str | None:
        flashes = dict(self._data.get(FLASH_KEY) or {})
        message = flashes.pop(kind, None)
        self._data[FLASH_KEY] = flashes
        return message


class SessionStore:
    """In-memory server-side session storage keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, dict] = {}

    def open(self, session_id: str | None = None) -> Session:
        """Return the session for ``session_id``, creating it when unknown."""
        if not session_id:
            session_id = str(uuid4())
        data = self._sessions.setdefault(session_id, {})
        return Session(data, session_id=session_id)

    def discard(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    global _store
    if _store is None:
        _store = SessionStore()
    return _store


def reset_session_store() -> None:
    global _store
    _store = None
