"""User roles with a partial order: ADMIN includes CONTENT_MANAGER includes CUSTOMER."""

from enum import Enum


class Role(Enum):
    CUSTOMER = "customer"
    CONTENT_MANAGER = "content_manager"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    def includes(self, other: "Role") -> bool:
        """True when a holder of this role may do what ``other`` may do."""
        return self.rank >= other.rank

    def __ge__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank >= other.rank

    def __gt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank > other.rank

    def __le__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank <= other.rank

    def __lt__(self, other):
        if not isinstance(other, Role):
            return NotImplemented
        return self.rank < other.rank

    @classmethod
    def parse(cls, value: "str | Role | None") -> "Role":
        """Parse a stored role. Missing values are treated as CUSTOMER."""
        if value is None or value == "":
            return cls.CUSTOMER
        if isinstance(value, Role):
            return value
        return cls(str(value).lower())


_RANKS = {
    Role.CUSTOMER: 0,
    Role.CONTENT_MANAGER: 1,
    Role.ADMIN: 2,
}
