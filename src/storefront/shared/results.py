"""Outcome type returned by operations that fail without raising."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Outcome:
    """Result of a mutation: truthy on success, falsy with a reason otherwise."""

    ok: bool
    reason: str | None = None
    message: str | None = None

    def __bool__(self) -> bool:
        return self.ok

    @classmethod
    def success(cls, message: str | None = None) -> "Outcome":
        return cls(ok=True, message=message)

    @classmethod
    def failure(cls, reason: str, message: str) -> "Outcome":
        return cls(ok=False, reason=reason, message=message)
