"""Base transport interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..envelope import Envelope


@dataclass(frozen=True)
class SendOutcome:
    """Result of one send attempt (possibly including retries)."""
    ok: bool
    status_code: int | None = None
    error: str | None = None
    attempts: int = 1

    @classmethod
    def success(cls, status_code: int | None = None, attempts: int = 1) -> SendOutcome:
        return cls(ok=True, status_code=status_code, attempts=attempts)

    @classmethod
    def failure(
        cls,
        error: str,
        status_code: int | None = None,
        attempts: int = 1,
    ) -> SendOutcome:
        return cls(ok=False, status_code=status_code, error=error, attempts=attempts)


class Transport(ABC):
    """
    Abstract base class for envelope transports.

    A transport delivers a single envelope to a destination (collector,
    console, file). ``send`` reports failure through the returned outcome
    and must not raise for delivery problems.
    """

    name: str = "transport"

    @abstractmethod
    async def send(self, envelope: Envelope) -> SendOutcome:
        """Deliver one envelope."""
        ...

    async def start(self) -> None:
        """Initialize the transport (called on the dispatcher loop)."""
        pass

    async def stop(self) -> None:
        """Release resources (called on shutdown)."""
        pass

    async def health_check(self) -> bool:
        """Check if the transport is healthy."""
        return True
