"""Fire-and-forget beacon delivery, for hosts that offer one."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

BEACON_CONTENT_TYPE = "text/plain"


@dataclass(frozen=True, slots=True)
class BeaconPayload:
    """Binary body handed to the host beacon primitive."""

    data: bytes
    type: str = BEACON_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.data)


@runtime_checkable
class BeaconTransport(Protocol):
    """Host capability that queues a one-shot request and reports whether it was accepted."""

    def send_beacon(self, url: str, payload: BeaconPayload) -> bool:
        ...
