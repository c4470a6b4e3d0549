"""Delivery telemetry recorded by each logger."""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional


@dataclass(slots=True)
class TelemetryEvent:
    """Represents a single delivery outcome."""

    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=lambda: time.time())


class TelemetryClient:
    """Bounded in-memory record of what the shipper did with each batch."""

    def __init__(self, *, max_events: int = 1000) -> None:
        self._events: Deque[TelemetryEvent] = deque(maxlen=max_events)

    def record(self, event: TelemetryEvent) -> None:
        self._events.append(event)

    def events(self, name: Optional[str] = None) -> List[TelemetryEvent]:
        if name is None:
            return list(self._events)
        return [event for event in self._events if event.name == name]

    def count(self, name: str) -> int:
        return sum(1 for event in self._events if event.name == name)

    def clear(self) -> None:
        self._events.clear()
