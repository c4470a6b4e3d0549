"""In-memory event queue drained atomically by each flush cycle."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List

from .wire import WireEvent


@dataclass(slots=True)
class Batch:
    """Queue contents taken by one flush cycle."""

    events: List[WireEvent] = field(default_factory=list)
    lines: List[str] = field(default_factory=list)
    size: int = 0

    def __len__(self) -> int:
        return len(self.events)

    @property
    def payload(self) -> bytes:
        """Newline-delimited JSON body, one event per line."""

        return "\n".join(self.lines).encode("utf-8")


class EventQueue:
    """Ordered buffer of wire events with a running serialized byte count."""

    def __init__(self) -> None:
        self._events: List[WireEvent] = []
        self._lines: List[str] = []
        self._size = 0

    def __len__(self) -> int:
        return len(self._events)

    def __getitem__(self, index: int) -> WireEvent:
        return self._events[index]

    def __iter__(self) -> Iterator[WireEvent]:
        return iter(self._events)

    @property
    def size(self) -> int:
        return self._size

    def append(self, event: WireEvent, line: str, size: int) -> int:
        """Add an event with its serialized line and return the new total size."""

        self._events.append(event)
        self._lines.append(line)
        self._size += size
        return self._size

    def drain(self) -> Batch:
        """Hand every queued event to the caller and leave the queue empty."""

        batch = Batch(events=self._events, lines=self._lines, size=self._size)
        self._events = []
        self._lines = []
        self._size = 0
        return batch
