"""Bridge from the standard ``logging`` module into a :class:`SeqLogger`."""
from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from .logger import SeqLogger

SEQ_LEVELS = {
    "DEBUG": "Debug",
    "INFO": "Information",
    "WARNING": "Warning",
    "ERROR": "Error",
    "CRITICAL": "Fatal",
}

# Attributes every LogRecord carries; anything else arrived through ``extra``.
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def _not_internal(record: logging.LogRecord) -> bool:
    return not (record.name == "seqlogging" or record.name.startswith("seqlogging."))


class SeqHandler(logging.Handler):
    """Forward log records to Seq.

    When ``loop`` is given, records logged from other threads are handed to
    that loop with ``call_soon_threadsafe`` so the logger is only touched
    from its own thread.
    """

    def __init__(
        self,
        seq_logger: "SeqLogger",
        level: int = logging.NOTSET,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        super().__init__(level)
        self.seq_logger = seq_logger
        self.loop = loop
        self.addFilter(_not_internal)

    def to_event(self, record: logging.LogRecord) -> Dict[str, Any]:
        properties: Dict[str, Any] = {"SourceContext": record.name}
        for key, value in vars(record).items():
            if key not in _RESERVED and not key.startswith("_"):
                properties[key] = value
        event: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc),
            "level": SEQ_LEVELS.get(record.levelname, record.levelname),
            "message_template": record.getMessage(),
            "properties": properties,
        }
        if record.exc_info and record.exc_info[1] is not None:
            event["exception"] = record.exc_info[1]
        elif record.exc_text:
            event["exception"] = record.exc_text
        return event

    def emit(self, record: logging.LogRecord) -> None:
        try:
            event = self.to_event(record)
            if self.loop is not None and not self._on_loop_thread():
                self.loop.call_soon_threadsafe(self.seq_logger.emit, event)
            else:
                self.seq_logger.emit(event)
        except Exception:
            self.handleError(record)

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self.loop
        except RuntimeError:
            return False
