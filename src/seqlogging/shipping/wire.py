"""Conversion of application log events into the Seq raw ingestion format.

Formatting is total: any field that is missing or has the wrong type is
replaced by a default or dropped, and cyclic property graphs are broken
during serialization. Nothing in this module raises on malformed input.
"""
from __future__ import annotations

import json
import math
import traceback
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional, TypedDict

NO_MESSAGE = "(No message provided)"
CIRCULAR_MARKER = "[Circular]"
DEPTH_MARKER = "[MaxDepth]"
MAX_DEPTH = 64
TOO_LARGE_TEMPLATE = "(Event too large) {initial}..."
SOURCE_CONTEXT = "Seq Python Client"


@dataclass(slots=True)
class LogEvent:
    """Typed alternative to a plain mapping when emitting events.

    A naive ``timestamp`` is taken to be local time.
    """

    message_template: Any = None
    level: Any = None
    timestamp: Any = None
    exception: Any = None
    properties: Any = None


class WireEvent(TypedDict, total=False):
    """One record of the ingestion payload. Absent fields are absent keys, never None."""

    Timestamp: datetime
    Level: str
    MessageTemplate: str
    Exception: str
    Properties: Dict[str, Any]


_ALIASES = {"message_template": ("message_template", "messageTemplate")}


def _lookup(event: Any, name: str) -> Any:
    keys = _ALIASES.get(name, (name,))
    if isinstance(event, Mapping):
        for key in keys:
            if event.get(key) is not None:
                return event[key]
        return None
    for key in keys:
        value = getattr(event, key, None)
        if value is not None:
            return value
    return None


def _format_exception(value: Any) -> str:
    if isinstance(value, BaseException):
        if value.__traceback__ is not None:
            lines = traceback.format_exception(type(value), value, value.__traceback__)
        else:
            lines = traceback.format_exception_only(type(value), value)
        return "".join(lines).rstrip("\n")
    return str(value)


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:  # noqa: BLE001 - objects with broken __str__
        return object.__repr__(value)


def to_wire(event: Any) -> WireEvent:
    """Convert a mapping or :class:`LogEvent` into a :class:`WireEvent`."""

    timestamp = _lookup(event, "timestamp")
    if not isinstance(timestamp, datetime):
        timestamp = datetime.now(timezone.utc)
    elif timestamp.tzinfo is None:
        timestamp = timestamp.astimezone()
    wire: WireEvent = {"Timestamp": timestamp}

    level = _lookup(event, "level")
    if isinstance(level, str):
        wire["Level"] = level

    template = _lookup(event, "message_template")
    if template is None:
        wire["MessageTemplate"] = NO_MESSAGE
    else:
        wire["MessageTemplate"] = template if isinstance(template, str) else _safe_str(template)

    exception = _lookup(event, "exception")
    if exception is not None:
        try:
            wire["Exception"] = _format_exception(exception)
        except Exception:  # noqa: BLE001 - formatting must never fail an emit
            wire["Exception"] = _safe_str(exception)

    properties = _lookup(event, "properties")
    if isinstance(properties, Mapping):
        wire["Properties"] = dict(properties)
    return wire


def make_safe(value: Any, _ancestors: Optional[set] = None, _depth: int = 0) -> Any:
    """Return a JSON-ready copy of ``value`` with reference cycles replaced by a marker.

    Only containers currently being traversed count as cycles, so the same
    object reachable through two sibling keys is serialized twice. Containers
    nested deeper than ``MAX_DEPTH`` are replaced by ``DEPTH_MARKER``.
    """

    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, (datetime, date)):
        return value.isoformat()

    ancestors = _ancestors if _ancestors is not None else set()
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        marker = id(value)
        if marker in ancestors:
            return CIRCULAR_MARKER
        if _depth >= MAX_DEPTH:
            return DEPTH_MARKER
        ancestors.add(marker)
        try:
            if isinstance(value, Mapping):
                return {_safe_str(key): make_safe(item, ancestors, _depth + 1) for key, item in value.items()}
            return [make_safe(item, ancestors, _depth + 1) for item in value]
        finally:
            ancestors.discard(marker)
    if isinstance(value, BaseException):
        return _format_exception(value)
    return _safe_str(value)


def serialize_event(wire: WireEvent) -> str:
    """Render one wire event as a single compact JSON line."""

    return json.dumps(make_safe(wire), separators=(",", ":"), ensure_ascii=False)


def event_size(line: str) -> int:
    return len(line.encode("utf-8"))


def too_large_placeholder(wire: WireEvent, line: str, limit: int) -> WireEvent:
    """Stand-in for an event whose serialized form exceeds ``limit`` bytes."""

    placeholder: WireEvent = {
        "Timestamp": wire["Timestamp"],
        "MessageTemplate": TOO_LARGE_TEMPLATE,
        "Properties": {
            "initial": line[:12],
            "sourceContext": SOURCE_CONTEXT,
            "eventSizeLimit": limit,
        },
    }
    if "Level" in wire:
        placeholder["Level"] = wire["Level"]
    return placeholder
