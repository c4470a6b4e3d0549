"""Client-side log shipper for the Seq structured log server."""
from __future__ import annotations

from .core.config import Settings, get_settings
from .core.endpoint import Endpoint, resolve_endpoint
from .core.errors import (
    ConfigurationError,
    DeliveryClientError,
    DeliveryError,
    DeliveryServerError,
    DeliveryTransportError,
    InvalidArgumentError,
    SeqLoggingError,
)
from .core.logging import setup_logging
from .shipping.beacon import BeaconPayload, BeaconTransport
from .shipping.handler import SeqHandler
from .shipping.logger import LoggerState, SeqLogger
from .shipping.wire import LogEvent, WireEvent

__all__ = [
    "BeaconPayload",
    "BeaconTransport",
    "ConfigurationError",
    "DeliveryClientError",
    "DeliveryError",
    "DeliveryServerError",
    "DeliveryTransportError",
    "Endpoint",
    "InvalidArgumentError",
    "LogEvent",
    "LoggerState",
    "SeqHandler",
    "SeqLogger",
    "SeqLoggingError",
    "Settings",
    "WireEvent",
    "get_settings",
    "resolve_endpoint",
    "setup_logging",
]
