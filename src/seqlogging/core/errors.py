"""Exception hierarchy for the Seq log shipper."""
from __future__ import annotations

from typing import Optional


class SeqLoggingError(RuntimeError):
    """Base class for every error raised by seqlogging."""


class InvalidArgumentError(SeqLoggingError, ValueError):
    """Raised when an operation is called without a required argument."""


class ConfigurationError(SeqLoggingError, ValueError):
    """Raised at construction time when options cannot be used."""


class DeliveryError(SeqLoggingError):
    """A batch could not be delivered to the ingestion endpoint."""

    def __init__(self, message: str, *, attempts: int, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.status_code = status_code


class DeliveryClientError(DeliveryError):
    """The server rejected the batch with a 4xx status; never retried."""


class DeliveryServerError(DeliveryError):
    """The server answered with a retryable non-success status."""


class DeliveryTransportError(DeliveryError):
    """The request failed below HTTP: refused connection, timeout, reset."""
