"""Buffered Seq logger: queueing, timed and eager flushing, HTTP delivery with retry."""
from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Callable, Optional, Set

import httpx
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from ..core.config import Settings, get_settings
from ..core.endpoint import Endpoint, resolve_endpoint
from ..core.errors import (
    ConfigurationError,
    DeliveryClientError,
    DeliveryError,
    DeliveryServerError,
    DeliveryTransportError,
    InvalidArgumentError,
    SeqLoggingError,
)
from ..core.http import get_async_client
from ..telemetry.events import TelemetryClient, TelemetryEvent
from .beacon import BeaconPayload, BeaconTransport
from .queue import Batch, EventQueue
from .wire import event_size, serialize_event, to_wire, too_large_placeholder

logger = logging.getLogger("seqlogging.logger")

CLEF_CONTENT_TYPE = "application/vnd.serilog.clef"

ErrorCallback = Callable[[SeqLoggingError], None]


class LoggerState(enum.Enum):
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class SeqLogger:
    """Collects events and ships them to a Seq server in newline-delimited batches.

    ``emit`` never blocks. Events are delivered when the batching timer fires,
    when the queued size crosses ``flush_threshold_bytes``, or when ``flush``
    or ``close`` is awaited. Delivery cycles never overlap: each one drains the
    queue before its first request, so events emitted meanwhile start a new
    batch.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        beacon: Optional[BeaconTransport] = None,
        on_error: Optional[ErrorCallback] = None,
        **options: Any,
    ) -> None:
        if settings is None:
            try:
                settings = Settings(**options) if options else get_settings()
            except ValidationError as exc:
                raise ConfigurationError(f"Invalid logger configuration: {exc}") from exc
        elif options:
            raise ConfigurationError("Pass either a Settings instance or keyword options, not both")
        self._settings = settings
        self._endpoint: Endpoint = resolve_endpoint(settings.server_url)
        self._api_key = settings.api_key
        self._max_retries = settings.max_retries
        self._log_retry = before_sleep_log(logger, logging.WARNING)
        self._transport = transport
        self._beacon = beacon
        self._on_error = on_error

        self._queue = EventQueue()
        self._state = LoggerState.OPEN
        self._timer: Optional[asyncio.TimerHandle] = None
        self._eager_flush_pending = False
        self._cycle_lock = asyncio.Lock()
        self._closed = asyncio.Event()
        self._tasks: Set[asyncio.Task[None]] = set()
        self.telemetry = TelemetryClient()

    @property
    def endpoint(self) -> Endpoint:
        return self._endpoint

    @property
    def settings(self) -> Settings:
        return self._settings

    @property
    def state(self) -> LoggerState:
        return self._state

    @property
    def queued(self) -> int:
        return len(self._queue)

    async def __aenter__(self) -> "SeqLogger":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def emit(self, event: Any = None) -> None:
        """Queue ``event`` for delivery. Silently ignored once the logger is closing."""

        if event is None:
            raise InvalidArgumentError("An event must be provided to emit()")
        if self._state is not LoggerState.OPEN:
            return

        wire = to_wire(event)
        line = serialize_event(wire)
        size = event_size(line)
        limit = self._settings.event_size_limit
        if size > limit:
            logger.warning("Event of %s bytes exceeds the %s byte limit; sending a placeholder", size, limit)
            self.telemetry.record(TelemetryEvent(name="event.oversized", attributes={"size": size, "limit": limit}))
            wire = too_large_placeholder(wire, line, limit)
            line = serialize_event(wire)
            size = event_size(line)

        total = self._queue.append(wire, line, size)
        threshold = self._settings.flush_threshold_bytes
        if threshold is not None and total >= threshold:
            self._request_eager_flush()
        else:
            self._arm_timer()

    async def flush(self) -> bool:
        """Deliver everything queued now. Returns False when there was nothing to send."""

        return await self._run_cycle()

    async def close(self) -> None:
        """Stop accepting events and deliver what is left, including retries."""

        if self._state is LoggerState.CLOSED:
            return
        if self._state is LoggerState.CLOSING:
            await self._closed.wait()
            return
        self._state = LoggerState.CLOSING
        self._clear_timer()
        try:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            await self._run_cycle()
        finally:
            self._state = LoggerState.CLOSED
            self._closed.set()
            logger.debug("Logger for %s closed", self._endpoint.url())

    def flush_to_beacon(self) -> bool:
        """Hand the queue to the host beacon primitive in one unretried request."""

        if not len(self._queue):
            return False
        if self._beacon is None:
            logger.debug("No beacon transport configured; %s events stay queued", len(self._queue))
            return False
        batch = self._queue.drain()
        url, payload = self._prep_for_beacon(batch)
        accepted = bool(self._beacon.send_beacon(url, payload))
        self.telemetry.record(
            TelemetryEvent(
                name="beacon.sent",
                attributes={"events": len(batch), "bytes": payload.size, "accepted": accepted},
            )
        )
        return accepted

    def _prep_for_beacon(self, batch: Batch) -> tuple[str, BeaconPayload]:
        return self._endpoint.url(self._api_key), BeaconPayload(data=batch.payload)

    def _arm_timer(self) -> None:
        if self._timer is not None or self._state is not LoggerState.OPEN:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return
        self._timer = loop.call_later(self._settings.max_batching_seconds, self._on_timer)

    def _clear_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        self._spawn_auto_flush()

    def _request_eager_flush(self) -> None:
        if self._eager_flush_pending:
            return
        if self._spawn_auto_flush():
            self._eager_flush_pending = True
            self._clear_timer()

    def _spawn_auto_flush(self) -> bool:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return False
        task = loop.create_task(self._auto_flush())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _auto_flush(self) -> None:
        try:
            await self._run_cycle()
        except DeliveryError:
            # Already reported by the cycle.
            pass
        except Exception as exc:  # pragma: no cover - defensive logging
            logger.exception("Automatic flush failed: %s", exc)

    async def _run_cycle(self) -> bool:
        async with self._cycle_lock:
            self._eager_flush_pending = False
            batch = self._queue.drain()
            try:
                if not len(batch):
                    return False
                logger.debug("Flushing %s events (%s bytes)", len(batch), batch.size)
                try:
                    await self._post(batch)
                except DeliveryError as exc:
                    self._report(exc, batch)
                    raise
                return True
            finally:
                if len(self._queue):
                    self._arm_timer()

    async def _post(self, batch: Batch) -> None:
        url = f"{self._endpoint.origin}{self._endpoint.path}"
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._max_retries),
            wait=wait_fixed(self._settings.retry_delay_seconds),
            retry=retry_if_exception_type((DeliveryServerError, DeliveryTransportError)),
            before_sleep=self._before_retry,
            reraise=True,
        )
        async with get_async_client(self._settings, transport=self._transport) as client:
            async for attempt in retrying:
                with attempt:
                    await self._send_once(client, url, batch, attempt.retry_state.attempt_number)

    async def _send_once(self, client: httpx.AsyncClient, url: str, batch: Batch, attempt: int) -> None:
        params = {"apiKey": self._api_key} if self._api_key else None
        headers = {"Content-Type": CLEF_CONTENT_TYPE}
        try:
            response = await client.post(url, content=batch.payload, params=params, headers=headers)
        except httpx.TransportError as exc:
            raise DeliveryTransportError(f"Could not reach {url}: {exc!r}", attempts=attempt) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryError(f"Request to {url} failed: {exc!r}", attempts=attempt) from exc

        if response.is_success:
            self.telemetry.record(
                TelemetryEvent(
                    name="batch.sent",
                    attributes={"events": len(batch), "bytes": batch.size, "attempts": attempt},
                )
            )
            return
        if response.is_client_error:
            raise DeliveryClientError(
                f"Seq rejected the batch with HTTP {response.status_code}",
                attempts=attempt,
                status_code=response.status_code,
            )
        raise DeliveryServerError(
            f"Seq answered HTTP {response.status_code}",
            attempts=attempt,
            status_code=response.status_code,
        )

    def _before_retry(self, retry_state: RetryCallState) -> None:
        self._log_retry(retry_state)
        error = retry_state.outcome.exception() if retry_state.outcome else None
        self.telemetry.record(
            TelemetryEvent(
                name="batch.retry",
                attributes={"attempt": retry_state.attempt_number, "error": str(error)},
            )
        )

    def _report(self, exc: DeliveryError, batch: Batch) -> None:
        name = "batch.rejected" if isinstance(exc, DeliveryClientError) else "batch.dropped"
        logger.error("Dropping batch of %s events after %s attempt(s): %s", len(batch), exc.attempts, exc)
        self.telemetry.record(
            TelemetryEvent(
                name=name,
                attributes={"events": len(batch), "attempts": exc.attempts, "status": exc.status_code, "error": str(exc)},
            )
        )
        if self._on_error is not None:
            self._on_error(exc)
