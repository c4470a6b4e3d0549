"""Tests for SeqLogger emit, flush scheduling, and lifecycle."""

from __future__ import annotations

import asyncio

import pytest

from seqlogging import InvalidArgumentError, LoggerState, SeqLogger
from tests.mocks import MockSeq, make_test_event


class TestEmit:
    def test_detects_missing_event(self):
        logger = SeqLogger()

        with pytest.raises(InvalidArgumentError):
            logger.emit()

        assert logger.queued == 0

    def test_enqueues_events(self):
        logger = SeqLogger()

        logger.emit(make_test_event())
        logger._clear_timer()

        assert logger.queued == 1

    def test_without_running_loop_no_timer_is_armed(self):
        logger = SeqLogger()

        logger.emit(make_test_event())

        assert logger._timer is None

    @pytest.mark.asyncio
    async def test_ignores_calls_after_close(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport)

        await logger.close()
        logger.emit(make_test_event())

        assert logger.queued == 0
        assert logger.state is LoggerState.CLOSED

    @pytest.mark.asyncio
    async def test_ignores_calls_while_closing(self):
        seq = MockSeq(delay=0.05)
        logger = SeqLogger(transport=seq.transport)
        logger.emit(make_test_event())

        closing = asyncio.create_task(logger.close())
        await asyncio.sleep(0.01)
        assert logger.state is LoggerState.CLOSING
        logger.emit(make_test_event())
        await closing

        assert logger.queued == 0
        assert seq.request_count == 1
        assert len(seq.requests[0].content.splitlines()) == 1


class TestScheduler:
    @pytest.mark.asyncio
    async def test_timer_flushes_after_batching_window(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=20)

        logger.emit(make_test_event())
        logger.emit(make_test_event())
        assert logger._timer is not None
        await asyncio.sleep(0.2)

        assert mock_seq.request_count == 1
        assert logger.queued == 0
        assert len(mock_seq.requests[0].content.splitlines()) == 2
        await logger.close()

    @pytest.mark.asyncio
    async def test_timer_rearms_for_events_emitted_later(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=20)

        logger.emit(make_test_event())
        await asyncio.sleep(0.1)
        logger.emit(make_test_event())
        await asyncio.sleep(0.1)

        assert mock_seq.request_count == 2
        await logger.close()

    @pytest.mark.asyncio
    async def test_size_threshold_triggers_immediate_flush(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=60000, flush_threshold_bytes=1)

        logger.emit(make_test_event())
        assert logger._timer is None
        await asyncio.sleep(0.05)

        assert mock_seq.request_count == 1
        await logger.close()

    @pytest.mark.asyncio
    async def test_threshold_spawns_one_flush_per_burst(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=60000, flush_threshold_bytes=1)

        for _ in range(10):
            logger.emit(make_test_event())
        await asyncio.sleep(0.05)

        assert mock_seq.request_count == 1
        assert len(mock_seq.requests[0].content.splitlines()) == 10
        await logger.close()

    @pytest.mark.asyncio
    async def test_manual_flush_bypasses_timer(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=60000)

        logger.emit(make_test_event())
        delivered = await logger.flush()

        assert delivered is True
        assert mock_seq.request_count == 1
        await logger.close()

    @pytest.mark.asyncio
    async def test_flush_with_empty_queue_sends_nothing(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport)

        assert await logger.flush() is False
        assert mock_seq.request_count == 0

    @pytest.mark.asyncio
    async def test_delivery_cycles_never_overlap(self):
        seq = MockSeq(delay=0.05)
        logger = SeqLogger(transport=seq.transport, max_batching_time=60000)

        logger.emit(make_test_event())
        first = asyncio.create_task(logger.flush())
        await asyncio.sleep(0.01)
        logger.emit(make_test_event())
        second = asyncio.create_task(logger.flush())
        await asyncio.gather(first, second)

        assert seq.request_count == 2
        assert seq.max_in_flight == 1
        await logger.close()

    @pytest.mark.asyncio
    async def test_queue_is_drained_before_request(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=60000)
        seen = []
        mock_seq.on_request = lambda request: seen.append(logger.queued)

        logger.emit(make_test_event())
        await logger.flush()

        assert seen == [0]


class TestClose:
    @pytest.mark.asyncio
    async def test_close_delivers_remaining_events(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport, max_batching_time=60000)

        logger.emit(make_test_event())
        await logger.close()

        assert mock_seq.request_count == 1
        assert logger._timer is None

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, mock_seq: MockSeq):
        logger = SeqLogger(transport=mock_seq.transport)
        logger.emit(make_test_event())

        await asyncio.gather(logger.close(), logger.close())
        await logger.close()

        assert mock_seq.request_count == 1
        assert logger.state is LoggerState.CLOSED

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, mock_seq: MockSeq):
        async with SeqLogger(transport=mock_seq.transport) as logger:
            logger.emit(make_test_event())

        assert logger.state is LoggerState.CLOSED
        assert mock_seq.request_count == 1
