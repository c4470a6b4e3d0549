"""Pytest configuration and shared fixtures for seqlogging tests."""

from __future__ import annotations

import logging
import os

import pytest

from seqlogging.core.config import get_settings
from tests.mocks import MockSeq, RecordingBeacon


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Keep SEQ_* variables and stray .env files from leaking into tests."""
    for name in list(os.environ):
        if name.upper().startswith("SEQ_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def mock_seq() -> MockSeq:
    return MockSeq()


@pytest.fixture
def beacon() -> RecordingBeacon:
    return RecordingBeacon()


@pytest.fixture
def restore_root_logging():
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
