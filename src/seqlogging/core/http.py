"""HTTP utilities for delivering batches to Seq."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from .config import Settings

USER_AGENT = "seqlogging-python"


@asynccontextmanager
async def get_async_client(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> AsyncIterator[httpx.AsyncClient]:
    headers = {"User-Agent": USER_AGENT}
    async with httpx.AsyncClient(
        timeout=settings.request_timeout_seconds, headers=headers, transport=transport
    ) as client:
        yield client
