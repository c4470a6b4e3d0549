"""Resolution of the configured server URL into the ingestion endpoint."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

import httpx

from .config import DEFAULT_SERVER_URL
from .errors import ConfigurationError

INGESTION_SUFFIX = "/api/events/raw"
SUPPORTED_SCHEMES = ("http", "https")


@dataclass(frozen=True, slots=True)
class Endpoint:
    """Immutable ingestion target computed once per logger."""

    protocol: str
    hostname: str
    port: Optional[str]
    path: str

    @property
    def scheme(self) -> str:
        return self.protocol.rstrip(":")

    @property
    def origin(self) -> str:
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        netloc = f"{host}:{self.port}" if self.port else host
        return f"{self.scheme}://{netloc}"

    def url(self, api_key: Optional[str] = None) -> str:
        """Full ingestion URL, with the API key as a query parameter when one is set."""

        base = f"{self.origin}{self.path}"
        if api_key:
            return f"{base}?{urlencode({'apiKey': api_key})}"
        return base


def resolve_endpoint(server_url: Optional[str] = None) -> Endpoint:
    """Parse ``server_url`` and append the raw events API path to it."""

    raw = DEFAULT_SERVER_URL if server_url is None else server_url
    try:
        url = httpx.URL(raw)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"Invalid server URL '{raw}': {exc}") from exc
    if url.scheme not in SUPPORTED_SCHEMES or not url.host:
        raise ConfigurationError(f"Invalid server URL '{raw}': expected an absolute http(s) URL")
    base_path = url.path.rstrip("/")
    return Endpoint(
        protocol=f"{url.scheme}:",
        hostname=url.host,
        port=str(url.port) if url.port is not None else None,
        path=f"{base_path}{INGESTION_SUFFIX}",
    )
