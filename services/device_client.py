"""HTTP client for the Awair local air-data API."""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Optional

import httpx
from pydantic import ValidationError

from models.records import AirReading

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0
LATEST_READING_PATH = "/air-data/latest"


class FetchError(Exception):
    """A device could not produce a reading."""

    def __init__(self, host: str, reason: str) -> None:
        super().__init__(f"{host}: {reason}")
        self.host = host
        self.reason = reason


class DeviceNetworkError(FetchError):
    """The request failed at the transport level or timed out."""


class DeviceDecodeError(FetchError):
    """The device answered, but not with a usable reading."""


def build_url(host: str) -> str:
    return f"http://{host}{LATEST_READING_PATH}"


class DeviceClient:
    """Fetches the latest reading from a device, one request per call."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.Client(timeout=timeout, transport=transport)

    def close(self) -> None:
        self._client.close()

    def fetch(self, host: str) -> AirReading:
        url = build_url(host)
        logger.debug("Fetching device reading", extra={"host": host, "url": url})
        try:
            with self._client.stream("GET", url) as response:
                body = response.read()
        except httpx.DecodingError as exc:
            raise DeviceDecodeError(host, f"{type(exc).__name__}: {exc}") from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise DeviceNetworkError(host, f"{type(exc).__name__}: {exc}") from exc

        if not response.is_success:
            raise DeviceDecodeError(host, f"unexpected status {response.status_code}")

        try:
            return AirReading.model_validate_json(body)
        except ValidationError as exc:
            raise DeviceDecodeError(host, f"invalid reading payload: {exc}") from exc


@lru_cache
def build_default_client() -> DeviceClient:
    """Factory for the process-wide device client."""
    return DeviceClient()
