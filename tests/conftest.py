from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Iterator, List

import httpx
import pytest

from services.device_client import DeviceClient

_ENV_VARS = ("AWAIR_HOSTS", "LISTEN_PORT", "AWAIR_CONFIG_PATH", "LOG_LEVEL")


def reading_payload(**overrides: Any) -> Dict[str, Any]:
    """Body shaped like a device's /air-data/latest response."""

    payload: Dict[str, Any] = {
        "timestamp": "2024-01-01T12:00:00.000Z",
        "score": 85.5,
        "dew_point": 10.1,
        "temp": 21.3,
        "humid": 48.2,
        "abs_humid": 9.1,
        "co2": 612.0,
        "co2_est": 598.0,
        "co2_est_baseline": 35187.0,
        "voc": 225.0,
        "voc_baseline": 37841.0,
        "voc_h2_raw": 26.0,
        "voc_ethanol_raw": 37.0,
        "pm25": 4.0,
        "pm10_est": 5.0,
    }
    payload.update(overrides)
    return payload


class TrackingStream(httpx.SyncByteStream):
    """Response body that records whether the client released it."""

    def __init__(self, body: bytes) -> None:
        self.body = body
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        yield self.body

    def close(self) -> None:
        self.closed = True


def corrupt_gzip_response() -> httpx.Response:
    return httpx.Response(
        200,
        headers={"Content-Encoding": "gzip"},
        stream=TrackingStream(b"definitely not gzip"),
    )


class FakeDevices:
    """Routes mock requests by host; unknown hosts fail to connect."""

    def __init__(self, responses: Dict[str, Any] | None = None, timeouts: Iterable[str] = ()) -> None:
        self.responses: Dict[str, Any] = dict(responses or {})
        self.timeouts = set(timeouts)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host in self.timeouts:
            raise httpx.ConnectTimeout("timed out", request=request)
        if host not in self.responses:
            raise httpx.ConnectError("connection refused", request=request)
        response = self.responses[host]
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def calls_for(self, host: str) -> int:
        return sum(1 for request in self.requests if request.url.host == host)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch) -> Iterator[None]:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture()
def make_client() -> Iterator[Callable[[FakeDevices], DeviceClient]]:
    clients: List[DeviceClient] = []

    def factory(devices: FakeDevices) -> DeviceClient:
        client = DeviceClient(transport=httpx.MockTransport(devices))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        client.close()
