"""etcd state driver using the etcd v3 JSON gateway over httpx.

Keys and values travel base64 encoded, as required by the gateway:
- PUT:    POST /v3/kv/put         {"key", "value"}
- GET:    POST /v3/kv/range       {"key"[, "range_end"]}
- DELETE: POST /v3/kv/deleterange {"key"}

Only the first configured machine is used.
"""

from __future__ import annotations

import base64
from typing import Any

import httpx
import structlog

from netplugin.config import EtcdStateDriverConfig, get_settings
from netplugin.drivers.base import StateDriver
from netplugin.errors import StateNotFoundError

logger = structlog.get_logger()


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _prefix_range_end(prefix: bytes) -> bytes:
    """Smallest key greater than every key starting with prefix."""
    end = bytearray(prefix)
    while end:
        if end[-1] < 0xFF:
            end[-1] += 1
            return bytes(end)
        end.pop()
    # Prefix of all 0xff bytes: read to the end of the keyspace
    return b"\x00"


class EtcdStateDriver(StateDriver):
    """State driver backed by an etcd cluster."""

    def __init__(self) -> None:
        self._client: httpx.AsyncClient | None = None
        self._log = logger.bind(driver="etcd")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("etcd client not initialized. Call init() first.")
        return self._client

    async def init(self, config: EtcdStateDriverConfig) -> None:
        machines = config.etcd.machines
        if not machines:
            raise ValueError("etcd driver requires at least one machine in Etcd.Machines")

        settings = get_settings()
        self._client = httpx.AsyncClient(
            base_url=machines[0].rstrip("/"),
            timeout=httpx.Timeout(settings.etcd.request_timeout),
        )
        self._log.info("etcd.init", endpoint=machines[0], machines=len(machines))

    async def deinit(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self._log.info("etcd.deinit")

    async def _post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        response = await self.client.post(path, json=body)
        response.raise_for_status()
        return response.json()

    async def write(self, key: str, value: bytes) -> None:
        await self._post(
            "/v3/kv/put",
            {"key": _b64(key.encode("utf-8")), "value": _b64(value)},
        )

    async def read(self, key: str) -> bytes:
        payload = await self._post("/v3/kv/range", {"key": _b64(key.encode("utf-8"))})
        kvs = payload.get("kvs") or []
        if not kvs:
            raise StateNotFoundError(key)
        return base64.b64decode(kvs[0].get("value", ""))

    async def read_recursive(self, prefix: str) -> list[bytes]:
        raw_prefix = prefix.encode("utf-8")
        payload = await self._post(
            "/v3/kv/range",
            {
                "key": _b64(raw_prefix),
                "range_end": _b64(_prefix_range_end(raw_prefix)),
                "sort_order": "ASCEND",
                "sort_target": "KEY",
            },
        )
        return [base64.b64decode(kv.get("value", "")) for kv in payload.get("kvs") or []]

    async def clear(self, key: str) -> None:
        await self._post("/v3/kv/deleterange", {"key": _b64(key.encode("utf-8"))})
