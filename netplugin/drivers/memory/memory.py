"""In-process state driver.

Keeps state in a dict owned by the driver instance. Useful for single
host setups and tests; nothing survives deinit.
"""

from __future__ import annotations

import structlog
from pydantic import BaseModel

from netplugin.drivers.base import StateDriver
from netplugin.errors import StateNotFoundError

logger = structlog.get_logger()


class MemoryStateDriver(StateDriver):
    """Dict-backed state driver."""

    def __init__(self) -> None:
        self._store: dict[str, bytes] = {}
        self._log = logger.bind(driver="memory")

    async def init(self, config: BaseModel) -> None:
        self._store = {}
        self._log.info("memory.init")

    async def deinit(self) -> None:
        self._log.info("memory.deinit", keys=len(self._store))
        self._store = {}

    async def write(self, key: str, value: bytes) -> None:
        self._store[key] = bytes(value)

    async def read(self, key: str) -> bytes:
        try:
            return self._store[key]
        except KeyError:
            raise StateNotFoundError(key) from None

    async def read_recursive(self, prefix: str) -> list[bytes]:
        return [self._store[k] for k in sorted(self._store) if k.startswith(prefix)]

    async def clear(self, key: str) -> None:
        self._store.pop(key, None)
