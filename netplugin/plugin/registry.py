"""Driver registry - (category, selector) -> (driver type, config type).

Adding a driver implementation means adding one entry per category it
serves; the factory and the plugin need no change.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from pydantic import BaseModel

from netplugin.config import (
    DockerDriverConfig,
    EtcdStateDriverConfig,
    MemoryStateDriverConfig,
    OvsDriverConfig,
)
from netplugin.drivers.base import Driver, DriverCategory
from netplugin.drivers.docker import DockerDriver
from netplugin.drivers.etcd import EtcdStateDriver
from netplugin.drivers.memory import MemoryStateDriver
from netplugin.drivers.ovs import OvsDriver
from netplugin.errors import UnregisteredDriverError


@dataclass(frozen=True)
class RegistryEntry:
    """Types the factory allocates for one selector."""

    driver_type: type[Driver]
    config_type: type[BaseModel]


class DriverRegistry:
    """Read-only lookup table, built once at startup."""

    def __init__(
        self,
        entries: Mapping[DriverCategory, Mapping[str, RegistryEntry]],
    ) -> None:
        self._entries = MappingProxyType(
            {
                category: MappingProxyType(dict(entries.get(category, {})))
                for category in DriverCategory
            }
        )

    def lookup(self, category: DriverCategory, selector: str) -> RegistryEntry:
        """Resolve a selector.

        Raises:
            UnregisteredDriverError: If nothing is registered under selector
        """
        entry = self._entries[category].get(selector)
        if entry is None:
            raise UnregisteredDriverError(category.value, selector)
        return entry

    def selectors(self, category: DriverCategory) -> list[str]:
        """Registered selectors for a category, sorted."""
        return sorted(self._entries[category])


_OVS = RegistryEntry(driver_type=OvsDriver, config_type=OvsDriverConfig)

DEFAULT_REGISTRY = DriverRegistry(
    {
        DriverCategory.NETWORK: {"ovs": _OVS},
        DriverCategory.ENDPOINT: {"ovs": _OVS},
        DriverCategory.STATE: {
            "etcd": RegistryEntry(
                driver_type=EtcdStateDriver, config_type=EtcdStateDriverConfig
            ),
            "memory": RegistryEntry(
                driver_type=MemoryStateDriver, config_type=MemoryStateDriverConfig
            ),
        },
        DriverCategory.CONTAINER: {
            "docker": RegistryEntry(driver_type=DockerDriver, config_type=DockerDriverConfig),
        },
    }
)
