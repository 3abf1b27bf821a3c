"""Fake drivers and registries for plugin tests.

Fakes record every init/deinit into a per-test DriverLog so tests can
assert ordering across categories. "fake" selectors succeed, "broken"
selectors fail inside their driver's init.
"""

from __future__ import annotations

import json
from types import SimpleNamespace
from typing import Any

import pytest
from pydantic import Field

from netplugin.config import DocumentModel, DockerDriverConfig
from netplugin.drivers.base import (
    ContainerDriver,
    ContainerEpContext,
    DriverCategory,
    EndpointDriver,
    NetworkDriver,
    StateDriver,
)
from netplugin.errors import StateNotFoundError
from netplugin.plugin.registry import DriverRegistry, RegistryEntry


class FakeSection(DocumentModel):
    label: str = ""


class FakeDriverConfig(DocumentModel):
    fake: FakeSection = Field(default_factory=FakeSection)


class DriverLog:
    """Shared record of fake driver activity."""

    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []
        self.instances: list[Any] = []

    def of(self, category: DriverCategory) -> list[Any]:
        return [d for d in self.instances if d.category is category]


class _FakeDriverMixin:
    category: DriverCategory
    fail_init = False
    log: DriverLog

    def __init__(self) -> None:
        self.config = None
        self.state_driver = None
        self.init_count = 0
        self.deinit_count = 0
        self.calls: list[tuple] = []
        self.log.instances.append(self)

    async def _record_init(self, config, state_driver=None) -> None:
        self.init_count += 1
        self.log.events.append((self.category.value, "init"))
        if self.fail_init:
            raise RuntimeError(f"{self.category.value} backend unavailable")
        self.config = config
        self.state_driver = state_driver

    async def deinit(self) -> None:
        self.deinit_count += 1
        self.log.events.append((self.category.value, "deinit"))


class FakeStateDriver(_FakeDriverMixin, StateDriver):
    category = DriverCategory.STATE

    def __init__(self) -> None:
        super().__init__()
        self.store: dict[str, bytes] = {}

    async def init(self, config) -> None:
        await self._record_init(config)

    async def write(self, key: str, value: bytes) -> None:
        self.store[key] = value

    async def read(self, key: str) -> bytes:
        if key not in self.store:
            raise StateNotFoundError(key)
        return self.store[key]

    async def read_recursive(self, prefix: str) -> list[bytes]:
        return [v for k, v in sorted(self.store.items()) if k.startswith(prefix)]

    async def clear(self, key: str) -> None:
        self.store.pop(key, None)


class FakeNetworkDriver(_FakeDriverMixin, NetworkDriver):
    category = DriverCategory.NETWORK

    async def init(self, config, state_driver) -> None:
        await self._record_init(config, state_driver)

    async def create_network(self, network_id: str) -> None:
        self.calls.append(("create_network", network_id))

    async def delete_network(self, network_id: str) -> None:
        self.calls.append(("delete_network", network_id))


class FakeEndpointDriver(_FakeDriverMixin, EndpointDriver):
    category = DriverCategory.ENDPOINT

    async def init(self, config, state_driver) -> None:
        await self._record_init(config, state_driver)

    async def create_endpoint(self, ep_id: str) -> None:
        self.calls.append(("create_endpoint", ep_id))

    async def delete_endpoint(self, ep_id: str) -> None:
        self.calls.append(("delete_endpoint", ep_id))

    async def get_endpoint_container_context(self, ep_id: str) -> ContainerEpContext:
        self.calls.append(("get_endpoint_container_context", ep_id))
        return ContainerEpContext(ep_id=ep_id, interface_id=f"port-{ep_id}")

    async def get_container_ep_context_by_cont_name(
        self, container_name: str
    ) -> list[ContainerEpContext]:
        self.calls.append(("get_container_ep_context_by_cont_name", container_name))
        return [ContainerEpContext(ep_id="ep-1", container_name=container_name)]

    async def update_container_id(self, ep_id: str, container_id: str) -> None:
        self.calls.append(("update_container_id", ep_id, container_id))


class FakeContainerDriver(_FakeDriverMixin, ContainerDriver):
    category = DriverCategory.CONTAINER

    async def init(self, config) -> None:
        await self._record_init(config)

    async def attach_endpoint(self, context: ContainerEpContext) -> None:
        self.calls.append(("attach_endpoint", context))

    async def detach_endpoint(self, context: ContainerEpContext) -> None:
        self.calls.append(("detach_endpoint", context))

    async def get_container_id(self, container_name: str) -> str:
        return f"id-{container_name}"

    async def get_container_name(self, container_id: str) -> str:
        return f"name-{container_id}"


class FailingStateDriver(FakeStateDriver):
    fail_init = True


class FailingNetworkDriver(FakeNetworkDriver):
    fail_init = True


class FailingEndpointDriver(FakeEndpointDriver):
    fail_init = True


class FailingContainerDriver(FakeContainerDriver):
    fail_init = True


def _entry(driver_type, config_type=FakeDriverConfig) -> RegistryEntry:
    return RegistryEntry(driver_type=driver_type, config_type=config_type)


def make_config(
    *,
    state: str = "fake",
    network: str = "fake",
    endpoint: str = "fake",
    container: str = "fake",
    **sections: Any,
) -> str:
    """Build a plugin document with the given selectors and extra sections."""
    document: dict[str, Any] = {
        "Drivers": {
            "State": state,
            "Network": network,
            "Endpoint": endpoint,
            "Container": container,
        },
        "Fake": {"Label": "lab-1"},
    }
    document.update(sections)
    return json.dumps(document)


@pytest.fixture
def driver_log(monkeypatch: pytest.MonkeyPatch) -> DriverLog:
    log = DriverLog()
    monkeypatch.setattr(_FakeDriverMixin, "log", log, raising=False)
    return log


@pytest.fixture
def registry(driver_log: DriverLog) -> DriverRegistry:
    """Registry of fakes; "strict" container uses the real docker config type."""
    return DriverRegistry(
        {
            DriverCategory.STATE: {
                "fake": _entry(FakeStateDriver),
                "broken": _entry(FailingStateDriver),
            },
            DriverCategory.NETWORK: {
                "fake": _entry(FakeNetworkDriver),
                "broken": _entry(FailingNetworkDriver),
            },
            DriverCategory.ENDPOINT: {
                "fake": _entry(FakeEndpointDriver),
                "broken": _entry(FailingEndpointDriver),
            },
            DriverCategory.CONTAINER: {
                "fake": _entry(FakeContainerDriver),
                "broken": _entry(FailingContainerDriver),
                "strict": _entry(FakeContainerDriver, DockerDriverConfig),
            },
        }
    )


@pytest.fixture
def contiv_registry(driver_log: DriverLog) -> DriverRegistry:
    """Fakes registered under the production selector names."""
    return DriverRegistry(
        {
            DriverCategory.STATE: {"etcd": _entry(FakeStateDriver)},
            DriverCategory.NETWORK: {"ovs": _entry(FakeNetworkDriver)},
            DriverCategory.ENDPOINT: {"ovs": _entry(FakeEndpointDriver)},
            DriverCategory.CONTAINER: {"docker": _entry(FakeContainerDriver, DockerDriverConfig)},
        }
    )


@pytest.fixture
def config_doc():
    """Builder for plugin documents, see make_config."""
    return make_config


@pytest.fixture
def fakes():
    return SimpleNamespace(
        state=FakeStateDriver,
        network=FakeNetworkDriver,
        endpoint=FakeEndpointDriver,
        container=FakeContainerDriver,
        config=FakeDriverConfig,
    )
