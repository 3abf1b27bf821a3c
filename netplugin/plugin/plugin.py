"""NetPlugin - driver lifecycle coordinator and dispatch facade.

init brings drivers up in a fixed order, each stage depending on all
previous ones:

    state -> network(state) -> endpoint(state) -> container

Every successful stage pushes its teardown onto a rollback stack. If a
later stage fails, the stack unwinds (last stage first) before the error
is raised, so a failed init leaves no live driver behind and init can be
retried. On success the stack is discarded and teardown belongs to
deinit.

init/deinit must be serialized by the caller. Facade calls are plain
dispatch; concurrency safety is up to the drivers.
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Any, NoReturn

import structlog

from netplugin.drivers.base import (
    ContainerDriver,
    ContainerEpContext,
    Driver,
    DriverCategory,
    EndpointDriver,
    NetworkDriver,
    StateDriver,
)
from netplugin.errors import (
    AlreadyInitializedError,
    DriverInitError,
    EmptyConfigError,
    NotInitializedError,
    OperationNotImplementedError,
)
from netplugin.plugin.factory import DriverFactory, parse_plugin_config
from netplugin.plugin.registry import DriverRegistry

logger = structlog.get_logger()

_DRIVER_ATTRS = {
    DriverCategory.STATE: "state_driver",
    DriverCategory.NETWORK: "network_driver",
    DriverCategory.ENDPOINT: "endpoint_driver",
    DriverCategory.CONTAINER: "container_driver",
}


class NetPlugin:
    """Owns one active driver per category."""

    def __init__(self, registry: DriverRegistry | None = None) -> None:
        self._factory = DriverFactory(registry)
        self.state_driver: StateDriver | None = None
        self.network_driver: NetworkDriver | None = None
        self.endpoint_driver: EndpointDriver | None = None
        self.container_driver: ContainerDriver | None = None
        self._log = logger.bind(component="netplugin")

    @property
    def is_initialized(self) -> bool:
        return any(getattr(self, attr) is not None for attr in _DRIVER_ATTRS.values())

    # -- Lifecycle --

    async def init(self, config_str: str) -> None:
        """Construct and initialize all drivers from the plugin document.

        Raises:
            EmptyConfigError: If config_str is empty
            AlreadyInitializedError: If drivers from a previous init are live
            ConfigParseError: If the document or a driver's section is malformed
            UnregisteredDriverError: If a selector is not registered
            DriverInitError: If a driver's own init failed
        """
        if not config_str:
            raise EmptyConfigError()
        if self.is_initialized:
            raise AlreadyInitializedError()

        plugin_config = parse_plugin_config(config_str)
        selection = plugin_config.drivers
        self._log.info(
            "netplugin.init.start",
            state=selection.state,
            network=selection.network,
            endpoint=selection.endpoint,
            container=selection.container,
        )

        async with AsyncExitStack() as rollback:
            state = await self._init_stage(DriverCategory.STATE, selection.state, config_str)
            self.state_driver = state
            rollback.push_async_callback(self._teardown, DriverCategory.STATE)

            network = await self._init_stage(
                DriverCategory.NETWORK, selection.network, config_str, state
            )
            self.network_driver = network
            rollback.push_async_callback(self._teardown, DriverCategory.NETWORK)

            endpoint = await self._init_stage(
                DriverCategory.ENDPOINT, selection.endpoint, config_str, state
            )
            self.endpoint_driver = endpoint
            rollback.push_async_callback(self._teardown, DriverCategory.ENDPOINT)

            container = await self._init_stage(
                DriverCategory.CONTAINER, selection.container, config_str
            )
            self.container_driver = container
            rollback.push_async_callback(self._teardown, DriverCategory.CONTAINER)

            rollback.pop_all()

        self._log.info("netplugin.init.complete")

    async def _init_stage(
        self,
        category: DriverCategory,
        selector: str,
        config_str: str,
        state_driver: StateDriver | None = None,
    ) -> Driver:
        driver, config = self._factory.construct(category, selector, config_str)

        try:
            if state_driver is None:
                await driver.init(config)
            else:
                await driver.init(config, state_driver)
        except Exception as e:
            # A driver whose init failed is discarded without deinit
            self._log.warning(
                "netplugin.stage.failed",
                category=category.value,
                selector=selector,
                error=str(e),
            )
            raise DriverInitError(category.value, selector, str(e)) from e

        self._log.info("netplugin.stage.ready", category=category.value, selector=selector)
        return driver

    async def _teardown(self, category: DriverCategory) -> None:
        """Uninstall a category's driver and deinit it."""
        attr = _DRIVER_ATTRS[category]
        driver: Driver | None = getattr(self, attr)
        setattr(self, attr, None)
        if driver is None:
            return

        self._log.info("netplugin.driver.deinit", category=category.value)
        try:
            await driver.deinit()
        except Exception:
            # deinit has no error channel; keep tearing down the rest
            self._log.exception("netplugin.driver.deinit_failed", category=category.value)

    async def deinit(self) -> None:
        """Tear down endpoint, network and state drivers, in that order.

        Absent drivers are skipped, so this is safe on a partially or never
        initialized plugin and on repeated calls. The container driver is
        released without calling its deinit.
        """
        self._log.info("netplugin.deinit.start")
        await self._teardown(DriverCategory.ENDPOINT)
        await self._teardown(DriverCategory.NETWORK)
        await self._teardown(DriverCategory.STATE)
        # Container driver is dropped, not deinitialized
        self.container_driver = None
        self._log.info("netplugin.deinit.complete")

    # -- Dispatch --

    def _require(self, category: DriverCategory) -> Any:
        driver = getattr(self, _DRIVER_ATTRS[category])
        if driver is None:
            raise NotInitializedError(category.value)
        return driver

    # Network

    async def create_network(self, network_id: str) -> None:
        await self._require(DriverCategory.NETWORK).create_network(network_id)

    async def delete_network(self, network_id: str) -> None:
        await self._require(DriverCategory.NETWORK).delete_network(network_id)

    async def fetch_network(self, network_id: str) -> NoReturn:
        raise OperationNotImplementedError()

    # Endpoint

    async def create_endpoint(self, ep_id: str) -> None:
        await self._require(DriverCategory.ENDPOINT).create_endpoint(ep_id)

    async def delete_endpoint(self, ep_id: str) -> None:
        await self._require(DriverCategory.ENDPOINT).delete_endpoint(ep_id)

    async def get_endpoint_container_context(self, ep_id: str) -> ContainerEpContext:
        return await self._require(DriverCategory.ENDPOINT).get_endpoint_container_context(
            ep_id
        )

    async def get_container_ep_context_by_cont_name(
        self, container_name: str
    ) -> list[ContainerEpContext]:
        endpoint = self._require(DriverCategory.ENDPOINT)
        return await endpoint.get_container_ep_context_by_cont_name(container_name)

    async def update_container_id(self, ep_id: str, container_id: str) -> None:
        await self._require(DriverCategory.ENDPOINT).update_container_id(ep_id, container_id)

    async def fetch_endpoint(self, ep_id: str) -> NoReturn:
        raise OperationNotImplementedError()

    # Container

    async def attach_endpoint(self, context: ContainerEpContext) -> None:
        await self._require(DriverCategory.CONTAINER).attach_endpoint(context)

    async def detach_endpoint(self, context: ContainerEpContext) -> None:
        await self._require(DriverCategory.CONTAINER).detach_endpoint(context)

    async def get_container_id(self, container_name: str) -> str:
        return await self._require(DriverCategory.CONTAINER).get_container_id(container_name)

    async def get_container_name(self, container_id: str) -> str:
        return await self._require(DriverCategory.CONTAINER).get_container_name(container_id)
