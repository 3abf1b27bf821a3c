"""Open vSwitch network/endpoint driver.

All endpoints are internal ports on one integration bridge; network
isolation comes from the VLAN tag configured for the endpoint's network.
Intent is read from the state driver and realized state is written back
as oper records (see netplugin.drivers.ovs.state).

The same class serves both the network and the endpoint category; the
plugin allocates a separate instance for each.
"""

from __future__ import annotations

import hashlib

import structlog

from netplugin.config import OvsDriverConfig, get_settings
from netplugin.drivers.base import (
    ContainerEpContext,
    EndpointDriver,
    NetworkDriver,
    StateDriver,
)
from netplugin.drivers.ovs.state import (
    OPER_ENDPOINT_PREFIX,
    OvsCfgEndpointState,
    OvsCfgNetworkState,
    OvsOperEndpointState,
    OvsOperNetworkState,
    cfg_endpoint_key,
    cfg_network_key,
    oper_endpoint_key,
    oper_network_key,
)
from netplugin.utils.command import run_command

logger = structlog.get_logger()


def _port_name(ep_id: str) -> str:
    # Linux interface names are limited to 15 characters
    return "np" + hashlib.sha1(ep_id.encode("utf-8")).hexdigest()[:10]


class OvsDriver(NetworkDriver, EndpointDriver):
    """Network and endpoint driver on top of ovs-vsctl."""

    def __init__(self) -> None:
        self._state: StateDriver | None = None
        self._db: str | None = None
        self._vsctl_path = "ovs-vsctl"
        self._bridge = ""
        self._timeout = 10.0
        self._log = logger.bind(driver="ovs")

    @property
    def state(self) -> StateDriver:
        if self._state is None:
            raise RuntimeError("ovs driver not initialized. Call init() first.")
        return self._state

    async def init(self, config: OvsDriverConfig, state_driver: StateDriver) -> None:
        settings = get_settings()
        self._vsctl_path = settings.ovs.vsctl_path
        self._bridge = settings.ovs.bridge
        self._timeout = settings.ovs.command_timeout

        ovs_cfg = config.ovs
        self._db = f"tcp:{ovs_cfg.db_ip}:{ovs_cfg.db_port}" if ovs_cfg.db_ip else None

        self._log.info("ovs.init", bridge=self._bridge, db=self._db)
        await self._vsctl("--may-exist", "add-br", self._bridge)

        self._state = state_driver

    async def deinit(self) -> None:
        # The bridge is shared host infrastructure and outlives the driver
        self._log.info("ovs.deinit", bridge=self._bridge)
        self._state = None

    async def _vsctl(self, *args: str) -> str:
        argv = [self._vsctl_path]
        if self._db:
            argv.append(f"--db={self._db}")
        argv.extend(args)
        return await run_command(argv, timeout=self._timeout)

    # -- Network --

    async def create_network(self, network_id: str) -> None:
        cfg = await self.state.read_state(cfg_network_key(network_id), OvsCfgNetworkState)

        oper = OvsOperNetworkState(
            id=cfg.id,
            pkt_tag=cfg.pkt_tag,
            subnet=cfg.subnet,
            subnet_len=cfg.subnet_len,
            default_gw=cfg.default_gw,
        )
        await self.state.write_state(oper_network_key(network_id), oper)
        self._log.info("ovs.network.created", network_id=network_id, pkt_tag=cfg.pkt_tag)

    async def delete_network(self, network_id: str) -> None:
        await self.state.clear(oper_network_key(network_id))
        self._log.info("ovs.network.deleted", network_id=network_id)

    # -- Endpoint --

    async def create_endpoint(self, ep_id: str) -> None:
        cfg = await self.state.read_state(cfg_endpoint_key(ep_id), OvsCfgEndpointState)
        network = await self.state.read_state(
            oper_network_key(cfg.net_id), OvsOperNetworkState
        )

        port = _port_name(ep_id)
        await self._vsctl(
            "--may-exist",
            "add-port",
            self._bridge,
            port,
            f"tag={network.pkt_tag}",
            "--",
            "set",
            "Interface",
            port,
            "type=internal",
        )

        oper = OvsOperEndpointState(
            id=cfg.id,
            net_id=cfg.net_id,
            port_name=port,
            container_name=cfg.container_name,
            ip_address=cfg.ip_address,
        )
        await self.state.write_state(oper_endpoint_key(ep_id), oper)
        self._log.info(
            "ovs.endpoint.created",
            ep_id=ep_id,
            network_id=cfg.net_id,
            port=port,
        )

    async def delete_endpoint(self, ep_id: str) -> None:
        oper = await self.state.read_state(oper_endpoint_key(ep_id), OvsOperEndpointState)
        await self._vsctl("--if-exists", "del-port", self._bridge, oper.port_name)
        await self.state.clear(oper_endpoint_key(ep_id))
        self._log.info("ovs.endpoint.deleted", ep_id=ep_id, port=oper.port_name)

    async def _build_context(self, oper: OvsOperEndpointState) -> ContainerEpContext:
        cfg = await self.state.read_state(cfg_endpoint_key(oper.id), OvsCfgEndpointState)
        network = await self.state.read_state(
            oper_network_key(oper.net_id), OvsOperNetworkState
        )
        return ContainerEpContext(
            ep_id=oper.id,
            container_name=oper.container_name,
            new_attach_uuid=cfg.attach_uuid,
            curr_attach_uuid=oper.attach_uuid,
            interface_id=oper.port_name,
            ip_address=oper.ip_address,
            subnet_len=network.subnet_len,
            default_gw=network.default_gw,
        )

    async def get_endpoint_container_context(self, ep_id: str) -> ContainerEpContext:
        oper = await self.state.read_state(oper_endpoint_key(ep_id), OvsOperEndpointState)
        return await self._build_context(oper)

    async def get_container_ep_context_by_cont_name(
        self, container_name: str
    ) -> list[ContainerEpContext]:
        records = await self.state.read_all_state(OPER_ENDPOINT_PREFIX, OvsOperEndpointState)
        return [
            await self._build_context(oper)
            for oper in records
            if oper.container_name == container_name
        ]

    async def update_container_id(self, ep_id: str, container_id: str) -> None:
        key = oper_endpoint_key(ep_id)
        oper = await self.state.read_state(key, OvsOperEndpointState)
        oper.attach_uuid = container_id
        await self.state.write_state(key, oper)
        self._log.info("ovs.endpoint.attach_updated", ep_id=ep_id, container_id=container_id)
