"""Docker container driver using aiodocker.

Container lookups go through the Docker API. Attaching an endpoint moves
its host interface into the container's network namespace and configures
it from there; detaching moves it back to the host namespace (pid 1).
"""

from __future__ import annotations

from typing import Any

import aiodocker
import structlog
from aiodocker.exceptions import DockerError

from netplugin.config import DockerDriverConfig, get_settings
from netplugin.drivers.base import ContainerDriver, ContainerEpContext
from netplugin.errors import ContainerNotFoundError
from netplugin.utils.command import run_command

logger = structlog.get_logger()


class DockerDriver(ContainerDriver):
    """Container driver for the Docker runtime."""

    def __init__(self) -> None:
        self._socket = ""
        self._ip_path = "ip"
        self._nsenter_path = "nsenter"
        self._timeout = 10.0
        self._client: aiodocker.Docker | None = None
        self._log = logger.bind(driver="docker")

    @property
    def client(self) -> aiodocker.Docker:
        if self._client is None:
            raise RuntimeError("docker client not initialized. Call init() first.")
        return self._client

    async def init(self, config: DockerDriverConfig) -> None:
        socket_url = config.docker.socket
        if "://" in socket_url:
            self._socket = socket_url
        else:
            self._socket = f"unix://{socket_url}"

        settings = get_settings()
        self._ip_path = settings.netns.ip_path
        self._nsenter_path = settings.netns.nsenter_path
        self._timeout = settings.netns.command_timeout

        self._client = aiodocker.Docker(url=self._socket)
        self._log.info("docker.init", socket=self._socket)

    async def deinit(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
        self._log.info("docker.deinit")

    async def _inspect(self, container_ref: str) -> dict[str, Any]:
        container = self.client.containers.container(container_ref)
        try:
            return await container.show()
        except DockerError as e:
            if e.status == 404:
                raise ContainerNotFoundError(
                    f"Container not found: {container_ref}",
                    details={"container": container_ref},
                ) from e
            raise

    async def _container_pid(self, container_ref: str) -> int:
        info = await self._inspect(container_ref)
        pid = info.get("State", {}).get("Pid") or 0
        if pid <= 0:
            raise ContainerNotFoundError(
                f"Container is not running: {container_ref}",
                details={"container": container_ref},
            )
        return pid

    async def _ip(self, *args: str) -> str:
        return await run_command([self._ip_path, *args], timeout=self._timeout)

    async def _ip_in_netns(self, pid: int, *args: str) -> str:
        return await run_command(
            [self._nsenter_path, "-t", str(pid), "-n", self._ip_path, *args],
            timeout=self._timeout,
        )

    async def attach_endpoint(self, context: ContainerEpContext) -> None:
        if not context.new_attach_uuid:
            self._log.info("docker.attach.skipped", ep_id=context.ep_id, reason="no_container")
            return

        pid = await self._container_pid(context.new_attach_uuid)
        iface = context.interface_id

        self._log.info(
            "docker.attach",
            ep_id=context.ep_id,
            container_id=context.new_attach_uuid,
            interface=iface,
            pid=pid,
        )

        await self._ip("link", "set", iface, "netns", str(pid))
        if context.ip_address:
            address = context.ip_address
            if context.subnet_len:
                address = f"{address}/{context.subnet_len}"
            await self._ip_in_netns(pid, "addr", "add", address, "dev", iface)
        await self._ip_in_netns(pid, "link", "set", iface, "up")
        if context.default_gw:
            await self._ip_in_netns(
                pid, "route", "add", "default", "via", context.default_gw, "dev", iface
            )

    async def detach_endpoint(self, context: ContainerEpContext) -> None:
        if not context.curr_attach_uuid:
            self._log.info("docker.detach.skipped", ep_id=context.ep_id, reason="not_attached")
            return

        try:
            pid = await self._container_pid(context.curr_attach_uuid)
        except ContainerNotFoundError:
            # Namespace is gone with the container; kernel already released the interface
            self._log.warning(
                "docker.detach.container_gone",
                ep_id=context.ep_id,
                container_id=context.curr_attach_uuid,
            )
            return

        self._log.info(
            "docker.detach",
            ep_id=context.ep_id,
            container_id=context.curr_attach_uuid,
            interface=context.interface_id,
        )
        await self._ip_in_netns(pid, "link", "set", context.interface_id, "netns", "1")

    async def get_container_id(self, container_name: str) -> str:
        try:
            info = await self._inspect(container_name)
        except ContainerNotFoundError:
            self._log.warning("docker.container_id.not_found", name=container_name)
            return ""
        return info.get("Id", "")

    async def get_container_name(self, container_id: str) -> str:
        info = await self._inspect(container_id)
        return info.get("Name", "").lstrip("/")
