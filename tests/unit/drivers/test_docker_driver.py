"""Unit tests for DockerDriver with a mocked aiodocker client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from aiodocker.exceptions import DockerError

import netplugin.drivers.docker.docker as docker_module
from netplugin.config import DockerDriverConfig
from netplugin.drivers.base import ContainerEpContext
from netplugin.drivers.docker import DockerDriver
from netplugin.errors import ContainerNotFoundError

RUNNING = {
    "Id": "c0ffee1234",
    "Name": "/web",
    "State": {"Status": "running", "Pid": 4242},
}


def _driver_with_containers(containers: dict[str, dict]) -> DockerDriver:
    """Driver whose client inspects from a name/id -> info mapping."""

    def container(ref: str):
        handle = MagicMock()
        if ref in containers:
            handle.show = AsyncMock(return_value=containers[ref])
        else:
            handle.show = AsyncMock(
                side_effect=DockerError(404, {"message": f"No such container: {ref}"})
            )
        return handle

    driver = DockerDriver()
    driver._client = MagicMock()
    driver._client.containers.container.side_effect = container
    return driver


@pytest.fixture
def ip_calls(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    calls: list[list[str]] = []

    async def fake_run_command(argv, *, timeout):
        calls.append(list(argv))
        return ""

    monkeypatch.setattr(docker_module, "run_command", fake_run_command)
    return calls


class TestDockerDriverLifecycle:
    @pytest.mark.asyncio
    async def test_init_normalizes_socket(self, monkeypatch):
        docker_cls = MagicMock()
        monkeypatch.setattr(docker_module.aiodocker, "Docker", docker_cls)
        driver = DockerDriver()
        config = DockerDriverConfig.model_validate({"Docker": {"Socket": "/run/docker.sock"}})

        await driver.init(config)

        docker_cls.assert_called_once_with(url="unix:///run/docker.sock")

    @pytest.mark.asyncio
    async def test_init_keeps_url_socket(self, monkeypatch):
        docker_cls = MagicMock()
        monkeypatch.setattr(docker_module.aiodocker, "Docker", docker_cls)
        driver = DockerDriver()

        await driver.init(DockerDriverConfig())

        docker_cls.assert_called_once_with(url="unix:///var/run/docker.sock")

    @pytest.mark.asyncio
    async def test_deinit_closes_client(self):
        driver = DockerDriver()
        client = MagicMock()
        client.close = AsyncMock()
        driver._client = client

        await driver.deinit()

        client.close.assert_awaited_once()
        with pytest.raises(RuntimeError, match="not initialized"):
            await driver.get_container_id("web")


class TestDockerDriverLookups:
    @pytest.mark.asyncio
    async def test_get_container_id(self):
        driver = _driver_with_containers({"web": RUNNING})

        assert await driver.get_container_id("web") == "c0ffee1234"

    @pytest.mark.asyncio
    async def test_get_container_id_unknown_is_empty(self):
        driver = _driver_with_containers({})

        assert await driver.get_container_id("ghost") == ""

    @pytest.mark.asyncio
    async def test_get_container_name_strips_slash(self):
        driver = _driver_with_containers({"c0ffee1234": RUNNING})

        assert await driver.get_container_name("c0ffee1234") == "web"

    @pytest.mark.asyncio
    async def test_get_container_name_unknown(self):
        driver = _driver_with_containers({})

        with pytest.raises(ContainerNotFoundError) as exc_info:
            await driver.get_container_name("deadbeef")

        assert isinstance(exc_info.value.__cause__, DockerError)

    @pytest.mark.asyncio
    async def test_other_docker_errors_propagate(self):
        driver = DockerDriver()
        driver._client = MagicMock()
        handle = MagicMock()
        handle.show = AsyncMock(side_effect=DockerError(500, {"message": "daemon on fire"}))
        driver._client.containers.container.return_value = handle

        with pytest.raises(DockerError):
            await driver.get_container_name("c0ffee1234")


class TestDockerDriverAttach:
    @pytest.mark.asyncio
    async def test_attach_moves_and_configures_interface(self, ip_calls):
        driver = _driver_with_containers({"c0ffee1234": RUNNING})
        context = ContainerEpContext(
            ep_id="ep-1",
            new_attach_uuid="c0ffee1234",
            interface_id="np0123456789",
            ip_address="10.1.0.5",
            subnet_len=24,
            default_gw="10.1.0.1",
        )

        await driver.attach_endpoint(context)

        ns = ["nsenter", "-t", "4242", "-n", "ip"]
        assert ip_calls == [
            ["ip", "link", "set", "np0123456789", "netns", "4242"],
            [*ns, "addr", "add", "10.1.0.5/24", "dev", "np0123456789"],
            [*ns, "link", "set", "np0123456789", "up"],
            [*ns, "route", "add", "default", "via", "10.1.0.1", "dev", "np0123456789"],
        ]

    @pytest.mark.asyncio
    async def test_attach_without_address_or_gateway(self, ip_calls):
        driver = _driver_with_containers({"c0ffee1234": RUNNING})
        context = ContainerEpContext(
            ep_id="ep-1", new_attach_uuid="c0ffee1234", interface_id="np0123456789"
        )

        await driver.attach_endpoint(context)

        assert [call[-2:] for call in ip_calls] == [["netns", "4242"], ["np0123456789", "up"]]

    @pytest.mark.asyncio
    async def test_attach_without_target_container_is_noop(self, ip_calls):
        driver = _driver_with_containers({})

        await driver.attach_endpoint(ContainerEpContext(ep_id="ep-1"))

        assert ip_calls == []

    @pytest.mark.asyncio
    async def test_attach_to_stopped_container(self, ip_calls):
        stopped = {**RUNNING, "State": {"Status": "exited", "Pid": 0}}
        driver = _driver_with_containers({"c0ffee1234": stopped})

        with pytest.raises(ContainerNotFoundError, match="not running"):
            await driver.attach_endpoint(
                ContainerEpContext(ep_id="ep-1", new_attach_uuid="c0ffee1234")
            )

        assert ip_calls == []

    @pytest.mark.asyncio
    async def test_detach_returns_interface_to_host(self, ip_calls):
        driver = _driver_with_containers({"c0ffee1234": RUNNING})
        context = ContainerEpContext(
            ep_id="ep-1", curr_attach_uuid="c0ffee1234", interface_id="np0123456789"
        )

        await driver.detach_endpoint(context)

        assert ip_calls == [
            ["nsenter", "-t", "4242", "-n", "ip", "link", "set", "np0123456789", "netns", "1"]
        ]

    @pytest.mark.asyncio
    async def test_detach_from_removed_container_is_noop(self, ip_calls):
        driver = _driver_with_containers({})

        await driver.detach_endpoint(
            ContainerEpContext(ep_id="ep-1", curr_attach_uuid="gone", interface_id="np0")
        )

        assert ip_calls == []
