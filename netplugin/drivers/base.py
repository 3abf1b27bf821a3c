"""Driver base classes - capability contracts per category.

A driver fills exactly one role (category) inside the plugin:
- StateDriver: distributed key/value state shared by the other drivers
- NetworkDriver: network create/delete
- EndpointDriver: endpoint create/delete and container context lookup
- ContainerDriver: container runtime queries and interface attachment

Drivers are allocated with no arguments and stay inert until ``init``.
Network and Endpoint drivers receive the already initialized StateDriver
in their ``init``. Every driver instance is used for one init/deinit
cycle only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class DriverCategory(str, Enum):
    """Role a driver fills inside the plugin."""

    NETWORK = "network"
    ENDPOINT = "endpoint"
    STATE = "state"
    CONTAINER = "container"


@dataclass
class ContainerEpContext:
    """What a container driver needs to wire an endpoint into a container.

    ``new_attach_uuid`` is the container the endpoint should be attached to,
    ``curr_attach_uuid`` the container it is attached to right now (empty
    when detached).
    """

    ep_id: str
    container_name: str = ""
    new_attach_uuid: str = ""
    curr_attach_uuid: str = ""
    interface_id: str = ""
    ip_address: str = ""
    subnet_len: int = 0
    default_gw: str = ""


class Driver(ABC):
    """Common part of every driver contract."""

    @abstractmethod
    async def deinit(self) -> None:
        """Release everything acquired in init. Must not be called twice."""
        ...


class StateDriver(Driver):
    """Key/value state store."""

    @abstractmethod
    async def init(self, config: BaseModel) -> None:
        ...

    @abstractmethod
    async def write(self, key: str, value: bytes) -> None:
        ...

    @abstractmethod
    async def read(self, key: str) -> bytes:
        """Read a key.

        Raises:
            StateNotFoundError: If the key does not exist
        """
        ...

    @abstractmethod
    async def read_recursive(self, prefix: str) -> list[bytes]:
        """Read the values of all keys under prefix, ordered by key."""
        ...

    @abstractmethod
    async def clear(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        ...

    async def write_state(self, key: str, state: BaseModel) -> None:
        await self.write(key, state.model_dump_json().encode("utf-8"))

    async def read_state(self, key: str, model: type[ModelT]) -> ModelT:
        return model.model_validate_json(await self.read(key))

    async def read_all_state(self, prefix: str, model: type[ModelT]) -> list[ModelT]:
        return [model.model_validate_json(v) for v in await self.read_recursive(prefix)]


class NetworkDriver(Driver):
    """Network lifecycle."""

    @abstractmethod
    async def init(self, config: BaseModel, state_driver: StateDriver) -> None:
        ...

    @abstractmethod
    async def create_network(self, network_id: str) -> None:
        ...

    @abstractmethod
    async def delete_network(self, network_id: str) -> None:
        ...


class EndpointDriver(Driver):
    """Endpoint lifecycle and container context lookup."""

    @abstractmethod
    async def init(self, config: BaseModel, state_driver: StateDriver) -> None:
        ...

    @abstractmethod
    async def create_endpoint(self, ep_id: str) -> None:
        ...

    @abstractmethod
    async def delete_endpoint(self, ep_id: str) -> None:
        ...

    @abstractmethod
    async def get_endpoint_container_context(self, ep_id: str) -> ContainerEpContext:
        ...

    @abstractmethod
    async def get_container_ep_context_by_cont_name(
        self, container_name: str
    ) -> list[ContainerEpContext]:
        ...

    @abstractmethod
    async def update_container_id(self, ep_id: str, container_id: str) -> None:
        ...


class ContainerDriver(Driver):
    """Container runtime queries and endpoint attachment."""

    @abstractmethod
    async def init(self, config: BaseModel) -> None:
        ...

    @abstractmethod
    async def attach_endpoint(self, context: ContainerEpContext) -> None:
        ...

    @abstractmethod
    async def detach_endpoint(self, context: ContainerEpContext) -> None:
        ...

    @abstractmethod
    async def get_container_id(self, container_name: str) -> str:
        """Resolve a container name to its id. Returns "" if unknown."""
        ...

    @abstractmethod
    async def get_container_name(self, container_id: str) -> str:
        """Resolve a container id to its name.

        Raises:
            ContainerNotFoundError: If the runtime does not know the container
        """
        ...
