"""Driver layer - pluggable backends per category."""

from netplugin.drivers.base import (
    ContainerDriver,
    ContainerEpContext,
    Driver,
    DriverCategory,
    EndpointDriver,
    NetworkDriver,
    StateDriver,
)
from netplugin.drivers.docker import DockerDriver
from netplugin.drivers.etcd import EtcdStateDriver
from netplugin.drivers.memory import MemoryStateDriver
from netplugin.drivers.ovs import OvsDriver

__all__ = [
    "ContainerDriver",
    "ContainerEpContext",
    "DockerDriver",
    "Driver",
    "DriverCategory",
    "EndpointDriver",
    "EtcdStateDriver",
    "MemoryStateDriver",
    "NetworkDriver",
    "OvsDriver",
    "StateDriver",
]
