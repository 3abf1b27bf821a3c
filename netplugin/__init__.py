"""Netplugin - driver orchestration for container networking."""

from __future__ import annotations

from importlib.metadata import PackageNotFoundError, version as _pkg_version

from netplugin.errors import (
    AlreadyInitializedError,
    ConfigParseError,
    DriverInitError,
    EmptyConfigError,
    NetPluginError,
    NotInitializedError,
    OperationNotImplementedError,
    UnregisteredDriverError,
)
from netplugin.plugin import NetPlugin

try:
    __version__ = _pkg_version("netplugin")
except PackageNotFoundError:
    __version__ = "unknown"

__all__ = [
    "AlreadyInitializedError",
    "ConfigParseError",
    "DriverInitError",
    "EmptyConfigError",
    "NetPlugin",
    "NetPluginError",
    "NotInitializedError",
    "OperationNotImplementedError",
    "UnregisteredDriverError",
]
