"""Plugin layer - registry, factory and lifecycle coordinator."""

from netplugin.plugin.factory import DriverFactory, parse_plugin_config
from netplugin.plugin.plugin import NetPlugin
from netplugin.plugin.registry import DEFAULT_REGISTRY, DriverRegistry, RegistryEntry

__all__ = [
    "DEFAULT_REGISTRY",
    "DriverFactory",
    "DriverRegistry",
    "NetPlugin",
    "RegistryEntry",
    "parse_plugin_config",
]
