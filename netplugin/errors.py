"""Netplugin error types.

Error codes are stable strings for programmatic handling.
Every error raised by the coordinator or a bundled driver derives from
NetPluginError; the original cause is always kept as ``__cause__``.
"""

from __future__ import annotations

from typing import Any


class NetPluginError(Exception):
    """Base error for all netplugin exceptions."""

    code: str = "internal_error"
    message: str = "An internal error occurred"

    def __init__(
        self,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.__class__.message
        self.details = details or {}
        super().__init__(self.message)


class EmptyConfigError(NetPluginError):
    """Empty configuration document passed to init."""

    code = "empty_config"
    message = "empty config passed"


class ConfigParseError(NetPluginError):
    """Plugin document or a driver's configuration fragment is malformed."""

    code = "config_parse_error"
    message = "Failed to parse configuration"


class UnregisteredDriverError(NetPluginError):
    """No driver is registered for the selector in this category."""

    code = "unregistered_driver"
    message = "Failed to find a registered driver"

    def __init__(self, category: str, selector: str) -> None:
        self.category = category
        self.selector = selector
        super().__init__(
            f"Failed to find a registered {category} driver for: {selector!r}",
            details={"category": category, "selector": selector},
        )


class DriverInitError(NetPluginError):
    """A selected driver's own init failed.

    The driver's exception is chained as ``__cause__`` and is not
    reinterpreted.
    """

    code = "driver_init_failed"
    message = "Driver initialization failed"

    def __init__(self, category: str, selector: str, reason: str | None = None) -> None:
        self.category = category
        self.selector = selector
        super().__init__(
            f"{category} driver {selector!r} failed to initialize: {reason}",
            details={"category": category, "selector": selector, "reason": reason},
        )


class OperationNotImplementedError(NetPluginError, NotImplementedError):
    """Operation is declared by the plugin but not provided.

    Note: Renamed from NotImplementedError to avoid shadowing Python's builtin.
    It still subclasses the builtin so generic handlers keep working.
    """

    code = "not_implemented"
    message = "Not implemented"


class AlreadyInitializedError(NetPluginError):
    """init called on a plugin that still holds live drivers."""

    code = "already_initialized"
    message = "Plugin is already initialized, call deinit first"


class NotInitializedError(NetPluginError):
    """Dispatch to a category whose driver is not installed."""

    code = "not_initialized"
    message = "Driver is not initialized"

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__(
            f"No {category} driver is initialized",
            details={"category": category},
        )


class StateNotFoundError(NetPluginError):
    """Key is absent from the state store."""

    code = "state_not_found"
    message = "State not found"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"State not found for key: {key}", details={"key": key})


class CommandError(NetPluginError):
    """Host tool (ovs-vsctl, ip, nsenter) failed.

    Raised when the binary is missing, times out or exits non-zero.
    """

    code = "command_failed"
    message = "Command failed"


class ContainerNotFoundError(NetPluginError):
    """Container runtime does not know the container."""

    code = "container_not_found"
    message = "Container not found"
