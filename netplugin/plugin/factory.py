"""Driver factory - fresh (driver, config) pairs from the registry."""

from __future__ import annotations

from typing import TypeVar

from pydantic import BaseModel, ValidationError

from netplugin.config import PluginConfig
from netplugin.drivers.base import Driver, DriverCategory
from netplugin.errors import ConfigParseError
from netplugin.plugin.registry import DEFAULT_REGISTRY, DriverRegistry

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_document(model: type[ModelT], raw_config: str, **details: str) -> ModelT:
    """Parse the plugin document into model, ignoring unknown fields.

    Raises:
        ConfigParseError: If the document is not valid JSON or does not fit
            the model
    """
    try:
        return model.model_validate_json(raw_config)
    except ValidationError as e:
        raise ConfigParseError(
            f"Failed to parse {model.__name__}: {e.error_count()} error(s)",
            details={**details, "errors": e.errors(include_url=False, include_input=False)},
        ) from e


def parse_plugin_config(raw_config: str) -> PluginConfig:
    """Loose parse of the document: only the driver selectors."""
    return parse_document(PluginConfig, raw_config)


class DriverFactory:
    """Allocates drivers and their configs. Never calls driver methods."""

    def __init__(self, registry: DriverRegistry | None = None) -> None:
        self._registry = registry or DEFAULT_REGISTRY

    @property
    def registry(self) -> DriverRegistry:
        return self._registry

    def construct(
        self,
        category: DriverCategory,
        selector: str,
        raw_config: str,
    ) -> tuple[Driver, BaseModel]:
        """Build an uninitialized driver and its parsed config.

        Raises:
            UnregisteredDriverError: If selector is not registered for category
            ConfigParseError: If the document does not fit the config type
        """
        entry = self._registry.lookup(category, selector)
        config = parse_document(
            entry.config_type,
            raw_config,
            category=category.value,
            selector=selector,
        )
        driver = entry.driver_type()
        return driver, config
