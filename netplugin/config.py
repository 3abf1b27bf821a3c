"""Netplugin configuration management.

Two layers live here:

1. The plugin configuration document: a JSON text handed to
   ``NetPlugin.init``. It names the selected driver per category under
   ``Drivers`` and carries each driver's own section (``Etcd``, ``Ovs``,
   ``Docker``). The same document is parsed once loosely for the
   selectors and once per category into that driver's config model;
   unknown fields are ignored by every model.
2. Process settings for host tooling used by the bundled drivers.
   Sources (in priority order):
   1. Environment variables (NETPLUGIN_ prefix)
   2. Config file (netplugin.yaml)
   3. Defaults
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal
from pydantic_settings import BaseSettings, SettingsConfigDict


# ---------------------------------------------------------------------------
# Plugin configuration document
# ---------------------------------------------------------------------------


class DocumentModel(BaseModel):
    """Base for every model parsed out of the plugin document.

    Field names map to PascalCase keys (``db_ip`` <-> ``DbIp``).
    """

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
    )


class DriverSelection(DocumentModel):
    """Selector per driver category. Empty means "not selected"."""

    network: str = ""
    endpoint: str = ""
    state: str = ""
    container: str = ""


class PluginConfig(DocumentModel):
    """Top-level view of the plugin document."""

    drivers: DriverSelection = Field(default_factory=DriverSelection)


class EtcdSection(DocumentModel):
    # Client URLs, e.g. "http://127.0.0.1:2379"
    machines: list[str] = Field(default_factory=list)


class EtcdStateDriverConfig(DocumentModel):
    """etcd state driver configuration."""

    etcd: EtcdSection = Field(default_factory=EtcdSection)


class MemoryStateDriverConfig(DocumentModel):
    """In-process state driver configuration (no fields)."""


class OvsSection(DocumentModel):
    # Empty db_ip means the local ovsdb unix socket
    db_ip: str = ""
    db_port: int = 0


class OvsDriverConfig(DocumentModel):
    """Open vSwitch network/endpoint driver configuration."""

    ovs: OvsSection = Field(default_factory=OvsSection)


class DockerSection(DocumentModel):
    socket: str = "unix:///var/run/docker.sock"


class DockerDriverConfig(DocumentModel):
    """Docker container driver configuration."""

    docker: DockerSection = Field(default_factory=DockerSection)


# ---------------------------------------------------------------------------
# Process settings
# ---------------------------------------------------------------------------


class OvsSettings(BaseModel):
    """ovs-vsctl invocation settings."""

    vsctl_path: str = "ovs-vsctl"

    # Integration bridge that carries all endpoint ports
    bridge: str = "contivVlanBridge"

    command_timeout: float = 10.0


class EtcdSettings(BaseModel):
    """etcd client settings."""

    request_timeout: float = 5.0


class NetnsSettings(BaseModel):
    """Tools used to move and configure interfaces in container namespaces."""

    ip_path: str = "ip"
    nsenter_path: str = "nsenter"
    command_timeout: float = 10.0


class Settings(BaseSettings):
    """Netplugin process settings."""

    model_config = SettingsConfigDict(
        env_prefix="NETPLUGIN_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    ovs: OvsSettings = Field(default_factory=OvsSettings)
    etcd: EtcdSettings = Field(default_factory=EtcdSettings)
    netns: NetnsSettings = Field(default_factory=NetnsSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # File values arrive as init kwargs; environment must win over them
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def _load_config_file() -> dict:
    """Load settings from YAML file if exists.

    Looks for config file in order:
    1. NETPLUGIN_CONFIG_FILE environment variable
    2. ./netplugin.yaml
    3. /etc/netplugin/netplugin.yaml
    """
    import os

    config_paths = [
        os.environ.get("NETPLUGIN_CONFIG_FILE"),
        Path("netplugin.yaml"),
        Path("/etc/netplugin/netplugin.yaml"),
    ]

    for path in config_paths:
        if path is None:
            continue
        path = Path(path)
        if path.exists():
            with open(path) as f:
                return yaml.safe_load(f) or {}

    return {}


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Configuration is loaded from:
    1. YAML config file (if exists)
    2. Environment variables (override)
    3. Defaults
    """
    file_config = _load_config_file()
    return Settings(**file_config)
