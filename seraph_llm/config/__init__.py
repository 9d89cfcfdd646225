"""Configuration: persistent client settings and process-level options."""

from seraph_llm.config.store import ConfigStore, MemoryConfigStore, YamlConfigStore
from seraph_llm.config.settings import (
    ClientSettings,
    HttpSettings,
    LogSettings,
    Settings,
    StoreSettings,
    configure,
    get_settings,
    open_store,
)

__all__ = [
    "ConfigStore",
    "MemoryConfigStore",
    "YamlConfigStore",
    "ClientSettings",
    "HttpSettings",
    "LogSettings",
    "Settings",
    "StoreSettings",
    "configure",
    "get_settings",
    "open_store",
]
