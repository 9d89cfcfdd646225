"""
Configuration management for Seraph.

Two layers:

``ClientSettings``
    Read-through view over a ``ConfigStore`` holding the values a user edits
    in the settings screen (endpoint, API key, default model, generation
    parameters). Every read goes to the store; every write is validated and
    written through.

``Settings``
    Process-level options loaded at start-up from:
    - YAML config files (seraph.yaml)
    - Environment variables (SERAPH_*)
    - Programmatic overrides

    Priority (highest to lowest):
    1. Programmatic overrides
    2. Environment variables
    3. YAML config files
    4. Default values

Usage:
    from seraph_llm.config import get_settings, open_store, ClientSettings

    client_settings = ClientSettings(open_store())
    client_settings.temperature = 0.3
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from seraph_llm.config.store import ConfigStore, MemoryConfigStore, YamlConfigStore
from seraph_llm.logging import get_logger
from seraph_llm.models import DEFAULT_MODEL_ID

logger = get_logger("config")


# =============================================================================
# Client Settings
# =============================================================================

class ClientSettings:
    """
    Persisted client configuration.

    Args:
        store: Backing key/value store. Defaults to an in-memory store.
    """

    BASE_URL_KEY = "llmBaseURL"
    API_KEY_KEY = "llmAPIKey"
    DEFAULT_MODEL_KEY = "defaultModelId"
    MAX_TOKENS_KEY = "maxTokens"
    TEMPERATURE_KEY = "temperature"
    TOP_P_KEY = "topP"
    FREQUENCY_PENALTY_KEY = "frequencyPenalty"
    PRESENCE_PENALTY_KEY = "presencePenalty"

    DEFAULT_MAX_TOKENS = 2048
    DEFAULT_TEMPERATURE = 0.7
    DEFAULT_TOP_P = 0.9
    DEFAULT_FREQUENCY_PENALTY = 0.0
    DEFAULT_PRESENCE_PENALTY = 0.0

    def __init__(self, store: Optional[ConfigStore] = None):
        self.store = store if store is not None else MemoryConfigStore()

    # ---------- helpers ----------

    def _get_number(self, key: str, default: Any, cast: type) -> Any:
        value = self.store.get(key)
        if value is None:
            return default
        try:
            return cast(value)
        except (TypeError, ValueError):
            logger.warn("Ignoring malformed config value", key=key, value=repr(value))
            return default

    def _set_number(self, key: str, value: Any, cast: type, low: float, high: float) -> None:
        if value is None:
            self.store.set(key, None)
            return
        value = cast(value)
        if not low <= value <= high:
            raise ValueError(f"{key} must be between {low} and {high}, got {value}")
        self.store.set(key, value)

    # ---------- connection ----------

    @property
    def base_url(self) -> Optional[str]:
        value = self.store.get(self.BASE_URL_KEY)
        if not value or not str(value).strip():
            return None
        return str(value).strip().rstrip("/")

    @base_url.setter
    def base_url(self, value: Optional[str]) -> None:
        self.store.set(self.BASE_URL_KEY, value.strip().rstrip("/") if value else None)

    @property
    def api_key(self) -> Optional[str]:
        value = self.store.get(self.API_KEY_KEY)
        return str(value) if value is not None else None

    @api_key.setter
    def api_key(self, value: Optional[str]) -> None:
        self.store.set(self.API_KEY_KEY, value)

    @property
    def default_model_id(self) -> str:
        return self.store.get(self.DEFAULT_MODEL_KEY) or DEFAULT_MODEL_ID

    @default_model_id.setter
    def default_model_id(self, value: Optional[str]) -> None:
        self.store.set(self.DEFAULT_MODEL_KEY, value)

    # ---------- generation parameters ----------

    @property
    def max_tokens(self) -> int:
        return self._get_number(self.MAX_TOKENS_KEY, self.DEFAULT_MAX_TOKENS, int)

    @max_tokens.setter
    def max_tokens(self, value: Optional[int]) -> None:
        self._set_number(self.MAX_TOKENS_KEY, value, int, 1, float("inf"))

    @property
    def temperature(self) -> float:
        return self._get_number(self.TEMPERATURE_KEY, self.DEFAULT_TEMPERATURE, float)

    @temperature.setter
    def temperature(self, value: Optional[float]) -> None:
        self._set_number(self.TEMPERATURE_KEY, value, float, 0.0, 1.0)

    @property
    def top_p(self) -> float:
        return self._get_number(self.TOP_P_KEY, self.DEFAULT_TOP_P, float)

    @top_p.setter
    def top_p(self, value: Optional[float]) -> None:
        self._set_number(self.TOP_P_KEY, value, float, 0.0, 1.0)

    @property
    def frequency_penalty(self) -> float:
        return self._get_number(self.FREQUENCY_PENALTY_KEY, self.DEFAULT_FREQUENCY_PENALTY, float)

    @frequency_penalty.setter
    def frequency_penalty(self, value: Optional[float]) -> None:
        self._set_number(self.FREQUENCY_PENALTY_KEY, value, float, -2.0, 2.0)

    @property
    def presence_penalty(self) -> float:
        return self._get_number(self.PRESENCE_PENALTY_KEY, self.DEFAULT_PRESENCE_PENALTY, float)

    @presence_penalty.setter
    def presence_penalty(self, value: Optional[float]) -> None:
        self._set_number(self.PRESENCE_PENALTY_KEY, value, float, -2.0, 2.0)

    # ---------- bulk access ----------

    FIELDS = (
        "base_url",
        "api_key",
        "default_model_id",
        "max_tokens",
        "temperature",
        "top_p",
        "frequency_penalty",
        "presence_penalty",
    )

    def update(self, **values: Any) -> None:
        """Set several fields at once. Unknown names raise AttributeError."""
        for name, value in values.items():
            if name not in self.FIELDS:
                raise AttributeError(f"Unknown client setting: {name}")
            setattr(self, name, value)

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return {
            "base_url": self.base_url,
            "has_api_key": bool(self.api_key and self.api_key.strip()),
            "default_model_id": self.default_model_id,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "frequency_penalty": self.frequency_penalty,
            "presence_penalty": self.presence_penalty,
            # Exclude api_key for security
        }

    def __repr__(self) -> str:
        return f"ClientSettings(base_url={self.base_url!r}, default_model_id={self.default_model_id!r})"


# =============================================================================
# Process Settings
# =============================================================================

@dataclass
class StoreSettings:
    """Where persisted client settings live."""
    path: str = "~/.seraph/settings.yaml"


@dataclass
class HttpSettings:
    """Transport configuration."""
    timeout: float = 60.0


@dataclass
class LogSettings:
    """Logging configuration."""
    level: str = "INFO"


@dataclass
class Settings:
    """
    Main settings container.

    ``client`` holds seed values (from YAML ``client:`` or SERAPH_BASE_URL,
    SERAPH_API_KEY, SERAPH_MODEL) that are copied into a store only where
    the store has no value yet.
    """
    store: StoreSettings = field(default_factory=StoreSettings)
    http: HttpSettings = field(default_factory=HttpSettings)
    log: LogSettings = field(default_factory=LogSettings)
    client: dict[str, Any] = field(default_factory=dict)

    # Internal state
    _config_file: Optional[Path] = None
    _env_prefix: str = "SERAPH_"

    def __post_init__(self):
        """Load configuration after initialization."""
        self._load_from_yaml()
        self._load_from_env()

    def _load_from_env(self):
        """Load settings from environment variables."""
        prefix = self._env_prefix

        if val := os.getenv(f"{prefix}STORE_PATH"):
            self.store.path = val
        if val := os.getenv(f"{prefix}TIMEOUT"):
            try:
                self.http.timeout = float(val)
            except ValueError:
                raise ValueError(f"{prefix}TIMEOUT must be a number, got {val!r}") from None
        if val := os.getenv(f"{prefix}LOG_LEVEL"):
            self.log.level = val.upper()

        # Client seed values
        if val := os.getenv(f"{prefix}BASE_URL"):
            self.client["base_url"] = val
        if val := os.getenv(f"{prefix}API_KEY"):
            self.client["api_key"] = val
        if val := os.getenv(f"{prefix}MODEL"):
            self.client["default_model_id"] = val

    def _load_from_yaml(self):
        """Load settings from YAML config file."""
        search_paths = [
            Path.cwd() / "seraph.yaml",
            Path.cwd() / "seraph.yml",
            Path.home() / ".seraph" / "config.yaml",
        ]

        for config_path in search_paths:
            if config_path.exists():
                self._config_file = config_path
                self._apply_yaml_config(config_path)
                break

    def _apply_yaml_config(self, path: Path):
        """Apply config from YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warn("Failed to load config", path=str(path), error=str(e))
            return

        for section in ("store", "http", "log"):
            if values := data.get(section):
                section_obj = getattr(self, section)
                for key, val in values.items():
                    if hasattr(section_obj, key):
                        setattr(section_obj, key, val)

        if client := data.get("client"):
            for key, val in client.items():
                if key in ClientSettings.FIELDS:
                    self.client[key] = val

    def reload(self):
        """Reload configuration from all sources."""
        # Reset to defaults
        self.store = StoreSettings()
        self.http = HttpSettings()
        self.log = LogSettings()
        self.client = {}

        # Reload
        self._load_from_yaml()
        self._load_from_env()

    def seed(self, client_settings: ClientSettings) -> None:
        """Copy seed values into the store where nothing is stored yet."""
        for name, value in self.client.items():
            if client_settings.store.get(_STORE_KEYS[name]) is None:
                setattr(client_settings, name, value)

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return {
            "store": {"path": self.store.path},
            "http": {"timeout": self.http.timeout},
            "log": {"level": self.log.level},
            "client": {k: v for k, v in self.client.items() if k != "api_key"},
        }

    def __repr__(self) -> str:
        return f"Settings(config_file={self._config_file})"


_STORE_KEYS = {
    "base_url": ClientSettings.BASE_URL_KEY,
    "api_key": ClientSettings.API_KEY_KEY,
    "default_model_id": ClientSettings.DEFAULT_MODEL_KEY,
    "max_tokens": ClientSettings.MAX_TOKENS_KEY,
    "temperature": ClientSettings.TEMPERATURE_KEY,
    "top_p": ClientSettings.TOP_P_KEY,
    "frequency_penalty": ClientSettings.FREQUENCY_PENALTY_KEY,
    "presence_penalty": ClientSettings.PRESENCE_PENALTY_KEY,
}


# =============================================================================
# Global Settings Instance
# =============================================================================

_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading it on first use."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def configure(**kwargs):
    """
    Configure settings programmatically.

    Args:
        **kwargs: Settings to override in format "section_key=value"

    Example:
        configure(http_timeout=120, log_level="DEBUG")
    """
    settings = get_settings()
    for key, value in kwargs.items():
        section, _, attr = key.partition("_")
        section_obj = getattr(settings, section, None)
        if section_obj is None or not hasattr(section_obj, attr):
            raise AttributeError(f"Unknown setting: {key}")
        setattr(section_obj, attr, value)


def open_store(settings: Optional[Settings] = None) -> YamlConfigStore:
    """Open the persistent store named by the settings and apply seed values."""
    settings = settings or get_settings()
    store = YamlConfigStore(settings.store.path)
    settings.seed(ClientSettings(store))
    return store
