"""Configuration management for the dashboard and its data source.

Loads configuration from environment variables, an optional .env file,
and an optional YAML file whose keys override the environment.
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError
from .types import ChartMetric, ChartMode

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.auto.fun/api/tokens"

# Relays tried after the direct request, in order
DEFAULT_PROXY_PREFIXES = [
    "https://corsproxy.io/?",
    "https://cors-anywhere.herokuapp.com/",
    "https://api.allorigins.win/raw?url=",
]


@dataclass
class DashboardConfig:
    """Settings for fetching, charting and sorting."""

    # Token listing API
    api_url: str = DEFAULT_API_URL
    proxy_prefixes: list[str] = field(default_factory=lambda: list(DEFAULT_PROXY_PREFIXES))
    use_direct: bool = True
    request_limit: int = 1000
    hide_imported: bool = True
    timeout_seconds: float = 30.0
    rate_limit_calls: int = 30
    rate_limit_period: int = 60

    # Dashboard defaults
    default_sort_key: str = "marketCapUSD"
    default_metric: ChartMetric = ChartMetric.TOKENS
    default_mode: ChartMode = ChartMode.HOURLY
    refresh_interval_seconds: int = 60
    display_timezone: str = "UTC"

    def __post_init__(self) -> None:
        self.default_metric = _parse_enum(ChartMetric, self.default_metric, "default_metric")
        self.default_mode = _parse_enum(ChartMode, self.default_mode, "default_mode")
        if self.request_limit <= 0:
            raise ConfigurationError("request_limit", "must be a positive integer")
        if not self.use_direct and not self.proxy_prefixes:
            raise ConfigurationError("proxy_prefixes", "no routes left when use_direct is off")
        _load_zone(self.display_timezone)

    @property
    def tzinfo(self) -> ZoneInfo:
        """Timezone used for chart hour labels."""
        return _load_zone(self.display_timezone)

    @classmethod
    def from_env(cls) -> "DashboardConfig":
        """Load configuration from TOKENPULSE_* environment variables."""
        overrides: dict[str, Any] = {}
        env_map = {
            "api_url": "TOKENPULSE_API_URL",
            "proxy_prefixes": "TOKENPULSE_PROXY_PREFIXES",
            "use_direct": "TOKENPULSE_USE_DIRECT",
            "request_limit": "TOKENPULSE_REQUEST_LIMIT",
            "hide_imported": "TOKENPULSE_HIDE_IMPORTED",
            "timeout_seconds": "TOKENPULSE_TIMEOUT_SECONDS",
            "default_sort_key": "TOKENPULSE_DEFAULT_SORT_KEY",
            "default_metric": "TOKENPULSE_DEFAULT_METRIC",
            "default_mode": "TOKENPULSE_DEFAULT_MODE",
            "refresh_interval_seconds": "TOKENPULSE_REFRESH_INTERVAL",
            "display_timezone": "TOKENPULSE_TIMEZONE",
        }
        for key, env_var in env_map.items():
            raw = os.getenv(env_var)
            if raw is not None and raw != "":
                overrides[key] = raw
        return cls._build(overrides)

    @classmethod
    def load(
        cls,
        env_file: Optional[Path] = None,
        config_file: Optional[Path] = None,
    ) -> "DashboardConfig":
        """
        Load configuration from .env, environment and an optional YAML file.

        Args:
            env_file: Optional path to .env file. If not provided,
                      looks for .env in the project root.
            config_file: Optional YAML file; its keys override the environment.

        Returns:
            DashboardConfig instance with loaded values
        """
        if env_file:
            load_dotenv(env_file)
        else:
            project_root = Path(__file__).parent.parent.parent
            env_path = project_root / ".env"
            if env_path.exists():
                load_dotenv(env_path)

        config = cls.from_env()
        if config_file is None:
            env_config = os.getenv("TOKENPULSE_CONFIG")
            config_file = Path(env_config) if env_config else None
        if config_file is not None:
            config = config.merged(_read_yaml(Path(config_file)))
        return config

    def merged(self, overrides: dict[str, Any]) -> "DashboardConfig":
        """Return a copy with ``overrides`` applied (validated like env values)."""
        known = {f.name for f in fields(self)}
        unknown = sorted(set(overrides) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
        coerced = {
            key: _coerce(key, value)
            for key, value in overrides.items()
            if key in known
        }
        return replace(self, **coerced)

    @classmethod
    def _build(cls, raw: dict[str, Any]) -> "DashboardConfig":
        return cls(**{key: _coerce(key, value) for key, value in raw.items()})

    def request_params(self) -> dict[str, str]:
        """Query parameters for the listing request (advisory to the API)."""
        return {
            "limit": str(self.request_limit),
            "page": "1",
            "sortBy": "createdAt",
            "sortOrder": "asc",
            "hideImported": "1" if self.hide_imported else "0",
        }


_BOOL_KEYS = {"use_direct", "hide_imported"}
_INT_KEYS = {"request_limit", "rate_limit_calls", "rate_limit_period", "refresh_interval_seconds"}
_FLOAT_KEYS = {"timeout_seconds"}


def _coerce(key: str, value: Any) -> Any:
    """Convert a raw env/YAML value to the field's type."""
    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    if key in _INT_KEYS:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ConfigurationError(key, f"expected an integer, got {value!r}")
    if key in _FLOAT_KEYS:
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ConfigurationError(key, f"expected a number, got {value!r}")
    if key == "proxy_prefixes":
        if isinstance(value, str):
            return [p.strip() for p in value.split(",") if p.strip()]
        if isinstance(value, list):
            return [str(p) for p in value]
        raise ConfigurationError(key, "expected a list or comma-separated string")
    return value


def _load_zone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ConfigurationError("display_timezone", f"unknown timezone {name!r}")


def _parse_enum(enum_cls: Any, value: Any, key: str) -> Any:
    try:
        return enum_cls(value)
    except ValueError:
        valid = ", ".join(member.value for member in enum_cls)
        raise ConfigurationError(key, f"{value!r} is not one of: {valid}")


def _read_yaml(config_path: Path) -> dict[str, Any]:
    """Read overrides from a YAML config file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError:
        logger.warning(f"Config file not found: {config_path}, using defaults")
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError("config_file", f"invalid YAML in {config_path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError("config_file", f"{config_path} must contain a mapping")

    logger.info(f"Loaded dashboard config from {config_path}")
    return data


# Global config instance (lazy loaded)
_config: Optional[DashboardConfig] = None


def get_config() -> DashboardConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = DashboardConfig.load()
    return _config


def reload_config(
    env_file: Optional[Path] = None,
    config_file: Optional[Path] = None,
) -> DashboardConfig:
    """Reload configuration from environment."""
    global _config
    _config = DashboardConfig.load(env_file, config_file)
    return _config
