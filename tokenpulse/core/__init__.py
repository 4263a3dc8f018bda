"""Core module - data models, types, configuration and exceptions."""

from .models import (
    TokenRecord,
    Timeline,
    MetricSeries,
    SortConfig,
    AuditEntry,
    DashboardState,
)
from .types import (
    ChartMetric,
    ChartMode,
    DataSource,
    SortDirection,
)
from .exceptions import (
    TokenPulseError,
    DataSourceError,
    RateLimitError,
    MalformedPayloadError,
    AllRoutesFailedError,
    ConfigurationError,
)
from .config import DashboardConfig, get_config, reload_config

__all__ = [
    # Models
    "TokenRecord",
    "Timeline",
    "MetricSeries",
    "SortConfig",
    "AuditEntry",
    "DashboardState",
    # Types
    "ChartMetric",
    "ChartMode",
    "DataSource",
    "SortDirection",
    # Exceptions
    "TokenPulseError",
    "DataSourceError",
    "RateLimitError",
    "MalformedPayloadError",
    "AllRoutesFailedError",
    "ConfigurationError",
    # Config
    "DashboardConfig",
    "get_config",
    "reload_config",
]
