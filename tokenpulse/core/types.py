"""Type definitions and enums for the token pulse dashboard."""

from enum import Enum
from typing import Union


class DataSource(str, Enum):
    """Data source identifiers."""

    AUTOFUN = "autofun"
    UNKNOWN = "unknown"


class ChartMetric(str, Enum):
    """Metrics available as a 24-hour chart series."""

    TOKENS = "tokens"          # Tokens created per hour
    CREATORS = "creators"      # Distinct creators per hour
    VOLUME = "volume"          # 1/24th of daily volume, by creation hour
    MARKET_CAP = "marketcap"   # Market cap of tokens created in the hour
    BUYERS = "buyers"          # Holders of tokens existing by the hour start

    @property
    def display_name(self) -> str:
        """Human-readable display name."""
        names = {
            self.TOKENS: "Tokens Created",
            self.CREATORS: "Unique Creators",
            self.VOLUME: "Volume",
            self.MARKET_CAP: "Market Cap",
            self.BUYERS: "Buyers",
        }
        return names.get(self, self.value)

    @property
    def short_name(self) -> str:
        """Compact name for narrow layouts."""
        names = {
            self.TOKENS: "Tokens",
            self.CREATORS: "Creators",
            self.VOLUME: "Vol.",
            self.MARKET_CAP: "M.Cap",
            self.BUYERS: "Buy'r",
        }
        return names.get(self, self.value)

    @property
    def description(self) -> str:
        """Explanation of what the series shows."""
        descriptions = {
            self.TOKENS: "Displays the number of tokens created in each hour over the last 24 hours.",
            self.CREATORS: (
                "Shows the number of unique creators who launched tokens in each hour "
                "over the last 24 hours."
            ),
            self.VOLUME: (
                "Shows the estimated trading volume for each hour (calculated as 1/24th "
                "of daily volume for new tokens created in that hour)."
            ),
            self.MARKET_CAP: "Displays the market capitalization for new tokens created in each specific hour.",
            self.BUYERS: (
                "Shows the total buyers/holders of every token that already existed "
                "at the start of each hour."
            ),
        }
        return descriptions.get(self, "Chart shows data for the last 24 hours.")


class ChartMode(str, Enum):
    """How bucket values relate to each other."""

    HOURLY = "hourly"           # Value attributable to the hour alone
    CUMULATIVE = "cumulative"   # Running total through the hour


class SortDirection(str, Enum):
    """Table sort direction."""

    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        """Return the opposite direction."""
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


# Type aliases for common patterns
NumericLike = Union[int, float, str, None]  # Raw API number, may arrive as a string

HOURS_IN_WINDOW = 24
ACTIVE_STATUS = "active"
