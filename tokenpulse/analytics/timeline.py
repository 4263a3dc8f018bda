"""Rolling 24-hour timeline.

Bucket i starts at now - (24 - i) hours, so bucket 0 starts exactly 24
hours ago and bucket 23 runs from one hour ago up to and including now.
"""

from datetime import datetime, timedelta, timezone, tzinfo

from ..core.models import Timeline
from ..core.types import HOURS_IN_WINDOW


def hour_label(moment: datetime) -> str:
    """12-hour wall-clock label such as "12AM", "3PM"."""
    hour = moment.hour
    suffix = "PM" if hour >= 12 else "AM"
    return f"{hour % 12 or 12}{suffix}"


def build_timeline(
    now: datetime | None = None,
    tz: tzinfo | None = None,
    hours: int = HOURS_IN_WINDOW,
) -> Timeline:
    """
    Build the hourly buckets covering [now - hours, now].

    Args:
        now: End of the window (current UTC time if omitted; naive is UTC)
        tz: Timezone for labels (defaults to now's own timezone)
        hours: Number of one-hour buckets

    Returns:
        Timeline with oldest-first labels and bucket starts
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    # Exact hours in absolute time, even across DST changes
    now_utc = now.astimezone(timezone.utc)
    starts = [now_utc - timedelta(hours=hours - i) for i in range(hours)]
    label_tz = tz or now.tzinfo
    labels = [hour_label(start.astimezone(label_tz)) for start in starts]
    return Timeline(labels=labels, starts=starts, end=now)
