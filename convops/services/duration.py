"""Call duration normalisation.

The call engine reports durations as short strings ("90s", "2.5m", "3").
Logs store a float number of minutes so reports can sum them directly.
"""

import re
from datetime import datetime
from typing import Any

from convops.models.common import ensure_utc

DURATION_RE = re.compile(r"^([0-9]+(?:\.[0-9]+)?)([ms]?)$", re.IGNORECASE)


def parse_duration_minutes(value: Any) -> float:
    """Convert a duration value to minutes.

    ``"<n>s"`` is seconds, ``"<n>m"`` or a bare ``"<n>"`` is minutes.
    Numbers are taken as minutes. Anything unparseable yields 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else 0.0

    match = DURATION_RE.match(str(value).strip())
    if not match:
        return 0.0

    amount = float(match.group(1))
    if match.group(2).lower() == "s":
        return amount / 60
    return amount


def resolve_duration(
    raw: Any = None,
    seconds: Any = None,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
) -> tuple[float, str | None]:
    """Pick the best duration available for an ingested session.

    Returns:
        Tuple of (minutes, reported string or None)
    """
    if raw not in (None, ""):
        return parse_duration_minutes(raw), str(raw)

    if isinstance(seconds, (int, float)) and not isinstance(seconds, bool) and seconds > 0:
        return seconds / 60, None

    started_at, ended_at = ensure_utc(started_at), ensure_utc(ended_at)
    if started_at and ended_at and ended_at > started_at:
        return (ended_at - started_at).total_seconds() / 60, None

    return 0.0, None
