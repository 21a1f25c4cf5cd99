from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from dateutil.relativedelta import relativedelta


def utcnow() -> datetime:
    """Server-side 'now' in UTC (naive, canonical)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_z(dt: datetime | None) -> str | None:
    """
    Serializes datetime to ISO-8601 with trailing 'Z'.
    If dt is naive, it is treated as UTC.
    """
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt_utc = dt.astimezone(timezone.utc).replace(microsecond=0)
    return dt_utc.isoformat().replace("+00:00", "Z")


# =============================================================================
# PERIOD TOKENS
# =============================================================================

# Rolling windows ending "now". Calendar tokens (week, month, quarter, year)
# are rolling as well so the previous window always has the same length.
_PERIOD_WINDOWS = {
    "7days": relativedelta(days=7),
    "30days": relativedelta(days=30),
    "90days": relativedelta(days=90),
    "12months": relativedelta(months=12),
    "week": relativedelta(days=7),
    "month": relativedelta(months=1),
    "quarter": relativedelta(months=3),
    "year": relativedelta(years=1),
    # Aliases used by the report and returns screens
    "30d": relativedelta(days=30),
    "1month": relativedelta(months=1),
    "3months": relativedelta(months=3),
    "6months": relativedelta(months=6),
    "1year": relativedelta(years=1),
}

PERIOD_TOKENS = frozenset(_PERIOD_WINDOWS) | {"today"}


@dataclass(frozen=True)
class PeriodRange:
    """
    A [start, end] window plus the equally long window right before it.

    The previous window is [previous_start, start).
    """
    token: str
    start: datetime
    end: datetime
    previous_start: datetime

    @property
    def previous_end(self) -> datetime:
        return self.start

    def to_dict(self) -> dict:
        return {
            "period": self.token,
            "start": to_utc_z(self.start),
            "end": to_utc_z(self.end),
            "previous_start": to_utc_z(self.previous_start),
        }


def period_range(token: str, now: datetime | None = None) -> PeriodRange:
    """
    Resolve a period token into a PeriodRange ending at `now`.

    Raises ValueError for unknown tokens.
    """
    now = now or utcnow()

    if token == "today":
        start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        return PeriodRange(token, start, now, start - timedelta(days=1))

    window = _PERIOD_WINDOWS.get(token)
    if window is None:
        raise ValueError(f"Unknown period: {token}")

    start = now - window
    return PeriodRange(token, start, now, start - window)
