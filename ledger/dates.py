"""Date helpers shared by the ledger models and the aggregation engine.

Day labels are fixed English constants rather than strftime output so that
summaries do not change with the process locale.
"""

import re
from datetime import date, datetime, timedelta, tzinfo
from typing import List, Optional

# Monday through Sunday, indexed by date.weekday()
DAY_NAMES = [
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday",
    "Saturday", "Sunday"
]

DAY_ABBREVIATIONS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]

# fromisoformat accepts at most six fractional digits
_FRACTION = re.compile(r"(\.\d{6})\d+")


def parse_timestamp(value) -> datetime:
    """Parse an ISO-8601 timestamp as produced by the store or the browser.

    Accepts a trailing ``Z`` and over-long fractional seconds.

    Raises:
        ValueError: If the value is empty or not an ISO timestamp.
    """
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        raise ValueError(f"Invalid timestamp: {value!r}")
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(r"\1", text)
    return datetime.fromisoformat(text)


def parse_date(s: str) -> date:
    """Parse a date string in YYYY-MM-DD format.

    Raises:
        ValueError: If the date string is not in YYYY-MM-DD format.
    """
    return datetime.strptime(s, "%Y-%m-%d").date()


def local_date(ts: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of ``ts`` as seen in ``tz``.

    Naive timestamps are already local. Aware timestamps are converted to
    ``tz``, or to the system zone when ``tz`` is None.
    """
    if ts.tzinfo is None:
        return ts.date()
    return ts.astimezone(tz).date()


def day_name(d: date) -> str:
    return DAY_NAMES[d.weekday()]


def week_days(d: date) -> List[date]:
    """The seven dates of d's ISO week, Monday first."""
    monday = d - timedelta(days=d.weekday())
    return [monday + timedelta(days=i) for i in range(7)]
