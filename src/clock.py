"""Wall-clock time as experienced at the active location."""

import datetime
import logging

import pytz

logger = logging.getLogger(__name__)


def lookup_timezone(timezone_id: str | None):
    """Return the pytz zone for an id, or None (with a warning) if it is unknown."""
    if not timezone_id:
        return None
    try:
        return pytz.timezone(timezone_id)
    except (pytz.UnknownTimeZoneError, AttributeError, ValueError):
        logger.warning("Unknown timezone %r, falling back to local time", timezone_id)
        return None


def _now_in(tz) -> datetime.datetime:
    if tz is None:
        return datetime.datetime.now()
    return datetime.datetime.now(tz).replace(tzinfo=None)


def location_now(timezone_id: str | None = None) -> datetime.datetime:
    """
    Return the current time in the given timezone as a naive datetime.

    The result carries the wall-clock fields of that zone with tzinfo stripped,
    so it can be compared directly with other naive datetimes built for the
    same location. Without a timezone (or with an unknown one) the system
    local time is returned instead.
    """
    return _now_in(lookup_timezone(timezone_id))


class LocationClock:
    """A clock bound to one location's timezone, looked up once."""

    def __init__(self, timezone_id: str | None = None):
        self.timezone_id = timezone_id
        self._tz = lookup_timezone(timezone_id)

    def now(self) -> datetime.datetime:
        return _now_in(self._tz)

    def __repr__(self):
        return f"LocationClock({self.timezone_id!r})"
