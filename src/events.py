"""Adhan / Iqama event derivation and next-event resolution."""

import datetime
import enum
import re
from dataclasses import dataclass, field
from typing import Mapping, NamedTuple, Sequence

IQAMA_OFFSET = datetime.timedelta(minutes=15)
ONE_DAY = datetime.timedelta(days=1)

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})")


class Prayer(enum.Enum):
    """The five daily prayers, in the order they are scanned."""

    FAJR = "Fajr"
    DHUHR = "Dhuhr"
    ASR = "Asr"
    MAGHRIB = "Maghrib"
    ISHA = "Isha"

    @property
    def display_name(self) -> str:
        return self.value


class EventKind(enum.Enum):
    ADHAN = "adhan"
    IQAMA = "iqama"


class TimeOfDay(NamedTuple):
    hour: int
    minute: int


def parse_time_of_day(raw) -> TimeOfDay | None:
    """
    Parse 'HH:MM' (optionally followed by e.g. ' (PKT)') into a TimeOfDay.

    Returns None for missing or malformed values.
    """
    if isinstance(raw, TimeOfDay):
        return raw
    if not isinstance(raw, str):
        return None
    match = _TIME_RE.match(raw)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        return None
    return TimeOfDay(hour, minute)


@dataclass(frozen=True)
class DailyTimings:
    """Adhan times for one civil date, as returned by the prayer-time provider."""

    date: datetime.date
    adhan: Mapping[Prayer, object]
    hijri: dict = field(default_factory=dict)

    def time_of(self, prayer: Prayer) -> TimeOfDay | None:
        return parse_time_of_day(self.adhan.get(prayer))


@dataclass(frozen=True)
class EventInstant:
    prayer: Prayer
    kind: EventKind
    instant: datetime.datetime
    tomorrow: bool = False

    @property
    def is_iqama(self) -> bool:
        return self.kind is EventKind.IQAMA


def _at(day: datetime.date, tod: TimeOfDay) -> datetime.datetime:
    return datetime.datetime.combine(day, datetime.time(tod.hour, tod.minute))


def derive_events(timings: DailyTimings, reference_now: datetime.datetime) -> list:
    """
    Build the ordered Adhan/Iqama events for reference_now's civil date.

    Order: each prayer's Adhan then Iqama (Fajr through Isha), followed by
    tomorrow's Fajr Adhan and Iqama. Prayers with a missing or malformed time
    are left out.
    """
    today = reference_now.date()
    events = []
    for prayer in Prayer:
        tod = timings.time_of(prayer)
        if tod is None:
            continue
        adhan = _at(today, tod)
        events.append(EventInstant(prayer, EventKind.ADHAN, adhan))
        events.append(EventInstant(prayer, EventKind.IQAMA, adhan + IQAMA_OFFSET))

    fajr = timings.time_of(Prayer.FAJR)
    if fajr is not None:
        adhan = _at(today + ONE_DAY, fajr)
        events.append(EventInstant(Prayer.FAJR, EventKind.ADHAN, adhan, tomorrow=True))
        events.append(EventInstant(Prayer.FAJR, EventKind.IQAMA, adhan + IQAMA_OFFSET, tomorrow=True))
    return events


def resolve_next(events: Sequence[EventInstant], reference_now: datetime.datetime) -> EventInstant | None:
    """
    Return the first event strictly after reference_now.

    An event exactly at reference_now counts as passed. If nothing is left,
    tomorrow's Fajr Adhan is returned; None only when the events carry no
    tomorrow's Fajr at all (no usable timings).
    """
    for event in events:
        if event.instant > reference_now:
            return event
    for event in events:
        if event.tomorrow and event.kind is EventKind.ADHAN:
            return event
    return None


def countdown_to(
    prayer: Prayer,
    kind: EventKind,
    events: Sequence[EventInstant],
    reference_now: datetime.datetime,
) -> datetime.timedelta | None:
    """
    Time left until today's `kind` event of `prayer`.

    If that event has already passed it is rolled forward by one day.
    Returns None when the prayer has no event (skipped upstream).
    """
    for event in events:
        if event.prayer is prayer and event.kind is kind and not event.tomorrow:
            instant = event.instant
            if instant <= reference_now:
                instant += ONE_DAY
            return instant - reference_now
    return None

