"""
The top-level prayer time session.

Owns the current Location / DailyTimings pair and the refresh tick, and is
the only place they change. Every change runs the same sequence: stop the
tick, clear the display to unknown, fetch in the background, then start a
fresh tick once the new timings are back on the main loop.
"""

import datetime
import logging
import threading
from dataclasses import dataclass, field

from src.clock import LocationClock
from src.events import (
    EventKind,
    Prayer,
    countdown_to,
    derive_events,
    resolve_next,
)
from src.formatting import (
    UNKNOWN_COUNTDOWN,
    format_countdown,
    format_date_line,
    localize_digits,
)
from src.location import complete_location, get_location
from src.notifier import notify_event
from src.prayer_api import fetch_daily_timings
from src.scheduler import RefreshScheduler
from src.settings import DEFAULT_SETTINGS

logger = logging.getLogger(__name__)

STATUS_LOADING = "loading"
STATUS_READY = "ready"
STATUS_UNAVAILABLE = "unavailable"


@dataclass
class RenderState:
    """Everything the window needs to draw one tick."""

    status: str = STATUS_LOADING
    location_name: str = ""
    date_line: str = ""
    clock: str = ""
    next_prayer: Prayer | None = None
    next_kind: EventKind | None = None
    countdown: str = UNKNOWN_COUNTDOWN
    adhan_times: dict = field(default_factory=dict)
    iqama_times: dict = field(default_factory=dict)
    error: str = ""


def run_in_thread(func) -> None:
    t = threading.Thread(target=func, daemon=True)
    t.start()


class PrayerSession:
    """
    Glue between the providers, the time engine and the window.

    `host` is the Tk root (or anything with after/after_cancel), `render` is
    called with a RenderState on every tick and whenever the display state is
    cleared. Providers and the clock are injectable for tests.
    """

    def __init__(
        self,
        host,
        render,
        settings: dict | None = None,
        clock_factory=LocationClock,
        location_provider=get_location,
        location_resolver=complete_location,
        timings_provider=fetch_daily_timings,
        run_background=run_in_thread,
        notify=notify_event,
    ):
        self.host = host
        self.render = render
        self.settings = dict(DEFAULT_SETTINGS)
        self.settings.update(settings or {})
        self.clock_factory = clock_factory
        self.location_provider = location_provider
        self.location_resolver = location_resolver
        self.timings_provider = timings_provider
        self.run_background = run_background
        self.notify = notify
        self.on_notification = None  # callback(title, message)

        self.location = None
        self.timings = None
        self.selected_date = None  # None follows today at the location
        self.clock = clock_factory(None)
        self.state = RenderState()
        self.scheduler = RefreshScheduler(host, self._tick)
        self._generation = 0
        self._last_next = None

    # ──────────────────────────────────────────────────────────────────────
    # Changes
    # ──────────────────────────────────────────────────────────────────────
    def start(self) -> None:
        """Detect the location (saved or by IP) and begin ticking."""
        self.on_location_or_date_change(detect=True)

    def stop(self) -> None:
        self.scheduler.stop()
        self._generation += 1  # drop any fetch still in flight

    def set_location(self, location) -> None:
        self.on_location_or_date_change(location=location)

    def refresh_location(self) -> None:
        self.on_location_or_date_change(detect=True)

    def set_date(self, date: datetime.date | None) -> None:
        if date is not None and date == self.clock.now().date():
            date = None  # back on today: follow it across midnight again
        self.selected_date = date
        self.on_location_or_date_change()

    def shift_date(self, days: int) -> None:
        current = self.selected_date or self.clock.now().date()
        self.set_date(current + datetime.timedelta(days=days))

    def set_method(self, method: int) -> None:
        self.settings["method"] = method
        self.on_location_or_date_change()

    def set_language(self, language: str) -> None:
        # presentation only, picked up by the next tick
        self.settings["language"] = language

    def on_location_or_date_change(self, location=None, detect: bool = False) -> None:
        """
        Cancel the running tick, clear the display and refetch timings.

        The tick restarts only when timings for this exact change arrive;
        results from an earlier change are discarded.
        """
        self.scheduler.stop()
        self._generation += 1
        generation = self._generation

        if location is not None:
            self.location = location
            self.clock = self.clock_factory(location.timezone_id)
        self.timings = None
        self._last_next = None
        self._publish(RenderState(
            status=STATUS_LOADING,
            location_name=self.location.name if self.location else "",
        ))

        if self.location is None and not detect:
            logger.debug("No location yet, nothing to fetch")
            return

        current = self.location
        selected = self.selected_date
        method = self.settings["method"]

        def work():
            try:
                loc = self.location_provider() if detect else current
                loc = self.location_resolver(loc)
                day = selected or self.clock_factory(loc.timezone_id).now().date()
                timings = self.timings_provider(day, loc.latitude, loc.longitude, method)
            except Exception as exc:
                logger.exception("Could not load prayer times")
                self.host.after(0, self._on_fetch_failed, generation, str(exc))
                return
            self.host.after(0, self._on_fetch_done, generation, loc, timings)

        self.run_background(work)

    def _on_fetch_done(self, generation: int, location, timings) -> None:
        if generation != self._generation:
            logger.debug("Dropping timings from a superseded change")
            return
        self.location = location
        self.clock = self.clock_factory(location.timezone_id)
        self.timings = timings
        logger.info(
            "Loaded prayer times for %s on %s (tz=%s)",
            location.name, timings.date, location.timezone_id or "local",
        )
        self.scheduler.start()

    def _on_fetch_failed(self, generation: int, message: str) -> None:
        if generation != self._generation:
            return
        self._publish(RenderState(
            status=STATUS_UNAVAILABLE,
            location_name=self.location.name if self.location else "",
            error=message,
        ))

    # ──────────────────────────────────────────────────────────────────────
    # Tick
    # ──────────────────────────────────────────────────────────────────────
    def _tick(self) -> None:
        now = self.clock.now()
        if self.selected_date is None and now.date() != self.timings.date:
            logger.info("Date changed to %s, reloading prayer times", now.date())
            self.on_location_or_date_change()
            return

        events = derive_events(self.timings, now)
        next_event = resolve_next(events, now)
        self._announce_passed(next_event, now)

        language = self.settings["language"]
        state = RenderState(
            status=STATUS_READY if next_event else STATUS_UNAVAILABLE,
            location_name=self.location.name,
            date_line=localize_digits(format_date_line(self.timings.date, self.timings.hijri), language),
            clock=localize_digits(now.strftime("%H:%M:%S"), language),
        )
        for event in events:
            if event.tomorrow:
                continue
            if event.kind is EventKind.ADHAN:
                state.adhan_times[event.prayer] = event.instant
            else:
                state.iqama_times[event.prayer] = event.instant
        if next_event is not None:
            state.next_prayer = next_event.prayer
            state.next_kind = next_event.kind
            state.countdown = localize_digits(format_countdown(next_event.instant - now), language)
        else:
            state.error = "No prayer times available"
        self._publish(state)

    def _announce_passed(self, next_event, now: datetime.datetime) -> None:
        previous, self._last_next = self._last_next, next_event
        if previous is None or previous == next_event or previous.instant > now:
            return
        late = now - previous.instant
        if late > datetime.timedelta(milliseconds=2 * self.scheduler.interval_ms):
            logger.info("Skipping notification for %s %s, passed %s ago",
                        previous.prayer.display_name, previous.kind.value, late)
            return
        if self.settings["notifications"]:
            self.notify(previous, callback=self.on_notification)

    def _publish(self, state: RenderState) -> None:
        self.state = state
        self.render(state)

    # ──────────────────────────────────────────────────────────────────────
    # Hover queries
    # ──────────────────────────────────────────────────────────────────────
    def countdown_for(self, prayer: Prayer, kind: EventKind) -> str:
        """Countdown to one specific prayer's Adhan or Iqama, rolling to tomorrow once passed."""
        if self.timings is None:
            return UNKNOWN_COUNTDOWN
        now = self.clock.now()
        remaining = countdown_to(prayer, kind, derive_events(self.timings, now), now)
        if remaining is None:
            return UNKNOWN_COUNTDOWN
        return localize_digits(format_countdown(remaining), self.settings["language"])
