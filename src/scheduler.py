"""Periodic refresh tick driven by a Tk-style timer host."""

import enum
import logging

logger = logging.getLogger(__name__)

REFRESH_MS = 1000  # re-evaluate every second


class SchedulerState(enum.Enum):
    IDLE = "idle"
    TICKING = "ticking"


class RefreshScheduler:
    """
    Owns a single periodic tick stream.

    `host` is anything with Tk's ``after(ms, func)`` / ``after_cancel(id)``
    pair (normally the Tk root). The first tick runs as soon as the stream
    starts. Only one stream exists at a time: a tick whose stream has been
    stopped never invokes the callback, even if the host still delivers it.
    """

    def __init__(self, host, callback, interval_ms: int = REFRESH_MS):
        self.host = host
        self.callback = callback
        self.interval_ms = interval_ms
        self.state = SchedulerState.IDLE
        self._handle = None
        self._generation = 0

    @property
    def is_ticking(self) -> bool:
        return self.state is SchedulerState.TICKING

    def start(self) -> None:
        if self.state is SchedulerState.TICKING:
            logger.debug("start() ignored, already ticking")
            return
        self.state = SchedulerState.TICKING
        self._generation += 1
        self._run(self._generation)

    def stop(self) -> None:
        if self._handle is not None:
            self.host.after_cancel(self._handle)
            self._handle = None
        if self.state is SchedulerState.TICKING:
            self.state = SchedulerState.IDLE
            self._generation += 1

    def restart(self) -> None:
        self.stop()
        self.start()

    def _run(self, generation: int) -> None:
        if generation != self._generation or self.state is not SchedulerState.TICKING:
            return  # stale tick from a cancelled stream
        self._handle = None
        try:
            self.callback()
        except Exception:
            logger.exception("Refresh tick failed")
        # the callback may have stopped or restarted the stream
        if generation == self._generation and self.state is SchedulerState.TICKING:
            self._handle = self.host.after(self.interval_ms, self._run, generation)
