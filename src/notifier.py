"""Desktop notifications when an Adhan or Iqama time arrives."""

import logging

from plyer import notification as plyer_notification

from src.events import EventInstant, EventKind

logger = logging.getLogger(__name__)

APP_NAME = "Prayer Time"
APP_ICON = ""  # Path to icon file; empty = default


def _send_plyer(title: str, message: str, timeout: int = 10) -> None:
    """Send a desktop notification via plyer (cross-platform)."""
    kwargs = dict(
        app_name=APP_NAME,
        title=title,
        message=message,
        timeout=timeout,
    )
    if APP_ICON:
        kwargs["app_icon"] = APP_ICON
    try:
        plyer_notification.notify(**kwargs)
    except Exception as exc:  # plyer raises backend-specific errors
        logger.warning("Desktop notification failed: %s", exc)


def event_message(event: EventInstant) -> tuple:
    """Return (title, message) announcing the event."""
    name = event.prayer.display_name
    if event.kind is EventKind.IQAMA:
        return (
            f"🕌 {name} — Iqama",
            f"The congregation for {name} is starting now.",
        )
    return (
        f"🕌 {name} — Time to Pray!",
        f"It is now time for {name} prayer. Allahu Akbar!",
    )


def notify_event(event: EventInstant, callback=None) -> None:
    """
    Announce an Adhan or Iqama that has just arrived.

    Optionally calls callback(title, message) so the window can show a banner.
    """
    title, message = event_message(event)
    logger.info("%s", title)
    _send_plyer(title, message, timeout=30 if event.kind is EventKind.ADHAN else 15)
    if callback:
        callback(title, message)
