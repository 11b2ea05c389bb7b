"""Text formatting for countdowns, digits and the date header."""

import datetime

UNKNOWN_COUNTDOWN = "--:--:--"

_ARABIC_INDIC_DIGITS = str.maketrans("0123456789", "٠١٢٣٤٥٦٧٨٩")


def format_countdown(duration: datetime.timedelta) -> str:
    """Format a duration as HH:MM:SS; zero or negative durations give 00:00:00."""
    total_ms = duration // datetime.timedelta(milliseconds=1)
    if total_ms <= 0:
        return "00:00:00"
    hours = total_ms // 3_600_000
    minutes = (total_ms % 3_600_000) // 60_000
    seconds = (total_ms % 60_000) // 1000
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def localize_digits(text: str, language: str = "en") -> str:
    """Swap ASCII digits for Arabic-Indic ones when language is 'ar'."""
    if language == "ar":
        return text.translate(_ARABIC_INDIC_DIGITS)
    return text


def ordinal_suffix(day: int) -> str:
    if day % 10 == 1 and day % 100 != 11:
        return "st"
    if day % 10 == 2 and day % 100 != 12:
        return "nd"
    if day % 10 == 3 and day % 100 != 13:
        return "rd"
    return "th"


def format_date_line(date: datetime.date, hijri: dict | None = None) -> str:
    """
    Render '1st March 2025 — 1st Ramadan 1446'.

    The Hijri half is omitted when hijri is empty or its day is not a number.
    """
    gregorian = f"{date.day}{ordinal_suffix(date.day)} {date.strftime('%B %Y')}"
    if not hijri:
        return gregorian
    try:
        hijri_day = int(hijri["day"])
        month, year = hijri["month_name"], hijri["year"]
    except (KeyError, TypeError, ValueError):
        return gregorian
    return f"{gregorian} — {hijri_day}{ordinal_suffix(hijri_day)} {month} {year}"
