"""Fetch daily Adhan times and Hijri date from the Aladhan API."""

import datetime
import logging

import requests

from src.events import DailyTimings, Prayer

logger = logging.getLogger(__name__)

ALADHAN_BASE = "https://api.aladhan.com/v1"

# Aladhan calculation method ids
CALCULATION_METHODS = {
    0: "Shia Ithna-Ashari",
    1: "University of Islamic Sciences, Karachi",
    2: "Islamic Society of North America",
    3: "Muslim World League",
    4: "Umm al-Qura University, Makkah",
    5: "Egyptian General Authority of Survey",
    7: "Institute of Geophysics, University of Tehran",
    8: "Gulf Region",
    9: "Kuwait",
    10: "Qatar",
    11: "Majlis Ugama Islam Singapura, Singapore",
    12: "Union Organization Islamic de France",
    13: "Diyanet İşleri Başkanlığı, Turkey",
}
DEFAULT_METHOD = 4


class PrayerApiError(ValueError):
    """The Aladhan API answered but reported an error."""


def fetch_daily_timings(
    date: datetime.date,
    lat: float,
    lon: float,
    method: int = DEFAULT_METHOD,
    timeout: int = 10,
) -> DailyTimings:
    """
    Fetch the five Adhan times and Hijri date for given coordinates and date.

    Times are kept as the raw 'HH:MM' strings the API returns; a prayer
    missing from the response is simply absent from the mapping.
    Raises requests.RequestException or PrayerApiError on failure.
    """
    url = f"{ALADHAN_BASE}/timings/{date.strftime('%d-%m-%Y')}"
    params = {
        "latitude": lat,
        "longitude": lon,
        "method": method,
    }
    resp = requests.get(url, params=params, timeout=timeout)
    resp.raise_for_status()
    body = resp.json()
    if body.get("code") != 200:
        raise PrayerApiError(f"Aladhan API error: {body.get('status')}")

    data = body["data"]
    raw_timings = data.get("timings", {})
    adhan = {}
    for prayer in Prayer:
        raw = raw_timings.get(prayer.value)
        if raw is None:
            logger.warning("No %s time in Aladhan response for %s", prayer.value, date)
            continue
        adhan[prayer] = raw

    return DailyTimings(date=date, adhan=adhan, hijri=_parse_hijri(data))


def _parse_hijri(data: dict) -> dict:
    try:
        hijri_data = data["date"]["hijri"]
        int(hijri_data["day"])
        return {
            "day": hijri_data["day"],
            "month_name": hijri_data["month"]["en"],
            "month_ar": hijri_data["month"]["ar"],
            "year": hijri_data["year"],
        }
    except (KeyError, TypeError, ValueError):
        logger.warning("Aladhan response has no usable Hijri date")
        return {}
