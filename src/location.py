"""Location detection: IP geolocation, place search, timezone lookup and manual config."""

import dataclasses
import json
import logging
import os
from dataclasses import dataclass

import pytz
import requests
from timezonefinder import TimezoneFinder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    timezone_id: str | None = None
    name: str = ""


DEFAULT_LOCATION = Location(
    latitude=21.4225,
    longitude=39.8262,
    timezone_id="Asia/Riyadh",
    name="Makkah, Makkah Province, Saudi Arabia",
)

IPAPI_URL = "http://ip-api.com/json/"
NOMINATIM_URL = "https://nominatim.openstreetmap.org"
USER_AGENT = "prayertime-widget/1.0"

CONFIG_DIR = os.path.join(os.path.expanduser("~"), ".prayertime")
CONFIG_FILE = os.path.join(CONFIG_DIR, "location.json")

_tz_finder = None


def get_ip_location(timeout: int = 5) -> Location:
    """
    Detect current location via IP geolocation.

    Falls back to DEFAULT_LOCATION on failure.
    """
    try:
        resp = requests.get(
            IPAPI_URL,
            params={"fields": "city,regionName,country,lat,lon,timezone,status,message"},
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("IP geolocation failed: %s", exc)
        return DEFAULT_LOCATION
    if data.get("status") != "success":
        logger.warning("IP geolocation refused: %s", data.get("message", "unknown error"))
        return DEFAULT_LOCATION
    parts = [data.get("city"), data.get("regionName"), data.get("country")]
    try:
        return Location(
            latitude=float(data["lat"]),
            longitude=float(data["lon"]),
            timezone_id=data.get("timezone") or None,
            name=", ".join(p for p in parts if p),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("IP geolocation returned no coordinates")
        return DEFAULT_LOCATION


def search_locations(query: str, limit: int = 5, timeout: int = 10) -> list:
    """
    Search places by free text through Nominatim.

    Results carry no timezone; see ensure_timezone(). Raises
    requests.RequestException on network failure.
    """
    query = query.strip()
    if not query:
        return []
    resp = requests.get(
        f"{NOMINATIM_URL}/search",
        params={"format": "json", "q": query, "limit": limit},
        headers={"User-Agent": USER_AGENT},
        timeout=timeout,
    )
    resp.raise_for_status()
    results = []
    for item in resp.json():
        try:
            results.append(Location(
                latitude=float(item["lat"]),
                longitude=float(item["lon"]),
                name=item.get("display_name", ""),
            ))
        except (KeyError, TypeError, ValueError):
            logger.debug("Skipping malformed search result %r", item)
    return results


def reverse_geocode_name(lat: float, lon: float, timeout: int = 10) -> str:
    """Return 'City, State, Country' for coordinates, or 'Unknown Location'."""
    try:
        resp = requests.get(
            f"{NOMINATIM_URL}/reverse",
            params={"format": "json", "lat": lat, "lon": lon},
            headers={"User-Agent": USER_AGENT},
            timeout=timeout,
        )
        resp.raise_for_status()
        address = resp.json().get("address", {})
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Reverse geocoding failed: %s", exc)
        return "Unknown Location"
    city = address.get("city") or address.get("town") or address.get("village") or ""
    parts = [city, address.get("state", ""), address.get("country", "")]
    return ", ".join(p for p in parts if p) or "Unknown Location"


def resolve_timezone(lat: float, lon: float) -> str | None:
    """Return the IANA timezone id at the coordinates, or None if unknown."""
    global _tz_finder
    try:
        if _tz_finder is None:
            _tz_finder = TimezoneFinder()
        return _tz_finder.timezone_at(lat=lat, lng=lon)
    except (ValueError, OSError) as exc:
        logger.warning("Timezone lookup failed for %s,%s: %s", lat, lon, exc)
        return None


def ensure_timezone(location: Location) -> Location:
    """
    Return the location with a valid timezone filled in where it can be resolved.

    An id pytz does not know is replaced by the one found at the coordinates.
    """
    if location.timezone_id in pytz.all_timezones_set:
        return location
    if location.timezone_id:
        logger.warning("Unknown timezone %r for %s, looking it up", location.timezone_id, location.name)
    tz_id = resolve_timezone(location.latitude, location.longitude)
    if tz_id is None:
        return dataclasses.replace(location, timezone_id=None)
    return dataclasses.replace(location, timezone_id=tz_id)


def complete_location(location: Location) -> Location:
    """Fill in a missing timezone and display name."""
    location = ensure_timezone(location)
    if not location.name:
        name = reverse_geocode_name(location.latitude, location.longitude)
        location = dataclasses.replace(location, name=name)
    return location


def get_location() -> Location:
    """The saved manual location if there is one, otherwise IP geolocation."""
    manual = load_manual_location()
    if manual is not None:
        return manual
    return get_ip_location()


def save_manual_location(location: Location) -> None:
    """Save a manually-set location to the config file."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_FILE, "w", encoding="utf-8") as f:
        json.dump(dataclasses.asdict(location), f, indent=2)


def load_manual_location() -> Location | None:
    """Load a previously saved manual location, or return None."""
    if not os.path.isfile(CONFIG_FILE):
        return None
    try:
        with open(CONFIG_FILE, "r", encoding="utf-8") as f:
            data = json.load(f)
        return Location(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            timezone_id=data.get("timezone_id") or None,
            name=data.get("name", ""),
        )
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Ignoring invalid manual location %s: %s", CONFIG_FILE, exc)
        return None


def clear_manual_location() -> None:
    """Remove the saved manual location config."""
    if os.path.isfile(CONFIG_FILE):
        os.remove(CONFIG_FILE)
