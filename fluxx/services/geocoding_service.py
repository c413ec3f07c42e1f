"""Reverse geocoding via a Nominatim-compatible endpoint.

GET {GEOCODER_URL}/reverse?format=json&lat=..&lon=.. and use display_name.
Failures are logged and reported as None; callers fall back to the raw
coordinate string.
"""

import logging

import requests
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)

DEFAULT_GEOCODER_URL = "https://nominatim.openstreetmap.org"
DEFAULT_USER_AGENT = "fluxx-sales/1.0"


def _get_geocoder_config():
    if has_app_context():
        return (
            current_app.config.get("GEOCODER_URL") or DEFAULT_GEOCODER_URL,
            current_app.config.get("GEOCODER_USER_AGENT") or DEFAULT_USER_AGENT,
        )
    return DEFAULT_GEOCODER_URL, DEFAULT_USER_AGENT


def format_coordinates(lat, lng):
    """The "lat, lng" fallback shown when no address is available."""
    return f"{lat}, {lng}"


def reverse_geocode(lat, lng):
    """Return a human-readable address for (lat, lng), or None."""
    base_url, user_agent = _get_geocoder_config()
    url = f"{base_url.rstrip('/')}/reverse"
    params = {"format": "json", "lat": lat, "lon": lng}
    # Nominatim's usage policy requires an identifying User-Agent.
    headers = {"User-Agent": user_agent}

    try:
        resp = requests.get(url, params=params, headers=headers, timeout=10)
        resp.raise_for_status()
        data = resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Reverse geocoding failed for {lat}, {lng}: {e}")
        return None

    if not isinstance(data, dict):
        return None
    return data.get("display_name") or None
