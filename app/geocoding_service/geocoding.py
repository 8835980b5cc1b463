"""Reverse and forward geocoding against public HTTP APIs."""

import os
from typing import Optional

import httpx

from app.errors import GeocodeUnavailable
from app.logging_config import logger
from app.models.city import GeocodedAddress
from app.models.coordinate import Coordinate

GEOCODING_TIMEOUT_S = float(os.getenv("GEOCODING_TIMEOUT_S", "5"))
NOMINATIM_URL = os.getenv(
    "NOMINATIM_URL", "https://nominatim.openstreetmap.org/reverse"
)
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "where-am-i/0.1")
CITY_SEARCH_URL = os.getenv(
    "CITY_SEARCH_URL", "https://geocoding-api.open-meteo.com/v1/search"
)

# Nominatim reports the locality under different keys depending on its size.
LOCALITY_KEYS = ("city", "town", "village", "municipality")


def _request(
    *,
    url: str,
    params: dict,
    event_prefix: str,
    log_context: dict,
    error_message: str,
    headers: Optional[dict] = None,
) -> httpx.Response:
    """Execute a single HTTP GET with consistent logging.

    Each user request is one best-effort attempt, so there is no retry.

    Args:
        url: The URL to call.
        params: Query parameters to include in the request.
        event_prefix: Log event prefix for consistent names.
        log_context: Extra log fields for all events.
        error_message: Error message to wrap in GeocodeUnavailable.
        headers: Optional request headers.

    Returns:
        The successful HTTP response.

    Raises:
        GeocodeUnavailable: When the request fails or returns a bad status.
    """
    try:
        response = httpx.get(
            url, params=params, headers=headers, timeout=GEOCODING_TIMEOUT_S
        )
        logger.info(
            f"{event_prefix}_RESPONSE", **log_context, status=response.status_code
        )
        response.raise_for_status()
        return response
    except httpx.HTTPStatusError as exc:
        logger.error(
            f"{event_prefix}_BAD_STATUS",
            **log_context,
            status=exc.response.status_code,
        )
        raise GeocodeUnavailable(error_message) from exc
    except httpx.RequestError as exc:
        logger.error(f"{event_prefix}_REQUEST_FAILED", **log_context, error=str(exc))
        raise GeocodeUnavailable(error_message) from exc


def reverse_geocode(fix: Coordinate) -> GeocodedAddress:
    """Resolve a fix to an address line and city name.

    Fails closed: any transport, status or payload error yields an empty
    GeocodedAddress.

    Args:
        fix: Coordinate reported by the location provider.

    Returns:
        GeocodedAddress with whatever fields could be resolved.
    """
    log_context = {"latitude": fix.latitude, "longitude": fix.longitude}
    try:
        response = _request(
            url=NOMINATIM_URL,
            params={
                "lat": fix.latitude,
                "lon": fix.longitude,
                "format": "jsonv2",
                "addressdetails": 1,
                "zoom": 18,
            },
            headers={"User-Agent": NOMINATIM_USER_AGENT},
            event_prefix="REVERSE_GEOCODE",
            log_context=log_context,
            error_message="Reverse geocoding failed",
        )
        data = response.json()
        if not isinstance(data, dict) or "error" in data:
            logger.info("REVERSE_GEOCODE_NO_RESULT", **log_context)
            return GeocodedAddress()
        address = data.get("address") or {}
        city_name = next(
            (address[key] for key in LOCALITY_KEYS if address.get(key)), None
        )
        return GeocodedAddress(
            address_line=data.get("display_name") or None, city_name=city_name
        )
    except GeocodeUnavailable:
        return GeocodedAddress()
    except (ValueError, TypeError, AttributeError) as exc:
        logger.error("REVERSE_GEOCODE_BAD_PAYLOAD", **log_context, error=str(exc))
        return GeocodedAddress()


def lookup_city_center(city_name: str) -> Optional[Coordinate]:
    """Fetch the representative coordinate of a city.

    Args:
        city_name: City name to look up; the first match wins.

    Returns:
        The city center, or None when no city matches.

    Raises:
        GeocodeUnavailable: If the API call fails or the payload is invalid.
    """
    response = _request(
        url=CITY_SEARCH_URL,
        params={"name": city_name, "count": 1},
        event_prefix="CITY_CENTER_LOOKUP",
        log_context={"city": city_name},
        error_message="City lookup failed",
    )

    try:
        results = response.json().get("results") or []
        if not results:
            logger.info("CITY_CENTER_NOT_FOUND", city=city_name)
            return None
        data = results[0]
        return Coordinate(latitude=data["latitude"], longitude=data["longitude"])
    except (TypeError, KeyError, ValueError, AttributeError) as exc:
        logger.error("CITY_CENTER_BAD_PAYLOAD", city=city_name, error=str(exc))
        raise GeocodeUnavailable("City lookup failed") from exc
