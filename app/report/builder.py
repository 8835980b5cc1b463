"""Assembles a LocationReport from one location fix."""

from typing import Callable

from app.bearing.bearing import classify, initial_bearing
from app.geocoding_service.geocoding import lookup_city_center
from app.logging_config import logger
from app.models.city import GeocodedAddress
from app.models.coordinate import Coordinate
from app.models.report import LOCATION_PREFIX, LocationReport
from app.redis_cache.cache import (
    DEFAULT_CITY_NAME,
    CityCenterLookup,
    CityReferenceCache,
)

ReverseGeocoder = Callable[[Coordinate], GeocodedAddress]


def build(
    fix: Coordinate,
    reverse_geocode: ReverseGeocoder,
    cache: CityReferenceCache,
    city_center_lookup: CityCenterLookup = lookup_city_center,
    default_city_name: str = DEFAULT_CITY_NAME,
) -> LocationReport:
    """Build the report for a single fix.

    Reverse geocoding runs first because the city it yields decides which
    reference point the cache resolves. Failures degrade to the default city.

    Args:
        fix: Coordinate delivered by the location provider.
        reverse_geocode: Resolves the fix to an address line and city name.
        cache: Single-slot city reference cache.
        city_center_lookup: Forward geocoder used on a cache miss.
        default_city_name: City used when reverse geocoding yields none.

    Returns:
        A LocationReport with address, heading label and city name.
    """
    try:
        geocoded = reverse_geocode(fix)
    except Exception as exc:
        logger.error("REVERSE_GEOCODE_FAILED", error=str(exc))
        geocoded = GeocodedAddress()

    city_name = geocoded.city_name or default_city_name
    reference = cache.resolve(city_name, city_center_lookup)
    bearing = initial_bearing(fix, reference)
    report = LocationReport(
        address_line=geocoded.address_line,
        cardinal_label=classify(bearing),
        city_name=city_name,
        fix=fix,
        reference=reference,
        bearing_deg=bearing,
    )
    logger.info(
        "LOCATION_REPORT_BUILT",
        city=city_name,
        bearing_deg=round(bearing, 2),
        cardinal_label=report.cardinal_label.value,
        has_address=report.address_line is not None,
    )
    return report


def location_text(report: LocationReport) -> str:
    """Show the address line as-is, or prefixed raw coordinates without one."""
    if report.address_line:
        return report.address_line
    return f"{LOCATION_PREFIX}{report.fix.latitude:.4f}, {report.fix.longitude:.4f}"


def direction_text(report: LocationReport) -> str:
    """Format the heading line toward the city center."""
    return f"{report.city_name} center: {report.cardinal_label.value}"


def error_text(message: str) -> str:
    return f"{LOCATION_PREFIX}(error: {message})"
