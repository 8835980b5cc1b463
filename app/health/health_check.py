"""Health checks for Redis and the external geocoding API."""

import httpx

from app.geocoding_service.geocoding import CITY_SEARCH_URL
from app.logging_config import logger
from app.models.health import ServiceStatus
from app.redis_cache.cache import redis_client


def is_redis_available() -> ServiceStatus:
    """Check Redis connectivity.

    Returns:
        ServiceStatus.available when Redis responds, else not_available.
    """
    try:
        redis_client.ping()
        logger.info("REDIS_CONNECTED")
        return ServiceStatus.available
    except Exception as exc:
        logger.error("REDIS_UNAVAILABLE", error=str(exc))
        return ServiceStatus.not_available


async def is_geocoding_api_available() -> bool:
    """Check the city search API for availability.

    Returns:
        True if the API responds with a results list.
    """
    try:
        async with httpx.AsyncClient(timeout=5) as client:
            response = await client.get(
                CITY_SEARCH_URL, params={"name": "London", "count": 1}
            )
            return response.status_code == 200 and "results" in response.json()
    except Exception:
        return False
