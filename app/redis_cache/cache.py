"""Redis-backed single-slot cache for the last resolved city center."""

import os
import threading
from functools import partial
from typing import Callable, Optional

from prometheus_client import Counter
from pydantic import ValidationError
from redis import Redis
from redis.exceptions import RedisError

from app.errors import CacheUnavailable
from app.logging_config import logger
from app.models.city import CityReference
from app.models.coordinate import Coordinate

redis_client = Redis(
    host=os.getenv("REDIS_HOST", "redis"),
    port=int(os.getenv("REDIS_PORT", "6379")),
    db=int(os.getenv("REDIS_DB", "0")),
    decode_responses=True,
)
# Held across the read-modify-write in resolve(), for all instances.
resolve_lock = threading.Lock()
CITY_REFERENCE_KEY = os.getenv("CITY_REFERENCE_KEY", "city_reference:last")
DEFAULT_CITY_NAME = os.getenv("DEFAULT_CITY_NAME", "Huejutla de Reyes")
DEFAULT_CITY_CENTER = Coordinate(
    latitude=float(os.getenv("DEFAULT_CITY_LATITUDE", "21.1403")),
    longitude=float(os.getenv("DEFAULT_CITY_LONGITUDE", "-98.4194")),
)

CITY_REFERENCE_LOOKUPS = Counter(
    "city_reference_lookups_total", "City center resolutions by outcome", ["result"]
)

CityCenterLookup = Callable[[str], Optional[Coordinate]]


class CityReferenceCache:
    """Remembers the last resolved city so repeat requests skip forward geocoding.

    Only one city is kept. The name and both coordinate components live in a
    single Redis hash and are written with one HSET, so readers never observe
    a half-written reference.
    """

    def __init__(
        self,
        client,
        key: str = CITY_REFERENCE_KEY,
        fallback: Coordinate = DEFAULT_CITY_CENTER,
    ):
        self.redis_client: Redis = client
        self.key = key
        self.fallback = fallback

    def _read(self) -> Optional[CityReference]:
        try:
            fields = self.redis_client.hgetall(self.key)
        except RedisError as exc:
            raise CacheUnavailable("City reference read failed") from exc
        if not fields:
            return None
        try:
            return CityReference(
                city_name=fields["city_name"],
                center=Coordinate(
                    latitude=float(fields["latitude"]),
                    longitude=float(fields["longitude"]),
                ),
            )
        except (KeyError, ValueError, ValidationError) as exc:
            logger.error("CITY_REFERENCE_CORRUPT", key=self.key, error=str(exc))
            return None

    def _write(self, reference: CityReference):
        try:
            self.redis_client.hset(
                self.key,
                mapping={
                    "city_name": reference.city_name,
                    "latitude": repr(reference.center.latitude),
                    "longitude": repr(reference.center.longitude),
                },
            )
        except RedisError as exc:
            raise CacheUnavailable("City reference write failed") from exc

    def get_reference(self) -> Optional[CityReference]:
        """Get the persisted city reference.

        Returns:
            CityReference if present and readable, otherwise None.
        """
        try:
            return self._read()
        except CacheUnavailable as exc:
            logger.error("REDIS_GET_CITY_REFERENCE_FAILED", error=str(exc.__cause__))
            return None

    def save_reference(self, reference: CityReference):
        """Overwrite the persisted city reference.

        Args:
            reference: City name and center to persist.
        """
        try:
            self._write(reference)
        except CacheUnavailable as exc:
            logger.error(
                "REDIS_SAVE_CITY_REFERENCE_FAILED",
                city=reference.city_name,
                error=str(exc.__cause__),
            )

    def resolve(self, city_name: str, lookup_fn: CityCenterLookup) -> Coordinate:
        """Return the center of a city, from cache when possible.

        Args:
            city_name: City name to resolve; compared exactly with the cached name.
            lookup_fn: Forward geocoder returning a Coordinate, or None when the
                city cannot be resolved. Any exception it raises counts as a
                failed lookup.

        Returns:
            The cached or freshly looked up center, or the fallback coordinate
            when the lookup fails. A failed lookup is never persisted.
        """
        with resolve_lock:
            cached = self.get_reference()
            if cached is not None and cached.city_name == city_name:
                logger.info("CITY_REFERENCE_HIT", city=city_name)
                CITY_REFERENCE_LOOKUPS.labels(result="hit").inc()
                return cached.center

            logger.info("CITY_REFERENCE_MISS", city=city_name)
            try:
                center = lookup_fn(city_name)
            except Exception as exc:
                logger.error("CITY_CENTER_LOOKUP_FAILED", city=city_name, error=str(exc))
                center = None

            if center is None:
                logger.info("CITY_REFERENCE_FALLBACK", city=city_name)
                CITY_REFERENCE_LOOKUPS.labels(result="fallback").inc()
                return self.fallback

            CITY_REFERENCE_LOOKUPS.labels(result="miss").inc()
            self.save_reference(CityReference(city_name=city_name, center=center))
            return center


city_reference_cache = partial(CityReferenceCache, client=redis_client)
