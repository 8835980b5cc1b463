"""Location provider interface and single-fix consumption."""

import asyncio
import os
from enum import Enum
from typing import AsyncIterator, Optional, Protocol

from app.errors import FixUnavailable, PermissionDenied
from app.logging_config import logger
from app.models.coordinate import Coordinate

LOCATION_FIX_TIMEOUT_S = float(os.getenv("LOCATION_FIX_TIMEOUT_S", "30"))
LOCATION_INTERVAL_HINT_S = 10.0


class Accuracy(str, Enum):
    """Requested fix accuracy."""

    high = "high"
    balanced = "balanced"
    low_power = "low_power"


class LocationProvider(Protocol):
    def request_fix(
        self, accuracy: Accuracy, interval_hint_s: float
    ) -> AsyncIterator[Coordinate]:
        """Stream fixes until the returned iterator is closed."""
        ...


class StaticLocationProvider:
    """Provider that replays a fix already reported by the device."""

    def __init__(self, fix: Optional[Coordinate]):
        self.fix = fix
        self.closed = False

    async def request_fix(
        self, accuracy: Accuracy, interval_hint_s: float
    ) -> AsyncIterator[Coordinate]:
        try:
            while self.fix is not None:
                yield self.fix
                await asyncio.sleep(interval_hint_s)
        finally:
            self.closed = True


class NoFixLocationProvider:
    """Provider whose subscription never delivers a fix."""

    async def request_fix(
        self, accuracy: Accuracy, interval_hint_s: float
    ) -> AsyncIterator[Coordinate]:
        await asyncio.Event().wait()
        yield


def ensure_permission(granted: bool):
    """Raise PermissionDenied unless fine location access was granted."""
    if not granted:
        raise PermissionDenied("Location permission not granted")


async def _take_first(stream: AsyncIterator[Coordinate]) -> Coordinate:
    try:
        async for fix in stream:
            return fix
    finally:
        # Stop updates as soon as one fix arrives to save battery.
        await stream.aclose()
    raise FixUnavailable("Location provider ended without a fix")


async def first_fix(
    provider: LocationProvider,
    timeout_s: float = LOCATION_FIX_TIMEOUT_S,
    accuracy: Accuracy = Accuracy.high,
) -> Coordinate:
    """Wait for one fix, then cancel the subscription.

    Args:
        provider: Source of location fixes.
        timeout_s: Seconds to wait before giving up.
        accuracy: Accuracy requested from the provider.

    Returns:
        The first delivered Coordinate.

    Raises:
        FixUnavailable: If no fix arrives before the timeout or the stream ends.
    """
    stream = provider.request_fix(accuracy, LOCATION_INTERVAL_HINT_S)
    try:
        return await asyncio.wait_for(_take_first(stream), timeout=timeout_s)
    except asyncio.TimeoutError as exc:
        logger.error("LOCATION_FIX_TIMEOUT", timeout_s=timeout_s)
        raise FixUnavailable(f"No fix after {timeout_s:g}s") from exc
