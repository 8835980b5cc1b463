"""Report and display state models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.coordinate import Coordinate

LOCATION_PREFIX = "You are at: "
LOCATION_UNAVAILABLE_TEXT = f"{LOCATION_PREFIX}(location unavailable)"
PERMISSION_DENIED_TEXT = f"{LOCATION_PREFIX}(permission denied)"
LOCATING_TEXT = f"{LOCATION_PREFIX}(locating...)"


class CardinalLabel(str, Enum):
    """Eight-point compass labels."""

    north = "North"
    northeast = "Northeast"
    east = "East"
    southeast = "Southeast"
    south = "South"
    southwest = "Southwest"
    west = "West"
    northwest = "Northwest"


class RequestPhase(str, Enum):
    """Lifecycle of a single "where am I" request."""

    idle = "idle"
    permission_check = "permission_check"
    awaiting_fix = "awaiting_fix"
    building_report = "building_report"
    report_ready = "report_ready"


class LocationReport(BaseModel):
    """Result of one "where am I" request."""

    model_config = ConfigDict(frozen=True)

    address_line: Optional[str] = None
    cardinal_label: CardinalLabel
    city_name: str
    fix: Coordinate
    reference: Coordinate
    bearing_deg: float


class DisplayState(BaseModel):
    """Snapshot rendered by the display surface."""

    model_config = ConfigDict(frozen=True)

    phase: RequestPhase = RequestPhase.idle
    location_text: str = LOCATION_UNAVAILABLE_TEXT
    direction_text: str = ""
    report: Optional[LocationReport] = None


class WhereAmIRequest(BaseModel):
    """Request body for a full "where am I" cycle."""

    permission_granted: bool = True
    fix: Optional[Coordinate] = None
