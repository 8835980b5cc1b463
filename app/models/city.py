"""City models for geocoding results."""

from typing import Optional

from pydantic import BaseModel, ConfigDict

from app.models.coordinate import Coordinate


class CityReference(BaseModel):
    """Last resolved city and its center point."""

    model_config = ConfigDict(frozen=True)

    city_name: str
    center: Coordinate


class GeocodedAddress(BaseModel):
    """Reverse geocoding result; both fields are absent when the lookup fails."""

    address_line: Optional[str] = None
    city_name: Optional[str] = None
