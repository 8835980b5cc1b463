"""Exception hierarchy for the location service."""


class LocationServiceError(Exception):
    """Base exception for location service failures."""
    pass


class PermissionDenied(LocationServiceError):
    """Raised when the user has not granted location access."""
    pass


class FixUnavailable(LocationServiceError):
    """Raised when the location provider delivers no fix."""
    pass


class GeocodeUnavailable(LocationServiceError):
    """Raised when a reverse or forward geocoding lookup fails."""
    pass


class CacheUnavailable(LocationServiceError):
    """Raised when the city reference store cannot be read or written."""
    pass
