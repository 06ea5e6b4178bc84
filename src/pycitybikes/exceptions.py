"""Custom exception hierarchy for pycitybikes."""

from __future__ import annotations


class CityBikesError(Exception):
    """Base exception for all pycitybikes errors."""


class CityBikesConfigError(CityBikesError):
    """Invalid or missing configuration."""


class CityBikesFetchError(CityBikesError):
    """Feed could not be retrieved (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class CityBikesParseError(CityBikesError):
    """Feed payload was retrieved but is not in the expected shape."""

    def __init__(self, message: str, *, url: str = "") -> None:
        self.url = url
        super().__init__(message)


class CityBikesStateError(CityBikesError):
    """Lifecycle method called in the wrong state (e.g. connect twice)."""
