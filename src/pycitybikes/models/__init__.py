"""Data models for station feeds and observations."""

from pycitybikes.models._base import CityBikesBaseModel
from pycitybikes.models.snapshot import ChangeEvent, DataSourceInfo, StationSnapshot
from pycitybikes.models.station import Location, StationMetadata, StationStatus

__all__ = [
    "ChangeEvent",
    "CityBikesBaseModel",
    "DataSourceInfo",
    "Location",
    "StationMetadata",
    "StationSnapshot",
    "StationStatus",
]
