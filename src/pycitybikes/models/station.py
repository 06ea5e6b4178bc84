"""Station metadata and status record models."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from pycitybikes.ingestion.normalize import safe_float, safe_int, safe_str
from pycitybikes.models._base import CityBikesBaseModel


class Location(BaseModel):
    """A WGS84 point."""

    model_config = ConfigDict(frozen=True)

    longitude: float
    latitude: float


class StationMetadata(CityBikesBaseModel):
    """Static identity of one station.

    Loaded once from the station information feed and never changed for
    the lifetime of the process.

    Parameters
    ----------
    station_id : str
        Unique station id, shared with the status feed.
    name : str
        Display name.
    address : str
        Street address, empty when the feed has none.
    longitude : float
        Longitude in degrees (WGS84).
    latitude : float
        Latitude in degrees (WGS84).
    """

    station_id: str = Field(validation_alias=AliasChoices("station_id", "id", "stationId"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "station_name", "stationName"))
    address: str = Field(default="", validation_alias=AliasChoices("address"))
    longitude: float = Field(validation_alias=AliasChoices("longitude", "lon", "lng"))
    latitude: float = Field(validation_alias=AliasChoices("latitude", "lat"))

    @field_validator("station_id", mode="before")
    @classmethod
    def _coerce_station_id(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("longitude", "latitude", mode="before")
    @classmethod
    def _coerce_coordinates(cls, value: Any) -> float | None:
        return safe_float(value)

    @property
    def location(self) -> Location:
        return Location(longitude=self.longitude, latitude=self.latitude)


class StationStatus(CityBikesBaseModel):
    """One fetched status record.

    Created per fetch and consumed immediately by the diff pass.
    """

    station_id: str = Field(validation_alias=AliasChoices("station_id", "id", "stationId"))
    bikes_available: int = Field(
        ge=0,
        validation_alias=AliasChoices("bikes_available", "num_bikes_available", "bikesAvailable", "available"),
    )
    empty_slots: int = Field(
        ge=0,
        validation_alias=AliasChoices("empty_slots", "num_docks_available", "emptySlots", "empty"),
    )

    @field_validator("station_id", mode="before")
    @classmethod
    def _coerce_station_id(cls, value: Any) -> str | None:
        return safe_str(value)

    @field_validator("bikes_available", "empty_slots", mode="before")
    @classmethod
    def _coerce_counts(cls, value: Any) -> int | None:
        return safe_int(value)
