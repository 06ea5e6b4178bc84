"""Station snapshot and change event models."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pycitybikes._constants import STATION_IMAGE_URL, WGS84_WKID
from pycitybikes.models.station import Location, StationMetadata, StationStatus


class StationSnapshot(BaseModel):
    """Last-known attribute set for a station.

    Joins the static metadata with the latest status. ``inventory_change``
    is the signed difference in available bikes against the previous
    snapshot, ``0`` for a baseline.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    station_id: str
    station_name: str = ""
    address: str = ""
    longitude: float
    latitude: float
    bikes_available: int
    empty_slots: int
    inventory_change: int = 0
    image_url: str = STATION_IMAGE_URL

    @classmethod
    def from_records(cls, metadata: StationMetadata, status: StationStatus) -> StationSnapshot:
        """Build a baseline snapshot (``inventory_change == 0``)."""
        return cls(
            station_id=status.station_id,
            station_name=metadata.name,
            address=metadata.address,
            longitude=metadata.longitude,
            latitude=metadata.latitude,
            bikes_available=status.bikes_available,
            empty_slots=status.empty_slots,
        )

    def with_inventory_change(self, inventory_change: int) -> StationSnapshot:
        return self.model_copy(update={"inventory_change": inventory_change})

    @property
    def location(self) -> Location:
        return Location(longitude=self.longitude, latitude=self.latitude)

    def attributes(self) -> dict[str, Any]:
        """Attribute dict handed to observation sinks."""
        return self.model_dump()


class ChangeEvent(BaseModel):
    """A detected change in available bikes for one station."""

    model_config = ConfigDict(frozen=True)

    snapshot: StationSnapshot
    detected_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def station_id(self) -> str:
        return self.snapshot.station_id

    @property
    def location(self) -> Location:
        return self.snapshot.location

    @property
    def inventory_change(self) -> int:
        return self.snapshot.inventory_change

    def attributes(self) -> dict[str, Any]:
        return self.snapshot.attributes()


class DataSourceInfo(BaseModel):
    """Schema of the entities a data source produces.

    Parameters
    ----------
    entity_id_field : str
        Attribute that uniquely identifies an entity.
    field_names : tuple of str
        Attribute names carried by every observation, in order.
    wkid : int
        Spatial reference of the entity locations.
    """

    model_config = ConfigDict(frozen=True)

    entity_id_field: str = "station_id"
    field_names: tuple[str, ...] = Field(default_factory=lambda: tuple(StationSnapshot.model_fields))
    wkid: int = WGS84_WKID
