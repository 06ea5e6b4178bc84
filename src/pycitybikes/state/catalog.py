"""Static station lookup."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator

from pycitybikes.models.station import StationMetadata

_logger = logging.getLogger(__name__)


class StationCatalog:
    """Read-only mapping of station id to :class:`StationMetadata`.

    Populated once from the station information feed. When the feed lists
    the same id twice the first record wins.
    """

    def __init__(self, stations: Iterable[StationMetadata] = ()) -> None:
        self._stations: dict[str, StationMetadata] = {}
        for station in stations:
            if station.station_id in self._stations:
                _logger.debug("Duplicate station id %s in catalog; keeping first", station.station_id)
                continue
            self._stations[station.station_id] = station

    def get(self, station_id: str) -> StationMetadata | None:
        return self._stations.get(station_id)

    def __contains__(self, station_id: object) -> bool:
        return station_id in self._stations

    def __len__(self) -> int:
        return len(self._stations)

    def __iter__(self) -> Iterator[StationMetadata]:
        return iter(self._stations.values())
