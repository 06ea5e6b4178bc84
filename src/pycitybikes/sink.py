"""Observation sinks.

The data source pushes two kinds of calls into a sink:

- ``on_new_entity`` once per station the first time it is seen on a
  connection,
- ``on_observation`` once per delivered change event.

Sinks are called synchronously from the event loop that runs the data
source. A slow sink delays the next drain tick and the next poll cycle;
hand long work off to a task or a queue instead of doing it inline.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Protocol

from pycitybikes.models.station import Location

EntityCallback = Callable[[str, Location, dict[str, Any]], None]


class ObservationSink(Protocol):
    """Structural consumer interface used by the data source."""

    def on_new_entity(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None: ...

    def on_observation(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None: ...


@dataclass
class CallbackSink:
    """Adapt plain callables to :class:`ObservationSink`.

    Either callback may be omitted; the matching calls are then ignored.
    """

    new_entity: EntityCallback | None = None
    observation: EntityCallback | None = None

    def on_new_entity(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None:
        if self.new_entity is not None:
            self.new_entity(station_id, location, attributes)

    def on_observation(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None:
        if self.observation is not None:
            self.observation(station_id, location, attributes)


class InventoryTracker:
    """Running total of available bikes across all stations.

    New stations add their ``bikes_available``; observations add their
    signed ``inventory_change``. Observations without a change are ignored.
    """

    def __init__(self) -> None:
        self.bikes_available = 0
        self.station_count = 0
        self.observation_count = 0

    def on_new_entity(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None:
        self.bikes_available += int(attributes.get("bikes_available", 0))
        self.station_count += 1

    def on_observation(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None:
        change = int(attributes.get("inventory_change", 0))
        if change == 0:
            return
        self.bikes_available += change
        self.observation_count += 1

    def reset(self) -> None:
        self.bikes_available = 0
        self.station_count = 0
        self.observation_count = 0
