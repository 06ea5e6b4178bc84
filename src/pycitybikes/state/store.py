"""In-memory snapshot store.

This is the only component allowed to hold last-known station state. It is
owned by one data source and cleared whenever that source disconnects.
"""

from __future__ import annotations

from collections.abc import Iterator

from pycitybikes.models.snapshot import StationSnapshot


class SnapshotStore:
    """Last-known :class:`StationSnapshot` per station id.

    Holds at most one snapshot per id; :meth:`put` replaces the previous
    one.
    """

    def __init__(self) -> None:
        self._snapshots: dict[str, StationSnapshot] = {}

    def get(self, station_id: str) -> StationSnapshot | None:
        return self._snapshots.get(station_id)

    def put(self, snapshot: StationSnapshot) -> None:
        self._snapshots[snapshot.station_id] = snapshot

    def clear(self) -> None:
        self._snapshots.clear()

    def station_ids(self) -> list[str]:
        return list(self._snapshots)

    def __contains__(self, station_id: object) -> bool:
        return station_id in self._snapshots

    def __len__(self) -> int:
        return len(self._snapshots)

    def __iter__(self) -> Iterator[StationSnapshot]:
        return iter(list(self._snapshots.values()))
