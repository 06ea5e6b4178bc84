"""Change detection between two status fetches.

A diff pass compares every fetched :class:`StationStatus` with the stored
snapshot for the same station:

- no stored snapshot: the station is new. Its snapshot becomes the
  baseline and the new-entity hook fires; no change event is produced.
- ``bikes_available`` unchanged: the snapshot is refreshed (``empty_slots``
  may differ) without an event.
- ``bikes_available`` changed: a :class:`ChangeEvent` carrying the signed
  ``inventory_change`` is produced and the snapshot is replaced.

Only ``bikes_available`` drives events; a change in ``empty_slots`` alone is
stored but never reported.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from pydantic import BaseModel, ConfigDict

from pycitybikes.models.snapshot import ChangeEvent, StationSnapshot
from pycitybikes.models.station import StationStatus
from pycitybikes.state.catalog import StationCatalog
from pycitybikes.state.store import SnapshotStore

_logger = logging.getLogger(__name__)


class DiffResult(BaseModel):
    """Outcome of one diff pass."""

    model_config = ConfigDict(frozen=True)

    events: tuple[ChangeEvent, ...] = ()
    new_entity_count: int = 0
    changed_station_count: int = 0
    total_inventory_delta: int = 0
    dropped_count: int = 0


class DiffEngine:
    """Merge status fetches into a :class:`SnapshotStore`.

    Parameters
    ----------
    catalog : StationCatalog
        Metadata lookup. Status records whose id is not in the catalog are
        dropped.
    store : SnapshotStore
        Snapshot store updated in place by every pass.
    on_new_entity : callable, optional
        Called with the baseline snapshot of every station seen for the
        first time.
    """

    def __init__(
        self,
        catalog: StationCatalog,
        store: SnapshotStore,
        *,
        on_new_entity: Callable[[StationSnapshot], None] | None = None,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._on_new_entity = on_new_entity

    @property
    def catalog(self) -> StationCatalog:
        return self._catalog

    @catalog.setter
    def catalog(self, catalog: StationCatalog) -> None:
        self._catalog = catalog

    def diff(self, statuses: Iterable[StationStatus]) -> DiffResult:
        """Run one diff pass. Events keep the order of *statuses*."""
        events: list[ChangeEvent] = []
        new_entities = 0
        changed = 0
        total_delta = 0
        dropped = 0

        for status in statuses:
            metadata = self._catalog.get(status.station_id)
            if metadata is None:
                dropped += 1
                continue

            candidate = StationSnapshot.from_records(metadata, status)
            previous = self._store.get(status.station_id)

            if previous is None:
                self._store.put(candidate)
                new_entities += 1
                if self._on_new_entity is not None:
                    self._on_new_entity(candidate)
                continue

            delta = candidate.bikes_available - previous.bikes_available
            if delta != 0:
                candidate = candidate.with_inventory_change(delta)
                events.append(ChangeEvent(snapshot=candidate))
                total_delta += delta
                changed += 1

            self._store.put(candidate)

        if dropped:
            _logger.debug("Dropped %d status records with unknown station ids", dropped)

        return DiffResult(
            events=tuple(events),
            new_entity_count=new_entities,
            changed_station_count=changed,
            total_inventory_delta=total_delta,
            dropped_count=dropped,
        )
