from __future__ import annotations

from pycitybikes.models import StationMetadata, StationSnapshot, StationStatus
from pycitybikes.state.catalog import StationCatalog
from pycitybikes.state.diff import DiffEngine
from pycitybikes.state.store import SnapshotStore


def _catalog(*station_ids: str) -> StationCatalog:
    return StationCatalog(
        StationMetadata(
            station_id=station_id,
            name=f"Station {station_id}",
            address=f"{station_id} Street",
            longitude=139.7,
            latitude=35.6,
        )
        for station_id in station_ids
    )


def _status(station_id: str, bikes: int, slots: int = 10) -> StationStatus:
    return StationStatus(station_id=station_id, bikes_available=bikes, empty_slots=slots)


def _engine(*station_ids: str) -> tuple[DiffEngine, SnapshotStore, list[StationSnapshot]]:
    store = SnapshotStore()
    new_entities: list[StationSnapshot] = []
    engine = DiffEngine(_catalog(*station_ids), store, on_new_entity=new_entities.append)
    return engine, store, new_entities


def test_first_observation_is_baseline_without_event() -> None:
    engine, store, new_entities = _engine("A", "B")

    result = engine.diff([_status("A", 5), _status("B", 0)])

    assert result.events == ()
    assert result.new_entity_count == 2
    assert result.changed_station_count == 0
    assert [s.station_id for s in new_entities] == ["A", "B"]
    assert store.get("A") is not None and store.get("A").inventory_change == 0  # type: ignore[union-attr]


def test_mixed_pass_scenario() -> None:
    engine, _store, new_entities = _engine("A", "B", "C")
    engine.diff([_status("A", 5), _status("B", 3)])
    new_entities.clear()

    result = engine.diff([_status("A", 8), _status("B", 3), _status("C", 4)])

    assert [e.station_id for e in result.events] == ["A"]
    assert result.events[0].inventory_change == 3
    assert result.changed_station_count == 1
    assert result.total_inventory_delta == 3
    assert result.new_entity_count == 1
    assert [s.station_id for s in new_entities] == ["C"]


def test_decrease_is_signed() -> None:
    engine, store, _ = _engine("A")
    engine.diff([_status("A", 8)])

    result = engine.diff([_status("A", 2)])

    assert result.events[0].inventory_change == -6
    assert result.total_inventory_delta == -6
    assert store.get("A").bikes_available == 2  # type: ignore[union-attr]


def test_empty_slots_only_change_updates_store_without_event() -> None:
    engine, store, _ = _engine("A")
    engine.diff([_status("A", 5, slots=10)])

    result = engine.diff([_status("A", 5, slots=4)])

    assert result.events == ()
    assert result.changed_station_count == 0
    assert store.get("A").empty_slots == 4  # type: ignore[union-attr]


def test_unchanged_pass_resets_inventory_change() -> None:
    engine, store, _ = _engine("A")
    engine.diff([_status("A", 5)])
    engine.diff([_status("A", 7)])
    assert store.get("A").inventory_change == 2  # type: ignore[union-attr]

    engine.diff([_status("A", 7)])

    assert store.get("A").inventory_change == 0  # type: ignore[union-attr]


def test_unknown_station_dropped() -> None:
    engine, store, new_entities = _engine("A")

    result = engine.diff([_status("ghost", 3), _status("A", 1)])

    assert result.dropped_count == 1
    assert "ghost" not in store
    assert [s.station_id for s in new_entities] == ["A"]


def test_events_follow_input_order() -> None:
    engine, _, _ = _engine("A", "B", "C")
    engine.diff([_status("A", 1), _status("B", 1), _status("C", 1)])

    result = engine.diff([_status("C", 2), _status("A", 0), _status("B", 5)])

    assert [e.station_id for e in result.events] == ["C", "A", "B"]
    assert [e.inventory_change for e in result.events] == [1, -1, 4]
    assert result.total_inventory_delta == 4


def test_store_keeps_one_snapshot_per_station() -> None:
    engine, store, _ = _engine("A")

    engine.diff([_status("A", 1), _status("A", 2)])

    assert len(store) == 1
    assert store.get("A").bikes_available == 2  # type: ignore[union-attr]


def test_catalog_keeps_first_duplicate() -> None:
    catalog = StationCatalog(
        [
            StationMetadata(station_id="A", name="first", longitude=0, latitude=0),
            StationMetadata(station_id="A", name="second", longitude=0, latitude=0),
        ]
    )

    assert len(catalog) == 1
    assert catalog.get("A").name == "first"  # type: ignore[union-attr]
    assert catalog.get("B") is None


def test_store_clear() -> None:
    engine, store, _ = _engine("A", "B")
    engine.diff([_status("A", 1), _status("B", 1)])

    store.clear()

    assert len(store) == 0
    assert store.station_ids() == []
