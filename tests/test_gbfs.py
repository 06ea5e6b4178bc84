from __future__ import annotations

from typing import Any

import pytest

from pycitybikes.config import CityBikesConfig
from pycitybikes.exceptions import CityBikesFetchError, CityBikesParseError, CityBikesStateError
from pycitybikes.ingestion.gbfs import GbfsFeedClient, extract_stations, parse_records
from pycitybikes.models import StationMetadata, StationStatus

INFO_URL = "https://feeds.example/station_information.json"
STATUS_URL = "https://feeds.example/station_status.json"


class FakeTransport:
    """Serve canned documents by URL; exceptions are raised instead of returned."""

    def __init__(self, documents: dict[str, Any]) -> None:
        self.documents = documents
        self.requested: list[str] = []

    async def get_json(self, url: str) -> Any:
        self.requested.append(url)
        document = self.documents[url]
        if isinstance(document, Exception):
            raise document
        return document


def _config() -> CityBikesConfig:
    return CityBikesConfig(status_url=STATUS_URL, station_information_url=INFO_URL)


def _envelope(stations: list[dict[str, Any]]) -> dict[str, Any]:
    return {"last_updated": 1760000000, "ttl": 60, "version": "2.3", "data": {"stations": stations}}


@pytest.mark.asyncio
async def test_fetch_stations_parses_gbfs_station_information() -> None:
    transport = FakeTransport(
        {
            INFO_URL: _envelope(
                [
                    {
                        "station_id": "1001",
                        "name": "Tokyo Station",
                        "address": "1-9-1 Marunouchi",
                        "lat": 35.681,
                        "lon": 139.767,
                        "capacity": 20,
                        "rental_uris": {"web": "https://example.invalid"},
                    },
                    {"station_id": 1002, "name": "Kanda", "lat": "35.691", "lon": "139.770"},
                ]
            )
        }
    )

    async with GbfsFeedClient(_config(), transport=transport) as feed:
        stations = await feed.fetch_stations()

    assert transport.requested == [INFO_URL]
    assert [s.station_id for s in stations] == ["1001", "1002"]
    assert stations[0].address == "1-9-1 Marunouchi"
    assert stations[1].address == ""
    assert stations[1].latitude == pytest.approx(35.691)
    assert stations[1].location.longitude == pytest.approx(139.770)


@pytest.mark.asyncio
async def test_fetch_status_parses_gbfs_station_status() -> None:
    transport = FakeTransport(
        {
            STATUS_URL: _envelope(
                [
                    {
                        "station_id": "1001",
                        "num_bikes_available": 4,
                        "num_docks_available": 16,
                        "is_renting": True,
                        "last_reported": 1760000000,
                    },
                    {"station_id": "1002", "num_bikes_available": "7", "num_docks_available": "3"},
                ]
            )
        }
    )

    async with GbfsFeedClient(_config(), transport=transport) as feed:
        statuses = await feed.fetch_status()

    assert [(s.station_id, s.bikes_available, s.empty_slots) for s in statuses] == [
        ("1001", 4, 16),
        ("1002", 7, 3),
    ]


@pytest.mark.asyncio
async def test_fetch_status_rejects_negative_counts() -> None:
    transport = FakeTransport(
        {STATUS_URL: _envelope([{"station_id": "1", "num_bikes_available": -1, "num_docks_available": 2}])}
    )

    async with GbfsFeedClient(_config(), transport=transport) as feed:
        with pytest.raises(CityBikesParseError) as exc_info:
            await feed.fetch_status()

    assert exc_info.value.url == STATUS_URL


@pytest.mark.asyncio
async def test_fetch_error_propagates() -> None:
    transport = FakeTransport({STATUS_URL: CityBikesFetchError("HTTP 503", status_code=503, url=STATUS_URL)})

    async with GbfsFeedClient(_config(), transport=transport) as feed:
        with pytest.raises(CityBikesFetchError) as exc_info:
            await feed.fetch_status()

    assert exc_info.value.status_code == 503


@pytest.mark.asyncio
async def test_client_requires_context_manager() -> None:
    feed = GbfsFeedClient(_config())

    with pytest.raises(CityBikesStateError):
        await feed.fetch_status()


@pytest.mark.asyncio
async def test_injected_transport_survives_context_exit() -> None:
    transport = FakeTransport({STATUS_URL: _envelope([])})
    feed = GbfsFeedClient(_config(), transport=transport)

    async with feed:
        assert await feed.fetch_status() == []
    async with feed:
        assert await feed.fetch_status() == []

    assert transport.requested == [STATUS_URL, STATUS_URL]


def test_extract_stations_accepts_bare_list() -> None:
    records = [{"station_id": "1"}]

    assert extract_stations(records) is records


@pytest.mark.parametrize(
    "payload",
    [
        "not json object",
        {"last_updated": 1},
        {"data": []},
        {"data": {"stations": None}},
        {"data": {"stations": [1, 2]}},
    ],
)
def test_extract_stations_rejects_unexpected_shapes(payload: Any) -> None:
    with pytest.raises(CityBikesParseError):
        extract_stations(payload, url=STATUS_URL)


def test_parse_records_requires_coordinates() -> None:
    with pytest.raises(CityBikesParseError):
        parse_records(StationMetadata, [{"station_id": "1", "name": "No position", "lat": "--"}])


def test_parse_records_accepts_alternate_field_names() -> None:
    statuses = parse_records(StationStatus, [{"id": 7, "bikesAvailable": 2, "emptySlots": 8}])

    assert statuses[0].station_id == "7"
    assert statuses[0].bikes_available == 2
    assert statuses[0].empty_slots == 8
