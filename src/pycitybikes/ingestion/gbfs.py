"""GBFS feed client.

Fetches ``station_information.json`` and ``station_status.json`` and turns
their ``data.stations`` arrays into typed records. This is the default fetch
collaborator of :class:`pycitybikes.source.StationDataSource`; anything with
the same two coroutines can take its place.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar

import aiohttp
from pydantic import BaseModel, TypeAdapter, ValidationError

from pycitybikes._transport import HttpTransport, Transport
from pycitybikes.config import CityBikesConfig
from pycitybikes.exceptions import CityBikesParseError, CityBikesStateError
from pycitybikes.models.station import StationMetadata, StationStatus

_logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)


def extract_stations(payload: Any, *, url: str = "") -> list[dict[str, Any]]:
    """Return the station records of a GBFS document.

    Accepts the GBFS envelope ``{"data": {"stations": [...]}}`` as well as a
    bare list of records.

    Raises
    ------
    CityBikesParseError
        If the document has no station list or a record is not an object.
    """
    if isinstance(payload, list):
        stations: Any = payload
    else:
        if not isinstance(payload, dict):
            raise CityBikesParseError(f"Feed document from {url} is not an object", url=url)
        data = payload.get("data")
        if not isinstance(data, dict):
            raise CityBikesParseError(f"Feed document from {url} has no 'data' object", url=url)
        stations = data.get("stations")
        if not isinstance(stations, list):
            raise CityBikesParseError(f"Feed document from {url} has no 'stations' list", url=url)

    if not all(isinstance(item, dict) for item in stations):
        raise CityBikesParseError(f"Feed document from {url} contains non-object station records", url=url)
    return stations


def parse_records(model: type[TModel], items: list[Any], *, url: str = "") -> list[TModel]:
    """Validate *items* as a list of *model*, mapping failures to a parse error."""
    try:
        return TypeAdapter(list[model]).validate_python(items)  # type: ignore[valid-type]
    except ValidationError as exc:
        raise CityBikesParseError(
            f"Invalid {model.__name__} records from {url or 'feed'}: {exc.error_count()} errors",
            url=url,
        ) from exc


class GbfsFeedClient:
    """Async client for a GBFS station feed pair.

    Usage::

        async with GbfsFeedClient(config) as feed:
            stations = await feed.fetch_stations()
            statuses = await feed.fetch_status()
    """

    def __init__(
        self,
        config: CityBikesConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._external_transport = transport is not None
        self._transport = transport

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> GbfsFeedClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._http_session, timeout=self._config.request_timeout)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Feeds
    # ------------------------------------------------------------------

    async def fetch_stations(self) -> list[StationMetadata]:
        """Fetch and parse the station information feed."""
        url = self._config.station_information_url
        payload = await self._require_transport().get_json(url)
        stations = parse_records(StationMetadata, extract_stations(payload, url=url), url=url)
        _logger.debug("Fetched %d stations from %s", len(stations), url)
        return stations

    async def fetch_status(self) -> list[StationStatus]:
        """Fetch and parse the station status feed."""
        url = self._config.status_url
        payload = await self._require_transport().get_json(url)
        statuses = parse_records(StationStatus, extract_stations(payload, url=url), url=url)
        _logger.debug("Fetched %d status records from %s", len(statuses), url)
        return statuses

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise CityBikesStateError("Feed client not initialized. Use 'async with GbfsFeedClient(...) as feed:'")
        return self._transport
