"""Station data source: the poll → diff → deliver pipeline.

:class:`StationDataSource` owns one connection lifetime worth of state (the
snapshot store and the pending observation queue) and drives it from two
timers on the running event loop:

- the poll timer, which fetches the status feed every ``poll_interval``
  seconds and merges the result,
- in smoothed mode, the drain timer of the :class:`DeliveryScheduler`.

Everything except the status fetch runs synchronously on the loop, so a
cycle's flush, diff and enqueue steps can never interleave with another
cycle or with a drain tick. Poll ticks are not serialized against each
other: when a fetch outlives the poll interval, the next tick starts a
second fetch and both results are merged in completion order.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from enum import StrEnum
from typing import Any, Protocol, TypeVar, cast

from pydantic import BaseModel, ValidationError

from pycitybikes.config import CityBikesConfig
from pycitybikes.delivery import DeliveryMode, DeliveryScheduler
from pycitybikes.exceptions import CityBikesError, CityBikesParseError, CityBikesStateError
from pycitybikes.models.snapshot import DataSourceInfo, StationSnapshot
from pycitybikes.models.station import StationMetadata, StationStatus
from pycitybikes.sink import ObservationSink
from pycitybikes.state.catalog import StationCatalog
from pycitybikes.state.diff import DiffEngine, DiffResult
from pycitybikes.state.store import SnapshotStore

_logger = logging.getLogger(__name__)

TModel = TypeVar("TModel", bound=BaseModel)


class ConnectionStatus(StrEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


class StatusFetcher(Protocol):
    """Returns the current status of every station."""

    async def fetch_status(self) -> Sequence[StationStatus | Mapping[str, Any]]: ...


class MetadataFetcher(Protocol):
    """Returns the static metadata of every station."""

    async def fetch_stations(self) -> Sequence[StationMetadata | Mapping[str, Any]]: ...


def _coerce_records(model: type[TModel], records: Iterable[TModel | Mapping[str, Any]]) -> list[TModel]:
    try:
        return [record if isinstance(record, model) else model.model_validate(record) for record in records]
    except ValidationError as exc:
        raise CityBikesParseError(f"Invalid {model.__name__} records: {exc.error_count()} errors") from exc


class StationDataSource:
    """Poll a station status feed and report inventory changes.

    Usage::

        async with GbfsFeedClient(config) as feed:
            async with StationDataSource(config, feed, sink):
                await asyncio.sleep(3600)

    Parameters
    ----------
    config : CityBikesConfig
        Poll interval and delivery mode.
    fetcher : StatusFetcher
        Status feed collaborator, called once per poll cycle.
    sink : ObservationSink
        Receives new-entity and observation calls. It is invoked
        synchronously on the event loop; a slow sink delays the following
        drain ticks and poll cycles.
    metadata_fetcher : MetadataFetcher, optional
        Station information collaborator. Defaults to *fetcher*, which
        then has to provide ``fetch_stations`` as well.
    on_connection_status : callable, optional
        Called with the new :class:`ConnectionStatus` on every transition.
    sleep : callable
        Awaitable sleep used by the poll and drain timers.
    """

    def __init__(
        self,
        config: CityBikesConfig,
        fetcher: StatusFetcher,
        sink: ObservationSink,
        *,
        metadata_fetcher: MetadataFetcher | None = None,
        on_connection_status: Callable[[ConnectionStatus], None] | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._config = config
        self._fetcher = fetcher
        self._metadata_fetcher = metadata_fetcher if metadata_fetcher is not None else cast(MetadataFetcher, fetcher)
        self._sink = sink
        self._on_connection_status = on_connection_status
        self._sleep = sleep

        self._catalog: StationCatalog | None = None
        self._store = SnapshotStore()
        self._diff = DiffEngine(StationCatalog(), self._store, on_new_entity=self._notify_new_entity)
        self._delivery = DeliveryScheduler(
            sink,
            poll_interval=config.poll_interval,
            mode=config.delivery_mode,
            sleep=sleep,
        )

        self._status = ConnectionStatus.DISCONNECTED
        # Bumped on every connect and disconnect; a cycle started under an
        # older generation must not touch state.
        self._generation = 0
        self._poll_task: asyncio.Task[None] | None = None
        self._cycles: set[asyncio.Task[DiffResult | None]] = set()

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> StationDataSource:
        await self.connect()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.disconnect()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def status(self) -> ConnectionStatus:
        return self._status

    @property
    def is_connected(self) -> bool:
        return self._status == ConnectionStatus.CONNECTED

    @property
    def catalog(self) -> StationCatalog | None:
        return self._catalog

    @property
    def store(self) -> SnapshotStore:
        return self._store

    @property
    def delivery(self) -> DeliveryScheduler:
        return self._delivery

    @property
    def info(self) -> DataSourceInfo:
        """Schema of the observations this source produces."""
        return DataSourceInfo()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Load the station catalog (first connect only) and start polling.

        Raises
        ------
        CityBikesStateError
            If the source is already connected or connecting, or if
            :meth:`disconnect` was called while the catalog was loading.
        CityBikesError
            If the station catalog cannot be loaded. The source stays
            disconnected.
        """
        if self._status != ConnectionStatus.DISCONNECTED:
            raise CityBikesStateError(f"Data source is already {self._status.value}")

        generation = self._generation
        self._set_status(ConnectionStatus.CONNECTING)
        try:
            if self._catalog is None:
                await self.load_catalog()
        except BaseException:
            if self._generation == generation:
                self._set_status(ConnectionStatus.DISCONNECTED)
            raise

        if self._generation != generation or self._status != ConnectionStatus.CONNECTING:
            raise CityBikesStateError("Data source was disconnected while connecting")

        self._generation += 1
        self._set_status(ConnectionStatus.CONNECTED)
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop(self._generation))
        _logger.info(
            "Connected: polling every %ss with %s delivery",
            self._config.poll_interval,
            self._delivery.mode.value,
        )

    async def disconnect(self) -> None:
        """Stop both timers, drop in-flight cycles and clear the snapshots.

        Safe to call when already disconnected.
        """
        if self._status == ConnectionStatus.DISCONNECTED and self._poll_task is None and not self._cycles:
            return

        self._generation += 1
        self._set_status(ConnectionStatus.DISCONNECTED)

        current = asyncio.current_task()
        tasks = [task for task in (self._poll_task, *self._cycles) if task is not None and task is not current]
        self._poll_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._cycles.clear()

        await self._delivery.stop()
        self._store.clear()
        _logger.info("Disconnected")

    async def load_catalog(self) -> StationCatalog:
        """Fetch station metadata and build the catalog used by every diff."""
        records = await self._metadata_fetcher.fetch_stations()
        catalog = StationCatalog(_coerce_records(StationMetadata, records))
        self._catalog = catalog
        self._diff.catalog = catalog
        _logger.info("Station catalog loaded: %d stations", len(catalog))
        return catalog

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    async def poll_once(self) -> DiffResult | None:
        """Run one poll cycle now and wait for it.

        Returns ``None`` when disconnected or when the cycle failed.
        """
        if not self.is_connected:
            return None
        return await self._run_cycle(self._generation)

    def apply_statuses(self, statuses: Iterable[StationStatus]) -> DiffResult:
        """Merge one status fetch and deliver the resulting observations.

        Flushes the previous cycle's leftovers, diffs, then queues or emits
        the new events. Runs without suspending.

        New-entity calls are made during the diff pass, observations only
        after it completes. In immediate mode the sink therefore sees every
        new station of a pass before any observation of that pass, and the
        observations keep record order.

        Raises
        ------
        CityBikesStateError
            If the source is not connected.
        """
        if not self.is_connected:
            raise CityBikesStateError("Data source is not connected")

        self._delivery.begin_cycle()
        result = self._diff.diff(statuses)
        self._delivery.deliver(result.events)

        if self._delivery.mode == DeliveryMode.SMOOTHED and result.events:
            _logger.debug(
                "Stations from this update = %d, total to process = %d",
                result.changed_station_count,
                len(self._delivery.pending),
            )
        _logger.info(
            "Total inventory change: %d for %d stations",
            result.total_inventory_delta,
            result.changed_station_count,
        )
        return result

    async def _poll_loop(self, generation: int) -> None:
        if self._config.poll_on_connect:
            self._on_tick(generation)
        while True:
            await self._sleep(self._config.poll_interval)
            self._on_tick(generation)

    def _on_tick(self, generation: int) -> None:
        if not self._is_current(generation):
            return
        task = asyncio.get_running_loop().create_task(self._run_cycle(generation))
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    async def _run_cycle(self, generation: int) -> DiffResult | None:
        try:
            records = await self._fetcher.fetch_status()
            if not self._is_current(generation):
                _logger.debug("Discarding status fetch that completed after disconnect")
                return None
            return self.apply_statuses(_coerce_records(StationStatus, records))
        except CityBikesError as exc:
            _logger.warning("Station status poll failed: %s", exc)
        except Exception:
            _logger.exception("Unexpected error during station status poll")
        return None

    def _is_current(self, generation: int) -> bool:
        return self._status == ConnectionStatus.CONNECTED and generation == self._generation

    # ------------------------------------------------------------------
    # Outbound notifications
    # ------------------------------------------------------------------

    def _notify_new_entity(self, snapshot: StationSnapshot) -> None:
        try:
            self._sink.on_new_entity(snapshot.station_id, snapshot.location, snapshot.attributes())
        except Exception:
            _logger.warning("Observation sink failed for new station %s", snapshot.station_id, exc_info=True)

    def _set_status(self, status: ConnectionStatus) -> None:
        if status == self._status:
            return
        self._status = status
        if self._on_connection_status is None:
            return
        try:
            self._on_connection_status(status)
        except Exception:
            _logger.warning("Connection status callback failed", exc_info=True)
