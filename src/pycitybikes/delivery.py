"""Delivery of change events to an observation sink.

Two modes:

- ``IMMEDIATE``: every event of a diff pass is handed to the sink
  synchronously, in order.
- ``SMOOTHED``: events are queued and a drain timer hands them out one per
  tick, at ``ceil(N / poll_interval)`` ticks per second, so a batch of N
  events is spread over one poll interval. The timer pops from the tail of
  the queue (most recently queued first).

Whatever is still queued when the next poll cycle begins is flushed at once,
in reverse queue order, before the new batch is queued. This bounds the
backlog to a single batch even when the timer undershoots.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import math
from collections.abc import Awaitable, Callable, Sequence
from enum import StrEnum

from pycitybikes._constants import TICKS_PER_SECOND, ticks_to_seconds
from pycitybikes.exceptions import CityBikesConfigError
from pycitybikes.models.snapshot import ChangeEvent
from pycitybikes.sink import ObservationSink

_logger = logging.getLogger(__name__)


class DeliveryMode(StrEnum):
    IMMEDIATE = "immediate"
    SMOOTHED = "smoothed"

    @classmethod
    def _missing_(cls, value: object) -> DeliveryMode | None:
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None


def drain_ticks_per_second(event_count: int, poll_interval: float) -> int:
    """Drain rate needed to deliver *event_count* events within one interval."""
    if event_count <= 0:
        return 0
    return math.ceil(event_count / poll_interval)


class DeliveryScheduler:
    """Hand change events to a sink, immediately or smoothed.

    Parameters
    ----------
    sink : ObservationSink
        Receives one ``on_observation`` call per event.
    mode : DeliveryMode
        Delivery mode, fixed for the lifetime of the scheduler.
    poll_interval : float
        Poll interval in seconds, used to compute the drain rate.
    sleep : callable
        Awaitable sleep used by the drain timer. Defaults to
        :func:`asyncio.sleep`.
    """

    def __init__(
        self,
        sink: ObservationSink,
        *,
        poll_interval: float,
        mode: DeliveryMode = DeliveryMode.SMOOTHED,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if not math.isfinite(poll_interval) or poll_interval <= 0:
            raise CityBikesConfigError(f"poll_interval must be a finite number > 0, got {poll_interval}")
        self._sink = sink
        self._mode = DeliveryMode(mode)
        self._poll_interval = poll_interval
        self._sleep = sleep
        self._pending: list[ChangeEvent] = []
        self._drain_task: asyncio.Task[None] | None = None
        self._ticks_per_second = 0
        self._drain_ticks: int | None = None

    @property
    def mode(self) -> DeliveryMode:
        return self._mode

    @property
    def pending(self) -> tuple[ChangeEvent, ...]:
        """Queued events, oldest first."""
        return tuple(self._pending)

    @property
    def ticks_per_second(self) -> int:
        """Drain rate computed for the last queued batch."""
        return self._ticks_per_second

    @property
    def drain_interval(self) -> float | None:
        """Seconds between two drain ticks, or ``None`` if never armed."""
        if self._drain_ticks is None:
            return None
        return ticks_to_seconds(self._drain_ticks)

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    # ------------------------------------------------------------------
    # Cycle hooks
    # ------------------------------------------------------------------

    def begin_cycle(self) -> int:
        """Stop the drain timer and flush leftovers of the previous cycle.

        Returns the number of flushed events.
        """
        self._cancel_drain()
        flushed = 0
        while self._pending:
            self._emit(self._pending.pop())
            flushed += 1
        if flushed:
            _logger.debug("Flushed %d leftover observations", flushed)
        return flushed

    def deliver(self, events: Sequence[ChangeEvent]) -> None:
        """Deliver the events of one diff pass.

        In smoothed mode this must run on the event loop, since it arms the
        drain timer.
        """
        if self._mode == DeliveryMode.IMMEDIATE:
            for event in events:
                self._emit(event)
            return

        if not events:
            return
        self._pending.extend(events)
        self._arm(len(self._pending))

    def drain_once(self) -> ChangeEvent | None:
        """Emit the most recently queued event, if any."""
        if not self._pending:
            return None
        event = self._pending.pop()
        self._emit(event)
        return event

    async def stop(self) -> None:
        """Stop the drain timer and drop anything still queued."""
        task = self._drain_task
        self._cancel_drain()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._pending.clear()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _arm(self, count: int) -> None:
        self._ticks_per_second = drain_ticks_per_second(count, self._poll_interval)
        if self._ticks_per_second <= 0:
            return
        # Never arm a zero-length timer, however large the batch.
        self._drain_ticks = max(1, TICKS_PER_SECOND // self._ticks_per_second)
        interval = ticks_to_seconds(self._drain_ticks)

        self._cancel_drain()
        loop = asyncio.get_running_loop()
        self._drain_task = loop.create_task(self._drain_loop(interval))
        _logger.debug(
            "Drain timer armed: %d queued, %d per second, interval=%.7fs",
            count,
            self._ticks_per_second,
            interval,
        )

    async def _drain_loop(self, interval: float) -> None:
        while True:
            await self._sleep(interval)
            self.drain_once()

    def _cancel_drain(self) -> None:
        task = self._drain_task
        self._drain_task = None
        if task is not None and not task.done():
            task.cancel()

    def _emit(self, event: ChangeEvent) -> None:
        try:
            self._sink.on_observation(event.station_id, event.location, event.attributes())
        except Exception:
            _logger.warning("Observation sink failed for station %s", event.station_id, exc_info=True)
