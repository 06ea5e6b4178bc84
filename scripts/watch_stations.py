#!/usr/bin/env python3
"""Watch a GBFS station feed and print inventory changes as they arrive.

Usage
-----
::

    python scripts/watch_stations.py --interval 60

Options::

    --interval SECS     Poll interval (default: CITYBIKES_POLL_INTERVAL or 300)
    --immediate         Print changes as soon as they are detected
    --duration SECS     Stop after this many seconds (default: run until Ctrl-C)
    --quiet-new         Do not list every station on the first poll
    --verbose / -v      Enable debug logging

Feed URLs come from ``CITYBIKES_STATUS_URL`` and
``CITYBIKES_STATION_INFORMATION_URL`` (default: HELLO CYCLING).
"""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pycitybikes import (  # noqa: E402
    CityBikesConfig,
    ConnectionStatus,
    DeliveryMode,
    GbfsFeedClient,
    InventoryTracker,
    Location,
    StationDataSource,
)


class _PrintingSink:
    """Print observations and keep a running bike total."""

    def __init__(self, *, quiet_new: bool) -> None:
        self._tracker = InventoryTracker()
        self._quiet_new = quiet_new

    def on_new_entity(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None:
        self._tracker.on_new_entity(station_id, location, attributes)
        if not self._quiet_new:
            print(f"  + {attributes['station_name']} ({station_id}): {attributes['bikes_available']} bikes")

    def on_observation(self, station_id: str, location: Location, attributes: dict[str, Any]) -> None:
        self._tracker.on_observation(station_id, location, attributes)
        change = attributes["inventory_change"]
        stamp = datetime.now().strftime("%H:%M:%S")
        print(
            f"{stamp} {change:+d} {attributes['station_name']} ({station_id}) "
            f"-> {attributes['bikes_available']} bikes, {attributes['empty_slots']} slots "
            f"[total {self._tracker.bikes_available}]"
        )


def _on_status(status: ConnectionStatus) -> None:
    print(f"== {status.value}", file=sys.stderr)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Print bike inventory changes from a GBFS station feed.")
    parser.add_argument("--interval", type=float, help="Poll interval in seconds")
    parser.add_argument("--immediate", action="store_true", help="Disable smoothed delivery")
    parser.add_argument("--duration", type=float, help="Stop after this many seconds")
    parser.add_argument("--quiet-new", action="store_true", help="Do not list stations on the first poll")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    overrides: dict[str, Any] = {}
    if args.interval is not None:
        overrides["poll_interval"] = args.interval
    if args.immediate:
        overrides["delivery_mode"] = DeliveryMode.IMMEDIATE
    config = CityBikesConfig.from_env(**overrides)

    sink = _PrintingSink(quiet_new=args.quiet_new)
    async with GbfsFeedClient(config) as feed:
        async with StationDataSource(config, feed, sink, on_connection_status=_on_status):
            if args.duration is not None:
                await asyncio.sleep(args.duration)
            else:
                await asyncio.Event().wait()


if __name__ == "__main__":
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(main())
