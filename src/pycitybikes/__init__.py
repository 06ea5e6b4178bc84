"""pycitybikes - Async station availability feed with change detection."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pycitybikes")
except PackageNotFoundError:
    __version__ = "0+local"
from pycitybikes.config import CityBikesConfig
from pycitybikes.delivery import DeliveryMode, DeliveryScheduler
from pycitybikes.exceptions import (
    CityBikesConfigError,
    CityBikesError,
    CityBikesFetchError,
    CityBikesParseError,
    CityBikesStateError,
)
from pycitybikes.ingestion.gbfs import GbfsFeedClient
from pycitybikes.models import (
    ChangeEvent,
    DataSourceInfo,
    Location,
    StationMetadata,
    StationSnapshot,
    StationStatus,
)
from pycitybikes.sink import CallbackSink, InventoryTracker, ObservationSink
from pycitybikes.source import ConnectionStatus, StationDataSource
from pycitybikes.state.catalog import StationCatalog
from pycitybikes.state.diff import DiffEngine, DiffResult
from pycitybikes.state.store import SnapshotStore

__all__ = [
    "__version__",
    "CallbackSink",
    "ChangeEvent",
    "CityBikesConfig",
    "CityBikesConfigError",
    "CityBikesError",
    "CityBikesFetchError",
    "CityBikesParseError",
    "CityBikesStateError",
    "ConnectionStatus",
    "DataSourceInfo",
    "DeliveryMode",
    "DeliveryScheduler",
    "DiffEngine",
    "DiffResult",
    "GbfsFeedClient",
    "InventoryTracker",
    "Location",
    "ObservationSink",
    "SnapshotStore",
    "StationCatalog",
    "StationDataSource",
    "StationMetadata",
    "StationSnapshot",
    "StationStatus",
]
