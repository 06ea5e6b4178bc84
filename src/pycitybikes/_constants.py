"""Internal constants shared across the library."""

GBFS_BASE_URL = "https://api-public.odpt.org/api/v4/gbfs/hellocycling"
STATION_INFORMATION_URL = f"{GBFS_BASE_URL}/station_information.json"
STATION_STATUS_URL = f"{GBFS_BASE_URL}/station_status.json"
USER_AGENT = "pycitybikes"

#: Default marker image attached to every station snapshot.
STATION_IMAGE_URL = "https://static.arcgis.com/images/Symbols/Transportation/esriDefaultMarker_189.png"

#: WGS84, the spatial reference of every station location.
WGS84_WKID = 4326

# ------------------------------------------------------------------
# Drain timer resolution (100 ns ticks)
# ------------------------------------------------------------------

TICKS_PER_SECOND = 10_000_000


def ticks_to_seconds(ticks: int) -> float:
    """Convert 100 ns ticks to seconds."""
    return ticks / TICKS_PER_SECOND
