"""Ingestion layer.

This package contains the fetch collaborators that retrieve station data
from a feed and turn it into typed records for the state layer.
"""

__all__: list[str] = []
