"""State layer.

This package owns the per-connection station state: the static catalog,
the last-known snapshot of every station, and the diff pass that merges a
fresh status fetch into it.
"""
