"""Utility helpers for the scanner."""

from .fileio import read_yaml_file, read_text_file
from .snapshot import SnapshotProvider, load_snapshot, parse_snapshot

__all__ = [
    "read_yaml_file",
    "read_text_file",
    "SnapshotProvider",
    "load_snapshot",
    "parse_snapshot",
]
