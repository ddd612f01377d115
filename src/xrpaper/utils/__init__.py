"""Shared utility helpers."""

from xrpaper.utils.paths import ensure_directories
from xrpaper.utils.time_utils import now_utc, parse_timestamp, to_iso_or_none

__all__ = [
    "ensure_directories",
    "now_utc",
    "parse_timestamp",
    "to_iso_or_none",
]
