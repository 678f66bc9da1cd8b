"""Reference datasets: PA-required lists, NCCI PTP/MUE edits, SAD list."""

from .cache import DatasetCache
from .loader import DatasetLoader, DatasetName, default_sources
from .tables import (
    MUEEdit,
    MUETable,
    PARequiredEntry,
    PARequiredTable,
    PTPEdit,
    PTPEditTable,
    SADEntry,
    SADTable,
    parse_mue_edits,
    parse_pa_required,
    parse_ptp_edits,
    parse_sad_list,
)

__all__ = [
    "DatasetCache",
    "DatasetLoader",
    "DatasetName",
    "MUEEdit",
    "MUETable",
    "PARequiredEntry",
    "PARequiredTable",
    "PTPEdit",
    "PTPEditTable",
    "SADEntry",
    "SADTable",
    "default_sources",
    "parse_mue_edits",
    "parse_pa_required",
    "parse_ptp_edits",
    "parse_sad_list",
]
