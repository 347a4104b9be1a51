"""Runtime configuration for the DM statistics tools.

Values come from module constants, optionally overridden by environment
variables.  The CLI and the web app both read from here; CLI flags take
precedence over the environment.

ENVIRONMENT VARIABLES:
- DM_EXPORT_PATH: chat export JSON to analyse (default: dm_export.json)
- DM_OUTPUT_DIR: directory for CSV tables and images (default: dm_reports)
- DM_UTC_OFFSET_MINUTES: fixed local offset; unset uses the system zone
"""

from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
EXPORT_PATH = Path(os.environ.get("DM_EXPORT_PATH", "dm_export.json"))
OUTPUT_DIR = Path(os.environ.get("DM_OUTPUT_DIR", "dm_reports"))

# ---------------------------------------------------------------------------
# Time handling
# ---------------------------------------------------------------------------


def _utc_offset_from_env() -> int | None:
    raw = os.environ.get("DM_UTC_OFFSET_MINUTES", "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"DM_UTC_OFFSET_MINUTES must be an integer, got {raw!r}") from None


UTC_OFFSET_MINUTES = _utc_offset_from_env()

# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------
BAR_WIDTH = 50
MIN_CALL_MS = 15_000  # shorter calls are missed or declined calls
TOP_CALLS = 25

# Text grids start the day at 05:30.
CALL_START_DAY_START = 5 * 4 + 2   # 15-minute buckets
TEXT_DAY_START = 5 * 6 + 3         # 10-minute buckets

# ---------------------------------------------------------------------------
# Raster image
# ---------------------------------------------------------------------------
RASTER_BUCKETS = 24 * 60 * 4       # 15-second columns
RASTER_ASPECT_RATIO = 64 / 9
RASTER_DAY_START_MINUTES = 5 * 60 + 30  # image starts at 05:30
RASTER_BACKGROUND = (0x31, 0x33, 0x38)
RASTER_PALETTE = (
    (0x98, 0xC3, 0x79),
    (0xE5, 0xC0, 0x7B),
    (0x5E, 0xAC, 0xEC),
)

# ---------------------------------------------------------------------------
# Web service
# ---------------------------------------------------------------------------
CACHE_TTL_SECONDS = 3600  # 1 hour
