"""FastAPI service for DM statistics.

Serves the rendered text reports as JSON and the call graph image as PNG,
cached for an hour since the export only changes when it is re-downloaded.

Deployment: uvicorn app:app --host 127.0.0.1 --port 8204
"""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

import config
from events import load_export
from raster import RasterConfig, encode_png
from reports import build_report_payload, call_image

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------
EXPORT_PATH: Path = config.EXPORT_PATH
CACHE_TTL_SECONDS = config.CACHE_TTL_SECONDS

# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------
app = FastAPI(title="DM Statistics")

# ---------------------------------------------------------------------------
# Thread-safe cache
# ---------------------------------------------------------------------------
_cache_lock = threading.Lock()
_cache: dict[str, Any] = {
    "data": None,
    "image": None,
    "built_at": 0.0,
}


def _load_or_503(builder, *args):
    """Run a builder, mapping a missing or invalid export to HTTP 503."""
    try:
        return builder(*args)
    except FileNotFoundError:
        raise HTTPException(status_code=503, detail="Export file not found") from None
    except (json.JSONDecodeError, ValueError):
        raise HTTPException(status_code=503, detail="Export file is not valid") from None


def _get_cached_data(force_refresh: bool = False) -> dict[str, Any]:
    """Return cached report data, rebuilding if stale or forced."""
    now = time.monotonic()
    with _cache_lock:
        if (
            not force_refresh
            and _cache["data"] is not None
            and (now - _cache["built_at"]) < CACHE_TTL_SECONDS
        ):
            return _cache["data"]

    data = _load_or_503(
        build_report_payload, str(EXPORT_PATH), config.BAR_WIDTH, config.UTC_OFFSET_MINUTES
    )

    with _cache_lock:
        _cache["data"] = data
        _cache["image"] = None
        _cache["built_at"] = time.monotonic()

    return data


def _render_png() -> bytes:
    export = load_export(str(EXPORT_PATH), config.UTC_OFFSET_MINUTES)
    _, pixels = call_image(export, RasterConfig())
    return encode_png(pixels)


def _get_cached_image() -> bytes:
    """Return the cached PNG, rendering it on first request after a rebuild."""
    _get_cached_data()
    with _cache_lock:
        if _cache["image"] is not None:
            return _cache["image"]

    image = _load_or_503(_render_png)

    with _cache_lock:
        _cache["image"] = image
    return image


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/health")
@app.get("/healthz")
def healthz():
    return {"status": "ok"}


@app.get("/api/reports")
def api_reports():
    """Return every rendered report plus channel metadata."""
    return _get_cached_data()


@app.get("/api/reports/{name}")
def api_report(name: str):
    """Return a single rendered report."""
    data = _get_cached_data()
    report = data["reports"].get(name)
    if report is None:
        raise HTTPException(status_code=404, detail=f"Unknown report: {name}")
    return report


@app.get("/call-graph.png")
def call_graph_png():
    """Return the call graph image."""
    return Response(content=_get_cached_image(), media_type="image/png")


@app.get("/api/refresh")
def api_refresh():
    """Force a cache rebuild and return fresh metadata."""
    data = _get_cached_data(force_refresh=True)
    return {
        "status": "refreshed",
        "generated_at": data["generated_at"],
    }
