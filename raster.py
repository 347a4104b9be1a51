"""Render calls as a high-resolution time-of-day image.

Every 15-second slot of the day is one image column.  Each column stacks one
semi-transparent bar per author (first author at the bottom), blended over a
dark background, so the picture shows when calls usually happen.

The renderer only produces an RGBA ``numpy`` array; encoding to PNG happens
in ``save_call_image`` / ``encode_png`` via matplotlib.
"""

from __future__ import annotations

import io
import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np
from matplotlib import image as mpimg

import config
from durations import MS_PER_DAY, MS_PER_MINUTE
from events import Call
from splitter import split_interval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterConfig:
    """Geometry and colors of the call image.

    Attributes:
        buckets: Columns per day; must divide a day into whole milliseconds.
        aspect_ratio: Target width / height.  Height is
            ``ceil(buckets / aspect_ratio)``.
        day_start_minutes: Time of day shown in the leftmost column.
        background: RGB fill of the empty canvas.
        palette: RGB color per author slot, cycled.
        min_call_ms: Calls shorter than this are left out.
    """

    buckets: int = config.RASTER_BUCKETS
    aspect_ratio: float = config.RASTER_ASPECT_RATIO
    day_start_minutes: int = config.RASTER_DAY_START_MINUTES
    background: tuple[int, int, int] = config.RASTER_BACKGROUND
    palette: tuple[tuple[int, int, int], ...] = config.RASTER_PALETTE
    min_call_ms: int = config.MIN_CALL_MS

    @property
    def bucket_ms(self) -> int:
        return MS_PER_DAY // self.buckets

    @property
    def rotation(self) -> int:
        """Bucket index drawn in column 0."""
        return self.buckets * self.day_start_minutes * MS_PER_MINUTE // MS_PER_DAY

    @property
    def height(self) -> int:
        return math.ceil(self.buckets / self.aspect_ratio)

    def color(self, slot: int) -> tuple[int, int, int]:
        return self.palette[slot % len(self.palette)]


class CallGrid:
    """Total call milliseconds per (bucket, author) for one day cycle."""

    def __init__(self, authors: Sequence[str], buckets: int = config.RASTER_BUCKETS) -> None:
        if buckets <= 0 or MS_PER_DAY % buckets:
            raise ValueError(f"{buckets} buckets do not divide a day evenly")
        self.bucket_ms = MS_PER_DAY // buckets
        self.authors = tuple(authors)
        self._author_index = {author: i for i, author in enumerate(self.authors)}
        self.quantities = np.zeros((buckets, len(self.authors)), dtype=np.int64)

    @property
    def buckets(self) -> int:
        return self.quantities.shape[0]

    def add(self, author: str, start_ms: int, end_ms: int) -> bool:
        """Spread one interval over the grid.  False for an unknown author."""
        column = self._author_index.get(author)
        if column is None:
            return False
        for index, part_ms in split_interval(start_ms, end_ms, self.bucket_ms):
            self.quantities[index, column] += part_ms
        return True

    def totals(self) -> np.ndarray:
        """Total milliseconds per bucket across all authors."""
        return self.quantities.sum(axis=1)


def build_call_grid(
    authors: Sequence[str],
    calls: Iterable[Call],
    raster: RasterConfig | None = None,
) -> CallGrid:
    """Collect every sufficiently long call into a ``CallGrid``."""
    raster = raster or RasterConfig()
    grid = CallGrid(authors, raster.buckets)
    rejected = 0
    for call in calls:
        if call.duration_ms < raster.min_call_ms:
            continue
        if not grid.add(call.author, call.start_ms, call.end_ms):
            rejected += 1
    if rejected:
        logger.warning("Ignored %d calls from authors outside the registry", rejected)
    return grid


# ---------------------------------------------------------------------------
# Compositing
# ---------------------------------------------------------------------------

def blend(dst: np.ndarray, color: Sequence[int], alpha: np.ndarray | int) -> np.ndarray:
    """Composite *color* at *alpha* (0-255) over RGBA pixels *dst*.

    Standard "over" operator in 8-bit integer math:
    ``out = (src * a + dst * (255 - a)) // 255`` per color channel and
    ``out_a = a + dst_a * (255 - a) // 255``.

    Args:
        dst: ``(..., 4)`` uint8 pixels.
        color: RGB triple.
        alpha: Scalar or array broadcastable to ``dst[..., 0]``.

    Returns:
        New uint8 array with the same shape as *dst*.
    """
    a = np.asarray(alpha, dtype=np.int32)[..., np.newaxis]
    src = np.asarray(color, dtype=np.int32)
    base = dst.astype(np.int32)
    out = np.empty_like(dst)
    out[..., :3] = (src * a + base[..., :3] * (255 - a)) // 255
    out[..., 3] = (a[..., 0] + base[..., 3] * (255 - a[..., 0]) // 255)
    return out


def _column_alphas(remaining: int, ms_per_px: int) -> np.ndarray:
    """Alpha of each pixel painted for *remaining* ms, bottom pixel first."""
    steps = -(-remaining // ms_per_px)
    leftover = remaining - (steps - 1) * ms_per_px
    alphas = np.full(steps, 255, dtype=np.int32)
    alphas[-1] = leftover * 255 // ms_per_px
    return alphas


def _draw_column(
    pixels: np.ndarray,
    x: int,
    section: np.ndarray,
    raster: RasterConfig,
    ms_per_px: int,
) -> None:
    height = pixels.shape[0]
    whole = section // ms_per_px
    bases = height - 1 - np.concatenate(([0], np.cumsum(whole)[:-1]))

    # Upper authors first so a lower author's partial top pixel blends over them.
    for slot in range(len(section) - 1, -1, -1):
        remaining = int(section[slot])
        if remaining <= 0:
            continue
        alphas = _column_alphas(remaining, ms_per_px)
        ys = int(bases[slot]) - np.arange(len(alphas))
        on_canvas = ys >= 0
        color = raster.color(slot)
        rows = ys[on_canvas]
        pixels[rows, x] = blend(pixels[rows, x], color, alphas[on_canvas])
        # Steps past the top of the canvas stay on row 0.
        for alpha in alphas[~on_canvas]:
            pixels[0, x] = blend(pixels[0, x], color, int(alpha))


def _draw_columns(
    pixels: np.ndarray,
    columns: range,
    grid: CallGrid,
    raster: RasterConfig,
    ms_per_px: int,
) -> None:
    width = pixels.shape[1]
    for x in columns:
        section = grid.quantities[(x + raster.rotation) % width]
        _draw_column(pixels, x, section, raster, ms_per_px)


def render_call_image(
    grid: CallGrid,
    raster: RasterConfig | None = None,
    workers: int = 1,
) -> np.ndarray:
    """Draw the stacked call bars for every column.

    Args:
        grid: Populated per-bucket call totals.
        raster: Image geometry and colors.  ``raster.buckets`` must match
            the grid.
        workers: Number of threads.  Each thread owns a disjoint range of
            columns, so no two threads write the same pixel.

    Returns:
        ``(height, width, 4)`` uint8 RGBA array.

    Raises:
        ValueError: If the grid and config disagree on the bucket count.
    """
    raster = raster or RasterConfig(buckets=grid.buckets)
    if grid.buckets != raster.buckets:
        raise ValueError(
            f"grid has {grid.buckets} buckets but the image expects {raster.buckets}"
        )

    width, height = raster.buckets, raster.height
    max_ms = int((grid.totals() + 1).max())
    ms_per_px = -(-max_ms // height)
    logger.debug(
        "Rendering %dx%d call image, %d ms per pixel", width, height, ms_per_px
    )

    pixels = np.empty((height, width, 4), dtype=np.uint8)
    pixels[...] = (*raster.background, 0xFF)

    if workers <= 1:
        _draw_columns(pixels, range(width), grid, raster, ms_per_px)
    else:
        step = -(-width // workers)
        ranges = [range(lo, min(lo + step, width)) for lo in range(0, width, step)]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(_draw_columns, pixels, cols, grid, raster, ms_per_px)
                for cols in ranges
            ]
            for future in futures:
                future.result()

    logger.debug("Rendered call image")
    return pixels


def call_image_filename(channel_name: str, channel_id: str) -> str:
    """File name the CLI saves the call image under."""
    return f"Call Graph - {channel_name} - {channel_id}.png"


def save_call_image(pixels: np.ndarray, path: str) -> None:
    """Encode the RGBA array as a PNG file."""
    mpimg.imsave(path, pixels, format="png")
    logger.info("Wrote call image to %s", path)


def encode_png(pixels: np.ndarray) -> bytes:
    """PNG bytes of the RGBA array, for the web service."""
    buf = io.BytesIO()
    mpimg.imsave(buf, pixels, format="png")
    return buf.getvalue()
