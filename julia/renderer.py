"""Rendering primitives for Julia set rasters."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Optional

import numpy as np
import tensorflow as tf

from .errors import BufferAllocationError
from .evaluator import escape_iteration
from .grid import DEFAULT_PARAMETERS, Grid, JuliaParameters, grid_axes

DEVICE = "/CPU:0"

# Upper bound on the pixels a single band holds in flight.
BAND_PIXELS = 1 << 20

ESCAPED = 255
IN_SET = 0

ProgressCallback = Callable[[int, int], None]


@tf.function
def _julia_step(
    ar: tf.Tensor,
    ai: tf.Tensor,
    active: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    threshold: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor]:
    """Perform a single iteration for points that have not escaped."""

    two = tf.constant(2.0, dtype=ar.dtype)
    t = ar * ar - ai * ai + cr
    ai_new = two * ar * ai + ci
    ar = tf.where(active, t, ar)
    ai = tf.where(active, ai_new, ai)
    escaped = tf.logical_and(active, ar * ar + ai * ai > threshold)
    return ar, ai, escaped


@tf.function(
    input_signature=(
        tf.TensorSpec(shape=[None, None], dtype=tf.float32),
        tf.TensorSpec(shape=[None, None], dtype=tf.float32),
        tf.TensorSpec(shape=[], dtype=tf.float32),
        tf.TensorSpec(shape=[], dtype=tf.float32),
        tf.TensorSpec(shape=[], dtype=tf.float32),
        tf.TensorSpec(shape=[], dtype=tf.int32),
    )
)
def _julia_run(
    ar: tf.Tensor,
    ai: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    threshold: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tf.Tensor:
    """Iterate every point of a band and return its escape step (0 = bounded)."""

    i = tf.constant(0, dtype=tf.int32)
    steps = tf.zeros(tf.shape(ar), tf.int32)
    active = tf.ones(tf.shape(ar), tf.bool)

    def cond(i, ar, ai, steps, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, ar, ai, steps, active):
        ar, ai, escaped = _julia_step(ar, ai, active, cr, ci, threshold)
        steps = tf.where(escaped, i + 1, steps)
        active = tf.logical_and(active, tf.logical_not(escaped))
        return i + 1, ar, ai, steps, active

    _, _, _, steps, _ = tf.while_loop(cond, body, (i, ar, ai, steps, active))
    return steps


def _tensor_band(grid: Grid, params: JuliaParameters, rows: slice) -> np.ndarray:
    x, y = grid_axes(grid, rows)
    with tf.device(DEVICE):
        ar, ai = tf.meshgrid(tf.convert_to_tensor(x), tf.convert_to_tensor(y))
        steps = _julia_run(
            ar,
            ai,
            tf.constant(params.c_real, dtype=tf.float32),
            tf.constant(params.c_imag, dtype=tf.float32),
            tf.constant(params.threshold, dtype=tf.float32),
            tf.constant(params.max_iterations, dtype=tf.int32),
        )
    return steps.numpy()


def _scalar_band(grid: Grid, params: JuliaParameters, rows: slice) -> np.ndarray:
    band = range(grid.height)[rows]
    steps = np.zeros((len(band), grid.width), dtype=np.int32)
    for row, j in enumerate(band):
        for i in range(grid.width):
            steps[row, i] = escape_iteration(grid, i, j, params) or 0
    return steps


KERNELS = {
    "tensor": _tensor_band,
    "scalar": _scalar_band,
}


def _allocate(shape: tuple[int, ...], dtype) -> np.ndarray:
    try:
        return np.empty(shape, dtype=dtype)
    except MemoryError as exc:
        raise BufferAllocationError(int(np.prod(shape)) * np.dtype(dtype).itemsize) from exc


def default_band_rows(grid: Grid, workers: int) -> int:
    """Pick a band height giving each worker several bands of bounded size."""

    per_worker = -(-grid.height // (max(workers, 1) * 4))
    return max(1, min(per_worker, BAND_PIXELS // grid.width))


def _partition(height: int, band_rows: int) -> list[slice]:
    return [slice(start, min(start + band_rows, height)) for start in range(0, height, band_rows)]


def _render_bands(
    grid: Grid,
    params: JuliaParameters,
    sink: Callable[[slice, np.ndarray], None],
    *,
    workers: Optional[int],
    band_rows: Optional[int],
    kernel: str,
    progress: Optional[ProgressCallback],
) -> None:
    """Fan the grid out over a thread pool, one task per band of rows.

    Every band writes a disjoint row range through ``sink``. The call returns
    only once all bands have finished.
    """

    try:
        band_fn = KERNELS[kernel]
    except KeyError:
        raise ValueError(f"Unknown kernel '{kernel}'. Valid choices: {', '.join(sorted(KERNELS))}.") from None

    workers = workers if workers is not None else (os.cpu_count() or 1)
    if workers < 1:
        raise ValueError(f"workers must be at least 1, got {workers}.")
    band_rows = band_rows if band_rows is not None else default_band_rows(grid, workers)
    if band_rows < 1:
        raise ValueError(f"band_rows must be at least 1, got {band_rows}.")

    bands = _partition(grid.height, band_rows)

    def work(rows: slice) -> None:
        sink(rows, band_fn(grid, params, rows))

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(work, rows) for rows in bands]
        try:
            for done, future in enumerate(as_completed(futures), start=1):
                future.result()
                if progress is not None:
                    progress(done, len(bands))
        except BaseException:
            for future in futures:
                future.cancel()
            raise


def colorize(membership: np.ndarray) -> np.ndarray:
    """Map membership flags to blue-green-red triples.

    Bounded points become ``(0, 0, 255)`` and escaped points ``(255, 255, 255)``.
    """

    pixels = np.empty(membership.shape + (3,), dtype=np.uint8)
    value = np.where(membership, IN_SET, ESCAPED).astype(np.uint8)
    pixels[..., 0] = value
    pixels[..., 1] = value
    pixels[..., 2] = ESCAPED
    return pixels


def render_escape_steps(
    grid: Grid,
    params: JuliaParameters = DEFAULT_PARAMETERS,
    *,
    workers: Optional[int] = None,
    band_rows: Optional[int] = None,
    kernel: str = "tensor",
    progress: Optional[ProgressCallback] = None,
) -> np.ndarray:
    """Return the escape step of every pixel as a ``(height, width)`` array, 0 where bounded."""

    steps = _allocate(grid.shape, np.int32)

    def sink(rows: slice, band: np.ndarray) -> None:
        steps[rows] = band

    _render_bands(grid, params, sink, workers=workers, band_rows=band_rows, kernel=kernel, progress=progress)
    return steps


def render_membership(
    grid: Grid,
    params: JuliaParameters = DEFAULT_PARAMETERS,
    *,
    workers: Optional[int] = None,
    band_rows: Optional[int] = None,
    kernel: str = "tensor",
    progress: Optional[ProgressCallback] = None,
) -> np.ndarray:
    """Return a ``(height, width)`` boolean mask, ``True`` for points in the set."""

    membership = _allocate(grid.shape, np.bool_)

    def sink(rows: slice, band: np.ndarray) -> None:
        membership[rows] = band == 0

    _render_bands(grid, params, sink, workers=workers, band_rows=band_rows, kernel=kernel, progress=progress)
    return membership


def render_grid(
    grid: Grid,
    params: JuliaParameters = DEFAULT_PARAMETERS,
    *,
    workers: Optional[int] = None,
    band_rows: Optional[int] = None,
    kernel: str = "tensor",
    progress: Optional[ProgressCallback] = None,
) -> np.ndarray:
    """Render ``grid`` into a flat ``uint8`` buffer of ``3 * width * height`` bytes.

    Pixel ``(i, j)`` occupies offset ``3 * (j * width + i)``. Bands are
    colorized straight into the buffer, so no per-pixel intermediate the size
    of the whole grid is kept.
    """

    pixels = _allocate(grid.shape + (3,), np.uint8)

    def sink(rows: slice, band: np.ndarray) -> None:
        pixels[rows] = colorize(band == 0)

    _render_bands(grid, params, sink, workers=workers, band_rows=band_rows, kernel=kernel, progress=progress)
    return pixels.reshape(-1)


def render(
    width: int,
    height: int,
    xl: float,
    xr: float,
    yb: float,
    yt: float,
    params: JuliaParameters = DEFAULT_PARAMETERS,
    **options,
) -> np.ndarray:
    """Render the ``width`` x ``height`` raster over ``[xl, xr] x [yb, yt]``."""

    return render_grid(Grid(width, height, xl, xr, yb, yt), params, **options)
