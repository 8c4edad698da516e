"""Sampling grids and iteration parameters for Julia set renders."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Working precision of the escape-time iteration.
DTYPE = np.float32

DEFAULT_SIZE = 20
DEFAULT_BOUNDS = (-1.5, 1.5, -1.5, 1.5)


def _to_working(value: float) -> float:
    return float(DTYPE(value))


@dataclass(frozen=True)
class JuliaParameters:
    """Parameters of the iteration ``a -> a * a + c``."""

    max_iterations: int = 200
    threshold: float = 1000.0
    c_real: float = -0.8
    c_imag: float = 0.156

    def __post_init__(self) -> None:
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be non-negative, got {self.max_iterations}.")
        if not self.threshold > 0:
            raise ValueError(f"threshold must be positive, got {self.threshold}.")

    @property
    def c(self) -> complex:
        return complex(self.c_real, self.c_imag)


DEFAULT_PARAMETERS = JuliaParameters()


@dataclass(frozen=True)
class Grid:
    """A ``width`` x ``height`` raster laid over ``[xl, xr] x [yb, yt]``.

    Bounds are rounded to the working precision on construction so that the
    corner pixels map back onto them exactly.
    """

    width: int
    height: int
    xl: float
    xr: float
    yb: float
    yt: float

    def __post_init__(self) -> None:
        if self.width <= 1 or self.height <= 1:
            raise ValueError(f"Grid needs at least 2x2 pixels, got {self.width}x{self.height}.")
        for name in ("xl", "xr", "yb", "yt"):
            object.__setattr__(self, name, _to_working(getattr(self, name)))
        if not self.xl < self.xr:
            raise ValueError(f"xl must be smaller than xr, got [{self.xl}, {self.xr}].")
        if not self.yb < self.yt:
            raise ValueError(f"yb must be smaller than yt, got [{self.yb}, {self.yt}].")

    @classmethod
    def square(cls, size: int = DEFAULT_SIZE, bounds: tuple[float, float, float, float] = DEFAULT_BOUNDS) -> "Grid":
        side = 1000 * size
        return cls(side, side, *bounds)

    @property
    def shape(self) -> tuple[int, int]:
        return self.height, self.width

    @property
    def buffer_size(self) -> int:
        return 3 * self.width * self.height


def pixel_to_complex(grid: Grid, i: int, j: int) -> tuple[np.float32, np.float32]:
    """Map pixel ``(i, j)`` onto the plane.

    Column ``i == 0`` lands on ``xl`` and row ``j == 0`` on ``yb``.
    """

    if not (0 <= i < grid.width and 0 <= j < grid.height):
        raise IndexError(f"Pixel ({i}, {j}) lies outside a {grid.width}x{grid.height} grid.")
    x = ((grid.width - i - 1) * grid.xl + i * grid.xr) / (grid.width - 1)
    y = ((grid.height - j - 1) * grid.yb + j * grid.yt) / (grid.height - 1)
    return DTYPE(x), DTYPE(y)


def grid_axes(grid: Grid, rows: slice | None = None) -> tuple[np.ndarray, np.ndarray]:
    """Return the real axis for every column and the imaginary axis for ``rows``."""

    i = np.arange(grid.width, dtype=np.float64)
    j = np.arange(grid.height, dtype=np.float64)
    if rows is not None:
        j = j[rows]
    x = ((grid.width - i - 1) * grid.xl + i * grid.xr) / (grid.width - 1)
    y = ((grid.height - j - 1) * grid.yb + j * grid.yt) / (grid.height - 1)
    return x.astype(DTYPE), y.astype(DTYPE)
