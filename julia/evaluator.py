"""Scalar escape-time evaluation of a single pixel."""

from __future__ import annotations

from typing import Optional

from .grid import DEFAULT_PARAMETERS, DTYPE, Grid, JuliaParameters, pixel_to_complex


def escape_iteration(grid: Grid, i: int, j: int, params: JuliaParameters = DEFAULT_PARAMETERS) -> Optional[int]:
    """Return the step at which pixel ``(i, j)`` escapes, or ``None`` if it stays bounded.

    Steps are counted from 1. The orbit is abandoned as soon as
    ``ar * ar + ai * ai`` exceeds ``params.threshold``.
    """

    ar, ai = pixel_to_complex(grid, i, j)
    cr = DTYPE(params.c_real)
    ci = DTYPE(params.c_imag)
    two = DTYPE(2)
    threshold = DTYPE(params.threshold)

    for step in range(1, params.max_iterations + 1):
        t = ar * ar - ai * ai + cr
        ai = two * ar * ai + ci
        ar = t
        if ar * ar + ai * ai > threshold:
            return step
    return None


def evaluate_point(grid: Grid, i: int, j: int, params: JuliaParameters = DEFAULT_PARAMETERS) -> bool:
    """Return ``True`` if pixel ``(i, j)`` belongs to the filled Julia set."""

    return escape_iteration(grid, i, j, params) is None


def evaluate(
    width: int,
    height: int,
    xl: float,
    xr: float,
    yb: float,
    yt: float,
    i: int,
    j: int,
    params: JuliaParameters = DEFAULT_PARAMETERS,
) -> bool:
    return evaluate_point(Grid(width, height, xl, xr, yb, yt), i, j, params)
