"""Public API for Julia set rendering utilities."""

from .errors import BufferAllocationError, EncoderError, JuliaError
from .evaluator import escape_iteration, evaluate, evaluate_point
from .grid import DEFAULT_PARAMETERS, Grid, JuliaParameters, grid_axes, pixel_to_complex
from .renderer import (
    colorize,
    render,
    render_escape_steps,
    render_grid,
    render_membership,
)
from .tga import tga_header, to_image, write_preview, write_tga

__all__ = [
    "BufferAllocationError",
    "DEFAULT_PARAMETERS",
    "EncoderError",
    "Grid",
    "JuliaError",
    "JuliaParameters",
    "colorize",
    "escape_iteration",
    "evaluate",
    "evaluate_point",
    "grid_axes",
    "pixel_to_complex",
    "render",
    "render_escape_steps",
    "render_grid",
    "render_membership",
    "tga_header",
    "to_image",
    "write_preview",
    "write_tga",
]
