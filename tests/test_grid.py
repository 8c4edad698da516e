import numpy as np
import pytest

from julia.grid import DEFAULT_PARAMETERS, Grid, JuliaParameters, grid_axes, pixel_to_complex


@pytest.mark.parametrize("width,height", [(2, 2), (3, 7), (100, 41), (1000, 999)])
@pytest.mark.parametrize("bounds", [(-1.5, 1.5, -1.5, 1.5), (-2.0, 0.7, -1.1, 1.3), (0.1, 0.2, -0.3, 0.4)])
def test_corner_pixels_map_exactly_onto_bounds(width, height, bounds):
    grid = Grid(width, height, *bounds)

    assert pixel_to_complex(grid, 0, 0) == (grid.xl, grid.yb)
    assert pixel_to_complex(grid, width - 1, height - 1) == (grid.xr, grid.yt)


def test_column_index_moves_toward_xr_and_row_index_toward_yt():
    grid = Grid(5, 5, -1.5, 1.5, -1.5, 1.5)

    assert pixel_to_complex(grid, 4, 0) == (1.5, -1.5)
    assert pixel_to_complex(grid, 0, 4) == (-1.5, 1.5)
    assert pixel_to_complex(grid, 2, 2) == (0.0, 0.0)
    assert pixel_to_complex(grid, 1, 3) == (-0.75, 0.75)


def test_pixel_outside_grid_is_rejected():
    grid = Grid(4, 3, -1, 1, -1, 1)
    with pytest.raises(IndexError):
        pixel_to_complex(grid, 4, 0)
    with pytest.raises(IndexError):
        pixel_to_complex(grid, 0, -1)


def test_axes_agree_with_scalar_mapping():
    grid = Grid(37, 23, -1.3, 0.9, -0.7, 1.1)
    x, y = grid_axes(grid)

    assert x.dtype == np.float32 and y.dtype == np.float32
    assert x.shape == (37,) and y.shape == (23,)
    for i in range(grid.width):
        assert x[i] == pixel_to_complex(grid, i, 0)[0]
    for j in range(grid.height):
        assert y[j] == pixel_to_complex(grid, 0, j)[1]


def test_axes_for_a_band_of_rows():
    grid = Grid(10, 20, -1, 1, -1, 1)
    _, full = grid_axes(grid)
    _, band = grid_axes(grid, slice(5, 9))

    np.testing.assert_array_equal(band, full[5:9])


@pytest.mark.parametrize(
    "args",
    [
        (1, 10, -1, 1, -1, 1),
        (10, 1, -1, 1, -1, 1),
        (10, 10, 1, -1, -1, 1),
        (10, 10, -1, 1, 1, 1),
    ],
)
def test_invalid_grids_are_rejected(args):
    with pytest.raises(ValueError):
        Grid(*args)


def test_bounds_are_rounded_to_single_precision():
    grid = Grid(2, 2, -1.1, 1.1, -0.3, 0.3)
    assert grid.xl == float(np.float32(-1.1))
    assert grid.yt == float(np.float32(0.3))


def test_square_grid_scales_with_size():
    grid = Grid.square(3)
    assert grid.shape == (3000, 3000)
    assert grid.buffer_size == 3 * 3000 * 3000
    assert (grid.xl, grid.xr, grid.yb, grid.yt) == (-1.5, 1.5, -1.5, 1.5)


def test_default_parameters():
    assert DEFAULT_PARAMETERS.max_iterations == 200
    assert DEFAULT_PARAMETERS.threshold == 1000.0
    assert DEFAULT_PARAMETERS.c == complex(-0.8, 0.156)


def test_invalid_parameters_are_rejected():
    with pytest.raises(ValueError):
        JuliaParameters(max_iterations=-1)
    with pytest.raises(ValueError):
        JuliaParameters(threshold=0.0)
