import PIL.Image
import pytest

import julia_set
from julia.tga import tga_header


def test_renders_requested_grid(tmp_path, capsys):
    output = tmp_path / "julia.tga"
    status = julia_set.main(["--width", "40", "--height", "30", "--workers", "2", "--output", str(output)])

    assert status == 0
    data = output.read_bytes()
    assert len(data) == 18 + 3 * 40 * 30
    assert data[:18] == tga_header(40, 30)

    out = capsys.readouterr().out
    assert "Z(k+1)=Z(k)^2-0.8+0.156i" in out
    assert "Graphics data saved as" in out
    assert "Normal end of execution." in out


def test_size_multiplier_sets_square_grid():
    parser = julia_set.build_parser()
    opt = parser.parse_args(["--size", "2"])
    grid = julia_set.resolve_grid(opt, parser)

    assert grid.shape == (2000, 2000)


def test_defaults_match_reference_run():
    parser = julia_set.build_parser()
    opt = parser.parse_args([])
    grid = julia_set.resolve_grid(opt, parser)
    params = julia_set.resolve_parameters(opt, parser)

    assert grid.shape == (20000, 20000)
    assert (grid.xl, grid.xr, grid.yb, grid.yt) == (-1.5, 1.5, -1.5, 1.5)
    assert (params.max_iterations, params.threshold) == (200, 1000.0)
    assert params.c == complex(-0.8, 0.156)
    assert opt.output == "julia_set.tga"


def test_scalar_kernel_and_preview(tmp_path):
    output = tmp_path / "julia.tga"
    preview = tmp_path / "julia.png"
    status = julia_set.main([
        "--width", "12", "--height", "8",
        "--kernel", "scalar",
        "--output", str(output),
        "--preview", str(preview),
    ])

    assert status == 0
    with PIL.Image.open(preview) as image:
        assert image.size == (12, 8)


@pytest.mark.parametrize(
    "argv",
    [
        ["--xl", "1", "--xr", "-1"],
        ["--width", "1"],
        ["--size", "0"],
        ["--threshold", "-5"],
        ["--workers", "0"],
        ["--band-rows", "0"],
        ["--kernel", "gpu"],
    ],
)
def test_invalid_options_exit_with_usage_error(argv):
    with pytest.raises(SystemExit) as excinfo:
        julia_set.main(["--width", "4", "--height", "4", *argv])
    assert excinfo.value.code == 2


def test_unwritable_output_fails_cleanly(tmp_path, capsys):
    output = tmp_path / "missing" / "julia.tga"
    status = julia_set.main(["--width", "4", "--height", "4", "--output", str(output)])

    assert status == 1
    assert "missing" in capsys.readouterr().err
