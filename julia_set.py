import os
import sys
import time
from argparse import ArgumentParser

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from julia import (
    BufferAllocationError,
    EncoderError,
    Grid,
    JuliaError,
    JuliaParameters,
    render_grid,
    write_preview,
    write_tga,
)
from julia.grid import DEFAULT_BOUNDS, DEFAULT_SIZE
from julia.renderer import DEVICE, KERNELS, default_band_rows

DEFAULT_OUTPUT = "julia_set.tga"


def build_parser():
    parser = ArgumentParser(description="Plot the filled Julia set of Z(k+1) = Z(k)^2 + C as a TGA image.")
    defaults = JuliaParameters()

    parser.add_argument('--size', type=int,
                        dest='size', help='size multiplier; the image is 1000*SIZE pixels square',
                        metavar='SIZE', default=DEFAULT_SIZE)

    parser.add_argument('--width', type=int,
                        dest='width', help='image width in pixels, overrides --size',
                        metavar='WIDTH', default=None)

    parser.add_argument('--height', type=int,
                        dest='height', help='image height in pixels, overrides --size',
                        metavar='HEIGHT', default=None)

    parser.add_argument('--xl', type=float, dest='xl', help='left limit of the real axis',
                        metavar='XL', default=DEFAULT_BOUNDS[0])
    parser.add_argument('--xr', type=float, dest='xr', help='right limit of the real axis',
                        metavar='XR', default=DEFAULT_BOUNDS[1])
    parser.add_argument('--yb', type=float, dest='yb', help='bottom limit of the imaginary axis',
                        metavar='YB', default=DEFAULT_BOUNDS[2])
    parser.add_argument('--yt', type=float, dest='yt', help='top limit of the imaginary axis',
                        metavar='YT', default=DEFAULT_BOUNDS[3])

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='number of iterations a point must survive to be in the set',
                        metavar='MAX_ITERATIONS', default=defaults.max_iterations)

    parser.add_argument('--threshold', type=float,
                        dest='threshold', help='squared magnitude above which a point is considered escaped',
                        metavar='THRESHOLD', default=defaults.threshold)

    parser.add_argument('--c-real', type=float, dest='c_real', help='real part of the constant C',
                        metavar='C_REAL', default=defaults.c_real)
    parser.add_argument('--c-imag', type=float, dest='c_imag', help='imaginary part of the constant C',
                        metavar='C_IMAG', default=defaults.c_imag)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of worker threads (default: one per CPU)',
                        metavar='WORKERS', default=None)

    parser.add_argument('--band-rows', type=int,
                        dest='band_rows', help='rows handed to a worker at a time',
                        metavar='BAND_ROWS', default=None)

    parser.add_argument('--kernel', choices=sorted(KERNELS), default='tensor',
                        help='"tensor" iterates whole bands with TensorFlow; "scalar" evaluates pixel by pixel.')

    parser.add_argument('--output', dest='output', type=str,
                        help='destination TGA file', metavar='OUTPUT', default=DEFAULT_OUTPUT)

    parser.add_argument('--preview', dest='preview', type=str, default=None,
                        help='also save a top-down RGB copy in any format supported by Pillow (e.g. "julia.png").')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def resolve_grid(opt, parser: ArgumentParser) -> Grid:
    if opt.size <= 0:
        parser.error("--size must be positive.")
    side = 1000 * opt.size
    width = opt.width if opt.width is not None else side
    height = opt.height if opt.height is not None else side
    try:
        return Grid(width, height, opt.xl, opt.xr, opt.yb, opt.yt)
    except ValueError as exc:
        parser.error(str(exc))


def resolve_parameters(opt, parser: ArgumentParser) -> JuliaParameters:
    try:
        return JuliaParameters(
            max_iterations=opt.max_iterations,
            threshold=opt.threshold,
            c_real=opt.c_real,
            c_imag=opt.c_imag,
        )
    except ValueError as exc:
        parser.error(str(exc))


def _progress(done, total):
    print("band {0} out of {1}".format(done, total), end='\r')


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    grid = resolve_grid(opt, parser)
    params = resolve_parameters(opt, parser)
    if opt.workers is not None and opt.workers < 1:
        parser.error("--workers must be at least 1.")
    if opt.band_rows is not None and opt.band_rows < 1:
        parser.error("--band-rows must be at least 1.")

    begin = time.perf_counter()

    print()
    print("JULIA_SET:")
    print("  Python version.")
    print("  Plot a version of the Julia set for Z(k+1)=Z(k)^2{0:+}{1:+}i".format(params.c_real, params.c_imag))

    log("TensorFlow version: %s" % tf.__version__)
    log("Device: %s" % DEVICE)
    log("Grid: %dx%d over [%g, %g] x [%g, %g]" % (grid.width, grid.height, grid.xl, grid.xr, grid.yb, grid.yt))
    workers = opt.workers if opt.workers is not None else (os.cpu_count() or 1)
    band_rows = opt.band_rows if opt.band_rows is not None else default_band_rows(grid, workers)
    log("Workers: %d, rows per band: %d, kernel: %s" % (workers, band_rows, opt.kernel))

    try:
        pixels = render_grid(
            grid,
            params,
            workers=workers,
            band_rows=band_rows,
            kernel=opt.kernel,
            progress=_progress,
        )
        print()
        log("Render time %f" % (time.perf_counter() - begin))

        output_path = write_tga(opt.output, grid.width, grid.height, pixels)
        print()
        print("TGA_WRITE:")
        print("  Graphics data saved as '%s'" % output_path)

        if opt.preview:
            preview_path = write_preview(opt.preview, grid.width, grid.height, pixels)
            print("  Preview saved as '%s'" % preview_path)
    except BufferAllocationError as exc:
        print("JULIA_SET: out of memory: %s" % exc, file=sys.stderr)
        return 1
    except EncoderError as exc:
        print("JULIA_SET: %s" % exc, file=sys.stderr)
        return 1
    except JuliaError as exc:
        print("JULIA_SET: error: %s" % exc, file=sys.stderr)
        return 1

    del pixels

    print()
    print("JULIA_SET:")
    print("Normal end of execution.")
    print("Execution time %f" % (time.perf_counter() - begin))
    return 0


if __name__ == '__main__':
    sys.exit(main())
