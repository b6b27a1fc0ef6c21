import os
import sys
import time
import warnings

_VERBOSE_FLAGS = {"--verbose", "-v"}
_cli_verbose = any(arg in _VERBOSE_FLAGS for arg in sys.argv[1:])
_env_log_level = os.environ.get("TF_CPP_MIN_LOG_LEVEL")
_suppress_messages = (not _cli_verbose) and _env_log_level != "0"

if _suppress_messages and _env_log_level is None:
    os.environ["TF_CPP_MIN_LOG_LEVEL"] = "3"

if _suppress_messages:
    warnings.filterwarnings(
        "ignore",
        message=r"Protobuf gencode version .* is exactly one major version older than the runtime version .*",
        category=UserWarning,
        module="google.protobuf",
    )

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


from argparse import ArgumentParser

from threaded_mandelbrot import (
    BACKENDS,
    DEFAULT_REGION,
    INSIDE_COLOR,
    ITER_POW,
    ConfigurationError,
    RenderAllocationError,
    RenderParameters,
    Region,
    default_palette,
    palette_from_colormap,
    render_frame,
    write_image,
)


def default_thread_count():
    return max(1, (os.cpu_count() or 1) // 2)


def build_parser():
    parser = ArgumentParser(description='Render the Mandelbrot set once single threaded and once multi threaded.')

    parser.add_argument('--width', type=int,
                        dest='width', help='image width in pixels',
                        metavar='WIDTH', default=960)

    parser.add_argument('--height', type=int,
                        dest='height', help='image height in pixels',
                        metavar='HEIGHT', default=540)

    parser.add_argument('--left', type=float, default=DEFAULT_REGION.left,
                        help='real coordinate of the left image border')
    parser.add_argument('--right', type=float, default=DEFAULT_REGION.right,
                        help='real coordinate of the right image border')
    parser.add_argument('--top', type=float, default=DEFAULT_REGION.top,
                        help='imaginary coordinate of the top image border')
    parser.add_argument('--bottom', type=float, default=DEFAULT_REGION.bottom,
                        help='imaginary coordinate of the bottom image border')

    parser.add_argument('--iter-pow', type=int,
                        dest='iter_pow', help='iteration cap is 2**ITER_POW - 1; also the top palette threshold',
                        metavar='ITER_POW', default=ITER_POW)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='explicit iteration cap, overrides --iter-pow',
                        metavar='MAX_ITERATIONS', default=None)

    parser.add_argument('--threads', type=int,
                        dest='threads', help='worker threads for the multi threaded render (default: half the CPUs)',
                        metavar='THREADS', default=None)

    parser.add_argument('--backend', choices=BACKENDS, default='python',
                        help='"python" evaluates one point at a time; "tensorflow" evaluates each tile as a batch.')

    parser.add_argument('--colormap', type=str,
                        dest='colormap', help='matplotlib colormap to build the palette from (e.g. "viridis", "inferno")',
                        metavar='COLORMAP', default=None)

    parser.add_argument('--stops', type=int, default=8,
                        help='number of palette control points sampled from --colormap')

    parser.add_argument('--inside-color', type=str, default='#000000',
                        help='Hex color for points inside the Mandelbrot set.')

    parser.add_argument('--single-output', type=str, default='Mandelbrot_single.png',
                        help='destination of the single threaded render')

    parser.add_argument('--multi-output', type=str, default='Mandelbrot_multi.png',
                        help='destination of the multi threaded render')

    parser.add_argument('--format', type=str,
                        dest='format', help='file format for the outputs. Any format supported by Pillow; defaults to the file extension.',
                        metavar='FORMAT', default=None)

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow diagnostics.')

    return parser


def _hex01(hex_color):
    hex_color = hex_color.lstrip('#')
    if len(hex_color) != 6:
        raise ValueError('inside_color must be in the form #RRGGBB.')
    try:
        return tuple(int(hex_color[i:i + 2], 16) / 255.0 for i in (0, 2, 4))
    except ValueError as exc:
        raise ValueError('inside_color must contain only hexadecimal digits.') from exc


def build_parameters(opt, parser):
    """Turn parsed options into validated :class:`RenderParameters`."""

    if opt.iter_pow < 1:
        parser.error('--iter-pow must be at least 1.')
    max_iterations = opt.max_iterations if opt.max_iterations is not None else (1 << opt.iter_pow) - 1

    try:
        inside_rgb = _hex01(opt.inside_color)
    except ValueError:
        print(f"Invalid inside_color '{opt.inside_color}', defaulting to black.")
        inside_rgb = INSIDE_COLOR

    try:
        if opt.colormap is not None:
            palette = palette_from_colormap(opt.colormap, opt.iter_pow, opt.stops)
        else:
            palette = default_palette(opt.iter_pow)
        params = RenderParameters(
            width=opt.width,
            height=opt.height,
            region=Region(left=opt.left, right=opt.right, top=opt.top, bottom=opt.bottom),
            max_iterations=max_iterations,
            palette=palette,
            inside_color=inside_rgb,
            backend=opt.backend,
        )
        params.validate()
    except ConfigurationError as exc:
        parser.error(str(exc))
    return params


def timed_render(params, workers):
    start = time.perf_counter()
    image = render_frame(params, workers=workers)
    elapsed_ms = int((time.perf_counter() - start) * 1000)
    return image, elapsed_ms


def store(image, params, path, image_format):
    result = write_image(image, params.width, params.height, path, image_format=image_format)
    if result.ok:
        log("Wrote %s" % result.path)
    else:
        print(f"Error storing file: {path}, please check everything is ok ({result.error})", file=sys.stderr)
    return result


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    params = build_parameters(opt, parser)
    threads = opt.threads if opt.threads is not None else default_thread_count()
    if threads < 1:
        parser.error('--threads must be at least 1.')

    log("Rendering %dx%d, %d iterations, %s backend" % (params.width, params.height, params.max_iterations, params.backend))

    try:
        print("Calling single threaded plot")
        image, elapsed_ms = timed_render(params, 1)
        print(f"Finished calculating the Mandelbrot set in single thread; time taken: {elapsed_ms} ms")
        store(image, params, opt.single_output, opt.format)
        del image

        print(f"Calling multi threaded plot with: {threads} threads")
        image, elapsed_ms = timed_render(params, threads)
        print(f"Finished calculating the Mandelbrot set in multithread; time taken: {elapsed_ms} ms")
        store(image, params, opt.multi_output, opt.format)
    except RenderAllocationError as exc:
        print(f"Render aborted: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
