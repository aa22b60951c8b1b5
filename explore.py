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


import tensorflow as tf

if _suppress_messages:
    tf.get_logger().setLevel("ERROR")
    for handler in tf.get_logger().handlers:
        handler.setLevel("ERROR")

from argparse import ArgumentParser

from escapetime import FrameCoordinator, FrameInput, RenderError, RenderParameters, Viewport, frame_to_image
from escapetime.renderer import (
    DEFAULT_MAX_BITS,
    DEFAULT_PRECISION_BITS,
    HEIGHT,
    MAX_ITERATIONS,
    NUMERIC_VARIANTS,
    WIDTH,
)
from escapetime.viewport import DEFAULT_CENTER, DEFAULT_SCALE, ZOOM_DIRECTIONS

PAN_DIRECTIONS = ("up", "down", "left", "right")


def build_parser():
    parser = ArgumentParser(description='Drive the parallel escape-time renderer with a scripted input session.')

    parser.add_argument('--width', type=int,
                        dest='width', help='horizontal resolution of the pixel buffer',
                        metavar='WIDTH', default=WIDTH)

    parser.add_argument('--height', type=int,
                        dest='height', help='vertical resolution of the pixel buffer',
                        metavar='HEIGHT', default=HEIGHT)

    parser.add_argument('--max-iterations', type=int,
                        dest='max_iterations', help='iterations after which a sample counts as inside the set',
                        metavar='MAX_ITERATIONS', default=MAX_ITERATIONS)

    parser.add_argument('--numeric', choices=NUMERIC_VARIANTS, default='float',
                        help='arithmetic used for the iteration: 64-bit "float" or exact "rational"')

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of worker threads (default: one per logical CPU, or 8)',
                        metavar='WORKERS', default=None)

    parser.add_argument('--precision-bits', type=int,
                        dest='precision_bits', help='rational only: keep this many bits below the pixel spacing. '
                                                    'Pass 0 for unbounded exact arithmetic (default: %d).' % DEFAULT_PRECISION_BITS,
                        metavar='BITS', default=None)

    parser.add_argument('--max-bits', type=int,
                        dest='max_bits', help='rational only, with --precision-bits 0: abort a pixel once a '
                                              'denominator grows past this many bits (default: %d).' % DEFAULT_MAX_BITS,
                        metavar='BITS', default=None)

    parser.add_argument('--scale', type=float,
                        dest='scale', help='initial half-height of the viewport in the complex plane',
                        metavar='SCALE', default=DEFAULT_SCALE)

    parser.add_argument('--x-center', type=float,
                        dest='x_center', help='initial real coordinate of the viewport center',
                        metavar='X_CENTER', default=DEFAULT_CENTER[0])

    parser.add_argument('--y-center', type=float,
                        dest='y_center', help='initial imaginary coordinate of the viewport center',
                        metavar='Y_CENTER', default=DEFAULT_CENTER[1])

    parser.add_argument('--frames', type=int,
                        dest='frames', help='number of frames to render',
                        metavar='FRAMES', default=1)

    parser.add_argument('--zoom', choices=ZOOM_DIRECTIONS, default=None,
                        help='zoom tick applied before every frame after the first')

    parser.add_argument('--pan', dest='pan', action='append', choices=PAN_DIRECTIONS, default=[],
                        help='pan direction held for the whole session. May be repeated.')

    parser.add_argument('--elapsed', type=float, default=None,
                        help='fixed seconds per frame for panning (default: measured wall time)')

    parser.add_argument('--show', action='store_true',
                        help='open the final frame in the system image viewer')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including per-frame timings.')

    return parser


def build_params(opt, parser: ArgumentParser) -> RenderParameters:
    if opt.frames < 1:
        parser.error("--frames must be at least 1.")
    if opt.elapsed is not None and opt.elapsed < 0:
        parser.error("--elapsed must not be negative.")
    if opt.precision_bits is not None and opt.precision_bits < 0:
        parser.error("--precision-bits must not be negative.")
    if opt.numeric != "rational":
        for flag, value in (("--precision-bits", opt.precision_bits), ("--max-bits", opt.max_bits)):
            if value is not None:
                warnings.warn(f"{flag} only affects the rational variant.", UserWarning, stacklevel=2)

    precision_bits = DEFAULT_PRECISION_BITS if opt.precision_bits is None else opt.precision_bits
    max_bits = DEFAULT_MAX_BITS if opt.max_bits is None else opt.max_bits

    try:
        return RenderParameters(
            width=opt.width,
            height=opt.height,
            max_iterations=opt.max_iterations,
            numeric=opt.numeric,
            workers=opt.workers,
            precision_bits=precision_bits or None,
            max_bits=max_bits,
        )
    except ValueError as exc:
        parser.error(str(exc))


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    global VERBOSE
    VERBOSE = bool(opt.verbose)

    params = build_params(opt, parser)
    viewport = Viewport(scale=opt.scale, center_x=opt.x_center, center_y=opt.y_center)
    pan = set(opt.pan)

    log("TensorFlow version: %s" % tf.__version__)
    log("Rendering {0}x{1} with {2} {3} workers".format(
        params.width, params.height, params.worker_count, params.numeric))

    image = None
    with FrameCoordinator(params, viewport) as coordinator:
        previous = time.perf_counter()
        for i in range(opt.frames):
            now = time.perf_counter()
            elapsed = opt.elapsed if opt.elapsed is not None else now - previous
            previous = now

            if i == 0:
                frame_input = FrameInput()
            else:
                frame_input = FrameInput(
                    up="up" in pan,
                    down="down" in pan,
                    left="left" in pan,
                    right="right" in pan,
                    zoom=opt.zoom,
                )

            try:
                buffer = coordinator.step(frame_input, elapsed)
            except RenderError as exc:
                parser.exit(1, f"{parser.prog}: error: frame {i}: {exc}\n")

            print("frame {0} out of {1}".format(i, opt.frames), end='\r')
            log("frame {0}: {1:.3f}s scale={2} center=({3}, {4})".format(
                i,
                coordinator.last_frame_seconds,
                float(coordinator.viewport.scale),
                float(coordinator.viewport.center_x),
                float(coordinator.viewport.center_y),
            ))

        image = frame_to_image(buffer, params)

    print()
    if opt.show and image is not None:
        image.show()
    return image


if __name__ == '__main__':
    main()
