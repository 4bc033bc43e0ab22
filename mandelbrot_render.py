import os
import sys
import time
import warnings
from argparse import ArgumentParser
from dataclasses import dataclass
from pathlib import Path

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


import imageio

from mandelview import (
    DEFAULT_LOWER_RIGHT,
    DEFAULT_RESOLUTION,
    DEFAULT_UPPER_LEFT,
    DEFAULT_WORKERS,
    Renderer,
    Viewport,
    kernel_names,
    zoom_scales,
    zoom_sequence,
)
from mandelview.image import as_rows, to_grayscale_image, write_gif, write_single_image
from mandelview.sequence import EASINGS


@dataclass
class OutputConfig:
    image_path: Path
    image_format: str
    gif_path: Path | None


def build_parser():
    parser = ArgumentParser(description="Render the Mandelbrot set to a grayscale image.")

    parser.add_argument('--width', type=int,
                        dest='width', help='image width in pixels',
                        metavar='WIDTH', default=DEFAULT_RESOLUTION[0])

    parser.add_argument('--height', type=int,
                        dest='height', help='image height in pixels',
                        metavar='HEIGHT', default=DEFAULT_RESOLUTION[1])

    parser.add_argument('--upper-left-re', type=float,
                        dest='upper_left_re', help='real part of the upper-left corner',
                        metavar='RE', default=DEFAULT_UPPER_LEFT.real)

    parser.add_argument('--upper-left-im', type=float,
                        dest='upper_left_im', help='imaginary part of the upper-left corner',
                        metavar='IM', default=DEFAULT_UPPER_LEFT.imag)

    parser.add_argument('--lower-right-re', type=float,
                        dest='lower_right_re', help='real part of the lower-right corner',
                        metavar='RE', default=DEFAULT_LOWER_RIGHT.real)

    parser.add_argument('--lower-right-im', type=float,
                        dest='lower_right_im', help='imaginary part of the lower-right corner',
                        metavar='IM', default=DEFAULT_LOWER_RIGHT.imag)

    parser.add_argument('--workers', type=int,
                        dest='workers', help='number of bands rendered in parallel, 0 for one per CPU',
                        metavar='WORKERS', default=DEFAULT_WORKERS)

    parser.add_argument('--kernel', choices=kernel_names(), default='numpy',
                        help='escape-time implementation used for each band')

    parser.add_argument('--device', type=str, default=None,
                        help='TensorFlow device for the tensorflow kernel (e.g. "/GPU:0"). Defaults to the first GPU, if any.')

    parser.add_argument('--output', dest='output', type=str, default=None,
                        help='destination of the rendered image. Default: "mandelbrot.FORMAT" in the working directory.')

    parser.add_argument('--format', type=str,
                        dest='format', help='image file format. Can be any extension supported by Pillow. Default: "png".',
                        metavar='FORMAT', default='png')

    parser.add_argument('--gif', dest='gif', type=str, default=None,
                        help='also write an animated zoom sequence to this GIF file (requires --frames)')

    parser.add_argument('--frames', type=int,
                        dest='frames', help='number of frames in the GIF zoom sequence',
                        metavar='FRAMES', default=0)

    parser.add_argument('--zoom-factor', type=float,
                        dest='zoom_factor', help='zoom applied to the viewport each frame. Choose < 1 for zoom in, > 1 for zoom out',
                        metavar='ZOOM_FACTOR', default=0.9)

    parser.add_argument('--final-zoom', type=float, default=None,
                        help='overall zoom reached by the last frame (e.g. 1e-2). If set, overrides --zoom-factor.')

    parser.add_argument('--easing', choices=EASINGS, default='ease',
                        help='temporal curve used with --final-zoom')

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging, including TensorFlow and timing diagnostics.')

    return parser


def resolve_output_config(opt, parser: ArgumentParser) -> OutputConfig:
    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.workers < 0:
        parser.error("--workers must be zero or positive.")
    if opt.frames < 0:
        parser.error("--frames must be zero or positive.")
    if opt.frames and opt.gif is None:
        parser.error("--frames requires --gif.")
    if opt.gif is not None and not opt.frames:
        parser.error("--gif requires --frames.")

    image_format = (opt.format or "png").lower().lstrip(".") or "png"

    expected_suffix = f".{image_format}"
    if opt.output is None:
        image_path = Path(f"mandelbrot{expected_suffix}")
    else:
        image_path = Path(opt.output).expanduser()
    if image_path.suffix:
        if image_path.suffix.lower() != expected_suffix:
            parser.error(f"--output extension {image_path.suffix} does not match --format {image_format}.")
    else:
        image_path = image_path.with_suffix(expected_suffix)

    gif_path = None
    if opt.gif is not None:
        gif_path = Path(opt.gif).expanduser()
        if gif_path.suffix:
            if gif_path.suffix.lower() != ".gif":
                parser.error("GIF outputs must end with .gif.")
        else:
            gif_path = gif_path.with_suffix(".gif")

    return OutputConfig(
        image_path=image_path.resolve(),
        image_format=image_format,
        gif_path=gif_path.resolve() if gif_path is not None else None,
    )


def _prepare_tensorflow(device):
    from mandelview.tf_kernel import prepare_device

    device = prepare_device(device, quiet=_suppress_messages and not VERBOSE)
    log("TensorFlow kernel on %s" % device)
    return device


def write_zoom_gif(renderer: Renderer, viewport: Viewport, scales, gif_path: Path) -> None:
    """Render one frame per zoom scale into ``gif_path``."""

    gif_path.parent.mkdir(parents=True, exist_ok=True)
    writer = imageio.get_writer(str(gif_path), mode='I', duration=0.1, loop=0)
    try:
        for i, frame_viewport in enumerate(zoom_sequence(viewport.copy(), scales)):
            print("frame {0} out of {1}".format(i, len(scales)), end='\r')
            write_gif(writer, as_rows(renderer.render(frame_viewport), renderer.bounds))
    finally:
        writer.close()


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)

    output_config = resolve_output_config(opt, parser)

    global VERBOSE
    VERBOSE = VERBOSE or bool(opt.verbose)

    bounds = (opt.width, opt.height)
    viewport = Viewport(
        complex(opt.upper_left_re, opt.upper_left_im),
        complex(opt.lower_right_re, opt.lower_right_im),
    )

    device = opt.device
    if opt.kernel == "tensorflow":
        device = _prepare_tensorflow(device)

    renderer = Renderer(bounds, workers=opt.workers or None, kernel=opt.kernel, device=device)
    log("%r" % renderer)
    log("viewport %s to %s" % (viewport.upper_left, viewport.lower_right))

    start = time.perf_counter()
    pixels = renderer.render(viewport)
    log("rendered %dx%d in %.3fs" % (bounds[0], bounds[1], time.perf_counter() - start))

    try:
        write_single_image(to_grayscale_image(pixels, bounds), output_config.image_path, output_config.image_format)
    except (OSError, ValueError) as exc:
        print(f"error: could not write {output_config.image_path}: {exc}", file=sys.stderr)
        return 1
    log("wrote %s" % output_config.image_path)

    if output_config.gif_path is not None:
        scales = zoom_scales(opt.frames, opt.zoom_factor, final_zoom=opt.final_zoom, easing=opt.easing)
        try:
            write_zoom_gif(renderer, viewport, scales, output_config.gif_path)
        except (OSError, ValueError) as exc:
            print(f"error: could not write {output_config.gif_path}: {exc}", file=sys.stderr)
            return 1
        print()
        log("wrote %s" % output_config.gif_path)

    return 0


if __name__ == '__main__':
    sys.exit(main())
