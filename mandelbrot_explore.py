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

if not _cli_verbose:
    os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

VERBOSE = _cli_verbose


def log(message, *args, **kwargs):
    if VERBOSE:
        print(message, *args, **kwargs)


import pygame

from mandelview import DEFAULT_RESOLUTION, DEFAULT_WORKERS, Renderer, Viewport, kernel_names
from mandelview.image import to_rgba

PAN_STEP = 0.01
ZOOM_IN = 0.9
ZOOM_OUT = 1.1

# key -> (viewport method, argument)
KEY_BINDINGS = {
    pygame.K_RIGHT: ("translate_x", PAN_STEP),
    pygame.K_LEFT: ("translate_x", -PAN_STEP),
    pygame.K_UP: ("translate_y", PAN_STEP),
    pygame.K_DOWN: ("translate_y", -PAN_STEP),
    pygame.K_z: ("zoom", ZOOM_IN),
    pygame.K_x: ("zoom", ZOOM_OUT),
}
EXIT_KEY = pygame.K_ESCAPE


def apply_key(viewport: Viewport, key: int) -> bool:
    """Apply the navigation bound to ``key``; False if the key is unbound."""

    binding = KEY_BINDINGS.get(key)
    if binding is None:
        return False
    method, argument = binding
    getattr(viewport, method)(argument)
    return True


def to_surface(pixels, bounds) -> pygame.Surface:
    """Upload a gray buffer as an opaque RGBA surface."""

    rgba = to_rgba(pixels, bounds)
    return pygame.image.frombuffer(rgba.tobytes(), bounds, "RGBA")


def _prepare_tensorflow(device):
    from mandelview.tf_kernel import prepare_device

    device = prepare_device(device, quiet=_suppress_messages and not VERBOSE)
    log("TensorFlow kernel on %s" % device)
    return device


def build_parser():
    parser = ArgumentParser(description="Explore the Mandelbrot set. Arrows pan, Z/X zoom in/out, Escape quits.")
    parser.add_argument('--width', type=int, default=DEFAULT_RESOLUTION[0], help='window width in pixels')
    parser.add_argument('--height', type=int, default=DEFAULT_RESOLUTION[1], help='window height in pixels')
    parser.add_argument('--workers', type=int, default=DEFAULT_WORKERS,
                        help='number of bands rendered in parallel, 0 for one per CPU')
    parser.add_argument('--kernel', choices=kernel_names(), default='numpy',
                        help='escape-time implementation used for each band')
    parser.add_argument('--device', type=str, default=None, help='TensorFlow device for the tensorflow kernel')
    parser.add_argument('--fps', type=int, default=30, help='upper bound on display refreshes per second')
    parser.add_argument('-v', '--verbose', action='store_true', help='print render timings')
    return parser


def run(screen, renderer: Renderer, viewport: Viewport, fps: int) -> None:
    clock = pygame.time.Clock()
    surface = None
    rendered = None

    while True:
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                return
            if event.type == pygame.KEYDOWN:
                if event.key == EXIT_KEY:
                    return
                apply_key(viewport, event.key)

        # Rendering is deterministic, so an unchanged viewport keeps its frame.
        if surface is None or viewport != rendered:
            start = time.perf_counter()
            pixels = renderer.render(viewport)
            surface = to_surface(pixels, renderer.bounds)
            rendered = viewport.copy()
            log("frame %s to %s in %.3fs" % (viewport.upper_left, viewport.lower_right, time.perf_counter() - start))

        screen.fill((0, 0, 0))
        screen.blit(surface, (0, 0))
        pygame.display.flip()
        clock.tick(fps)


def main(argv=None):
    parser = build_parser()
    opt = parser.parse_args(argv)
    if opt.width <= 0 or opt.height <= 0:
        parser.error("--width and --height must be positive.")
    if opt.workers < 0:
        parser.error("--workers must be zero or positive.")

    global VERBOSE
    VERBOSE = VERBOSE or bool(opt.verbose)

    bounds = (opt.width, opt.height)
    device = opt.device
    if opt.kernel == "tensorflow":
        device = _prepare_tensorflow(device)

    renderer = Renderer(bounds, workers=opt.workers or None, kernel=opt.kernel, device=device)
    viewport = Viewport.default()

    pygame.init()
    try:
        screen = pygame.display.set_mode(bounds)
        pygame.display.set_caption("Mandelbrot")
    except pygame.error as exc:
        print(f"error: could not open a window: {exc}", file=sys.stderr)
        pygame.quit()
        return 1

    try:
        run(screen, renderer, viewport, opt.fps)
    finally:
        pygame.quit()
    return 0


if __name__ == '__main__':
    sys.exit(main())
