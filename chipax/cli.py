"""Command line entry point: ``chipax ROM``."""

import argparse
import sys

from chipax.emulator import framebuffer
from chipax.errors import RomTooLarge, GuestFault
from chipax.host import Chip8Host, HeadlessBackend
from chipax.logging import logger
from chipax.rendering import COLOR_SCHEMES, save_frame

EXIT_OK = 0
EXIT_ROM_UNREADABLE = 1
EXIT_USAGE = 2  # argparse's own exit status
EXIT_ROM_TOO_LARGE = 3
EXIT_GUEST_FAULT = 4

HEADLESS_DEFAULT_FRAMES = 600


def read_rom(path: str) -> bytes:
    """Read a ROM image from disk."""
    with open(path, 'rb') as f:
        return f.read()


def _positive_int(text: str) -> int:
    value = int(text)
    if value < 1:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return value


def _non_negative_int(text: str) -> int:
    value = int(text)
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {value}")
    return value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chipax", description="CHIP-8 emulator")
    parser.add_argument("rom", help="path to the ROM image")
    parser.add_argument("--ipf", type=_positive_int, default=10, help="instructions per 60 Hz frame (default: 10)")
    parser.add_argument("--scale", type=_positive_int, default=10, help="window / screenshot upscaling factor")
    parser.add_argument("--color-scheme", default="classic", choices=list(COLOR_SCHEMES))
    parser.add_argument("--seed", type=int, default=0, help="seed for the random number instruction")
    parser.add_argument("--frames", type=_non_negative_int, default=None, help="stop after this many frames")
    parser.add_argument("--headless", action="store_true", help="run without a window or audio")
    parser.add_argument("--screenshot", metavar="PATH", help="save the final framebuffer to an image")
    parser.add_argument("--strict", action="store_true", help="stop on the first guest fault")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def _create_backend(args):
    if args.headless:
        return HeadlessBackend()
    from chipax.pygame_backend import PygameBackend
    return PygameBackend(scale=args.scale, color_scheme=args.color_scheme)


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger.set_level(args.log_level)

    try:
        rom_data = read_rom(args.rom)
    except OSError as e:
        logger.error(f"Couldn't open ROM '{args.rom}': {e}")
        return EXIT_ROM_UNREADABLE

    max_frames = args.frames
    if args.headless and max_frames is None:
        max_frames = HEADLESS_DEFAULT_FRAMES

    backend = _create_backend(args)
    try:
        host = Chip8Host(
            rom_data,
            backend,
            instructions_per_frame=args.ipf,
            seed=args.seed,
            strict=args.strict,
            max_frames=max_frames,
        )
        host.run()
    except RomTooLarge as e:
        logger.error(str(e))
        return EXIT_ROM_TOO_LARGE
    except GuestFault as e:
        logger.error(f"Guest program fault: {e}")
        return EXIT_GUEST_FAULT
    finally:
        backend.close()

    if args.screenshot:
        save_frame(framebuffer(host.state), args.screenshot, args.scale, args.color_scheme)
        logger.info(f"Screenshot saved: {args.screenshot}")

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
