"""Command line entry point: ``chip8vm ROM [--ups N] ...``"""

import argparse
import logging
import sys
from pathlib import Path

from . import config
from .cpu import Chip8, Quirks
from .errors import Chip8Error

log = logging.getLogger("chip8vm")


def build_parser():
    parser = argparse.ArgumentParser(prog="chip8vm", description="CHIP-8 emulator")
    parser.add_argument("rom", help="raw CHIP-8 program image")
    parser.add_argument("--ups", type=int, default=config.cpu_hz,
                        help="instructions executed per second (default: %(default)s)")
    parser.add_argument("--timer-hz", type=int, default=config.timer_HZ,
                        help="delay/sound timer rate (default: %(default)s)")
    parser.add_argument("--scale", type=int, default=config.scale,
                        help="window pixels per CHIP-8 pixel (default: %(default)s)")
    parser.add_argument("--shift-quirk", action="store_true",
                        help="8xy6/8xyE shift Vy instead of Vx")
    parser.add_argument("--jump-quirk", action="store_true",
                        help="Bnnn adds Vx instead of V0")
    parser.add_argument("--debug", action="store_true", help="log every executed instruction")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    log.setLevel(logging.DEBUG if args.debug else logging.WARNING)

    try:
        image = Path(args.rom).read_bytes()
    except OSError as e:
        log.error("Cannot read ROM %s: %s", args.rom, e)
        return 1

    try:
        machine = Chip8(image, quirks=Quirks(args.shift_quirk, args.jump_quirk))
    except Chip8Error as e:
        log.error("Cannot load ROM %s: %s", args.rom, e)
        return 1
    log.info("Loaded ROM %s: %d bytes", args.rom, len(image))

    # imported late so the core stays usable without a display
    from .frontend import run

    error = run(machine, cpu_hz=args.ups, timer_hz=args.timer_hz, scale=args.scale)
    return 1 if error is not None else 0


if __name__ == "__main__":
    sys.exit(main())
