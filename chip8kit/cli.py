"""Command line entry point: ``chip8kit {asm,dis,run,headless}``."""

import argparse
import os
import sys
import time

import numpy as np
from tqdm import tqdm

from chip8kit.assembler import assemble
from chip8kit.config import load_config
from chip8kit.constants import TIMER_HZ
from chip8kit.disassembler import disassemble
from chip8kit.errors import Chip8Error
from chip8kit.logging import ConsoleLogger, MachineLogger
from chip8kit.machine import Machine
from chip8kit.rendering import create_video, save_frame

SOURCE_SUFFIXES = (".asm", ".s", ".8o")


def read_program(path: str) -> bytes:
    """Read a ROM image, assembling it first when ``path`` is source text."""
    if path.lower().endswith(SOURCE_SUFFIXES):
        with open(path) as f:
            return assemble(f.read()).binary
    with open(path, "rb") as f:
        return f.read()


def cmd_asm(args, logger: ConsoleLogger) -> int:
    output = args.output or os.path.splitext(args.source)[0] + ".ch8"
    with open(args.source) as f:
        program = assemble(f.read())
    with open(output, "wb") as f:
        f.write(program.binary)
    logger.info(f"Assembled {args.source} -> {output} ({len(program)} bytes, {len(program.labels)} labels)")
    return 0


def cmd_dis(args, logger: ConsoleLogger) -> int:
    with open(args.rom, "rb") as f:
        listing = disassemble(f.read())
    text = listing.render(annotate=not args.plain)
    if args.output:
        with open(args.output, "w") as f:
            f.write(text)
        logger.info(f"Wrote {len(listing.instructions)} instructions to {args.output}")
    else:
        sys.stdout.write(text)
    return 0


def _machine(args) -> Machine:
    cfg = load_config(args.config, args.overrides)
    machine = Machine(cfg, MachineLogger(log_level=cfg.log_level))
    machine.load(read_program(args.rom), source=args.rom)
    return machine


def cmd_run(args, logger: ConsoleLogger) -> int:
    from chip8kit.frontend import run_window

    machine = _machine(args)
    run_window(machine)
    return 1 if machine.halted else 0


def cmd_headless(args, logger: ConsoleLogger) -> int:
    if args.frames < 1:
        raise ValueError(f"--frames must be at least 1, got {args.frames}")
    machine = _machine(args)
    display_cfg = machine.config.display
    frames = []
    start_time = time.time()
    for _ in tqdm(range(args.frames), desc="Running", unit="frame", disable=args.quiet):
        machine.advance(1.0 / TIMER_HZ)
        frames.append(machine.snapshot())
        if machine.halted:
            break
    machine.logger.log_run_summary(
        machine.clock.cycles_executed, machine.clock.ticks_elapsed, time.time() - start_time
    )

    if args.screenshot:
        save_frame(frames[-1], args.screenshot, display_cfg.scale, display_cfg.color_scheme)
        machine.logger.info(f"Saved screenshot to {args.screenshot}")
    if args.video:
        written = create_video(
            np.stack(frames), args.video, fps=TIMER_HZ, scale=display_cfg.scale,
            color_scheme=display_cfg.color_scheme, persistence=display_cfg.persistence,
        )
        machine.logger.info(f"Saved {written} frames to {args.video}")
    return 1 if machine.halted else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8kit", description="CHIP-8 interpreter, assembler and disassembler")
    parser.add_argument("--log-level", type=str, default="INFO", help="Console log level (default: INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    asm = subparsers.add_parser("asm", help="Assemble a source file into a ROM")
    asm.add_argument("source", type=str)
    asm.add_argument("-o", "--output", type=str, default=None, help="Output ROM (default: SOURCE with .ch8)")
    asm.set_defaults(handler=cmd_asm)

    dis = subparsers.add_parser("dis", help="Disassemble a ROM")
    dis.add_argument("rom", type=str)
    dis.add_argument("-o", "--output", type=str, default=None, help="Write the listing here instead of stdout")
    dis.add_argument("--plain", action="store_true", help="Omit address and opcode comments")
    dis.set_defaults(handler=cmd_dis)

    for name, handler, help_text in (
        ("run", cmd_run, "Run a ROM or source file in a window"),
        ("headless", cmd_headless, "Run a ROM without a window for a fixed number of frames"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("rom", type=str)
        sub.add_argument("--config", type=str, default=None, help="YAML configuration file")
        sub.add_argument("overrides", nargs="*", help="Config overrides such as clock_hz=1000")
        sub.set_defaults(handler=handler)
        if name == "headless":
            sub.add_argument("--frames", type=int, default=600, help="Number of 60 Hz frames (default: 600)")
            sub.add_argument("--screenshot", type=str, default=None, help="Save the last frame as an image")
            sub.add_argument("--video", type=str, default=None, help="Save all frames as an MP4 video")
            sub.add_argument("--quiet", action="store_true", help="Hide the progress bar")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logger = ConsoleLogger(log_level=args.log_level)
    try:
        return args.handler(args, logger)
    except (Chip8Error, OSError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
