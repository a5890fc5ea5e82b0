"""CHIP-8 virtual machine, assembler and disassembler."""

from chip8kit.state import EmulatorState, Quirks, RunState, create_state
from chip8kit.emulator import execute, fetch, halt, load_rom, run_cycles, step
from chip8kit.decode import Instruction, decode, try_decode
from chip8kit.encode import encode
from chip8kit.errors import (
    AssemblerError, Chip8Error, DecodeError, ExecutionError, OutOfBoundsAccess,
    ProgramTooLarge, ResourceError, StackOverflow, StackUnderflow, UnknownOpcode,
)
from chip8kit.isa import Op
from chip8kit.constants import *
from chip8kit.display import snapshot
from chip8kit.keypad import set_key
from chip8kit.memory import load_program
from chip8kit.timers import tick, is_sound_active
from chip8kit.clock import Clock
from chip8kit.machine import Machine
from chip8kit.assembler import assemble
from chip8kit.disassembler import disassemble
from chip8kit.rendering import chip8_display_to_rgb, create_color_scheme

__all__ = [
    "EmulatorState",
    "Quirks",
    "RunState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "halt",
    "run_cycles",
    "load_rom",
    "load_program",
    "Instruction",
    "Op",
    "decode",
    "try_decode",
    "encode",
    "snapshot",
    "set_key",
    "tick",
    "is_sound_active",
    "Clock",
    "Machine",
    "assemble",
    "disassemble",
    "Chip8Error",
    "DecodeError",
    "UnknownOpcode",
    "ExecutionError",
    "StackOverflow",
    "StackUnderflow",
    "OutOfBoundsAccess",
    "ResourceError",
    "ProgramTooLarge",
    "AssemblerError",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "chip8_display_to_rgb",
    "create_color_scheme",
]
