"""CHIP-8 memory access with bounds checking."""

import jax.numpy as jnp

from chip8kit.constants import MAX_PROGRAM_SIZE, MEMORY_SIZE, PROGRAM_START
from chip8kit.errors import OutOfBoundsAccess, ProgramTooLarge
from chip8kit.state import EmulatorState


def check_read(address: int, count: int = 1) -> None:
    """Reads may touch any byte of the address space."""
    if address < 0 or address + count > MEMORY_SIZE:
        raise OutOfBoundsAccess(address, count)


def check_write(address: int, count: int = 1) -> None:
    """Writes are confined to the program region; the font area is read-only."""
    if address < PROGRAM_START or address + count > MEMORY_SIZE:
        raise OutOfBoundsAccess(address, count, write=True)


def read_bytes(state: EmulatorState, address: int, count: int) -> jnp.ndarray:
    """Read ``count`` bytes starting at ``address``."""
    check_read(address, count)
    return state.memory[address:address + count]


def write_bytes(state: EmulatorState, address: int, values) -> EmulatorState:
    """Write a byte sequence starting at ``address``."""
    values = jnp.asarray(values, dtype=jnp.uint8)
    check_write(address, values.shape[0])
    return state.replace(memory=state.memory.at[address:address + values.shape[0]].set(values))


def read_word(state: EmulatorState, address: int) -> int:
    """Read big-endian 16-bit word."""
    high, low = (int(value) for value in read_bytes(state, address, 2))
    return (high << 8) | low


def load_program(state: EmulatorState, program: bytes) -> EmulatorState:
    """Copy a raw program image into memory at PROGRAM_START.

    Raises:
        ProgramTooLarge: if the image does not fit above PROGRAM_START
    """
    if len(program) > MAX_PROGRAM_SIZE:
        raise ProgramTooLarge(len(program), MAX_PROGRAM_SIZE)
    if not program:
        return state
    rom_array = jnp.array(list(program), dtype=jnp.uint8)
    new_memory = state.memory.at[PROGRAM_START:PROGRAM_START + len(program)].set(rom_array)
    return state.replace(memory=new_memory)
