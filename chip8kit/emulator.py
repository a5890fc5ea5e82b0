"""Main CHIP-8 emulator execution engine."""

import jax.numpy as jnp
from chip8kit.state import EmulatorState, RunState
from chip8kit.decode import decode
from chip8kit.constants import MEMORY_SIZE, PROGRAM_START
from chip8kit.errors import Chip8Error, OutOfBoundsAccess
from chip8kit.isa import Op
from chip8kit.memory import load_program, read_word
from chip8kit.instructions.system import execute_clear_screen, execute_return
from chip8kit.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key,
)
from chip8kit.instructions.alu import ALU_OPERATIONS, execute_alu_operation
from chip8kit.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chip8kit.instructions.display import execute_display
from chip8kit.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers,
)

HANDLERS = {
    Op.CLS: execute_clear_screen,
    Op.RET: execute_return,
    Op.JP: execute_jump,
    Op.CALL: execute_call,
    Op.SE_BYTE: execute_skip_if_equal_immediate,
    Op.SNE_BYTE: execute_skip_if_not_equal_immediate,
    Op.SE_REG: execute_skip_if_equal_register,
    Op.LD_BYTE: execute_set,
    Op.ADD_BYTE: execute_add,
    Op.SNE_REG: execute_skip_if_not_equal_register,
    Op.LD_I: execute_set_index,
    Op.JP_V0: execute_jump_with_offset,
    Op.RND: execute_random,
    Op.DRW: execute_display,
    Op.SKP: execute_skip_if_key,
    Op.SKNP: execute_skip_if_not_key,
    Op.LD_VX_DT: execute_get_delay_timer,
    Op.LD_KEY: execute_wait_for_key,
    Op.LD_DT_VX: execute_set_delay_timer,
    Op.LD_ST_VX: execute_set_sound_timer,
    Op.ADD_I: execute_add_to_index,
    Op.LD_FONT: execute_font_character,
    Op.BCD: execute_bcd_conversion,
    Op.STORE: execute_store_registers,
    Op.LOAD: execute_load_registers,
    **{op: execute_alu_operation for op in ALU_OPERATIONS},
}


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    Raises the instruction's fault (UnknownOpcode, StackOverflow,
    StackUnderflow, OutOfBoundsAccess) instead of returning a state.
    """
    decoded_instruction = decode(instruction)
    return HANDLERS[decoded_instruction.op](state, decoded_instruction)


def fetch(state: EmulatorState) -> tuple[EmulatorState, int]:
    """Fetch next instruction from memory."""
    pc = int(state.pc)
    if pc < PROGRAM_START or pc + 2 > MEMORY_SIZE:
        raise OutOfBoundsAccess(pc, 2)
    instruction = read_word(state, pc)
    return state.replace(pc=jnp.astype(pc + 2, jnp.uint16)), instruction


def halt(state: EmulatorState, reason: Chip8Error) -> EmulatorState:
    """Move the machine to its terminal HALTED state."""
    return state.replace(status=RunState.HALTED, halt_reason=reason, key_wait_register=None)


def step(state: EmulatorState) -> EmulatorState:
    """Run one fetch/decode/execute cycle.

    Faults do not propagate: they halt the machine, and the returned state
    carries the fault, located at the failing instruction, in ``halt_reason``.
    Waiting and halted machines are returned unchanged.
    """
    if state.status is not RunState.RUNNING:
        return state

    address = int(state.pc)
    word = None
    try:
        fetched, word = fetch(state)
        return execute(fetched, word)
    except Chip8Error as error:
        # PC stays on the failing instruction
        return halt(state, error.locate(address, word))


def run_cycles(state: EmulatorState, cycles: int) -> EmulatorState:
    """Run up to ``cycles`` steps, stopping early once the machine halts."""
    for _ in range(cycles):
        if state.status is RunState.HALTED:
            break
        state = step(state)
    return state


def load_rom(state: EmulatorState, filename: str) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200."""
    with open(filename, 'rb') as f:
        rom_data = f.read()
    return load_program(state, rom_data)
