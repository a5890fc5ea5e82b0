"""CHIP-8 emulator state structures."""

import enum
from typing import Optional

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chip8kit.constants import (
    FONT_DATA, FONT_START, MEMORY_SIZE, NUM_KEYS, NUM_REGISTERS, PROGRAM_START,
    SCREEN_HEIGHT, SCREEN_WIDTH, STACK_SIZE,
)
from chip8kit.errors import Chip8Error


class RunState(enum.Enum):
    """Execution engine states."""
    RUNNING = "running"
    AWAITING_KEY = "awaiting_key"
    HALTED = "halted"


@dataclass(frozen=True)
class Quirks:
    """Behavioural variants between CHIP-8 interpreters.

    The defaults follow the classical reference: shifts operate on VX in
    place, FX55/FX65 leave I untouched and BNNN adds V0.
    """
    shift_uses_vy: bool = field(pytree_node=False, default=False)
    index_increment_on_store: bool = field(pytree_node=False, default=False)
    jump_offset_uses_vx: bool = field(pytree_node=False, default=False)


@dataclass(frozen=True)
class StackState:
    """Stack state for subroutine calls."""
    data: jnp.ndarray = field(default_factory=lambda: jnp.zeros(STACK_SIZE, dtype=jnp.uint16))
    pointer: int = 0


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state."""
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = field(default_factory=lambda: jnp.zeros(MEMORY_SIZE, dtype=jnp.uint8))
    pc: jnp.ndarray = field(default_factory=lambda: jnp.astype(PROGRAM_START, jnp.uint16))
    display: jnp.ndarray = field(default_factory=lambda: jnp.zeros((SCREEN_WIDTH, SCREEN_HEIGHT), dtype=jnp.bool_))
    stack: StackState = StackState()
    delay_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    sound_timer: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint8))
    keypad: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_KEYS, dtype=jnp.bool_))
    V: jnp.ndarray = field(default_factory=lambda: jnp.zeros(NUM_REGISTERS, dtype=jnp.uint8))
    I: jnp.ndarray = field(default_factory=lambda: jnp.zeros((), dtype=jnp.uint16))
    status: RunState = field(pytree_node=False, default=RunState.RUNNING)
    key_wait_register: Optional[int] = field(pytree_node=False, default=None)
    halt_reason: Optional[Chip8Error] = field(pytree_node=False, default=None)
    quirks: Quirks = field(pytree_node=False, default=Quirks())

    @property
    def halted(self) -> bool:
        return self.status is RunState.HALTED

    @property
    def awaiting_key(self) -> bool:
        return self.status is RunState.AWAITING_KEY


def create_state(rng: jax.random.PRNGKey = jax.random.PRNGKey(0), quirks: Quirks = Quirks()) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    state = EmulatorState(rng, quirks=quirks)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))
