"""CHIP-8 delay and sound timers.

Both counters count down once per tick while above zero. ``tick`` is driven
at a fixed 60 Hz by the clock, independently of the instruction rate.
"""

import jax.numpy as jnp

from chip8kit.state import EmulatorState


def _decrement(counter: jnp.ndarray) -> jnp.ndarray:
    return jnp.where(counter > 0, counter - 1, counter).astype(jnp.uint8)


def tick(state: EmulatorState) -> EmulatorState:
    """Decrement both timers, never below zero."""
    return state.replace(
        delay_timer=_decrement(state.delay_timer),
        sound_timer=_decrement(state.sound_timer),
    )


def set_delay(state: EmulatorState, value: int) -> EmulatorState:
    return state.replace(delay_timer=jnp.asarray(int(value) & 0xFF, dtype=jnp.uint8))


def get_delay(state: EmulatorState) -> int:
    return int(state.delay_timer)


def set_sound(state: EmulatorState, value: int) -> EmulatorState:
    return state.replace(sound_timer=jnp.asarray(int(value) & 0xFF, dtype=jnp.uint8))


def get_sound(state: EmulatorState) -> int:
    return int(state.sound_timer)


def is_sound_active(state: EmulatorState) -> bool:
    """The buzzer sounds while the sound timer is non-zero."""
    return int(state.sound_timer) > 0
