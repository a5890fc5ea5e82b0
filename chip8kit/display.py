"""CHIP-8 display buffer operations."""

import jax.numpy as jnp
import numpy as np

from chip8kit.constants import SCREEN_HEIGHT, SCREEN_WIDTH
from chip8kit.state import EmulatorState

SPRITE_WIDTH = 8

# Bit position of each sprite column, most significant bit first
_columns = jnp.arange(SPRITE_WIDTH)


def clear_display(display: jnp.ndarray) -> jnp.ndarray:
    """Return an all-dark display of the same shape."""
    return jnp.zeros_like(display, dtype=jnp.bool_)


def draw_sprite(display: jnp.ndarray, x: int, y: int, sprite: jnp.ndarray) -> tuple[jnp.ndarray, bool]:
    """XOR a sprite into the display at (x, y).

    Each byte of ``sprite`` is one row, its most significant bit the leftmost
    pixel. Coordinates wrap around both screen edges. Returns the new display
    and whether any lit pixel was switched off.
    """
    sprite = jnp.asarray(sprite, dtype=jnp.uint8)
    rows = sprite.shape[0]
    if rows == 0:
        return display, False

    bits = ((sprite[:, None] >> (7 - _columns)[None, :]) & 1).astype(jnp.bool_)
    xs = (x + _columns)[None, :] % SCREEN_WIDTH
    ys = (y + jnp.arange(rows))[:, None] % SCREEN_HEIGHT
    xs, ys = jnp.broadcast_arrays(xs, ys)

    current = display[xs, ys]
    collided = bool(jnp.any(current & bits))
    return display.at[xs, ys].set(current ^ bits), collided


def snapshot(state: EmulatorState) -> np.ndarray:
    """Read-only (64, 32) copy of the display, indexed [x, y]."""
    frame = np.array(state.display, dtype=np.bool_)
    frame.flags.writeable = False
    return frame
