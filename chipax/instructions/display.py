"""CHIP-8 display operations."""

import jax.numpy as jnp
from chipax.state import EmulatorState
from chipax.decode import DecodedInstruction
from chipax.constants import SCREEN_WIDTH, SCREEN_HEIGHT, SPRITE_WIDTH, ADDRESS_MASK, FLAG_REGISTER

# Pre-computed coordinate grids for display operations
xx, yy = jnp.meshgrid(jnp.arange(SCREEN_WIDTH), jnp.arange(SCREEN_HEIGHT), indexing='ij')


def sprite_mask(memory: jnp.ndarray, index: jnp.ndarray, origin_x, origin_y, height) -> jnp.ndarray:
    """Screen-sized boolean mask of the set pixels of a sprite.

    Every screen pixel is mapped back to its (column, row) offset from the
    origin modulo the screen size, which wraps sprites across both edges.
    """
    col_offset = (xx - jnp.astype(origin_x, jnp.int32)) % SCREEN_WIDTH
    row_offset = (yy - jnp.astype(origin_y, jnp.int32)) % SCREEN_HEIGHT
    covered = (col_offset < SPRITE_WIDTH) & (row_offset < height)

    sprite_bytes = memory[(jnp.astype(index, jnp.int32) + row_offset) & ADDRESS_MASK]
    shift = jnp.clip(SPRITE_WIDTH - 1 - col_offset, 0, SPRITE_WIDTH - 1)
    return (((sprite_bytes >> shift) & 1) == 1) & covered


def execute_display(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """DXYN - Draw sprite at (VX, VY) with height N, VF = collision."""
    sprite_x = state.V[instruction.x] % SCREEN_WIDTH
    sprite_y = state.V[instruction.y] % SCREEN_HEIGHT
    sprite = sprite_mask(state.memory, state.I, sprite_x, sprite_y, instruction.n)

    collision = jnp.any(state.display & sprite)
    return state.replace(
        display=state.display ^ sprite,
        V=state.V.at[FLAG_REGISTER].set(collision),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    )
