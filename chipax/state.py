"""CHIP-8 emulator state structures."""

import jax
import jax.numpy as jnp
from flax.struct import dataclass, PyTreeNode, field

from chipax.constants import (
    MEMORY_SIZE, PROGRAM_START, FONT_START, FONT_DATA, SCREEN_WIDTH, SCREEN_HEIGHT,
    STACK_SIZE, NUM_REGISTERS, NUM_KEYS, TIMER_START, FAULT_NONE,
)


def _array(shape, dtype, value=0):
    """Field whose default is a fresh array per instance."""
    return field(default_factory=lambda: jnp.full(shape, value, dtype=dtype))


@dataclass(frozen=True)
class StackState:
    """Return-address stack; pointer is the current depth."""
    data: jnp.ndarray = _array(STACK_SIZE, jnp.uint16)
    pointer: jnp.ndarray = _array((), jnp.uint8)


class EmulatorState(PyTreeNode):
    """Main CHIP-8 emulator state.

    The display is indexed ``[x, y]``; use ``chipax.emulator.framebuffer`` for
    the row-major view handed to renderers.
    """
    rng: jax.random.PRNGKey
    memory: jnp.ndarray = _array(MEMORY_SIZE, jnp.uint8)
    pc: jnp.ndarray = _array((), jnp.uint16, PROGRAM_START)
    display: jnp.ndarray = _array((SCREEN_WIDTH, SCREEN_HEIGHT), jnp.bool_)
    stack: StackState = field(default_factory=StackState)
    delay_timer: jnp.ndarray = _array((), jnp.uint8, TIMER_START)
    sound_timer: jnp.ndarray = _array((), jnp.uint8, TIMER_START)
    keypad: jnp.ndarray = _array(NUM_KEYS, jnp.bool_)
    V: jnp.ndarray = _array(NUM_REGISTERS, jnp.uint8)
    I: jnp.ndarray = _array((), jnp.uint16)
    waiting_for_key: jnp.ndarray = _array((), jnp.bool_)
    key_register: jnp.ndarray = _array((), jnp.uint8)
    draw_flag: jnp.ndarray = _array((), jnp.bool_)
    fault: jnp.ndarray = _array((), jnp.uint8, FAULT_NONE)
    fault_opcode: jnp.ndarray = _array((), jnp.uint16)


def create_state(rng: jax.random.PRNGKey = None) -> EmulatorState:
    """Create initial emulator state with font data loaded."""
    if rng is None:
        rng = jax.random.PRNGKey(0)
    state = EmulatorState(rng)
    font = jnp.array(FONT_DATA, dtype=jnp.uint8)
    return state.replace(memory=state.memory.at[FONT_START:FONT_START + len(FONT_DATA)].set(font))
