"""CHIP-8 delay and sound timers.

Both timers count down by one per tick and stop at zero. Ticking is driven
by the host at ``TIMER_FREQUENCY`` independently of instruction execution.
"""

import jax.numpy as jnp
from chipax.state import EmulatorState


def _count_down(timer: jnp.ndarray) -> jnp.ndarray:
    # uint8 - 1 would wrap to 255, so only decrement non-zero timers
    return jnp.where(timer > 0, timer - 1, timer).astype(jnp.uint8)


def tick_timers(state: EmulatorState) -> EmulatorState:
    """Decrement delay and sound timers by one, floored at zero."""
    return state.replace(
        delay_timer=_count_down(state.delay_timer),
        sound_timer=_count_down(state.sound_timer),
    )


def sound_active(state: EmulatorState) -> jnp.ndarray:
    """The buzzer sounds while the sound timer is non-zero."""
    return state.sound_timer > 0
