"""Main CHIP-8 emulator execution engine."""

from functools import partial

import jax
import jax.lax
import jax.numpy as jnp
import numpy as np
from chipax.state import EmulatorState, create_state
from chipax.decode import Form, decode
from chipax.constants import PROGRAM_START, MEMORY_SIZE, MAX_ROM_SIZE, ADDRESS_MASK, NUM_KEYS, FAULT_NONE
from chipax.errors import RomTooLarge
from chipax.timers import tick_timers
from chipax.instructions.system import execute_clear_screen, execute_return, unknown_opcode
from chipax.instructions.control_flow import (
    execute_jump, execute_call, execute_skip_if_equal_immediate,
    execute_skip_if_not_equal_immediate, execute_skip_if_equal_register,
    execute_skip_if_not_equal_register, execute_jump_with_offset,
    execute_skip_if_key, execute_skip_if_not_key
)
from chipax.instructions.alu import (
    execute_alu_set, execute_alu_or, execute_alu_and, execute_alu_xor, execute_alu_add,
    execute_alu_sub_xy, execute_alu_shift_right, execute_alu_sub_yx, execute_alu_shift_left
)
from chipax.instructions.memory import execute_set, execute_add, execute_set_index, execute_random
from chipax.instructions.display import execute_display
from chipax.instructions.misc import (
    execute_get_delay_timer, execute_wait_for_key, resume_wait_for_key, execute_set_delay_timer,
    execute_set_sound_timer, execute_add_to_index, execute_font_character,
    execute_bcd_conversion, execute_store_registers, execute_load_registers
)

INSTRUCTION_HANDLERS = {
    Form.CLEAR_SCREEN: execute_clear_screen,
    Form.RETURN: execute_return,
    Form.JUMP: execute_jump,
    Form.CALL: execute_call,
    Form.SKIP_EQ_IMM: execute_skip_if_equal_immediate,
    Form.SKIP_NE_IMM: execute_skip_if_not_equal_immediate,
    Form.SKIP_EQ_REG: execute_skip_if_equal_register,
    Form.SET_IMM: execute_set,
    Form.ADD_IMM: execute_add,
    Form.SET_REG: execute_alu_set,
    Form.OR: execute_alu_or,
    Form.AND: execute_alu_and,
    Form.XOR: execute_alu_xor,
    Form.ADD_REG: execute_alu_add,
    Form.SUB_XY: execute_alu_sub_xy,
    Form.SHIFT_RIGHT: execute_alu_shift_right,
    Form.SUB_YX: execute_alu_sub_yx,
    Form.SHIFT_LEFT: execute_alu_shift_left,
    Form.SKIP_NE_REG: execute_skip_if_not_equal_register,
    Form.SET_INDEX: execute_set_index,
    Form.JUMP_OFFSET: execute_jump_with_offset,
    Form.RANDOM: execute_random,
    Form.DRAW: execute_display,
    Form.SKIP_KEY: execute_skip_if_key,
    Form.SKIP_NOT_KEY: execute_skip_if_not_key,
    Form.GET_DELAY: execute_get_delay_timer,
    Form.WAIT_KEY: execute_wait_for_key,
    Form.SET_DELAY: execute_set_delay_timer,
    Form.SET_SOUND: execute_set_sound_timer,
    Form.ADD_INDEX: execute_add_to_index,
    Form.FONT_CHARACTER: execute_font_character,
    Form.BCD: execute_bcd_conversion,
    Form.STORE_REGISTERS: execute_store_registers,
    Form.LOAD_REGISTERS: execute_load_registers,
    Form.UNKNOWN: unknown_opcode,
}

# lax.switch takes branches positionally, in Form order
_BRANCHES = [INSTRUCTION_HANDLERS[form] for form in Form]


def _clear_fault(state: EmulatorState) -> EmulatorState:
    return state.replace(
        fault=jnp.astype(FAULT_NONE, jnp.uint8),
        fault_opcode=jnp.zeros((), dtype=jnp.uint16),
    )


def execute(state: EmulatorState, instruction: int) -> EmulatorState:
    """Execute single CHIP-8 instruction.

    The program counter is not advanced here; ``fetch`` has already done it.
    """
    decoded_instruction = decode(instruction)
    state = _clear_fault(state)
    return jax.lax.switch(decoded_instruction.form, _BRANCHES, state, decoded_instruction)


def _pack_u16(high: jnp.uint8, low: jnp.uint8) -> jnp.uint16:
    """Pack two bytes into uint16."""
    return (high.astype(jnp.uint16) << 8) | low.astype(jnp.uint16)


def fetch(state: EmulatorState) -> tuple[EmulatorState, jnp.uint16]:
    """Fetch next instruction from memory."""
    high = state.memory[state.pc & ADDRESS_MASK]
    low = state.memory[(state.pc + 1) & ADDRESS_MASK]
    return state.replace(pc=state.pc + 2), _pack_u16(high, low)


def _fetch_and_execute(state: EmulatorState) -> EmulatorState:
    state, instruction = fetch(state)
    return execute(state, instruction)


def _resume(state: EmulatorState) -> EmulatorState:
    state = _clear_fault(state)
    return resume_wait_for_key(state)


def step(state: EmulatorState) -> EmulatorState:
    """Run one instruction, or re-check the keypad while FX0A is pending."""
    return jax.lax.cond(state.waiting_for_key, _resume, _fetch_and_execute, state)


def _scan_step(state, _):
    state = step(state)
    return state, (state.fault, state.fault_opcode)


@partial(jax.jit, static_argnums=1)
def run_steps(state: EmulatorState, n: int):
    """Run ``n`` steps; returns the final state and per-step (fault, opcode)."""
    return jax.lax.scan(_scan_step, state, length=n)


@partial(jax.jit, static_argnums=2)
def run_frame(state: EmulatorState, keys: jnp.ndarray, num_instructions: int):
    """One host frame: set keys, run instructions, tick the timers once."""
    state = state.replace(keypad=jnp.astype(keys, jnp.bool_))
    state, faults = jax.lax.scan(_scan_step, state, length=num_instructions)
    return tick_timers(state), faults


def set_keys(state: EmulatorState, keys) -> EmulatorState:
    """Replace the 16-key pressed/released snapshot."""
    keys = jnp.asarray(keys, dtype=jnp.bool_)
    if keys.shape != (NUM_KEYS,):
        raise ValueError(f"Expected {NUM_KEYS} key states, got shape {keys.shape}")
    return state.replace(keypad=keys)


def clear_draw_flag(state: EmulatorState) -> EmulatorState:
    return state.replace(draw_flag=jnp.zeros((), dtype=jnp.bool_))


def framebuffer(state: EmulatorState) -> np.ndarray:
    """Row-major (height, width) boolean copy of the display."""
    return np.asarray(state.display).T.copy()


def load_rom(state: EmulatorState, rom_data: bytes) -> EmulatorState:
    """Load ROM data into CHIP-8 memory starting at 0x200.

    Program memory is cleared first, so loading the same ROM again gives the
    same memory. Raises ``RomTooLarge`` without touching the state when the
    ROM does not fit.
    """
    rom_bytes = np.frombuffer(bytes(rom_data), dtype=np.uint8)
    if len(rom_bytes) > MAX_ROM_SIZE:
        raise RomTooLarge(len(rom_bytes))
    program = np.zeros(MEMORY_SIZE - PROGRAM_START, dtype=np.uint8)
    program[:len(rom_bytes)] = rom_bytes
    new_memory = state.memory.at[PROGRAM_START:].set(jnp.asarray(program))
    return state.replace(memory=new_memory)


def initialize(rom_data: bytes, rng: jax.random.PRNGKey = None) -> EmulatorState:
    """Fresh machine with ``rom_data`` loaded."""
    return load_rom(create_state(rng), rom_data)
