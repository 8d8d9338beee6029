"""CHIP-8 system instructions (00E0, 00EE) and fault signalling."""

import jax
import jax.lax
import jax.numpy as jnp
from chipax.state import EmulatorState
from chipax.decode import DecodedInstruction
from chipax.constants import FAULT_UNKNOWN_OPCODE, FAULT_STACK_UNDERFLOW
from chipax.errors import describe_fault
from chipax.logging import logger
from chipax.stack import pop, is_empty


def report_fault(fault, opcode, pc):
    """Host-side diagnostic for a fault raised inside traced code."""
    # pc has already been advanced past the faulting instruction
    address = (int(pc) - 2) & 0xFFFF
    logger.warning(f"{describe_fault(fault)}: opcode 0x{int(opcode):04X} at 0x{address:03X}")


def signal_fault(state: EmulatorState, fault: int, instruction: DecodedInstruction) -> EmulatorState:
    """Record a fault code on the state and emit a diagnostic."""
    jax.debug.callback(report_fault, fault, instruction.raw, state.pc)
    return state.replace(
        fault=jnp.astype(fault, jnp.uint8),
        fault_opcode=jnp.astype(instruction.raw, jnp.uint16),
    )


def unknown_opcode(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """Opcode matching no instruction form: report it and carry on."""
    return signal_fault(state, FAULT_UNKNOWN_OPCODE, instruction)


def execute_clear_screen(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00E0 - Clear display."""
    return state.replace(
        display=jnp.zeros_like(state.display),
        draw_flag=jnp.ones((), dtype=jnp.bool_),
    )


def execute_return(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """00EE - Return from subroutine."""
    def do_return(state):
        stack, address = pop(state.stack)
        return state.replace(stack=stack, pc=address)

    return jax.lax.cond(
        is_empty(state.stack),
        lambda state: signal_fault(state, FAULT_STACK_UNDERFLOW, instruction),
        do_return,
        state
    )
