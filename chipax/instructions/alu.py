"""CHIP-8 ALU operations (8XYN).

Each operation maps ``(vx, vy)`` to ``(result, flag)``. Both are computed
from the operands as they were before the instruction; VX is written first
and VF second, so ``8FY4`` and friends leave the flag in VF.
"""

import jax.numpy as jnp
from chipax.state import EmulatorState
from chipax.decode import DecodedInstruction
from chipax.constants import FLAG_REGISTER

_NO_FLAG = jnp.zeros((), dtype=jnp.uint8)


def alu_set(vx, vy):
    """8XY0 - Set: VX = VY."""
    return vy, _NO_FLAG


def alu_or(vx, vy):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, _NO_FLAG


def alu_and(vx, vy):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, _NO_FLAG


def alu_xor(vx, vy):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, _NO_FLAG


def alu_add(vx, vy):
    """8XY4 - Add: VX += VY, VF = carry."""
    total = jnp.astype(vx, jnp.uint16) + jnp.astype(vy, jnp.uint16)
    carry = jnp.astype(total > 0xFF, jnp.uint8)
    return jnp.astype(total & 0xFF, jnp.uint8), carry


def alu_sub_xy(vx, vy):
    """8XY5 - Subtract: VX -= VY, VF = no borrow."""
    no_borrow = jnp.astype(vx >= vy, jnp.uint8)
    return jnp.astype(vx - vy, jnp.uint8), no_borrow


def alu_shift_right(vx, vy):
    """8XY6 - Shift right: VX >>= 1, VF = shifted out bit."""
    return jnp.astype(vx >> 1, jnp.uint8), jnp.astype(vx & 1, jnp.uint8)


def alu_sub_yx(vx, vy):
    """8XY7 - Subtract: VX = VY - VX, VF = no borrow."""
    no_borrow = jnp.astype(vy >= vx, jnp.uint8)
    return jnp.astype(vy - vx, jnp.uint8), no_borrow


def alu_shift_left(vx, vy):
    """8XYE - Shift left: VX <<= 1, VF = shifted out bit."""
    return jnp.astype(vx << 1, jnp.uint8), jnp.astype((vx >> 7) & 1, jnp.uint8)


def make_alu_instruction(operation, sets_flag: bool):
    """Wrap a (vx, vy) -> (result, flag) operation as an instruction handler."""
    def alu_instruction(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
        result, flag = operation(state.V[instruction.x], state.V[instruction.y])
        new_V = state.V.at[instruction.x].set(result)
        if sets_flag:
            new_V = new_V.at[FLAG_REGISTER].set(flag)
        return state.replace(V=new_V)
    return alu_instruction


execute_alu_set = make_alu_instruction(alu_set, sets_flag=False)
execute_alu_or = make_alu_instruction(alu_or, sets_flag=False)
execute_alu_and = make_alu_instruction(alu_and, sets_flag=False)
execute_alu_xor = make_alu_instruction(alu_xor, sets_flag=False)
execute_alu_add = make_alu_instruction(alu_add, sets_flag=True)
execute_alu_sub_xy = make_alu_instruction(alu_sub_xy, sets_flag=True)
execute_alu_shift_right = make_alu_instruction(alu_shift_right, sets_flag=True)
execute_alu_sub_yx = make_alu_instruction(alu_sub_yx, sets_flag=True)
execute_alu_shift_left = make_alu_instruction(alu_shift_left, sets_flag=True)
