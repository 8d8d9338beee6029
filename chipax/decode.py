"""CHIP-8 instruction decoding.

Decoding turns a raw 16-bit opcode into a ``DecodedInstruction``: the operand
fields plus ``form``, the index of the instruction form it matches. Forms are
matched against a (mask, value) table, so classification is a handful of
vectorised comparisons and works the same on Python ints and traced arrays.
Opcodes that match no row decode to ``Form.UNKNOWN``.
"""

from enum import IntEnum

import jax.numpy as jnp
from chex import dataclass


class Form(IntEnum):
    """Instruction forms, in dispatch order."""
    CLEAR_SCREEN = 0        # 00E0
    RETURN = 1              # 00EE
    JUMP = 2                # 1NNN
    CALL = 3                # 2NNN
    SKIP_EQ_IMM = 4         # 3XKK
    SKIP_NE_IMM = 5         # 4XKK
    SKIP_EQ_REG = 6         # 5XY0
    SET_IMM = 7             # 6XKK
    ADD_IMM = 8             # 7XKK
    SET_REG = 9             # 8XY0
    OR = 10                 # 8XY1
    AND = 11                # 8XY2
    XOR = 12                # 8XY3
    ADD_REG = 13            # 8XY4
    SUB_XY = 14             # 8XY5
    SHIFT_RIGHT = 15        # 8XY6
    SUB_YX = 16             # 8XY7
    SHIFT_LEFT = 17         # 8XYE
    SKIP_NE_REG = 18        # 9XY0
    SET_INDEX = 19          # ANNN
    JUMP_OFFSET = 20        # BNNN
    RANDOM = 21             # CXKK
    DRAW = 22               # DXYN
    SKIP_KEY = 23           # EX9E
    SKIP_NOT_KEY = 24       # EXA1
    GET_DELAY = 25          # FX07
    WAIT_KEY = 26           # FX0A
    SET_DELAY = 27          # FX15
    SET_SOUND = 28          # FX18
    ADD_INDEX = 29          # FX1E
    FONT_CHARACTER = 30     # FX29
    BCD = 31                # FX33
    STORE_REGISTERS = 32    # FX55
    LOAD_REGISTERS = 33     # FX65
    UNKNOWN = 34


# (form, mask, value): opcode matches when opcode & mask == value
OPCODE_PATTERNS = (
    (Form.CLEAR_SCREEN, 0xFFFF, 0x00E0),
    (Form.RETURN, 0xFFFF, 0x00EE),
    (Form.JUMP, 0xF000, 0x1000),
    (Form.CALL, 0xF000, 0x2000),
    (Form.SKIP_EQ_IMM, 0xF000, 0x3000),
    (Form.SKIP_NE_IMM, 0xF000, 0x4000),
    (Form.SKIP_EQ_REG, 0xF00F, 0x5000),
    (Form.SET_IMM, 0xF000, 0x6000),
    (Form.ADD_IMM, 0xF000, 0x7000),
    (Form.SET_REG, 0xF00F, 0x8000),
    (Form.OR, 0xF00F, 0x8001),
    (Form.AND, 0xF00F, 0x8002),
    (Form.XOR, 0xF00F, 0x8003),
    (Form.ADD_REG, 0xF00F, 0x8004),
    (Form.SUB_XY, 0xF00F, 0x8005),
    (Form.SHIFT_RIGHT, 0xF00F, 0x8006),
    (Form.SUB_YX, 0xF00F, 0x8007),
    (Form.SHIFT_LEFT, 0xF00F, 0x800E),
    (Form.SKIP_NE_REG, 0xF00F, 0x9000),
    (Form.SET_INDEX, 0xF000, 0xA000),
    (Form.JUMP_OFFSET, 0xF000, 0xB000),
    (Form.RANDOM, 0xF000, 0xC000),
    (Form.DRAW, 0xF000, 0xD000),
    (Form.SKIP_KEY, 0xF0FF, 0xE09E),
    (Form.SKIP_NOT_KEY, 0xF0FF, 0xE0A1),
    (Form.GET_DELAY, 0xF0FF, 0xF007),
    (Form.WAIT_KEY, 0xF0FF, 0xF00A),
    (Form.SET_DELAY, 0xF0FF, 0xF015),
    (Form.SET_SOUND, 0xF0FF, 0xF018),
    (Form.ADD_INDEX, 0xF0FF, 0xF01E),
    (Form.FONT_CHARACTER, 0xF0FF, 0xF029),
    (Form.BCD, 0xF0FF, 0xF033),
    (Form.STORE_REGISTERS, 0xF0FF, 0xF055),
    (Form.LOAD_REGISTERS, 0xF0FF, 0xF065),
)

_MASKS = jnp.array([mask for _, mask, _ in OPCODE_PATTERNS], dtype=jnp.uint16)
_VALUES = jnp.array([value for _, _, value in OPCODE_PATTERNS], dtype=jnp.uint16)
_FORMS = jnp.array([form for form, _, _ in OPCODE_PATTERNS], dtype=jnp.int32)


@dataclass(frozen=True)
class DecodedInstruction:
    """Decoded CHIP-8 instruction with extracted operands."""
    raw: int
    form: int    # Form index, Form.UNKNOWN if nothing matched
    opcode: int  # First nibble
    x: int       # Second nibble (VX register)
    y: int       # Third nibble (VY register)
    n: int       # Fourth nibble (4-bit immediate)
    nn: int      # Last byte (8-bit immediate)
    nnn: int     # Last 12 bits (12-bit address)


def classify(instruction: int) -> jnp.ndarray:
    """Return the Form index of a raw opcode."""
    matches = (jnp.astype(instruction, jnp.uint16) & _MASKS) == _VALUES
    return jnp.where(jnp.any(matches), _FORMS[jnp.argmax(matches)], Form.UNKNOWN)


def decode(instruction: int) -> DecodedInstruction:
    """Decode 16-bit instruction into components."""
    return DecodedInstruction(
        raw=instruction,
        form=classify(instruction),
        opcode=(instruction & 0xF000) >> 12,
        x=(instruction & 0x0F00) >> 8,
        y=(instruction & 0x00F0) >> 4,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF
    )
