"""Test configuration and fixtures for CHIP-8 emulator tests."""

import pytest
import jax.numpy as jnp
from chipax import create_state, load_rom


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def assemble(*opcodes):
    """Pack 16-bit opcodes into big-endian ROM bytes."""
    return b"".join(opcode.to_bytes(2, "big") for opcode in opcodes)


def load_program(state, *opcodes):
    """Load a program made of the given opcodes at 0x200."""
    return load_rom(state, assemble(*opcodes))
