"""CHIP-8 emulator package."""

from chipax.state import EmulatorState, StackState, create_state
from chipax.emulator import (
    execute, fetch, step, run_steps, run_frame, load_rom, initialize,
    set_keys, clear_draw_flag, framebuffer,
)
from chipax.timers import tick_timers, sound_active
from chipax.decode import DecodedInstruction, Form, decode
from chipax.errors import (
    Chip8Error, RomTooLarge, GuestFault, UnknownOpcode, StackOverflow, StackUnderflow, raise_for_fault,
)
from chipax.constants import *

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "fetch",
    "execute",
    "step",
    "run_steps",
    "run_frame",
    "load_rom",
    "initialize",
    "set_keys",
    "clear_draw_flag",
    "framebuffer",
    "tick_timers",
    "sound_active",
    "DecodedInstruction",
    "Form",
    "decode",
    "Chip8Error",
    "RomTooLarge",
    "GuestFault",
    "UnknownOpcode",
    "StackOverflow",
    "StackUnderflow",
    "raise_for_fault",
    "PROGRAM_START",
    "FONT_START",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "MAX_ROM_SIZE",
]
