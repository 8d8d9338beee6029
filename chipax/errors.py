"""Exceptions raised at the host boundary.

Traced instruction code cannot raise: runtime faults are recorded as codes in
``EmulatorState.fault`` and turned into exceptions here when a caller asks
for it (``raise_for_fault``).
"""

from chipax.constants import (
    MAX_ROM_SIZE, FAULT_NONE, FAULT_UNKNOWN_OPCODE, FAULT_STACK_OVERFLOW, FAULT_STACK_UNDERFLOW,
)


class Chip8Error(Exception):
    """Base class for all emulator errors."""


class RomTooLarge(Chip8Error):
    """ROM does not fit in program memory."""

    def __init__(self, size: int):
        self.size = size
        super().__init__(f"ROM is {size} bytes, program memory holds at most {MAX_ROM_SIZE}")


class GuestFault(Chip8Error):
    """A fault caused by the running program rather than the host."""

    code = FAULT_NONE
    description = "guest fault"

    def __init__(self, opcode: int = None):
        self.opcode = opcode
        message = self.description
        if opcode is not None:
            message = f"{message} (opcode 0x{opcode:04X})"
        super().__init__(message)


class UnknownOpcode(GuestFault):
    code = FAULT_UNKNOWN_OPCODE
    description = "unknown opcode"


class StackOverflow(GuestFault):
    code = FAULT_STACK_OVERFLOW
    description = "call with a full stack"


class StackUnderflow(GuestFault):
    code = FAULT_STACK_UNDERFLOW
    description = "return with an empty stack"


FAULT_ERRORS = {
    error.code: error for error in (UnknownOpcode, StackOverflow, StackUnderflow)
}


def describe_fault(code: int) -> str:
    """Human readable name for a fault code."""
    error = FAULT_ERRORS.get(int(code))
    return error.description if error else f"fault {int(code)}"


def raise_for_fault(code: int, opcode: int = None):
    """Raise the exception matching a fault code; no-op for FAULT_NONE."""
    code = int(code)
    if code == FAULT_NONE:
        return
    if code not in FAULT_ERRORS:
        raise ValueError(f"Unknown fault code {code}")
    raise FAULT_ERRORS[code](opcode)
