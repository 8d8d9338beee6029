"""Host loop: drives the emulator core against an injected backend.

The core never touches windows, keyboards or audio devices. A ``Backend``
supplies the key snapshot for each frame and receives the framebuffer and the
sound level; ``Chip8Host`` owns the machine state and the frame schedule.
"""

import time
from typing import Iterable, Optional, Tuple

import jax
import jax.numpy as jnp
import numpy as np

from chipax.constants import NUM_KEYS, TIMER_FREQUENCY
from chipax.emulator import initialize, run_frame, clear_draw_flag, framebuffer
from chipax.errors import raise_for_fault, describe_fault
from chipax.logging import logger, format_registers
from chipax.timers import sound_active


def keypad_from_keys(pressed: Iterable[int]) -> np.ndarray:
    """16-slot boolean vector with the given key indices pressed."""
    keypad = np.zeros(NUM_KEYS, dtype=np.bool_)
    for key in pressed:
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Key index must be in 0..{NUM_KEYS - 1}, got {key}")
        keypad[key] = True
    return keypad


class Backend:
    """Input, presentation and sound capabilities used by the host loop."""

    def poll(self) -> Tuple[np.ndarray, bool]:
        """Return the current 16-key snapshot and whether the user asked to quit."""
        raise NotImplementedError

    def present(self, frame: np.ndarray) -> None:
        """Show a (32, 64) row-major boolean framebuffer."""
        raise NotImplementedError

    def set_sound(self, active: bool) -> None:
        """Start or stop the buzzer."""
        raise NotImplementedError

    def close(self) -> None:
        pass


class HeadlessBackend(Backend):
    """Backend without any device: scripted key presses, recorded output.

    Args:
        key_script: One entry per frame, each an iterable of pressed key
            indices. Frames past the end of the script have no keys down.
    """

    def __init__(self, key_script: Optional[Iterable[Iterable[int]]] = None):
        self.key_script = [keypad_from_keys(keys) for keys in (key_script or [])]
        self.frames_polled = 0
        self.frames_presented = 0
        self.last_frame = None
        self.sound_history = []

    def poll(self) -> Tuple[np.ndarray, bool]:
        if self.frames_polled < len(self.key_script):
            keys = self.key_script[self.frames_polled]
        else:
            keys = np.zeros(NUM_KEYS, dtype=np.bool_)
        self.frames_polled += 1
        return keys, False

    def present(self, frame: np.ndarray) -> None:
        self.frames_presented += 1
        self.last_frame = frame

    def set_sound(self, active: bool) -> None:
        self.sound_history.append(active)


class Chip8Host:
    """Runs a ROM frame by frame against a backend."""

    def __init__(
        self,
        rom_data: bytes,
        backend: Backend,
        instructions_per_frame: int = 10,
        seed: int = 0,
        strict: bool = False,
        max_frames: Optional[int] = None,
    ):
        """Initialize the machine and load the ROM.

        Args:
            rom_data: Raw ROM bytes, loaded at 0x200
            backend: Backend providing keys, presentation and sound
            instructions_per_frame: Instructions run per 60 Hz frame
                (10 gives the customary ~600 Hz)
            seed: Seed for the CXKK random number generator
            strict: Raise the matching ``GuestFault`` on the first fault
                instead of logging it and carrying on
            max_frames: Stop after this many frames (None runs until the
                backend asks to quit)

        Raises:
            RomTooLarge: If the ROM does not fit in program memory
        """
        if instructions_per_frame < 1:
            raise ValueError(f"instructions_per_frame must be positive, got {instructions_per_frame}")
        if max_frames is not None and max_frames < 0:
            raise ValueError(f"max_frames must not be negative, got {max_frames}")

        self.state = initialize(rom_data, jax.random.PRNGKey(seed))
        self.backend = backend
        self.instructions_per_frame = instructions_per_frame
        self.strict = strict
        self.max_frames = max_frames
        self.frame_count = 0
        self.step_count = 0
        logger.info(f"Loaded ROM ({len(rom_data)} bytes), {instructions_per_frame} instructions per frame")

    @property
    def clock_speed(self) -> int:
        """Nominal instructions per second."""
        return self.instructions_per_frame * TIMER_FREQUENCY

    def _check_faults(self, codes, opcodes):
        codes = np.asarray(codes)
        faulted = np.flatnonzero(codes)
        if faulted.size:
            first = faulted[0]
            logger.error(f"Halting on {describe_fault(codes[first])}: {format_registers(self.state)}")
            raise_for_fault(codes[first], int(opcodes[first]))

    def run_frame(self) -> bool:
        """Run one frame. Returns False once the loop should stop."""
        if self.max_frames is not None and self.frame_count >= self.max_frames:
            return False

        keys, quit_requested = self.backend.poll()
        if quit_requested:
            logger.info("Quit requested")
            return False

        keys = jnp.asarray(keys, dtype=jnp.bool_)
        self.state, (codes, opcodes) = run_frame(self.state, keys, self.instructions_per_frame)
        self.frame_count += 1
        self.step_count += self.instructions_per_frame

        if self.strict:
            self._check_faults(codes, opcodes)

        if bool(self.state.draw_flag):
            self.backend.present(framebuffer(self.state))
            self.state = clear_draw_flag(self.state)
        self.backend.set_sound(bool(sound_active(self.state)))

        return self.max_frames is None or self.frame_count < self.max_frames

    def run(self) -> int:
        """Run until the backend quits or ``max_frames`` is reached; returns frames run."""
        start = time.time()
        while self.run_frame():
            pass
        elapsed = time.time() - start
        logger.info(
            f"Stopped after {self.frame_count} frames ({self.step_count} steps) in {elapsed:.1f}s"
        )
        return self.frame_count
