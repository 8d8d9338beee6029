"""Pygame window, keyboard and buzzer backend."""

import os
from typing import Tuple

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")
import pygame

from chipax.constants import NUM_KEYS, SCREEN_WIDTH, SCREEN_HEIGHT, TIMER_FREQUENCY
from chipax.host import Backend
from chipax.logging import logger
from chipax.rendering import chip8_display_to_rgb, create_color_scheme

# Conventional layout:   1 2 3 4      1 2 3 C
#                        Q W E R  ->  4 5 6 D
#                        A S D F      7 8 9 E
#                        Z X C V      A 0 B F
KEY_MAP = {
    pygame.K_x: 0x0, pygame.K_1: 0x1, pygame.K_2: 0x2, pygame.K_3: 0x3,
    pygame.K_q: 0x4, pygame.K_w: 0x5, pygame.K_e: 0x6, pygame.K_a: 0x7,
    pygame.K_s: 0x8, pygame.K_d: 0x9, pygame.K_z: 0xA, pygame.K_c: 0xB,
    pygame.K_4: 0xC, pygame.K_r: 0xD, pygame.K_f: 0xE, pygame.K_v: 0xF,
}


class PygameBackend(Backend):
    """Draws the framebuffer in a window and plays a square-wave beep."""

    def __init__(
        self,
        scale: int = 10,
        fps: int = TIMER_FREQUENCY,
        color_scheme: str = "classic",
        title: str = "chipax",
        beep_frequency: int = 440,
    ):
        self.scale = scale
        self.fps = fps
        self.on_color, self.off_color = create_color_scheme(color_scheme)

        pygame.init()
        self.screen = pygame.display.set_mode((SCREEN_WIDTH * scale, SCREEN_HEIGHT * scale))
        pygame.display.set_caption(title)
        self.clock = pygame.time.Clock()
        self.keypad = np.zeros(NUM_KEYS, dtype=np.bool_)
        self.sound = self._create_beep(beep_frequency)
        self.playing = False

    def _create_beep(self, frequency: int, sample_rate: int = 44100):
        try:
            pygame.mixer.init(frequency=sample_rate, size=-16, channels=1)
        except pygame.error as e:
            logger.warning(f"Audio unavailable, running silent: {e}")
            return None

        actual_rate, _, channels = pygame.mixer.get_init()
        # One second of a square wave, looped while the sound timer runs
        t = np.arange(actual_rate)
        wave = np.where((t * 2 * frequency // actual_rate) % 2 == 0, 3000, -3000).astype(np.int16)
        if channels > 1:
            wave = np.repeat(wave[:, None], channels, axis=1)
        return pygame.sndarray.make_sound(wave)

    def poll(self) -> Tuple[np.ndarray, bool]:
        self.clock.tick(self.fps)
        quit_requested = False
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                quit_requested = True
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    quit_requested = True
                elif event.key in KEY_MAP:
                    self.keypad[KEY_MAP[event.key]] = True
            elif event.type == pygame.KEYUP:
                if event.key in KEY_MAP:
                    self.keypad[KEY_MAP[event.key]] = False
        return self.keypad.copy(), quit_requested

    def present(self, frame: np.ndarray) -> None:
        rgb = chip8_display_to_rgb(frame, self.scale, self.on_color, self.off_color)
        # surfarray wants (width, height, 3)
        surface = pygame.surfarray.make_surface(rgb.transpose(1, 0, 2))
        self.screen.blit(surface, (0, 0))
        pygame.display.flip()

    def set_sound(self, active: bool) -> None:
        if self.sound is None or active == self.playing:
            return
        if active:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = active

    def close(self) -> None:
        pygame.quit()
