"""Tests for the host loop, headless backend and command line."""

import numpy as np
import pytest
from PIL import Image

from chipax import UnknownOpcode, RomTooLarge, MAX_ROM_SIZE
from chipax.cli import main, EXIT_OK, EXIT_USAGE, EXIT_ROM_UNREADABLE, EXIT_ROM_TOO_LARGE, EXIT_GUEST_FAULT
from chipax.host import Chip8Host, HeadlessBackend, keypad_from_keys
from conftest import assemble

# V0 = 0; I = glyph 0; draw it at (0, 0); loop forever
DRAW_GLYPH = assemble(0x6000, 0xF029, 0xD005, 0x1206)


class QuitAfter(HeadlessBackend):
    def __init__(self, frames):
        super().__init__()
        self.frames = frames
        self.closed = False

    def poll(self):
        keys, _ = super().poll()
        return keys, self.frames_polled > self.frames

    def close(self):
        self.closed = True


class TestKeypad:

    def test_keypad_from_keys(self):
        keypad = keypad_from_keys([0, 0xA, 0xF])
        assert keypad.dtype == np.bool_
        assert list(np.flatnonzero(keypad)) == [0, 0xA, 0xF]

    def test_keypad_rejects_bad_index(self):
        with pytest.raises(ValueError):
            keypad_from_keys([16])


class TestChip8Host:

    def test_draw_is_presented_once(self):
        backend = HeadlessBackend()
        host = Chip8Host(DRAW_GLYPH, backend, max_frames=3)

        assert host.run() == 3
        assert backend.frames_presented == 1
        assert backend.last_frame.shape == (32, 64)
        assert backend.last_frame[0, :4].all()
        assert not host.state.draw_flag

    def test_step_count_and_clock_speed(self):
        host = Chip8Host(DRAW_GLYPH, HeadlessBackend(), instructions_per_frame=7, max_frames=2)
        host.run()
        assert host.step_count == 14
        assert host.clock_speed == 7 * 60

    def test_sound_follows_timer(self):
        # sound timer = 2 on the first frame, then idle
        rom = assemble(0x6002, 0xF018, 0x1204)
        backend = HeadlessBackend()
        Chip8Host(rom, backend, max_frames=4).run()
        assert backend.sound_history == [True, False, False, False]

    def test_key_script_feeds_wait_for_key(self):
        rom = assemble(0xF30A, 0x1202)
        backend = HeadlessBackend(key_script=[[], [], [0x5]])
        host = Chip8Host(rom, backend, max_frames=4)
        host.run()
        assert host.state.V[3] == 5
        assert not host.state.waiting_for_key

    def test_quit_from_backend(self):
        backend = QuitAfter(2)
        host = Chip8Host(DRAW_GLYPH, backend)
        assert host.run() == 2

    def test_zero_frames(self):
        backend = HeadlessBackend()
        assert Chip8Host(DRAW_GLYPH, backend, max_frames=0).run() == 0
        assert backend.frames_polled == 0

    def test_faults_are_logged_but_tolerated(self):
        rom = assemble(0x0123, 0x6001, 0x1204)
        host = Chip8Host(rom, HeadlessBackend(), max_frames=1)
        host.run()
        assert host.state.V[0] == 1

    def test_strict_mode_raises(self):
        rom = assemble(0x6001, 0x0123, 0x1204)
        host = Chip8Host(rom, HeadlessBackend(), strict=True, max_frames=5)
        with pytest.raises(UnknownOpcode) as excinfo:
            host.run()
        assert excinfo.value.opcode == 0x0123
        assert host.frame_count == 1

    def test_rom_too_large(self):
        with pytest.raises(RomTooLarge):
            Chip8Host(bytes(MAX_ROM_SIZE + 1), HeadlessBackend())

    @pytest.mark.parametrize("kwargs", [{"instructions_per_frame": 0}, {"max_frames": -1}])
    def test_bad_arguments(self, kwargs):
        with pytest.raises(ValueError):
            Chip8Host(DRAW_GLYPH, HeadlessBackend(), **kwargs)


class TestCommandLine:

    @pytest.fixture
    def rom_file(self, tmp_path):
        path = tmp_path / "glyph.ch8"
        path.write_bytes(DRAW_GLYPH)
        return path

    def test_missing_argument_is_usage_error(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 2

    def test_unreadable_rom(self, tmp_path):
        assert main([str(tmp_path / "missing.ch8"), "--headless", "--log-level", "ERROR"]) == EXIT_ROM_UNREADABLE

    def test_rom_too_large(self, tmp_path):
        path = tmp_path / "big.ch8"
        path.write_bytes(bytes(MAX_ROM_SIZE + 1))
        assert main([str(path), "--headless", "--log-level", "ERROR"]) == EXIT_ROM_TOO_LARGE

    def test_headless_run_with_screenshot(self, rom_file, tmp_path):
        screenshot = tmp_path / "out.png"
        code = main([
            str(rom_file), "--headless", "--frames", "2", "--scale", "3",
            "--screenshot", str(screenshot), "--log-level", "ERROR",
        ])

        assert code == EXIT_OK
        with Image.open(screenshot) as image:
            assert image.size == (64 * 3, 32 * 3)

    def test_strict_guest_fault(self, tmp_path):
        path = tmp_path / "bad.ch8"
        path.write_bytes(assemble(0x5121))
        code = main([str(path), "--headless", "--frames", "1", "--strict", "--log-level", "ERROR"])
        assert code == EXIT_GUEST_FAULT

    def test_fault_without_strict_keeps_running(self, tmp_path):
        path = tmp_path / "bad.ch8"
        path.write_bytes(assemble(0x5121, 0x1202))
        code = main([str(path), "--headless", "--frames", "3", "--log-level", "ERROR"])
        assert code == EXIT_OK

    @pytest.mark.parametrize("options", [
        ["--ipf", "0"],
        ["--ipf", "ten"],
        ["--scale", "0"],
        ["--frames", "-1"],
        ["--color-scheme", "nope"],
    ])
    def test_bad_option_values_are_usage_errors(self, rom_file, tmp_path, options):
        argv = [str(rom_file), "--headless", "--frames", "1", "--screenshot", str(tmp_path / "out.png")]
        with pytest.raises(SystemExit) as excinfo:
            main(argv + options)
        assert excinfo.value.code == EXIT_USAGE
        assert not (tmp_path / "out.png").exists()

    def test_windowed_bad_color_scheme_is_usage_error(self, rom_file):
        with pytest.raises(SystemExit) as excinfo:
            main([str(rom_file), "--color-scheme", "nope"])
        assert excinfo.value.code == EXIT_USAGE


class TestPygameBackend:

    @pytest.fixture
    def backend(self, monkeypatch):
        monkeypatch.setenv("SDL_VIDEODRIVER", "dummy")
        monkeypatch.setenv("SDL_AUDIODRIVER", "dummy")
        from chipax.pygame_backend import PygameBackend
        backend = PygameBackend(scale=2, fps=1000)
        yield backend
        backend.close()

    def test_key_map_covers_keypad(self):
        from chipax.pygame_backend import KEY_MAP
        assert sorted(KEY_MAP.values()) == list(range(16))

    def test_window_size(self, backend):
        assert backend.screen.get_size() == (128, 64)

    def test_poll_and_present(self, backend):
        keys, quit_requested = backend.poll()
        assert keys.shape == (16,)
        assert not quit_requested

        frame = np.zeros((32, 64), dtype=bool)
        frame[0, 0] = True
        backend.present(frame)
        assert backend.screen.get_at((0, 0))[:3] == (0, 255, 0)
        assert backend.screen.get_at((4, 0))[:3] == (0, 0, 0)

    def test_host_drives_pygame_backend(self, backend):
        host = Chip8Host(DRAW_GLYPH, backend, max_frames=2)
        assert host.run() == 2
        backend.set_sound(False)
