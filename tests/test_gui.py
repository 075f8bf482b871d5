"""
GUI Tests

Runs the host loop pieces against SDL's dummy video and audio drivers.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest
pygame = pytest.importorskip("pygame")

from chip8.config import EmulatorConfig
from chip8.emulator import Emulator
from chip8.gui import EmulatorGUI


def assemble(*words) -> bytes:
    return b''.join(w.to_bytes(2, 'big') for w in words)


@pytest.fixture
def make_gui():
    created = []

    def factory(*words, cycles_per_frame=3):
        emu = Emulator(EmulatorConfig(cycles_per_frame=cycles_per_frame, scale=2))
        emu.load(assemble(*words))
        gui = EmulatorGUI(emu)
        created.append(gui)
        return gui

    yield factory
    pygame.quit()


def lit(gui, x, y) -> bool:
    return pygame.surfarray.array3d(gui.game_surface)[x, y].tolist() == list(gui.config.on_color)


class TestFrameLoop:

    def test_draw_shown_after_frame(self, make_gui):
        gui = make_gui(0x6000, 0xD005, 0x1204)
        assert gui._run_frame() is True
        assert lit(gui, 0, 0)

    def test_draw_before_fault_is_shown(self, make_gui):
        # Glyph 0 drawn at (0, 0), then a return with an empty stack
        gui = make_gui(0x6000, 0xD005, 0x00EE)
        assert gui._run_frame() is False
        assert gui.emulator.paused
        assert gui.emulator.fault is not None
        assert "empty stack" in gui.status_text
        assert lit(gui, 0, 0)
        assert lit(gui, 3, 1)
        assert not lit(gui, 1, 1)

    def test_stops_at_breakpoint(self, make_gui):
        gui = make_gui(0x7001, 0x7001, 0x1204, cycles_per_frame=10)
        gui.emulator.toggle_breakpoint(0x202)
        assert gui._run_frame() is True
        assert gui.emulator.paused
        assert gui.emulator.cpu.pc == 0x202
