#!/usr/bin/env python3
"""
CHIP-8 Emulator
Runs a CHIP-8 ROM in a pygame window with a debug panel.

Usage:
    python main.py <rom_file> [cycles_per_frame]
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def show_splash(message: str):
    """Small window shown while the numba sprite kernel compiles."""
    import pygame
    pygame.init()
    screen = pygame.display.set_mode((320, 80))
    pygame.display.set_caption("CHIP-8 Emulator")
    screen.fill((20, 25, 35))
    text = pygame.font.Font(None, 22).render(message, True, (200, 200, 200))
    screen.blit(text, text.get_rect(center=(160, 40)))
    pygame.display.flip()
    pygame.event.pump()


def parse_args(argv):
    """Returns (rom_path, cycles_per_frame) or None on bad usage."""
    if len(argv) < 2:
        return None
    rom_path = argv[1]
    cycles_per_frame = None
    if len(argv) > 2:
        try:
            cycles_per_frame = int(argv[2])
        except ValueError:
            return None
    return rom_path, cycles_per_frame


def main():
    args = parse_args(sys.argv)
    if args is None:
        print("Usage: python main.py <rom_file> [cycles_per_frame]")
        return 1
    rom_path, cycles_per_frame = args
    
    if not os.path.exists(rom_path):
        print(f"ROM file not found: {rom_path}")
        return 1
    
    from chip8.config import EmulatorConfig
    from chip8.emulator import Emulator
    
    try:
        config = EmulatorConfig(cycles_per_frame=cycles_per_frame) if cycles_per_frame else EmulatorConfig()
    except ValueError as e:
        print(f"Invalid configuration: {e}")
        return 1
    
    emulator = Emulator(config)
    if not emulator.load_rom(rom_path):
        return 1
    
    show_splash("Compiling sprite blitter...")
    emulator.display.warm_up()
    
    from chip8.gui import EmulatorGUI
    
    print("=" * 60)
    print("  CHIP-8 Emulator - Ready!")
    print("=" * 60)
    print("\nKeypad: 1234 / QWER / ASDF / ZXCV")
    print("Space=Pause, N=Step, B=Breakpoint, Backspace=Reset, TAB=Turbo, F1=Debug, ESC=Quit")
    print()
    
    # EmulatorGUI re-creates the display at full size
    gui = EmulatorGUI(emulator)
    gui.run()
    
    return 1 if emulator.fault else 0


if __name__ == "__main__":
    sys.exit(main())
