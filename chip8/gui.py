"""
CHIP-8 Emulator GUI
Pygame host loop: scaled display, keypad input, beeper and debug panel.
"""

import pygame
import numpy as np
from typing import Optional

from .config import EmulatorConfig
from .display import SCREEN_HEIGHT, SCREEN_WIDTH
from .errors import EmulatorError


class EmulatorGUI:
    """
    Pygame-based GUI for the CHIP-8 emulator.
    
    Features:
    - Main game display (scaled)
    - Debug information panel (registers, timers, current instruction)
    - Square-wave beeper driven by the sound timer
    """
    
    # Colors
    BG_COLOR = (18, 20, 28)
    TEXT_COLOR = (200, 210, 220)
    HIGHLIGHT_COLOR = (80, 140, 200)
    ERROR_COLOR = (255, 100, 100)
    BORDER_COLOR = (50, 55, 65)
    
    SAMPLE_RATE = 44100
    BEEP_SECONDS = 0.1
    
    def __init__(self, emulator, config: Optional[EmulatorConfig] = None):
        self.emulator = emulator
        self.config = config or emulator.config
        self.scale = self.config.scale
        
        # Window dimensions
        self.game_width = SCREEN_WIDTH * self.scale
        self.game_height = SCREEN_HEIGHT * self.scale
        self.debug_panel_width = 260
        
        self.window_width = self.game_width + self.debug_panel_width + 30
        self.window_height = max(self.game_height + 110, 420)
        
        # Initialize Pygame
        pygame.init()
        pygame.display.set_caption(f"CHIP-8 Emulator - {emulator.rom_title or 'No ROM'}")
        
        self.screen = pygame.display.set_mode((self.window_width, self.window_height))
        self.clock = pygame.time.Clock()
        
        # Fonts
        pygame.font.init()
        self.font = pygame.font.SysFont('Consolas', 14)
        self.font_small = pygame.font.SysFont('Consolas', 12)
        self.font_title = pygame.font.SysFont('Consolas', 16, bold=True)
        
        # Surfaces
        self.game_surface = pygame.Surface((SCREEN_WIDTH, SCREEN_HEIGHT))
        
        # Audio
        self.beep_sound = self._make_beep_sound()
        
        # State
        self.running = True
        self.show_debug = True
        self.turbo_mode = False
        self.status_text = ""
        
        # Key mapping: pygame key code -> keypad index
        self.key_map = {
            pygame.key.key_code(name): key
            for name, key in self.config.key_map.items()
        }
        
        # FPS tracking
        self.fps_samples = []
        self.last_fps = 0
        
        self._update_game_surface()
    
    def _make_beep_sound(self):
        """Build a square-wave tone at config.beep_frequency, or None without audio."""
        try:
            pygame.mixer.init(frequency=self.SAMPLE_RATE, size=-16, channels=1)
            mixer_info = pygame.mixer.get_init()
        except pygame.error as e:
            print(f"Audio unavailable: {e}")
            return None
        if mixer_info is None:
            print("Audio unavailable: mixer did not initialize")
            return None
        
        rate, _, channels = mixer_info
        t = np.arange(int(rate * self.BEEP_SECONDS))
        period = rate / self.config.beep_frequency
        wave = np.where((t % period) < period / 2, 4000, -4000).astype(np.int16)
        if channels > 1:
            wave = np.repeat(wave[:, None], channels, axis=1)
        return pygame.sndarray.make_sound(np.ascontiguousarray(wave))
    
    def run(self):
        """Main GUI loop."""
        self.running = True
        self.emulator.running = True
        
        while self.running:
            self._handle_events()
            
            if not self.emulator.paused:
                frames_to_run = 4 if self.turbo_mode else 1
                for _ in range(frames_to_run):
                    if not self._run_frame() or self.emulator.paused:
                        break
            
            self._draw()
            
            # FPS limiting (skip in turbo mode)
            if not self.turbo_mode:
                self.clock.tick(self.config.target_fps)
            else:
                self.clock.tick(0)
            
            # Track FPS
            self.fps_samples.append(self.clock.get_fps())
            if len(self.fps_samples) > 30:
                self.fps_samples.pop(0)
                self.last_fps = sum(self.fps_samples) / len(self.fps_samples)
        
        self.emulator.running = False
        pygame.quit()
    
    def _run_frame(self) -> bool:
        """Run one frame of cycles. Returns False if the machine faulted."""
        try:
            result = self.emulator.run_frame()
        except EmulatorError as e:
            print(f"Emulation stopped: {e}")
            self.status_text = str(e)
            self.emulator.paused = True
            # Show whatever was drawn before the fault
            self._update_game_surface()
            return False
        
        if result.beep and self.beep_sound is not None:
            self.beep_sound.play()
        if result.needs_redraw:
            self._update_game_surface()
        return True
    
    def _step_once(self):
        """Single-step while paused."""
        try:
            result = self.emulator.step()
        except EmulatorError as e:
            print(f"Emulation stopped: {e}")
            self.status_text = str(e)
            return
        if result.needs_redraw:
            self._update_game_surface()
    
    def _handle_events(self):
        """Handle input events."""
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                self.running = False
            
            elif event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    self.running = False
                
                elif event.key == pygame.K_SPACE:
                    self.emulator.paused = not self.emulator.paused
                
                elif event.key == pygame.K_BACKSPACE:
                    self.emulator.reset()
                    self.emulator.running = True
                    self.status_text = ""
                    self._update_game_surface()
                
                elif event.key == pygame.K_F1:
                    self.show_debug = not self.show_debug
                
                elif event.key == pygame.K_TAB:
                    self.turbo_mode = not self.turbo_mode
                
                elif event.key == pygame.K_n and self.emulator.paused:
                    self._step_once()
                
                elif event.key == pygame.K_b:
                    addr = self.emulator.cpu.pc
                    state = "set" if self.emulator.toggle_breakpoint(addr) else "cleared"
                    self.status_text = f"Breakpoint {state} at 0x{addr:03X}"
                
                elif event.key in self.key_map:
                    self.emulator.press_key(self.key_map[event.key])
            
            elif event.type == pygame.KEYUP:
                if event.key in self.key_map:
                    self.emulator.release_key(self.key_map[event.key])
    
    def _update_game_surface(self):
        """Update the game display surface."""
        frame = self.emulator.display.to_rgb(self.config.on_color, self.config.off_color)
        pygame.surfarray.blit_array(self.game_surface, frame.swapaxes(0, 1))
    
    def _draw(self):
        """Draw all GUI elements."""
        self.screen.fill(self.BG_COLOR)
        self._draw_game_display()
        if self.show_debug:
            self._draw_debug_panel()
        self._draw_help()
        pygame.display.flip()
    
    def _draw_game_display(self):
        """Draw the main game display."""
        x, y = 10, 10
        
        title = self.font_title.render(f"Display ({self.emulator.rom_title or 'No ROM'})", True, self.TEXT_COLOR)
        self.screen.blit(title, (x, y))
        y += 25
        
        pygame.draw.rect(self.screen, self.BORDER_COLOR,
                        (x - 2, y - 2, self.game_width + 4, self.game_height + 4), 2)
        
        # Nearest-neighbour upscale keeps pixels square
        scaled = pygame.transform.scale(self.game_surface, (self.game_width, self.game_height))
        self.screen.blit(scaled, (x, y))
        
        if self.emulator.paused:
            label = "HALTED" if self.emulator.fault else "PAUSED"
            pause_text = self.font_title.render(label, True, self.ERROR_COLOR)
            pause_rect = pause_text.get_rect(center=(x + self.game_width // 2, y + self.game_height // 2))
            pygame.draw.rect(self.screen, (0, 0, 0), pause_rect.inflate(20, 10))
            self.screen.blit(pause_text, pause_rect)
        
        fps_text = self.font_small.render(f"FPS: {self.last_fps:.1f}", True, self.TEXT_COLOR)
        self.screen.blit(fps_text, (x, y + self.game_height + 5))
    
    def _draw_debug_panel(self):
        """Draw the CPU state panel."""
        x = self.game_width + 20
        y = 10
        state = self.emulator.get_cpu_state()
        
        title = self.font_title.render("CPU State", True, self.HIGHLIGHT_COLOR)
        self.screen.blit(title, (x, y))
        y += 22
        
        # V0-VF in two columns
        for row in range(8):
            left = f"V{row:X}: {state[f'V{row:X}']:02X}"
            right = f"V{row + 8:X}: {state[f'V{row + 8:X}']:02X}"
            text = self.font.render(f"{left}    {right}", True, self.TEXT_COLOR)
            self.screen.blit(text, (x, y))
            y += 16
        y += 6
        
        lines = [
            f"PC: {state['PC']:03X}   I: {state['I']:03X}",
            "[I]: " + (f"{state['[I]']:02X}" if state['[I]'] is not None else "--"),
            f"DT: {state['DT']:02X}    ST: {state['ST']:02X}",
            f"SP: {state['SP']}",
            f"Keys: {' '.join(f'{k:X}' for k in state['Keys']) or '-'}",
            f"Next: {self.emulator.current_instruction()}",
            f"Cycles: {state['Cycles']}",
            f"Breaks: {' '.join(f'{a:03X}' for a in state['Breakpoints']) or '-'}",
        ]
        for line in lines:
            text = self.font.render(line, True, self.TEXT_COLOR)
            self.screen.blit(text, (x, y))
            y += 16
        
        if self.status_text:
            y += 6
            text = self.font_small.render(self.status_text, True, self.ERROR_COLOR)
            self.screen.blit(text, (x, y))
    
    def _draw_help(self):
        """Draw control help at bottom."""
        y = self.window_height - 60
        x = 10
        
        turbo_str = "ON" if self.turbo_mode else "OFF"
        help_lines = [
            "Keypad: 1234 / QWER / ASDF / ZXCV",
            "Space = Pause | N = Step | Backspace = Reset | TAB = Turbo | B = Breakpoint at PC | F1 = Debug | Esc = Quit",
            f"Frame: {self.emulator.total_frames} | Turbo: {turbo_str}",
        ]
        
        for line in help_lines:
            text = self.font_small.render(line, True, (120, 130, 140))
            self.screen.blit(text, (x, y))
            y += 16
