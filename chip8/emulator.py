"""
CHIP-8 Emulator Core
Integrates CPU, Memory, and Display into a single machine.
"""

import os
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from .config import EmulatorConfig
from .cpu import CPU, NUM_KEYS
from .decoder import decode
from .display import Display
from .errors import EmulatorError, InvalidOpcodeError, MachineHaltedError, ProgramTooLargeError
from .memory import Memory


@dataclass
class CycleResult:
    """What the host needs to know after one or more cycles."""
    needs_redraw: bool = False
    beep: bool = False


class Emulator:
    """
    CHIP-8 machine - owns all interpreter state.
    
    The host decides cadence: call step() once per cycle (or run_frame()
    for config.cycles_per_frame cycles), set keys in between, and redraw
    when the result says the framebuffer changed.
    """
    
    def __init__(self, config: Optional[EmulatorConfig] = None,
                 random_byte: Optional[Callable[[], int]] = None):
        self.config = config or EmulatorConfig()
        
        if random_byte is None:
            rng = np.random.default_rng(self.config.seed)
            random_byte = lambda: int(rng.integers(0, 256))
        self.random_byte = random_byte
        
        self.memory = Memory()
        self.display = Display()
        self.cpu = self._make_cpu()
        
        # State
        self.running = False
        self.paused = False
        self.fault: Optional[EmulatorError] = None
        
        # Timing
        self.total_frames = 0
        
        # Debug info
        self.debug_enabled = False
        self.breakpoints = set()
        # Breakpoint the machine is currently stopped on
        self.break_pc: Optional[int] = None
        
        # ROM info
        self.program = b""
        self.rom_title = ""
        self.rom_loaded = False
    
    def _make_cpu(self) -> CPU:
        return CPU(self.memory, self.display, self.random_byte,
                   consume_key_on_skip=self.config.consume_key_on_skip)
    
    # Machine outputs
    @property
    def needs_redraw(self) -> bool:
        return self.cpu.needs_redraw
    
    @property
    def framebuffer(self) -> np.ndarray:
        return self.display.framebuffer
    
    @property
    def pixels(self) -> np.ndarray:
        return self.display.pixels
    
    @property
    def keys(self) -> np.ndarray:
        return self.cpu.keys
    
    def load(self, program: bytes):
        """Copy a program image to 0x200. Raises ProgramTooLargeError if it does not fit."""
        program = bytes(program)
        self.memory.load_program(program)
        self.program = program
        self.rom_loaded = True
    
    def load_rom(self, filepath: str) -> bool:
        """Load a ROM file."""
        try:
            with open(filepath, 'rb') as f:
                rom_data = f.read()
            self.load(rom_data)
        except (OSError, ProgramTooLargeError) as e:
            print(f"Failed to load ROM: {e}")
            return False
        
        self.rom_title = os.path.splitext(os.path.basename(filepath))[0]
        print(f"Loaded ROM: {self.rom_title} ({len(rom_data)} bytes)")
        return True
    
    def reset(self):
        """Reset the machine and reload the last program."""
        self.memory = Memory()
        self.display = Display()
        self.cpu = self._make_cpu()
        if self.program:
            self.memory.load_program(self.program)
        
        self.fault = None
        self.running = False
        self.paused = False
        self.break_pc = None
        self.total_frames = 0
    
    def step(self) -> CycleResult:
        """Execute one cycle. Faults are recorded and re-raised."""
        if self.fault is not None:
            raise MachineHaltedError(self.fault)
        
        try:
            self.cpu.step()
        except EmulatorError as e:
            self.fault = e
            self.running = False
            raise
        
        self.break_pc = None
        return CycleResult(needs_redraw=self.cpu.needs_redraw, beep=self.cpu.beep)
    
    def run_frame(self) -> CycleResult:
        """Run config.cycles_per_frame cycles. Flags are OR-ed over the frame."""
        frame = CycleResult()
        
        for _ in range(self.config.cycles_per_frame):
            pc = self.cpu.pc
            if self.debug_enabled and pc in self.breakpoints and pc != self.break_pc:
                self.break_pc = pc
                self.paused = True
                break
            
            result = self.step()
            frame.needs_redraw = frame.needs_redraw or result.needs_redraw
            frame.beep = frame.beep or result.beep
        
        self.total_frames += 1
        return frame
    
    def toggle_breakpoint(self, addr: int) -> bool:
        """Add or remove a breakpoint. Returns True if it is now set."""
        if addr in self.breakpoints:
            self.breakpoints.discard(addr)
            return False
        self.breakpoints.add(addr)
        self.debug_enabled = True
        return True
    
    # Input handling
    def press_key(self, key: int):
        """Mark a keypad key (0x0-0xF) as held."""
        self._check_key(key)
        self.cpu.keys[key] = True
    
    def release_key(self, key: int):
        self._check_key(key)
        self.cpu.keys[key] = False
    
    def _check_key(self, key: int):
        if not 0 <= key < NUM_KEYS:
            raise ValueError(f"Keypad has no key 0x{key:X}")
    
    # Debug methods
    def get_cpu_state(self) -> dict:
        """Get current CPU state for debugging."""
        try:
            mem_i = self.memory.read(self.cpu.i)
        except EmulatorError:
            mem_i = None
        state = {f'V{i:X}': int(v) for i, v in enumerate(self.cpu.v)}
        state.update({
            'I': self.cpu.i,
            '[I]': mem_i,
            'PC': self.cpu.pc,
            'SP': len(self.cpu.stack),
            'DT': self.cpu.delay_timer,
            'ST': self.cpu.sound_timer,
            'Stack': list(self.cpu.stack),
            'Keys': [k for k in range(NUM_KEYS) if self.cpu.keys[k]],
            'Cycles': self.cpu.total_cycles,
            'Breakpoints': sorted(self.breakpoints) if self.debug_enabled else [],
        })
        return state
    
    def get_memory_dump(self, start: int, length: int) -> bytes:
        """Dump memory region."""
        return bytes(self.memory.read_block(start, length))
    
    def current_instruction(self) -> str:
        """Disassembly of the instruction at PC."""
        pc = self.cpu.pc
        try:
            opcode = self.memory.read_word(pc)
        except EmulatorError:
            return "<PC out of range>"
        try:
            return str(decode(opcode, pc))
        except InvalidOpcodeError:
            return f"DW 0x{opcode:04X}"


def create(config: Optional[EmulatorConfig] = None,
           random_byte: Optional[Callable[[], int]] = None) -> Emulator:
    """Create a fresh machine with the font resident and PC at 0x200."""
    return Emulator(config, random_byte)
