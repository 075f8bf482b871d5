"""
CHIP-8 Memory
4KB of byte-addressable RAM with the hex font resident at 0x000.
"""

import numpy as np
from typing import Optional

from .errors import MemoryAccessError, ProgramTooLargeError


MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
FONT_START = 0x000
FONT_GLYPH_SIZE = 5

# 16 hex digit glyphs, 5 rows of 4 pixels each (high nibble)
FONTSET = np.array([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
], dtype=np.uint8)


class Memory:
    """
    CHIP-8 address space.
    
    Memory Map:
    - 0x000-0x04F: Hex font (16 glyphs x 5 bytes)
    - 0x050-0x1FF: Reserved for the interpreter
    - 0x200-0xFFF: Program ROM and work RAM
    
    Every access is bounds-checked; nothing wraps.
    """
    
    def __init__(self):
        self.data = np.zeros(MEMORY_SIZE, dtype=np.uint8)
        self.data[FONT_START:FONT_START + len(FONTSET)] = FONTSET
    
    @property
    def program_capacity(self) -> int:
        return MEMORY_SIZE - PROGRAM_START
    
    def load_program(self, program: bytes):
        """Copy a program image to 0x200. Raises before writing if it does not fit."""
        program = bytes(program)
        if len(program) > self.program_capacity:
            raise ProgramTooLargeError(len(program), self.program_capacity)
        
        end = PROGRAM_START + len(program)
        self.data[PROGRAM_START:end] = np.frombuffer(program, dtype=np.uint8)
    
    def check_range(self, addr: int, length: int = 1, pc: Optional[int] = None):
        """Raise MemoryAccessError unless addr..addr+length-1 is addressable."""
        if addr < 0 or addr + length > MEMORY_SIZE:
            raise MemoryAccessError(addr, pc, length)
    
    def read(self, addr: int) -> int:
        self.check_range(addr)
        return int(self.data[addr])
    
    def read_word(self, addr: int, pc: Optional[int] = None) -> int:
        """Read a big-endian 16-bit word."""
        self.check_range(addr, 2, pc)
        return (int(self.data[addr]) << 8) | int(self.data[addr + 1])
    
    def read_block(self, addr: int, length: int, pc: Optional[int] = None) -> np.ndarray:
        """Return a copy of memory[addr:addr+length]."""
        self.check_range(addr, length, pc)
        return self.data[addr:addr + length].copy()
    
    def write_block(self, addr: int, values, pc: Optional[int] = None):
        values = np.asarray(values, dtype=np.uint8)
        self.check_range(addr, len(values), pc)
        self.data[addr:addr + len(values)] = values
