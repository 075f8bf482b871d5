"""
CHIP-8 CPU
Fetch-decode-execute engine for the 35-instruction CHIP-8 set.
"""

import numpy as np
from typing import Callable, Dict, List

from .decoder import Instruction, Op, decode
from .display import Display
from .errors import InvalidKeyError, StackUnderflowError
from .memory import FONT_GLYPH_SIZE, FONT_START, Memory, PROGRAM_START


NUM_REGISTERS = 16
NUM_KEYS = 16


class CPU:
    """
    CHIP-8 interpreter state and step function.
    
    Registers:
    - V0..VF (8-bit general purpose; VF doubles as carry/borrow/collision flag)
    - I (address register, not masked)
    - PC (program counter), stack (return addresses)
    - delay_timer, sound_timer (8-bit, decremented once per cycle)
    
    Every handler validates its memory range before mutating anything,
    so a faulting instruction leaves the machine as it found it.
    """
    
    def __init__(self, memory: Memory, display: Display,
                 random_byte: Callable[[], int], consume_key_on_skip: bool = True):
        self.memory = memory
        self.display = display
        self.random_byte = random_byte
        self.consume_key_on_skip = consume_key_on_skip
        
        # Registers
        self.v = np.zeros(NUM_REGISTERS, dtype=np.uint8)
        self.i = 0
        self.pc = PROGRAM_START
        self.stack: List[int] = []
        
        # Timers
        self.delay_timer = 0
        self.sound_timer = 0
        
        # Input
        self.keys = np.zeros(NUM_KEYS, dtype=bool)
        
        # Per-cycle outputs
        self.needs_redraw = False
        self.beep = False
        self.total_cycles = 0
        
        self._build_opcode_table()
    
    # Register accessors
    def get_reg(self, index: int) -> int:
        return int(self.v[index])
    
    def set_reg(self, index: int, value: int):
        self.v[index] = value & 0xFF
    
    @property
    def vf(self) -> int:
        return int(self.v[0xF])
    
    @vf.setter
    def vf(self, value: int):
        self.v[0xF] = value & 0xFF
    
    def fetch(self) -> int:
        return self.memory.read_word(self.pc, pc=self.pc)
    
    def step(self):
        """Execute one instruction, then tick the timers."""
        self.needs_redraw = False
        self.beep = False
        
        opcode = self.fetch()
        ins = decode(opcode, self.pc)
        self.handlers[ins.op](ins)
        
        self.beep = self._tick_timers()
        self.total_cycles += 1
    
    def _tick_timers(self) -> bool:
        """Decrement both timers. Returns True when the sound timer runs out."""
        if self.delay_timer > 0:
            self.delay_timer -= 1
        
        beep = False
        if self.sound_timer > 0:
            beep = self.sound_timer == 1
            self.sound_timer -= 1
        return beep
    
    def _advance(self):
        self.pc += 2
    
    def _skip_if(self, condition: bool):
        self.pc += 4 if condition else 2
    
    def _check_key(self, key: int) -> int:
        if key >= NUM_KEYS:
            raise InvalidKeyError(key, self.pc)
        return key
    
    # =========================================================================
    # OPCODE IMPLEMENTATIONS
    # =========================================================================
    
    def _build_opcode_table(self):
        """Map every Op to its handler."""
        self.handlers: Dict[Op, Callable[[Instruction], None]] = {
            Op.CLS: self._cls,
            Op.RET: self._ret,
            Op.JP: self._jp,
            Op.CALL: self._call,
            Op.SE_BYTE: lambda ins: self._skip_if(self.get_reg(ins.x) == ins.nn),
            Op.SNE_BYTE: lambda ins: self._skip_if(self.get_reg(ins.x) != ins.nn),
            Op.SE_REG: lambda ins: self._skip_if(self.get_reg(ins.x) == self.get_reg(ins.y)),
            Op.LD_BYTE: self._ld_byte,
            Op.ADD_BYTE: self._add_byte,
            Op.LD_REG: lambda ins: self._alu(ins, lambda a, b: b),
            Op.OR: lambda ins: self._alu(ins, lambda a, b: a | b),
            Op.AND: lambda ins: self._alu(ins, lambda a, b: a & b),
            Op.XOR: lambda ins: self._alu(ins, lambda a, b: a ^ b),
            Op.ADD_REG: self._add_reg,
            Op.SUB: self._sub,
            Op.SHR: self._shr,
            Op.SUBN: self._subn,
            Op.SHL: self._shl,
            Op.SNE_REG: lambda ins: self._skip_if(self.get_reg(ins.x) != self.get_reg(ins.y)),
            Op.LD_I: self._ld_i,
            Op.JP_V0: self._jp_v0,
            Op.RND: self._rnd,
            Op.DRW: self._drw,
            Op.SKP: self._skp,
            Op.SKNP: self._sknp,
            Op.LD_VX_DT: self._ld_vx_dt,
            Op.LD_VX_K: self._ld_vx_k,
            Op.LD_DT_VX: self._ld_dt_vx,
            Op.LD_ST_VX: self._ld_st_vx,
            Op.ADD_I: self._add_i,
            Op.LD_F: self._ld_f,
            Op.LD_B: self._ld_b,
            Op.LD_MEM_VX: self._ld_mem_vx,
            Op.LD_VX_MEM: self._ld_vx_mem,
        }
        
        missing = [op.name for op in Op if op not in self.handlers]
        if missing:
            raise RuntimeError(f"No handler for: {', '.join(missing)}")
    
    # Flow control
    def _cls(self, ins: Instruction):
        self.display.clear()
        self._advance()
    
    def _ret(self, ins: Instruction):
        if not self.stack:
            raise StackUnderflowError(self.pc)
        self.pc = self.stack.pop()
    
    def _jp(self, ins: Instruction):
        self.pc = ins.nnn
    
    def _call(self, ins: Instruction):
        self.stack.append(self.pc + 2)
        self.pc = ins.nnn
    
    def _jp_v0(self, ins: Instruction):
        self.pc = ins.nnn + self.get_reg(0)
    
    # Loads and arithmetic
    def _ld_byte(self, ins: Instruction):
        self.set_reg(ins.x, ins.nn)
        self._advance()
    
    def _add_byte(self, ins: Instruction):
        self.set_reg(ins.x, self.get_reg(ins.x) + ins.nn)
        self._advance()
    
    def _alu(self, ins: Instruction, op: Callable[[int, int], int]):
        self.set_reg(ins.x, op(self.get_reg(ins.x), self.get_reg(ins.y)))
        self._advance()
    
    def _add_reg(self, ins: Instruction):
        result = self.get_reg(ins.x) + self.get_reg(ins.y)
        self.set_reg(ins.x, result)
        self.vf = 1 if result > 0xFF else 0
        self._advance()
    
    def _sub(self, ins: Instruction):
        vx, vy = self.get_reg(ins.x), self.get_reg(ins.y)
        self.set_reg(ins.x, vx - vy)
        self.vf = 1 if vx >= vy else 0
        self._advance()
    
    def _subn(self, ins: Instruction):
        vx, vy = self.get_reg(ins.x), self.get_reg(ins.y)
        self.set_reg(ins.x, vy - vx)
        self.vf = 1 if vy >= vx else 0
        self._advance()
    
    def _shr(self, ins: Instruction):
        vy = self.get_reg(ins.y)
        self.vf = vy & 0x01
        self.set_reg(ins.x, vy >> 1)
        self._advance()
    
    def _shl(self, ins: Instruction):
        vy = self.get_reg(ins.y)
        self.vf = (vy & 0x80) >> 7
        self.set_reg(ins.x, vy << 1)
        self._advance()
    
    def _rnd(self, ins: Instruction):
        self.set_reg(ins.x, self.random_byte() & ins.nn)
        self._advance()
    
    # Graphics
    def _drw(self, ins: Instruction):
        sprite = self.memory.read_block(self.i, ins.n, pc=self.pc)
        collision = self.display.draw_sprite(sprite, self.get_reg(ins.x), self.get_reg(ins.y))
        self.vf = 1 if collision else 0
        self.needs_redraw = True
        self._advance()
    
    # Input
    def _skp(self, ins: Instruction):
        key = self._check_key(self.get_reg(ins.x))
        pressed = bool(self.keys[key])
        if pressed and self.consume_key_on_skip:
            self.keys[key] = False
        self._skip_if(pressed)
    
    def _sknp(self, ins: Instruction):
        key = self._check_key(self.get_reg(ins.x))
        self._skip_if(not self.keys[key])
    
    def _ld_vx_k(self, ins: Instruction):
        pressed = np.flatnonzero(self.keys)
        if len(pressed) == 0:
            # Retry on the next cycle
            return
        key = int(pressed[0])
        self.set_reg(ins.x, key)
        self.keys[key] = False
        self._advance()
    
    # Timers
    def _ld_vx_dt(self, ins: Instruction):
        self.set_reg(ins.x, self.delay_timer)
        self._advance()
    
    def _ld_dt_vx(self, ins: Instruction):
        self.delay_timer = self.get_reg(ins.x)
        self._advance()
    
    def _ld_st_vx(self, ins: Instruction):
        self.sound_timer = self.get_reg(ins.x)
        self._advance()
    
    # Index register and memory
    def _ld_i(self, ins: Instruction):
        self.i = ins.nnn
        self._advance()
    
    def _add_i(self, ins: Instruction):
        self.i += self.get_reg(ins.x)
        self._advance()
    
    def _ld_f(self, ins: Instruction):
        self.i = FONT_START + self.get_reg(ins.x) * FONT_GLYPH_SIZE
        self._advance()
    
    def _ld_b(self, ins: Instruction):
        value = self.get_reg(ins.x)
        digits = [value // 100, (value // 10) % 10, value % 10]
        self.memory.write_block(self.i, digits, pc=self.pc)
        self._advance()
    
    def _ld_mem_vx(self, ins: Instruction):
        self.memory.write_block(self.i, self.v[:ins.x + 1], pc=self.pc)
        self.i += ins.x + 1
        self._advance()
    
    def _ld_vx_mem(self, ins: Instruction):
        self.v[:ins.x + 1] = self.memory.read_block(self.i, ins.x + 1, pc=self.pc)
        self.i += ins.x + 1
        self._advance()
