# CHIP-8 Emulator
from .config import EmulatorConfig
from .decoder import Instruction, Op, decode, disassemble
from .display import Display
from .emulator import CycleResult, Emulator, create
from .errors import (
    EmulatorError,
    InvalidKeyError,
    InvalidOpcodeError,
    MachineHaltedError,
    MemoryAccessError,
    ProgramTooLargeError,
    StackUnderflowError,
)
from .memory import Memory

__all__ = [
    'Emulator',
    'EmulatorConfig',
    'CycleResult',
    'create',
    'Memory',
    'Display',
    'Instruction',
    'Op',
    'decode',
    'disassemble',
    'EmulatorError',
    'InvalidOpcodeError',
    'InvalidKeyError',
    'StackUnderflowError',
    'MemoryAccessError',
    'ProgramTooLargeError',
    'MachineHaltedError',
]
