"""
CHIP-8 Emulator Errors
Faults raised by the interpreter core. None of them are recovered internally.
"""

from typing import Optional


class EmulatorError(RuntimeError):
    """Base class for every fault raised by the interpreter core."""
    pass


class InvalidOpcodeError(EmulatorError):
    """Opcode does not belong to the CHIP-8 instruction set."""
    
    def __init__(self, opcode: int, pc: Optional[int] = None):
        self.opcode = opcode
        self.pc = pc
        where = f" at PC=0x{pc:03X}" if pc is not None else ""
        super().__init__(f"Unknown opcode: 0x{opcode:04X}{where}")


class StackUnderflowError(EmulatorError):
    """Return executed with an empty call stack."""
    
    def __init__(self, pc: int):
        self.pc = pc
        super().__init__(f"Return with empty stack at PC=0x{pc:03X}")


class MemoryAccessError(EmulatorError):
    """Address outside the 4KB address space."""
    
    def __init__(self, address: int, pc: Optional[int] = None, length: int = 1):
        self.address = address
        self.pc = pc
        self.length = length
        if length > 1:
            target = f"0x{address:03X}..0x{address + length - 1:03X}"
        else:
            target = f"0x{address:03X}"
        where = f" at PC=0x{pc:03X}" if pc is not None else ""
        super().__init__(f"Memory access out of range: {target}{where}")


class InvalidKeyError(EmulatorError):
    """Key instruction addressed a key outside 0x0-0xF."""
    
    def __init__(self, key: int, pc: Optional[int] = None):
        self.key = key
        self.pc = pc
        where = f" at PC=0x{pc:03X}" if pc is not None else ""
        super().__init__(f"Key index out of range: 0x{key:02X}{where}")


class ProgramTooLargeError(EmulatorError):
    """Program image does not fit between 0x200 and the end of memory."""
    
    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"Program is {size} bytes, only {capacity} bytes available")


class MachineHaltedError(EmulatorError):
    """Cycle requested after a fault; the machine must be reset first."""
    
    def __init__(self, fault: EmulatorError):
        self.fault = fault
        super().__init__(f"Machine halted after fault: {fault}")
