"""
Emulator Tests

End-to-end runs, fault latching, reset, frame cadence and debug accessors.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import chip8
from chip8.config import EmulatorConfig
from chip8.emulator import CycleResult, Emulator, create
from chip8.errors import MachineHaltedError, ProgramTooLargeError, StackUnderflowError


def assemble(*words) -> bytes:
    return b''.join(w.to_bytes(2, 'big') for w in words)


class TestCreate:

    def test_initial_state(self):
        emu = create()
        assert emu.cpu.pc == 0x200
        assert emu.cpu.i == 0
        assert not emu.cpu.v.any()
        assert emu.cpu.stack == []
        assert emu.cpu.delay_timer == 0
        assert emu.cpu.sound_timer == 0
        assert not emu.keys.any()
        assert not emu.framebuffer.any()
        assert not emu.needs_redraw
        assert emu.get_memory_dump(0, 5) == bytes([0xF0, 0x90, 0x90, 0x90, 0xF0])

    def test_package_exports(self):
        assert chip8.create is create
        assert isinstance(chip8.Emulator(), Emulator)


class TestEndToEnd:

    def test_add_program(self):
        emu = Emulator()
        emu.load(assemble(0x6005, 0x6103, 0x8014))
        for _ in range(3):
            result = emu.step()
        assert emu.cpu.get_reg(0) == 8
        assert emu.cpu.vf == 0
        assert emu.cpu.pc == 0x206
        assert result == CycleResult(needs_redraw=False, beep=False)

    def test_counting_loop(self):
        # V0 := 0; loop: V0 += 1; SE V0, 10; JP loop; halt: JP halt
        emu = Emulator()
        emu.load(assemble(0x6000, 0x7001, 0x300A, 0x1202, 0x1208))
        for _ in range(40):
            emu.step()
        assert emu.cpu.get_reg(0) == 10
        assert emu.cpu.pc == 0x208

    def test_load_leaves_registers(self):
        emu = Emulator()
        emu.cpu.set_reg(3, 7)
        emu.load(b'\x12\x00')
        assert emu.cpu.get_reg(3) == 7
        assert emu.cpu.pc == 0x200

    def test_load_too_large(self):
        emu = Emulator()
        with pytest.raises(ProgramTooLargeError):
            emu.load(bytes(0xE01))
        assert not emu.rom_loaded


class TestFaults:

    def test_fault_latches_until_reset(self):
        emu = Emulator()
        emu.load(assemble(0x6007, 0x00EE))
        emu.step()
        with pytest.raises(StackUnderflowError):
            emu.step()
        assert isinstance(emu.fault, StackUnderflowError)
        with pytest.raises(MachineHaltedError) as exc:
            emu.step()
        assert exc.value.fault is emu.fault

    def test_reset_restores_program(self):
        emu = Emulator()
        emu.load(assemble(0x6007, 0xA300, 0xF055, 0x00EE))
        emu.step()
        emu.step()
        emu.step()
        with pytest.raises(StackUnderflowError):
            emu.step()
        emu.reset()
        assert emu.fault is None
        assert emu.cpu.pc == 0x200
        assert emu.cpu.get_reg(0) == 0
        assert emu.memory.read(0x300) == 0
        assert emu.get_memory_dump(0x200, 2) == b'\x60\x07'
        emu.step()
        assert emu.cpu.get_reg(0) == 7


class TestRunFrame:

    def test_cycles_per_frame(self):
        emu = Emulator(EmulatorConfig(cycles_per_frame=3))
        emu.load(assemble(0x7001, 0x7001, 0x7001, 0x7001, 0x1208))
        emu.run_frame()
        assert emu.cpu.get_reg(0) == 3
        assert emu.total_frames == 1

    def test_flags_accumulate_over_frame(self):
        emu = Emulator(EmulatorConfig(cycles_per_frame=4))
        emu.load(assemble(0x6001, 0xF018, 0xD001, 0x6000))
        result = emu.run_frame()
        assert result.needs_redraw
        assert result.beep
        assert not emu.needs_redraw

    def test_breakpoint_pauses(self):
        emu = Emulator(EmulatorConfig(cycles_per_frame=10))
        emu.load(assemble(0x7001, 0x7001, 0x7001, 0x1206))
        emu.debug_enabled = True
        emu.breakpoints.add(0x204)
        emu.run_frame()
        assert emu.paused
        assert emu.cpu.pc == 0x204
        assert emu.cpu.get_reg(0) == 2

    def test_resume_past_breakpoint(self):
        emu = Emulator(EmulatorConfig(cycles_per_frame=2))
        emu.load(assemble(0x7001, 0x7001, 0x7001, 0x1206))
        emu.debug_enabled = True
        emu.breakpoints.add(0x202)
        emu.run_frame()
        assert emu.paused
        assert emu.cpu.pc == 0x202
        emu.paused = False
        emu.run_frame()
        assert not emu.paused
        assert emu.cpu.pc == 0x206
        assert emu.cpu.get_reg(0) == 3

    def test_breakpoint_hit_again_on_next_pass(self):
        # 200: ADD V0,1 / 202: JP 200
        emu = Emulator(EmulatorConfig(cycles_per_frame=10))
        emu.load(assemble(0x7001, 0x1200))
        emu.toggle_breakpoint(0x200)
        emu.run_frame()
        assert emu.paused and emu.cpu.get_reg(0) == 0
        emu.paused = False
        emu.run_frame()
        assert emu.paused
        assert emu.cpu.pc == 0x200
        assert emu.cpu.get_reg(0) == 1

    def test_single_step_off_breakpoint(self):
        emu = Emulator(EmulatorConfig(cycles_per_frame=10))
        emu.load(assemble(0x7001, 0x7001, 0x1204))
        emu.toggle_breakpoint(0x200)
        emu.run_frame()
        emu.step()
        emu.paused = False
        emu.run_frame()
        assert emu.cpu.pc == 0x204
        assert emu.cpu.get_reg(0) == 2

    def test_toggle_breakpoint(self):
        emu = Emulator()
        assert emu.toggle_breakpoint(0x2A0) is True
        assert emu.debug_enabled
        assert emu.get_cpu_state()['Breakpoints'] == [0x2A0]
        assert emu.toggle_breakpoint(0x2A0) is False
        assert emu.breakpoints == set()

    def test_reset_clears_breakpoint_stop(self):
        emu = Emulator()
        emu.load(assemble(0x1200))
        emu.toggle_breakpoint(0x200)
        emu.run_frame()
        assert emu.break_pc == 0x200
        emu.reset()
        assert emu.break_pc is None


class TestInput:

    def test_press_and_release(self):
        emu = Emulator()
        emu.press_key(0xF)
        assert emu.keys[0xF]
        emu.release_key(0xF)
        assert not emu.keys[0xF]

    @pytest.mark.parametrize("key", [-1, 16])
    def test_bad_key(self, key):
        with pytest.raises(ValueError):
            Emulator().press_key(key)


class TestDebug:

    def test_cpu_state(self):
        emu = Emulator()
        emu.load(assemble(0x6A42, 0xA321, 0x2208, 0x0000, 0x6000))
        for _ in range(3):
            emu.step()
        state = emu.get_cpu_state()
        assert state['VA'] == 0x42
        assert state['I'] == 0x321
        assert state['PC'] == 0x208
        assert state['SP'] == 1
        assert state['Stack'] == [0x206]
        assert state['Cycles'] == 3
        assert state['[I]'] is not None
        assert state['Breakpoints'] == []

    def test_cpu_state_index_out_of_range(self):
        emu = Emulator()
        emu.cpu.i = 0x1000
        assert emu.get_cpu_state()['[I]'] is None

    def test_cpu_state_byte_at_index(self):
        emu = Emulator()
        emu.cpu.i = 0x005
        assert emu.get_cpu_state()['[I]'] == 0x20

    def test_current_instruction(self):
        emu = Emulator()
        emu.load(assemble(0x6005, 0x0000))
        assert emu.current_instruction() == "LD V0, 0x05"
        emu.step()
        assert emu.current_instruction() == "DW 0x0000"


class TestLoadRom:

    def test_load_rom_file(self, tmp_path):
        rom = tmp_path / "pong.ch8"
        rom.write_bytes(assemble(0x6005))
        emu = Emulator()
        assert emu.load_rom(str(rom)) is True
        assert emu.rom_title == "pong"
        assert emu.rom_loaded
        emu.step()
        assert emu.cpu.get_reg(0) == 5

    def test_missing_file(self, tmp_path):
        emu = Emulator()
        assert emu.load_rom(str(tmp_path / "nope.ch8")) is False
        assert not emu.rom_loaded

    def test_oversized_file(self, tmp_path):
        rom = tmp_path / "big.ch8"
        rom.write_bytes(bytes(0x1000))
        emu = Emulator()
        assert emu.load_rom(str(rom)) is False
