"""Tests for the fetch/decode/execute cycle and the run state machine."""

import pytest
import jax.numpy as jnp
from chip8kit import (
    OutOfBoundsAccess, RunState, StackOverflow, StackUnderflow, UnknownOpcode,
    create_state, fetch, load_rom, run_cycles, set_key, step, tick,
)
from conftest import program_state


class TestFetch:

    def test_fetch_reads_word_and_advances(self):
        state = program_state(0x6A42)
        state, word = fetch(state)
        assert word == 0x6A42
        assert state.pc == 0x202

    @pytest.mark.parametrize("pc", [0x000, 0x1FE, 0xFFF])
    def test_fetch_outside_program_region(self, fresh_state, pc):
        state = fresh_state.replace(pc=jnp.astype(pc, jnp.uint16))
        with pytest.raises(OutOfBoundsAccess):
            fetch(state)

    def test_fetch_last_word(self, fresh_state):
        state = fresh_state.replace(pc=jnp.astype(0xFFE, jnp.uint16))
        state, word = fetch(state)
        assert word == 0
        assert state.pc == 0x1000


class TestStep:

    def test_step_executes_one_instruction(self):
        state = step(program_state(0x6A42, 0x7A01))
        assert state.V[0xA] == 0x42
        assert state.pc == 0x202
        assert state.status is RunState.RUNNING

    def test_unknown_opcode_halts(self):
        state = step(program_state(0x6001, 0x0123))
        state = step(state)

        assert state.status is RunState.HALTED
        assert isinstance(state.halt_reason, UnknownOpcode)
        assert state.halt_reason.address == 0x202
        assert state.halt_reason.opcode == 0x0123
        assert state.pc == 0x202

    def test_halted_is_terminal(self):
        halted = step(program_state(0x0000))
        assert halted.halted
        assert step(halted) is halted
        assert run_cycles(halted, 10) is halted

    def test_fault_keeps_earlier_effects(self):
        state = run_cycles(program_state(0x6007, 0x00EE), 5)
        assert isinstance(state.halt_reason, StackUnderflow)
        assert state.V[0] == 7
        assert state.halt_reason.address == 0x202

    def test_running_off_the_end_halts(self):
        state = create_state().replace(pc=jnp.astype(0xFFE, jnp.uint16))
        state = state.replace(memory=state.memory.at[0xFFE:].set(jnp.array([0x60, 0x01], dtype=jnp.uint8)))
        state = run_cycles(state, 3)
        assert isinstance(state.halt_reason, OutOfBoundsAccess)
        assert state.halt_reason.address == 0x1000

    def test_seventeenth_call_overflows(self):
        # 0x200: CALL 0x200, recursing until the stack is full
        state = run_cycles(program_state(0x2200), 100)
        assert isinstance(state.halt_reason, StackOverflow)
        assert state.stack.pointer == 16

    def test_halt_message_names_location(self):
        state = step(program_state(0xFFFF))
        assert "0x200" in str(state.halt_reason)
        assert "0xFFFF" in str(state.halt_reason)


class TestKeyWait:

    def test_wait_blocks_until_press(self):
        # LDK V2; ADD V2, 1
        state = step(program_state(0xF20A, 0x7201))
        assert state.status is RunState.AWAITING_KEY
        assert state.pc == 0x200

        assert run_cycles(state, 50) is state

        state = set_key(state, 0x9, True)
        state = step(state)
        assert state.V[2] == 0xA
        assert state.pc == 0x204

    def test_timers_run_while_waiting(self):
        # LD V0, 60; DLY V0; LDK V1
        state = run_cycles(program_state(0x603C, 0xF015, 0xF10A), 3)
        assert state.status is RunState.AWAITING_KEY
        pc = int(state.pc)

        for _ in range(60):
            state = step(state)
            state = tick(state)

        assert int(state.delay_timer) == 0
        assert int(state.pc) == pc
        assert state.status is RunState.AWAITING_KEY


class TestPrograms:

    def test_counting_loop_never_halts(self):
        # LD V0, 5; ADD V0, 10; JP 0x200
        state = program_state(0x6005, 0x700A, 0x1200)
        for _ in range(10):
            state = run_cycles(state, 3)
            assert state.status is RunState.RUNNING
            assert state.V[0] == 15
            assert state.pc == 0x200

    def test_bcd_of_234(self):
        # LD V0, 234; LDI 0x300; BCD V0; LDI 0x300; LDR V2
        state = run_cycles(program_state(0x60EA, 0xA300, 0xF033, 0xA300, 0xF265), 5)
        assert [int(v) for v in state.V[:3]] == [2, 3, 4]

    def test_subroutine_round_trip(self):
        # 0x200: CALL 0x206; 0x202: LD V1, 1; 0x204: JP 0x204; 0x206: LD V0, 9; 0x208: RET
        state = run_cycles(program_state(0x2206, 0x6101, 0x1204, 0x6009, 0x00EE), 6)
        assert state.V[0] == 9
        assert state.V[1] == 1
        assert state.pc == 0x204
        assert state.stack.pointer == 0

    def test_load_rom(self, fresh_state, tmp_path):
        rom = tmp_path / "loop.ch8"
        rom.write_bytes(bytes([0x60, 0x05, 0x12, 0x00]))
        state = load_rom(fresh_state, str(rom))
        state = run_cycles(state, 4)
        assert state.V[0] == 5
        assert not state.halted
