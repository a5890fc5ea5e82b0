"""Tests for miscellaneous instructions (Fxxx)."""

import pytest
from chip8kit import OutOfBoundsAccess, RunState, execute


class TestTimers:
    """Test timer-related instructions."""

    def test_misc_timer_instructions(self, fresh_state):
        """Test timer set and get operations."""
        state = fresh_state

        state = execute(state, 0x6030)  # V0 = 48
        state = execute(state, 0xF015)  # Set delay timer to V0
        assert state.delay_timer == 48

        state = execute(state, 0x6120)  # V1 = 32
        state = execute(state, 0xF118)  # Set sound timer to V1
        assert state.sound_timer == 32

        state = execute(state, 0xF207)  # V2 = delay timer
        assert state.V[2] == 48


class TestBCD:
    """Test BCD conversion."""

    def test_misc_bcd_conversion(self, fresh_state):
        """Test BCD conversion with 156."""
        state = execute(fresh_state, 0x609C)  # V0 = 156
        state = execute(state, 0xA300)  # I = 0x300
        state = execute(state, 0xF033)  # BCD conversion

        assert state.memory[0x300] == 1  # Hundreds
        assert state.memory[0x301] == 5  # Tens
        assert state.memory[0x302] == 6  # Ones

    @pytest.mark.parametrize("value,digits", [(0, (0, 0, 0)), (7, (0, 0, 7)), (42, (0, 4, 2)), (255, (2, 5, 5))])
    def test_bcd_edge_cases(self, fresh_state, value, digits):
        """Test BCD with edge cases."""
        state = execute(fresh_state, 0x6000 | value)
        state = execute(state, 0xA400)  # I = 0x400
        state = execute(state, 0xF033)

        assert tuple(int(b) for b in state.memory[0x400:0x403]) == digits
        assert state.I == 0x400

    def test_bcd_into_font_area_faults(self, fresh_state):
        """FX33 may not write below the program region."""
        state = execute(fresh_state, 0xA100)
        with pytest.raises(OutOfBoundsAccess) as excinfo:
            execute(state, 0xF033)
        assert excinfo.value.write
        assert excinfo.value.target == 0x100


class TestFont:
    """Test font character addressing."""

    def test_misc_font_character(self, fresh_state):
        """Test font character addressing."""
        state = execute(fresh_state, 0x600A)  # V0 = 0xA
        state = execute(state, 0xF029)  # I = font address for A

        assert state.I == 0x50 + (0xA * 5)

    def test_font_all_characters(self, fresh_state):
        """Test font addressing for all hex digits."""
        state = fresh_state

        for digit in range(16):
            state = execute(state, 0x6000 | digit)  # V0 = digit
            state = execute(state, 0xF029)  # I = font address
            assert state.I == 0x50 + (digit * 5), f"Font address wrong for digit {digit:X}"

    def test_font_address_not_masked(self, fresh_state):
        """Values above 0xF are not reduced to a nibble."""
        state = execute(fresh_state, 0x6012)  # V0 = 0x12
        state = execute(state, 0xF029)
        assert state.I == 0x50 + 0x12 * 5


class TestMemoryOperations:
    """Test store/load register operations."""

    def test_store_load_keeps_index(self, fresh_state):
        """FX55/FX65 leave I unchanged by default."""
        state = execute(fresh_state, 0x6001)  # V0 = 1
        state = execute(state, 0x6102)  # V1 = 2
        state = execute(state, 0x6203)  # V2 = 3
        state = execute(state, 0xA300)  # I = 0x300

        state = execute(state, 0xF255)  # Store V0-V2
        assert state.I == 0x300
        assert [int(b) for b in state.memory[0x300:0x304]] == [1, 2, 3, 0]

        state = execute(state, 0x6000)
        state = execute(state, 0x6100)
        state = execute(state, 0x6200)

        state = execute(state, 0xF265)  # Load V0-V2
        assert state.V[0] == 1
        assert state.V[1] == 2
        assert state.V[2] == 3
        assert state.I == 0x300

    def test_load_only_touches_requested_registers(self, fresh_state):
        state = execute(fresh_state, 0x6377)  # V3 = 0x77
        state = execute(state, 0xA050)  # I = glyph 0, font area is readable
        state = execute(state, 0xF265)
        assert [int(v) for v in state.V[:3]] == [0xF0, 0x90, 0x90]
        assert state.V[3] == 0x77

    def test_store_load_with_index_increment(self, index_increment_state):
        """With the quirk, I advances by X+1."""
        state = execute(index_increment_state, 0x6001)  # V0 = 1
        state = execute(state, 0x6102)  # V1 = 2
        state = execute(state, 0xA400)  # I = 0x400

        state = execute(state, 0xF155)  # Store V0-V1
        assert state.I == 0x400 + 2

        state = execute(state, 0xA400)
        state = execute(state, 0x6000)
        state = execute(state, 0x6100)

        state = execute(state, 0xF165)  # Load V0-V1
        assert state.V[0] == 1
        assert state.V[1] == 2
        assert state.I == 0x400 + 2

    def test_store_past_end_faults(self, fresh_state):
        state = execute(fresh_state, 0xAFFE)
        with pytest.raises(OutOfBoundsAccess):
            execute(state, 0xF255)


class TestKeypad:
    """Test keypad operations."""

    def test_skip_if_key_pressed(self, fresh_state):
        """Test EX9E - Skip if key pressed."""
        state = execute(fresh_state, 0x6005)  # V0 = 5
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2

    def test_skip_if_key_not_pressed(self, fresh_state):
        """Test EXA1 - Skip if key not pressed."""
        state = execute(fresh_state, 0x6005)  # V0 = 5
        initial_pc = state.pc

        state = execute(state, 0xE0A1)
        assert state.pc == initial_pc + 2

    def test_skip_key_uses_low_nibble(self, fresh_state):
        """EX9E with VX = 0x15 tests key 5."""
        state = execute(fresh_state, 0x6015)
        state = state.replace(keypad=state.keypad.at[5].set(True))
        initial_pc = state.pc

        state = execute(state, 0xE09E)
        assert state.pc == initial_pc + 2

    def test_wait_for_key_blocking(self, fresh_state):
        """Test FX0A - Wait for key (blocking behavior)."""
        initial_pc = fresh_state.pc

        state = execute(fresh_state, 0xF30A)  # Wait for key → V3

        assert state.pc == initial_pc - 2
        assert state.status is RunState.AWAITING_KEY
        assert state.key_wait_register == 3

    def test_wait_for_key_already_held(self, fresh_state):
        """Test FX0A with keys held: the lowest one is stored."""
        state = fresh_state.replace(keypad=fresh_state.keypad.at[7].set(True))
        state = state.replace(keypad=state.keypad.at[0xB].set(True))
        initial_pc = state.pc

        state = execute(state, 0xF00A)

        assert state.V[0] == 7
        assert state.pc == initial_pc
        assert state.status is RunState.RUNNING


class TestMiscInstructionDispatch:
    """Test misc instruction dispatch logic."""

    def test_add_to_index(self, fresh_state):
        """Test FX1E - Add VX to I register."""
        state = execute(fresh_state, 0x6010)  # V0 = 0x10
        state = execute(state, 0xA300)  # I = 0x300
        state = execute(state, 0xF01E)  # I += V0

        assert state.I == 0x310
        assert state.V[15] == 0

    def test_add_to_index_past_12_bits(self, fresh_state):
        """Test FX1E beyond 0xFFF: I is a 16-bit register and VF is untouched."""
        state = execute(fresh_state, 0x60FF)  # V0 = 0xFF
        state = execute(state, 0xAF80)  # I = 0xF80
        state = execute(state, 0xF01E)  # I += V0

        assert state.I == 0x107F
        assert state.V[15] == 0

    def test_unknown_f_variant(self, fresh_state):
        from chip8kit import UnknownOpcode

        with pytest.raises(UnknownOpcode):
            execute(fresh_state, 0xF0FF)
