"""Tests for the two-pass assembler."""

import os

import numpy as np
import pytest
from chip8kit import (
    AssemblerError, ProgramTooLarge, RunState, assemble, create_state, load_program, run_cycles, set_key, snapshot,
)
from chip8kit.assembler import evaluate, parse_register, split_operands, strip_comment

EXAMPLES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "examples")


def words(program):
    binary = program.binary
    return [(binary[i] << 8) | binary[i + 1] for i in range(0, len(binary) - 1, 2)]


class TestHelpers:

    def test_strip_comment(self):
        assert strip_comment("  LD V0, 1   ; load") == "LD V0, 1"
        assert strip_comment("; only a comment") == ""

    def test_split_operands(self):
        assert split_operands(" V0 ,  LIMIT - 1 ") == ("V0", "LIMIT - 1")
        assert split_operands("") == ()

    @pytest.mark.parametrize("token,expected", [("V0", 0), ("vf", 15), ("VA", 10), ("V10", None), ("X", None)])
    def test_parse_register(self, token, expected):
        assert parse_register(token) == expected

    def test_evaluate(self):
        symbols = {"BASE": 0x300, "STEP": 4}.__getitem__
        assert evaluate("BASE + STEP - 1", symbols, 0) == 0x303
        assert evaluate("0b101 + 0x10 + 7", symbols, 0) == 28
        assert evaluate("-1", symbols, 0) == -1
        assert evaluate(". + 2", symbols, 0x210) == 0x212

    @pytest.mark.parametrize("expr", ["1 +", "1 2", "3 * 4", ""])
    def test_evaluate_rejects_bad_syntax(self, expr):
        with pytest.raises(ValueError):
            evaluate(expr, {}.__getitem__, 0)


class TestLayout:

    def test_first_word_jumps_to_entrypoint(self):
        program = assemble("_start:\n    LD V0, 5\n    JP _start\n")
        assert program.binary == bytes([0x12, 0x02, 0x60, 0x05, 0x12, 0x02])
        assert program.entrypoint == 0x202
        assert len(program) == 6

    def test_custom_entrypoint(self):
        program = assemble("""
            helper:
                RET
            main:
                CALL helper
                JP main
            .entrypoint main
        """)
        assert words(program) == [0x1204, 0x00EE, 0x2202, 0x1204]
        assert program.labels == {"helper": 0x202, "main": 0x204}

    def test_forward_references(self):
        program = assemble("""
            _start:
                CALL draw
                JP _start
            draw:
                LDI sprite
                RET
            sprite: db 0x80, 0x40
        """)
        assert words(program)[1:5] == [0x2206, 0x1202, 0xA20A, 0x00EE]
        assert program.binary[-2:] == bytes([0x80, 0x40])

    def test_constants(self):
        program = assemble("""
            LIMIT = 10
            OFFSET = LIMIT - 1
            _start:
                LD V1, OFFSET
                LD V2, 0x10 + 0b11
                SEQ V1, LIMIT
        """)
        assert words(program)[1:] == [0x6109, 0x6213, 0x310A]
        assert program.constants == {"LIMIT": 10, "OFFSET": 9}

    def test_constant_defined_after_use(self):
        program = assemble("_start: LD V0, LATER\nLATER = 0x42\n")
        assert words(program)[1] == 0x6042

    def test_current_address(self):
        program = assemble("_start:\n    LD V0, 1\nhere: JP .\n")
        assert words(program)[2] == 0x1204

    def test_repeat_and_reserve(self):
        program = assemble("""
            _start:
                JP _start
            buffer:
                .reserve 3
            fill:
                .repeat 0xAA, 2
            tail:
                db 1, 2
        """)
        assert program.labels["buffer"] == 0x204
        assert program.labels["fill"] == 0x207
        assert program.labels["tail"] == 0x209
        assert program.binary[4:] == bytes([0, 0, 0, 0xAA, 0xAA, 1, 2])

    def test_reserve_count_from_constant(self):
        program = assemble("SIZE = 2 + 2\n_start: .reserve SIZE\n")
        assert len(program) == 6

    def test_noentry_starts_at_0x200(self):
        program = assemble("""
            START = .
            .noentry
            main:
                LD V0, 5
                ADD V0, 10
                JP main
                JP START
        """)
        assert words(program) == [0x6005, 0x700A, 0x1200, 0x1200]
        assert program.entrypoint == 0x200
        assert program.labels == {"main": 0x200}

    def test_noentry_without_code(self):
        assert assemble(".noentry\n").binary == b""

    def test_mnemonics_are_case_insensitive(self):
        program = assemble("_start:\n\tld v0, 1\n\tdrw V0, v1, 3\n")
        assert words(program)[1:] == [0x6001, 0xD013]


class TestOperandForms:

    @pytest.mark.parametrize("line,word", [
        ("LD V3, 0x12", 0x6312),
        ("LD V3, V4", 0x8340),
        ("ADD V3, 1", 0x7301),
        ("ADD V3, V4", 0x8344),
        ("SEQ V1, 2", 0x3102),
        ("SEQ V1, V2", 0x5120),
        ("SNE V1, 2", 0x4102),
        ("SNE V1, V2", 0x9120),
        ("SUB V1, V2", 0x8125),
        ("SBI V1, V2", 0x8127),
        ("SND V7", 0xF718),
        ("RND V2, 0x0F", 0xC20F),
        ("JP0 0x300", 0xB300),
        ("DMP V5", 0xF555),
        ("ADDI VA", 0xFA1E),
    ])
    def test_operand_kinds_select_the_encoding(self, line, word):
        assert words(assemble(f"_start: {line}"))[1] == word

    @pytest.mark.parametrize("line,word", [
        ("SHR V3", 0x8336),
        ("SHR V3, V4", 0x8346),
        ("SHL V3", 0x833E),
        ("RND V0", 0xC0FF),
    ])
    def test_optional_operands(self, line, word):
        assert words(assemble(f"_start: {line}"))[1] == word

    def test_negative_bytes_wrap(self):
        program = assemble("_start:\n    ADD V3, -1\n    db -128, 0xFF\n")
        assert words(program)[1] == 0x73FF
        assert program.binary[-2:] == bytes([0x80, 0xFF])


class TestErrors:

    @pytest.mark.parametrize("source,line_number", [
        ("_start:\n    NOP\n", 2),
        ("_start:\n    LD 5, V0\n", 2),
        ("_start:\n    LDI V0\n", 2),
        ("_start:\n    CLR V0\n", 2),
        ("_start:\n    JP nowhere\n", 2),
        ("_start:\n_start:\n", 2),
        ("_start:\n    LD V0, 256\n", 2),
        ("_start:\n    ADD V0, -129\n", 2),
        ("_start:\n    DRW V0, V1, 16\n", 2),
        ("_start:\n    JP 0x1000\n", 2),
        ("_start:\n    db 300\n", 2),
        ("_start:\n    .reserve later\nlater:\n", 2),
        ("_start:\n    .repeat 1\n", 2),
        ("_start:\n    LD V0, 1 2\n", 2),
        ("A = B\nB = A\n_start:\n", 1),
        (".entrypoint 3\n", 1),
        ("_start:\n.noentry\n", 2),
        ("LD V0, 1\n.noentry\n", 2),
        (".noentry main\n", 1),
        (".noentry\nmain:\n.entrypoint main\n", 3),
    ])
    def test_error_reports_line(self, source, line_number):
        with pytest.raises(AssemblerError) as excinfo:
            assemble(source)
        assert excinfo.value.line_number == line_number
        assert f"line {line_number}" in str(excinfo.value)

    def test_missing_entrypoint(self):
        with pytest.raises(AssemblerError, match="_start"):
            assemble("main:\n    JP main\n")

    def test_program_fills_the_region(self):
        assert len(assemble("_start: .reserve 3582")) == 3584

    def test_program_too_large(self):
        with pytest.raises(ProgramTooLarge):
            assemble("_start: .reserve 3583")


class TestExample:

    def test_counter_example(self):
        with open(os.path.join(EXAMPLES_DIR, "counter.asm")) as f:
            program = assemble(f.read())

        assert program.entrypoint == program.labels["main"] == 0x21E
        assert program.labels["draw_number"] == 0x202
        assert program.labels["digits"] == 0x238
        assert len(program) == 0x3B
        assert words(program)[:3] == [0x121E, 0xA238, 0xF033]
        assert program.constants == {"X": 24, "Y": 13}

    def test_counter_example_runs(self):
        with open(os.path.join(EXAMPLES_DIR, "counter.asm")) as f:
            program = assemble(f.read())
        state = run_cycles(load_program(create_state(), program.binary), 200)
        assert state.status is RunState.AWAITING_KEY
        assert int(np.sum(snapshot(state))) == 42  # "000"

        state = set_key(set_key(state, 0x5, True), 0x5, False)
        state = run_cycles(state, 200)
        assert state.status is RunState.AWAITING_KEY
        assert int(state.V[3]) == 1
        assert int(np.sum(snapshot(state))) == 36  # "001"
