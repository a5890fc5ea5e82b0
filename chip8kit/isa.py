"""CHIP-8 instruction table shared by the decoder, encoder, assembler and disassembler."""

import enum
from dataclasses import dataclass
from typing import Dict, List, Tuple


class Op(enum.Enum):
    """Instruction tags."""
    CLS = "CLS"
    RET = "RET"
    JP = "JP"
    CALL = "CALL"
    SE_BYTE = "SE_BYTE"
    SNE_BYTE = "SNE_BYTE"
    SE_REG = "SE_REG"
    LD_BYTE = "LD_BYTE"
    ADD_BYTE = "ADD_BYTE"
    LD_REG = "LD_REG"
    OR = "OR"
    AND = "AND"
    XOR = "XOR"
    ADD_REG = "ADD_REG"
    SUB = "SUB"
    SHR = "SHR"
    SUBN = "SUBN"
    SHL = "SHL"
    SNE_REG = "SNE_REG"
    LD_I = "LD_I"
    JP_V0 = "JP_V0"
    RND = "RND"
    DRW = "DRW"
    SKP = "SKP"
    SKNP = "SKNP"
    LD_VX_DT = "LD_VX_DT"
    LD_KEY = "LD_KEY"
    LD_DT_VX = "LD_DT_VX"
    LD_ST_VX = "LD_ST_VX"
    ADD_I = "ADD_I"
    LD_FONT = "LD_FONT"
    BCD = "BCD"
    STORE = "STORE"
    LOAD = "LOAD"


# field name -> (shift, mask)
FIELDS: Dict[str, Tuple[int, int]] = {
    "x": (8, 0xF),
    "y": (4, 0xF),
    "n": (0, 0xF),
    "nn": (0, 0xFF),
    "nnn": (0, 0xFFF),
}

# Operand kinds as written in assembly source
REG = "reg"
BYTE = "byte"
ADDR = "addr"
NIBBLE = "nibble"


@dataclass(frozen=True)
class InstructionSpec:
    """One row of the instruction table.

    ``operands`` lists ``(kind, field)`` pairs in source order. The last
    ``optional`` operands may be omitted in assembly; see ``default_operand``.
    """
    op: Op
    mask: int
    pattern: int
    mnemonic: str
    operands: Tuple[Tuple[str, str], ...] = ()
    optional: int = 0
    summary: str = ""

    @property
    def fields(self) -> Tuple[str, ...]:
        return tuple(name for _, name in self.operands)

    def matches(self, word: int) -> bool:
        return word & self.mask == self.pattern


def default_operand(field: str, values: Dict[str, int]) -> int:
    """Value used for an omitted trailing operand."""
    if field == "y":
        return values["x"]
    if field == "nn":
        return 0xFF
    raise KeyError(field)


_VX = (REG, "x")
_VY = (REG, "y")

INSTRUCTION_TABLE: Tuple[InstructionSpec, ...] = (
    InstructionSpec(Op.CLS, 0xFFFF, 0x00E0, "CLR", summary="clear the display"),
    InstructionSpec(Op.RET, 0xFFFF, 0x00EE, "RET", summary="return from subroutine"),
    InstructionSpec(Op.JP, 0xF000, 0x1000, "JP", ((ADDR, "nnn"),), summary="jump to NNN"),
    InstructionSpec(Op.CALL, 0xF000, 0x2000, "CALL", ((ADDR, "nnn"),), summary="call subroutine at NNN"),
    InstructionSpec(Op.SE_BYTE, 0xF000, 0x3000, "SEQ", (_VX, (BYTE, "nn")), summary="skip if VX == NN"),
    InstructionSpec(Op.SNE_BYTE, 0xF000, 0x4000, "SNE", (_VX, (BYTE, "nn")), summary="skip if VX != NN"),
    InstructionSpec(Op.SE_REG, 0xF00F, 0x5000, "SEQ", (_VX, _VY), summary="skip if VX == VY"),
    InstructionSpec(Op.LD_BYTE, 0xF000, 0x6000, "LD", (_VX, (BYTE, "nn")), summary="VX = NN"),
    InstructionSpec(Op.ADD_BYTE, 0xF000, 0x7000, "ADD", (_VX, (BYTE, "nn")), summary="VX += NN"),
    InstructionSpec(Op.LD_REG, 0xF00F, 0x8000, "LD", (_VX, _VY), summary="VX = VY"),
    InstructionSpec(Op.OR, 0xF00F, 0x8001, "OR", (_VX, _VY), summary="VX |= VY"),
    InstructionSpec(Op.AND, 0xF00F, 0x8002, "AND", (_VX, _VY), summary="VX &= VY"),
    InstructionSpec(Op.XOR, 0xF00F, 0x8003, "XOR", (_VX, _VY), summary="VX ^= VY"),
    InstructionSpec(Op.ADD_REG, 0xF00F, 0x8004, "ADD", (_VX, _VY), summary="VX += VY, VF = carry"),
    InstructionSpec(Op.SUB, 0xF00F, 0x8005, "SUB", (_VX, _VY), summary="VX -= VY, VF = not borrow"),
    InstructionSpec(Op.SHR, 0xF00F, 0x8006, "SHR", (_VX, _VY), optional=1, summary="VX >>= 1, VF = bit 0"),
    InstructionSpec(Op.SUBN, 0xF00F, 0x8007, "SBI", (_VX, _VY), summary="VX = VY - VX, VF = not borrow"),
    InstructionSpec(Op.SHL, 0xF00F, 0x800E, "SHL", (_VX, _VY), optional=1, summary="VX <<= 1, VF = bit 7"),
    InstructionSpec(Op.SNE_REG, 0xF00F, 0x9000, "SNE", (_VX, _VY), summary="skip if VX != VY"),
    InstructionSpec(Op.LD_I, 0xF000, 0xA000, "LDI", ((ADDR, "nnn"),), summary="I = NNN"),
    InstructionSpec(Op.JP_V0, 0xF000, 0xB000, "JP0", ((ADDR, "nnn"),), summary="jump to NNN + V0"),
    InstructionSpec(Op.RND, 0xF000, 0xC000, "RND", (_VX, (BYTE, "nn")), optional=1, summary="VX = random & NN"),
    InstructionSpec(Op.DRW, 0xF000, 0xD000, "DRW", (_VX, _VY, (NIBBLE, "n")), summary="draw N-row sprite at VX, VY"),
    InstructionSpec(Op.SKP, 0xF0FF, 0xE09E, "SIK", (_VX,), summary="skip if key VX is pressed"),
    InstructionSpec(Op.SKNP, 0xF0FF, 0xE0A1, "SNK", (_VX,), summary="skip if key VX is not pressed"),
    InstructionSpec(Op.LD_VX_DT, 0xF0FF, 0xF007, "LDD", (_VX,), summary="VX = delay timer"),
    InstructionSpec(Op.LD_KEY, 0xF0FF, 0xF00A, "LDK", (_VX,), summary="wait for a key press, store it in VX"),
    InstructionSpec(Op.LD_DT_VX, 0xF0FF, 0xF015, "DLY", (_VX,), summary="delay timer = VX"),
    InstructionSpec(Op.LD_ST_VX, 0xF0FF, 0xF018, "SND", (_VX,), summary="sound timer = VX"),
    InstructionSpec(Op.ADD_I, 0xF0FF, 0xF01E, "ADDI", (_VX,), summary="I += VX"),
    InstructionSpec(Op.LD_FONT, 0xF0FF, 0xF029, "FNT", (_VX,), summary="I = font glyph for VX"),
    InstructionSpec(Op.BCD, 0xF0FF, 0xF033, "BCD", (_VX,), summary="store decimal digits of VX at I"),
    InstructionSpec(Op.STORE, 0xF0FF, 0xF055, "DMP", (_VX,), summary="store V0..VX at I"),
    InstructionSpec(Op.LOAD, 0xF0FF, 0xF065, "LDR", (_VX,), summary="load V0..VX from I"),
)

SPEC_BY_OP: Dict[Op, InstructionSpec] = {spec.op: spec for spec in INSTRUCTION_TABLE}

SPECS_BY_FAMILY: Dict[int, List[InstructionSpec]] = {family: [] for family in range(16)}
for _spec in INSTRUCTION_TABLE:
    SPECS_BY_FAMILY[_spec.pattern >> 12].append(_spec)
del _spec

SPECS_BY_MNEMONIC: Dict[str, List[InstructionSpec]] = {}
for _spec in INSTRUCTION_TABLE:
    SPECS_BY_MNEMONIC.setdefault(_spec.mnemonic, []).append(_spec)
del _spec
