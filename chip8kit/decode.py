"""CHIP-8 instruction decoding."""

from chex import dataclass

from chip8kit.errors import UnknownOpcode
from chip8kit.isa import FIELDS, InstructionSpec, Op, SPEC_BY_OP, SPECS_BY_FAMILY


@dataclass(frozen=True)
class Instruction:
    """Decoded CHIP-8 instruction with extracted operands.

    Only the operands the instruction uses are set; the others stay 0.
    """
    op: Op
    x: int = 0    # Second nibble (VX register)
    y: int = 0    # Third nibble (VY register)
    n: int = 0    # Fourth nibble (4-bit immediate)
    nn: int = 0   # Last byte (8-bit immediate)
    nnn: int = 0  # Last 12 bits (12-bit address)

    @property
    def spec(self) -> InstructionSpec:
        return SPEC_BY_OP[self.op]

    @property
    def mnemonic(self) -> str:
        return self.spec.mnemonic


def extract_field(word: int, field: str) -> int:
    shift, mask = FIELDS[field]
    return (word >> shift) & mask


def decode(word: int) -> Instruction:
    """Decode 16-bit word into an instruction.

    Raises:
        UnknownOpcode: if the word matches no instruction pattern
    """
    word = int(word)
    if not 0 <= word <= 0xFFFF:
        raise UnknownOpcode(word)
    for spec in SPECS_BY_FAMILY[word >> 12]:
        if spec.matches(word):
            operands = {field: extract_field(word, field) for field in spec.fields}
            return Instruction(op=spec.op, **operands)
    raise UnknownOpcode(word)


def try_decode(word: int):
    """Decode ``word``, returning None instead of raising for unknown opcodes."""
    try:
        return decode(word)
    except UnknownOpcode:
        return None
