"""CHIP-8 instruction encoding, the inverse of ``decode``."""

from chip8kit.decode import Instruction
from chip8kit.isa import FIELDS


def encode(instruction: Instruction) -> int:
    """Encode instruction back into its 16-bit word."""
    spec = instruction.spec
    word = spec.pattern
    for field in spec.fields:
        shift, mask = FIELDS[field]
        value = getattr(instruction, field)
        if not 0 <= value <= mask:
            raise ValueError(f"{spec.mnemonic} operand {field}={value} does not fit in 0x{mask:X}")
        word |= value << shift
    return word


def encode_bytes(instruction: Instruction) -> bytes:
    """Encode instruction as two big-endian bytes."""
    return encode(instruction).to_bytes(2, "big")
