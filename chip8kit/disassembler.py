"""Control-flow disassembler producing assembler-compatible listings."""

from collections import deque
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Set

from chip8kit.constants import MAX_PROGRAM_SIZE, PROGRAM_START
from chip8kit.decode import Instruction, try_decode
from chip8kit.errors import ProgramTooLarge
from chip8kit.isa import ADDR, BYTE, NIBBLE, REG, Op, default_operand

# Instructions after which execution never falls through
TERMINATORS = {Op.JP, Op.RET, Op.JP_V0}
SKIPS = {Op.SE_BYTE, Op.SNE_BYTE, Op.SE_REG, Op.SNE_REG, Op.SKP, Op.SKNP}
DATA_BYTES_PER_LINE = 8


@dataclass
class ListingLine:
    address: int
    data: bytes
    instruction: Optional[Instruction] = None

    @property
    def is_code(self) -> bool:
        return self.instruction is not None


@dataclass
class Listing:
    """Disassembled program.

    ``labels`` maps addresses to the names printed in front of them, and
    ``sprites`` holds the addresses loaded into I by ``LDI``.
    """
    lines: List[ListingLine]
    labels: Dict[int, str] = field(default_factory=dict)
    sprites: Set[int] = field(default_factory=set)
    entrypoint: Optional[int] = None

    @property
    def instructions(self) -> Dict[int, Instruction]:
        return {line.address: line.instruction for line in self.lines if line.is_code}

    def render(self, annotate: bool = True) -> str:
        # without an entry jump the listing starts at 0x200
        out = [f".entrypoint {self.labels[self.entrypoint]}" if self.entrypoint is not None else ".noentry", ""]
        for line in self.lines:
            if line.address in self.labels:
                out.append(f"{self.labels[line.address]}:")
            if line.is_code:
                text = f"    {format_instruction(line.instruction, self.labels)}"
            else:
                text = "    db " + ", ".join(f"0x{b:02X}" for b in line.data)
            if annotate:
                text = f"{text:<32}; {line.address:03X}  {line.data.hex().upper()}"
                if line.is_code:
                    text = f"{text}  {line.instruction.spec.summary}"
            out.append(text)
        return "\n".join(out) + "\n"

    def __str__(self) -> str:
        return self.render()


def format_operand(kind: str, value: int, labels: Mapping[int, str]) -> str:
    if kind == REG:
        return f"V{value:X}"
    if kind == ADDR:
        return labels.get(value, f"0x{value:03X}")
    if kind == BYTE:
        return f"0x{value:02X}"
    if kind == NIBBLE:
        return str(value)
    raise ValueError(f"Unknown operand kind '{kind}'")


def format_instruction(instruction: Instruction, labels: Optional[Mapping[int, str]] = None) -> str:
    """Render an instruction in assembler syntax.

    Trailing optional operands equal to their default are omitted, so
    ``SHR V3, V3`` prints as ``SHR V3`` and ``RND V0, 0xFF`` as ``RND V0``.
    """
    labels = labels or {}
    spec = instruction.spec
    values = {name: getattr(instruction, name) for name in spec.fields}
    operands = list(spec.operands)
    for _ in range(spec.optional):
        _, name = operands[-1]
        if values[name] != default_operand(name, values):
            break
        operands.pop()
    if not operands:
        return spec.mnemonic
    rendered = ", ".join(format_operand(kind, values[name], labels) for kind, name in operands)
    return f"{spec.mnemonic} {rendered}"


class _Walker:

    def __init__(self, program: bytes):
        self.program = program
        self.end = PROGRAM_START + len(program)
        self.code: Dict[int, Instruction] = {}
        self.labels: Dict[int, str] = {}
        self.sprites: Set[int] = set()
        self.queue = deque()

    def word(self, address: int) -> Optional[int]:
        offset = address - PROGRAM_START
        if offset < 0 or address + 2 > self.end:
            return None
        return (self.program[offset] << 8) | self.program[offset + 1]

    def target(self, address: int, name: str):
        self.labels.setdefault(address, name)
        self.queue.append(address)

    def claimable(self, address: int) -> bool:
        """An instruction may not overlap one already decoded."""
        return address not in self.code and address - 1 not in self.code and address + 1 not in self.code

    def walk(self):
        while self.queue:
            address = self.queue.popleft()
            while self.claimable(address):
                word = self.word(address)
                instruction = try_decode(word) if word is not None else None
                if instruction is None:
                    break
                self.code[address] = instruction
                self.follow(address, instruction)
                if instruction.op in TERMINATORS:
                    break
                address += 2

    def follow(self, address: int, instruction: Instruction):
        op = instruction.op
        if op == Op.CALL:
            self.target(instruction.nnn, f"function_{instruction.nnn:03X}")
        elif op in (Op.JP, Op.JP_V0):
            self.target(instruction.nnn, f"label_{instruction.nnn:03X}")
        elif op in SKIPS:
            self.queue.append(address + 4)
        elif op == Op.LD_I:
            self.sprites.add(instruction.nnn)


def disassemble(program: bytes) -> Listing:
    """Disassemble a program image loaded at 0x200.

    Code is discovered by following control flow from 0x200; bytes never
    reached are rendered as ``db`` data. When the image starts with a jump,
    as assembled programs do, its target is named ``main`` and becomes the
    listing's ``.entrypoint``. Any other image is listed from 0x200 under
    ``.noentry``, so the rendered listing always assembles back to ``program``.
    """
    program = bytes(program)
    if len(program) > MAX_PROGRAM_SIZE:
        raise ProgramTooLarge(len(program), MAX_PROGRAM_SIZE)

    walker = _Walker(program)
    first = try_decode(walker.word(PROGRAM_START)) if len(program) >= 2 else None
    entrypoint = None
    start = PROGRAM_START
    if first is not None and first.op == Op.JP:
        entrypoint = first.nnn
        walker.labels[entrypoint] = "main"
        walker.code[PROGRAM_START] = first
        walker.queue.append(entrypoint)
        start = PROGRAM_START + 2
    else:
        walker.labels[PROGRAM_START] = "main"
        walker.queue.append(PROGRAM_START)
    walker.walk()

    for address in sorted(walker.sprites):
        walker.labels.setdefault(address, f"sprite_{address:03X}")

    lines = _layout(program, walker, start)
    starts = {line.address for line in lines}
    labels = {address: name for address, name in walker.labels.items() if address in starts}
    if entrypoint is not None and entrypoint not in labels:
        # entry outside the image or in the middle of an instruction
        entrypoint = None
        start = PROGRAM_START
        lines = _layout(program, walker, start)
        starts = {line.address for line in lines}
        labels = {address: name for address, name in walker.labels.items() if address in starts}
    return Listing(lines=lines, labels=labels, sprites=walker.sprites, entrypoint=entrypoint)


def _layout(program: bytes, walker: _Walker, start: int) -> List[ListingLine]:
    lines = []
    address = start
    while address < walker.end:
        offset = address - PROGRAM_START
        if address in walker.code:
            lines.append(ListingLine(address, program[offset:offset + 2], walker.code[address]))
            address += 2
            continue
        chunk_end = address + 1
        while (
            chunk_end < walker.end
            and chunk_end - address < DATA_BYTES_PER_LINE
            and chunk_end not in walker.code
            and chunk_end not in walker.labels
        ):
            chunk_end += 1
        lines.append(ListingLine(address, program[offset:chunk_end - PROGRAM_START]))
        address = chunk_end
    return lines
