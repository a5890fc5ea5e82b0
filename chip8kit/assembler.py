"""Two-pass CHIP-8 assembler.

Source format, one statement per line, ``;`` starting a comment::

    LIMIT = 10              ; constant
    .entrypoint main        ; label jumped to from 0x200 (default: _start)
    main:                   ; label
        LD V0, LIMIT - 1
        CALL draw           ; forward reference, resolved in pass two
    sprite: db 0x80, 0x40   ; raw bytes
    .repeat 0xFF, 4         ; four 0xFF bytes
    .reserve 8              ; eight zero bytes

The first word of every program is ``JP <entrypoint>``; code starts at 0x202.
A ``.noentry`` line ahead of any label, code or data drops that jump, and the
program then starts executing at 0x200 with its first statement.
Expressions are numbers (decimal, 0x hex, 0b binary), symbols and ``.``
(the address of the current statement), joined with ``+`` and ``-``.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from chip8kit.constants import MAX_PROGRAM_SIZE, PROGRAM_START
from chip8kit.decode import Instruction
from chip8kit.encode import encode
from chip8kit.errors import AssemblerError, ProgramTooLarge
from chip8kit.isa import ADDR, BYTE, FIELDS, NIBBLE, REG, InstructionSpec, Op, SPECS_BY_MNEMONIC, default_operand

DEFAULT_ENTRYPOINT = "_start"

_NAME = r"[A-Za-z_@][\w@]*"
_LABEL_RE = re.compile(rf"^({_NAME})\s*:\s*(.*)$")
_CONSTANT_RE = re.compile(rf"^({_NAME})\s*=\s*(.+)$")
_REGISTER_RE = re.compile(r"^[vV]([0-9a-fA-F])$")
_TOKEN_RE = re.compile(rf"\s*(0[xX][0-9a-fA-F]+|0[bB][01]+|\d+|{_NAME}|\.|[+-])")


@dataclass
class AssembledProgram:
    """Output of the assembler."""
    binary: bytes
    labels: Dict[str, int] = field(default_factory=dict)
    constants: Dict[str, int] = field(default_factory=dict)
    entrypoint: int = PROGRAM_START + 2

    def __len__(self) -> int:
        return len(self.binary)


@dataclass
class _Pending:
    """A statement whose operands are resolved in pass two."""
    address: int
    line_number: int
    line: str
    spec: Optional[InstructionSpec] = None
    operands: Tuple[str, ...] = ()
    byte_exprs: Tuple[str, ...] = ()


def strip_comment(line: str) -> str:
    return line.split(";", 1)[0].strip()


def split_operands(text: str) -> Tuple[str, ...]:
    text = text.strip()
    if not text:
        return ()
    return tuple(operand.strip() for operand in text.split(","))


def parse_register(token: str) -> Optional[int]:
    match = _REGISTER_RE.match(token.strip())
    return int(match.group(1), 16) if match else None


def _parse_number(token: str) -> int:
    if token[:2] in ("0x", "0X"):
        return int(token[2:], 16)
    if token[:2] in ("0b", "0B"):
        return int(token[2:], 2)
    return int(token)


def tokenize_expression(expr: str) -> List[str]:
    tokens = []
    position = 0
    expr = expr.rstrip()
    while position < len(expr):
        match = _TOKEN_RE.match(expr, position)
        if match is None:
            raise ValueError(f"unexpected character {expr[position:].strip()[:1]!r} in expression {expr!r}")
        tokens.append(match.group(1))
        position = match.end()
    if not tokens:
        raise ValueError("empty expression")
    return tokens


def evaluate(expr: str, symbols, here: int) -> int:
    """Evaluate a ``+``/``-`` expression.

    ``symbols`` is called with a name and returns its value, raising KeyError
    for unknown names.
    """
    tokens = tokenize_expression(expr)
    total = 0
    sign = 1
    expect_term = True
    for token in tokens:
        if token in "+-" and len(token) == 1:
            if expect_term:
                # unary sign
                sign = -sign if token == "-" else sign
                continue
            sign = -1 if token == "-" else 1
            expect_term = True
            continue
        if not expect_term:
            raise ValueError(f"missing operator before {token!r} in expression {expr!r}")
        if token == ".":
            value = here
        elif token[0].isdigit():
            value = _parse_number(token)
        else:
            value = symbols(token)
        total += sign * value
        sign = 1
        expect_term = False
    if expect_term:
        raise ValueError(f"expression {expr!r} ends with an operator")
    return total


class Assembler:
    """Assembles source text into a CHIP-8 program image."""

    def __init__(self):
        self.labels: Dict[str, int] = {}
        self._constant_exprs: Dict[str, Tuple[str, int, int, str]] = {}
        self._constants: Dict[str, int] = {}
        self._resolving: set = set()
        self._pending: List[_Pending] = []
        self._image = bytearray()
        self._address = PROGRAM_START + 2
        self._entrypoint = DEFAULT_ENTRYPOINT
        self._entrypoint_line: Optional[Tuple[int, str]] = None
        self._entry_jump = True

    # pass one

    def _error(self, message: str, line_number: int, line: str) -> AssemblerError:
        return AssemblerError(message, line_number, line)

    def _define(self, name: str, line_number: int, line: str):
        if name in self.labels or name in self._constant_exprs:
            raise self._error(f"symbol '{name}' already defined", line_number, line)

    def _emit(self, data: bytes):
        offset = self._address - PROGRAM_START
        end = offset + len(data)
        if end > len(self._image):
            self._image.extend(bytes(end - len(self._image)))
        self._image[offset:end] = data
        self._address += len(data)

    def _early_value(self, expr: str, line_number: int, line: str) -> int:
        """Values that change the layout must be known during pass one."""
        try:
            return evaluate(expr, self._symbol, self._address)
        except (KeyError, ValueError) as error:
            raise self._error(f"cannot evaluate {expr!r} in pass one ({error})", line_number, line) from None

    def _statement(self, text: str, line_number: int, line: str):
        label = _LABEL_RE.match(text)
        if label:
            name, rest = label.groups()
            self._define(name, line_number, line)
            self.labels[name] = self._address
            if rest:
                self._statement(rest, line_number, line)
            return

        constant = _CONSTANT_RE.match(text)
        if constant:
            name, expr = constant.groups()
            self._define(name, line_number, line)
            self._constant_exprs[name] = (expr, self._address, line_number, line)
            return

        head, _, rest = text.replace("\t", " ").partition(" ")
        keyword = head.lower()
        if keyword == ".entrypoint":
            if not re.fullmatch(_NAME, rest.strip()):
                raise self._error("expected a label name", line_number, line)
            self._entrypoint = rest.strip()
            self._entrypoint_line = (line_number, line)
        elif keyword == ".noentry":
            if rest.strip():
                raise self._error(".noentry takes no operands", line_number, line)
            if not self._entry_jump:
                return
            if self.labels or self._address != PROGRAM_START + 2:
                raise self._error(".noentry must come before any label, code or data", line_number, line)
            self._entry_jump = False
            self._address = PROGRAM_START
            # constants seen so far were placed at the old origin
            for name, (expr, _, number, text) in self._constant_exprs.items():
                self._constant_exprs[name] = (expr, PROGRAM_START, number, text)
        elif keyword == ".reserve":
            count = self._early_value(rest, line_number, line)
            if count < 0:
                raise self._error("reserve count must not be negative", line_number, line)
            self._emit(bytes(count))
        elif keyword == ".repeat":
            operands = split_operands(rest)
            if len(operands) != 2:
                raise self._error("expected .repeat <byte>, <count>", line_number, line)
            count = self._early_value(operands[1], line_number, line)
            if count < 0:
                raise self._error("repeat count must not be negative", line_number, line)
            self._pending.append(_Pending(self._address, line_number, line, byte_exprs=(operands[0],) * count))
            self._emit(bytes(count))
        elif keyword == "db":
            operands = split_operands(rest)
            if not operands:
                raise self._error("db needs at least one value", line_number, line)
            self._pending.append(_Pending(self._address, line_number, line, byte_exprs=operands))
            self._emit(bytes(len(operands)))
        else:
            spec = self._select_spec(head.upper(), split_operands(rest), line_number, line)
            self._pending.append(_Pending(self._address, line_number, line, spec=spec, operands=split_operands(rest)))
            self._emit(bytes(2))

    def _select_spec(self, mnemonic: str, operands: Tuple[str, ...], line_number: int, line: str) -> InstructionSpec:
        candidates = SPECS_BY_MNEMONIC.get(mnemonic)
        if not candidates:
            raise self._error(f"unknown mnemonic '{mnemonic}'", line_number, line)
        for spec in candidates:
            required = len(spec.operands) - spec.optional
            if not required <= len(operands) <= len(spec.operands):
                continue
            kinds_match = all(
                (kind == REG) == (parse_register(operand) is not None)
                for (kind, _), operand in zip(spec.operands, operands)
            )
            if kinds_match:
                return spec
        raise self._error(f"invalid operands for {mnemonic}", line_number, line)

    # pass two

    def _symbol(self, name: str) -> int:
        if name in self.labels:
            return self.labels[name]
        if name in self._constants:
            return self._constants[name]
        if name not in self._constant_exprs:
            raise KeyError(f"undefined symbol '{name}'")
        if name in self._resolving:
            raise KeyError(f"constant '{name}' refers to itself")
        expr, here, _, _ = self._constant_exprs[name]
        self._resolving.add(name)
        try:
            value = evaluate(expr, self._symbol, here)
        finally:
            self._resolving.discard(name)
        self._constants[name] = value
        return value

    def _value(self, expr: str, pending: _Pending) -> int:
        try:
            return evaluate(expr, self._symbol, pending.address)
        except KeyError as error:
            raise self._error(error.args[0], pending.line_number, pending.line) from None
        except ValueError as error:
            raise self._error(str(error), pending.line_number, pending.line) from None

    def _operand(self, kind: str, field_name: str, expr: str, pending: _Pending) -> int:
        if kind == REG:
            return parse_register(expr)
        value = self._value(expr, pending)
        if kind == BYTE and -0x80 <= value < 0:
            value &= 0xFF
        limit = FIELDS[field_name][1]
        if not 0 <= value <= limit:
            kind_name = {BYTE: "byte", ADDR: "address", NIBBLE: "nibble"}[kind]
            raise self._error(f"{kind_name} {value} out of range 0..{limit}", pending.line_number, pending.line)
        return value

    def _instruction(self, pending: _Pending) -> Instruction:
        spec = pending.spec
        values: Dict[str, int] = {}
        for (kind, field_name), expr in zip(spec.operands, pending.operands):
            values[field_name] = self._operand(kind, field_name, expr, pending)
        for _, field_name in spec.operands[len(pending.operands):]:
            values[field_name] = default_operand(field_name, values)
        return Instruction(op=spec.op, **values)

    def _resolve(self, pending: _Pending):
        offset = pending.address - PROGRAM_START
        if pending.spec is not None:
            word = encode(self._instruction(pending))
            self._image[offset:offset + 2] = word.to_bytes(2, "big")
            return
        for i, expr in enumerate(pending.byte_exprs):
            value = self._value(expr, pending)
            if -0x80 <= value < 0:
                value &= 0xFF
            if not 0 <= value <= 0xFF:
                raise self._error(f"byte {value} out of range 0..255", pending.line_number, pending.line)
            self._image[offset + i] = value

    def assemble(self, source: str) -> AssembledProgram:
        for line_number, line in enumerate(source.splitlines(), start=1):
            text = strip_comment(line)
            if text:
                self._statement(text, line_number, line)
            if self._address - PROGRAM_START > MAX_PROGRAM_SIZE:
                raise ProgramTooLarge(self._address - PROGRAM_START, MAX_PROGRAM_SIZE)

        for name in self._constant_exprs:
            _, _, line_number, line = self._constant_exprs[name]
            try:
                self._symbol(name)
            except (KeyError, ValueError) as error:
                raise self._error(str(error.args[0]), line_number, line) from None

        for pending in self._pending:
            self._resolve(pending)

        if not self._entry_jump:
            if self._entrypoint_line is not None:
                raise self._error(".entrypoint cannot be combined with .noentry", *self._entrypoint_line)
            entrypoint = PROGRAM_START
        elif self._entrypoint not in self.labels:
            raise AssemblerError(
                f"entrypoint '{self._entrypoint}' is not defined; "
                f"choose another with '.entrypoint <label>' or start at 0x200 with '.noentry'"
            )
        else:
            entrypoint = self.labels[self._entrypoint]
            self._image[0:2] = encode(Instruction(op=Op.JP, nnn=entrypoint)).to_bytes(2, "big")

        return AssembledProgram(
            binary=bytes(self._image),
            labels=dict(self.labels),
            constants=dict(self._constants),
            entrypoint=entrypoint,
        )


def assemble(source: str) -> AssembledProgram:
    """Assemble source text into a program image.

    Raises:
        AssemblerError: on syntax errors and unresolved symbols
        ProgramTooLarge: if the image exceeds the program region
    """
    return Assembler().assemble(source)
