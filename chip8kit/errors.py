"""Faults raised by the CHIP-8 toolchain.

Machine faults carry the address of the failing instruction and the fetched
word once the execution engine knows them, so a halted machine can report
exactly where it stopped.
"""

from typing import Optional


class Chip8Error(Exception):
    """Base class for every toolchain fault."""

    def __init__(self, message: str, address: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.address = address
        self.opcode = opcode

    def locate(self, address: int, opcode: Optional[int] = None) -> "Chip8Error":
        """Attach the failing instruction's location, keeping values already set."""
        if self.address is None:
            self.address = address
        if self.opcode is None:
            self.opcode = opcode
        return self

    def __str__(self) -> str:
        details = []
        if self.address is not None:
            details.append(f"at 0x{self.address:03X}")
        if self.opcode is not None:
            details.append(f"opcode 0x{self.opcode:04X}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"


class DecodeError(Chip8Error):
    """A fetched word could not be decoded."""


class UnknownOpcode(DecodeError):
    def __init__(self, word: int, address: Optional[int] = None):
        super().__init__("unknown opcode", address=address, opcode=word)
        self.word = word


class ExecutionError(Chip8Error):
    """A decoded instruction could not be executed."""


class StackOverflow(ExecutionError):
    def __init__(self, depth: int):
        super().__init__(f"call stack overflow (depth {depth})")
        self.depth = depth


class StackUnderflow(ExecutionError):
    def __init__(self):
        super().__init__("return with empty call stack")


class OutOfBoundsAccess(ExecutionError):
    def __init__(self, target: int, count: int = 1, write: bool = False):
        kind = "write" if write else "read"
        super().__init__(f"memory {kind} of {count} byte(s) at 0x{target:04X} out of bounds")
        self.target = target
        self.count = count
        self.write = write


class ResourceError(Chip8Error):
    """A program does not fit the machine."""


class ProgramTooLarge(ResourceError):
    def __init__(self, size: int, limit: int):
        super().__init__(f"program is {size} bytes, limit is {limit} bytes")
        self.size = size
        self.limit = limit


class AssemblerError(Chip8Error):
    """Source text could not be assembled."""

    def __init__(self, message: str, line_number: Optional[int] = None, line: Optional[str] = None):
        super().__init__(message)
        self.line_number = line_number
        self.line = line

    def __str__(self) -> str:
        if self.line_number is None:
            return self.message
        return f"line {self.line_number}: {self.message}: {self.line!r}"
