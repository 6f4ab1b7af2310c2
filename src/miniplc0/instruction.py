"""
Stack Machine Instructions
==========================

The compiled program is an ordered list of Instruction records. Three
opcodes carry an operand (LIT, LOD, STO); the others ignore it and keep
the default of 0.

Instruction Set
---------------
| Opcode | Operand        | Effect                                |
|--------|----------------|---------------------------------------|
| LIT x  | literal        | push x                                |
| LOD x  | absolute index | push stack[x]                         |
| STO x  | absolute index | pop v; stack[x] = v                   |
| ADD    |                | pop b, pop a, push a + b              |
| SUB    |                | pop b, pop a, push a - b              |
| MUL    |                | pop b, pop a, push a * b              |
| DIV    |                | pop b, pop a, push a / b (truncating) |
| WRT    |                | pop b, output b                       |
| ILL    |                | illegal instruction                   |

Listing Format
--------------
One instruction per line, in the same text form str() produces:

    LIT 1
    LIT 2
    ADD
    WRT

Blank lines and '#' comments are ignored when a listing is parsed.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from miniplc0.errors import InstructionFormatError


INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1


def wrap_int32(value: int) -> int:
    """Wrap an arbitrary Python int to signed 32-bit two's complement."""
    value &= 0xFFFFFFFF
    if value > INT32_MAX:
        value -= 0x100000000
    return value


class Operation(Enum):
    """Opcodes of the stack machine."""
    LIT = "LIT"
    LOD = "LOD"
    STO = "STO"
    ADD = "ADD"
    SUB = "SUB"
    MUL = "MUL"
    DIV = "DIV"
    WRT = "WRT"
    ILL = "ILL"

    @property
    def has_operand(self) -> bool:
        """True for the opcodes whose operand means something."""
        return self in (Operation.LIT, Operation.LOD, Operation.STO)


@dataclass(frozen=True)
class Instruction:
    """
    One opcode plus its operand.

    Equality compares both fields, so Instruction(Operation.ADD) equals
    Instruction(Operation.ADD, 0).
    """
    op: Operation
    operand: int = 0

    def __str__(self) -> str:
        if self.op.has_operand:
            return f"{self.op.value} {self.operand}"
        return self.op.value

    @classmethod
    def parse(cls, text: str) -> "Instruction":
        """
        Parse the textual form produced by str().

        Raises:
            InstructionFormatError: On unknown opcodes, wrong operand count,
                or operands outside the signed 32-bit range
        """
        parts = text.split()
        if not parts:
            raise InstructionFormatError("empty instruction", text)

        try:
            op = Operation(parts[0].upper())
        except ValueError:
            raise InstructionFormatError(f"unknown opcode '{parts[0]}'", text) from None

        if not op.has_operand:
            if len(parts) != 1:
                raise InstructionFormatError(f"{op.value} takes no operand", text)
            return cls(op)

        if len(parts) != 2:
            raise InstructionFormatError(f"{op.value} takes exactly one operand", text)

        try:
            operand = int(parts[1])
        except ValueError:
            raise InstructionFormatError(f"invalid operand '{parts[1]}'", text) from None

        if not INT32_MIN <= operand <= INT32_MAX:
            raise InstructionFormatError("operand out of 32-bit range", text)

        return cls(op, operand)


def format_listing(instructions: Iterable[Instruction]) -> str:
    """Render instructions one per line, with a trailing newline."""
    return "".join(f"{inst}\n" for inst in instructions)


def parse_listing(text: str) -> list[Instruction]:
    """
    Parse a listing produced by format_listing().

    Errors are re-raised with the 1-based line number of the bad line.
    """
    instructions = []
    for line_number, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        try:
            instructions.append(Instruction.parse(line))
        except InstructionFormatError as e:
            raise InstructionFormatError(e.message, e.text, line=line_number) from None
    return instructions
