"""
miniplc0 Virtual Machine
========================

Stack-based interpreter for the instruction sequence produced by the
analyser.

Machine Model
-------------
- ip: index of the next instruction, starting at 0
- stack: list of signed 32-bit integers, growing to the right

The operand stack doubles as variable storage. The declarations of a
program run first and leave one value per declared name at the bottom of
the stack, so LOD/STO address variables by absolute stack index with no
frame pointer in between:

    index:  0      1      2      3 ...
           [const][var ][var ][temporaries...]

There are no jumps: ip advances by one after every instruction and the
program ends when it runs past the last one.

Arithmetic
----------
All results wrap to signed 32-bit two's complement. DIV truncates toward
zero, so -7 / 2 is -3, and INT32_MIN / -1 wraps back to INT32_MIN.

Faults
------
Stack underflow, out-of-range LOD/STO, division by zero and ILL raise a
VMError subclass and stop execution. Values already written to the
output stay written.

Example Usage
-------------
>>> from miniplc0.instruction import Instruction, Operation
>>> from miniplc0.vm import MiniVM
>>> printed = []
>>> vm = MiniVM([Instruction(Operation.LIT, 2), Instruction(Operation.WRT)],
...             output=printed.append)
>>> vm.run()
>>> printed
[2]
"""

import logging
import sys
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, TextIO

from miniplc0.errors import (
    VMError,
    StackUnderflowError,
    StackIndexError,
    StackOverflowError,
    DivisionByZeroError,
    IllegalInstructionError,
)
from miniplc0.instruction import Instruction, Operation, wrap_int32

logger = logging.getLogger(__name__)


OutputSink = Callable[[int], None]


def stream_sink(stream: Optional[TextIO] = None) -> OutputSink:
    """
    Build an output sink that writes each value as a line of text.

    With no stream, values go to whatever sys.stdout is at write time.
    """
    def write(value: int) -> None:
        target = stream if stream is not None else sys.stdout
        target.write(f"{value}\n")

    return write


@dataclass
class VMOptions:
    """
    Interpreter configuration.

    Attributes:
        max_stack_depth: Fault with StackOverflowError past this many
            slots (None means unlimited)
        trace: Log every executed instruction at DEBUG level
    """
    max_stack_depth: Optional[int] = None
    trace: bool = False


# Handler method for every opcode. MiniVM refuses to start if an opcode
# has no entry.
_DISPATCH: dict[Operation, str] = {
    Operation.LIT: "_op_lit",
    Operation.LOD: "_op_lod",
    Operation.STO: "_op_sto",
    Operation.ADD: "_op_add",
    Operation.SUB: "_op_sub",
    Operation.MUL: "_op_mul",
    Operation.DIV: "_op_div",
    Operation.WRT: "_op_wrt",
    Operation.ILL: "_op_ill",
}


class MiniVM:
    """
    Interpreter for one instruction sequence.

    A VM instance owns its stack; run each program on a fresh instance.

    Instrumentation:
        on_instruction(ip, instruction) -> bool is called before each
        instruction; returning False stops execution with halted set.

    Example:
        >>> vm = MiniVM(instructions)
        >>> vm.run()
        >>> print(vm.stack)
    """

    def __init__(
        self,
        instructions: Iterable[Instruction],
        output: Optional[OutputSink] = None,
        options: Optional[VMOptions] = None,
    ):
        """
        Initialize the VM.

        Args:
            instructions: Program to execute
            output: Receives one int per WRT (default: lines on stdout)
            options: Interpreter configuration
        """
        self.instructions: tuple[Instruction, ...] = tuple(instructions)
        self.output = output if output is not None else stream_sink()
        self.options = options or VMOptions()

        self.ip = 0
        self.stack: list[int] = []
        self.halted = False
        self.steps = 0

        self.on_instruction: Optional[Callable[[int, Instruction], bool]] = None

        missing = [op.name for op in Operation if op not in _DISPATCH]
        if missing:
            raise RuntimeError(f"no handler for opcodes: {', '.join(missing)}")
        self._handlers: dict[Operation, Callable[[int], None]] = {
            op: getattr(self, name) for op, name in _DISPATCH.items()
        }

    @property
    def finished(self) -> bool:
        """True once ip has run past the last instruction."""
        return self.ip >= len(self.instructions)

    def run(self) -> None:
        """
        Execute until the program ends, a hook stops it, or a fault occurs.

        Raises:
            VMError: On any runtime fault
        """
        logger.debug(f"Running {len(self.instructions)} instructions")

        while not self.finished:
            if self.on_instruction is not None:
                if not self.on_instruction(self.ip, self.instructions[self.ip]):
                    self.halted = True
                    logger.debug(f"Stopped by hook at ip {self.ip}")
                    return
            self.step()

        logger.debug(f"Finished after {self.steps} steps, stack depth {len(self.stack)}")

    def step(self) -> None:
        """
        Execute exactly one instruction and advance ip.

        Raises:
            VMError: If the program has already finished
        """
        if self.finished:
            raise VMError("no instruction at ip", ip=self.ip)

        inst = self.instructions[self.ip]

        if self.options.trace:
            logger.debug(f"{self.ip:4d}: {str(inst):<12} stack={self.stack}")

        self._handlers[inst.op](inst.operand)
        self.ip += 1
        self.steps += 1

    # =========================================================================
    # Stack Primitives
    # =========================================================================

    def _push(self, value: int) -> None:
        limit = self.options.max_stack_depth
        if limit is not None and len(self.stack) >= limit:
            raise StackOverflowError(f"stack depth limit {limit} exceeded", ip=self.ip)
        self.stack.append(value)

    def _pop(self) -> int:
        if not self.stack:
            raise StackUnderflowError("pop from empty stack", ip=self.ip)
        return self.stack.pop()

    def _check_index(self, index: int) -> None:
        # Negative indexes would silently address from the top in Python
        if not 0 <= index < len(self.stack):
            raise StackIndexError(index, len(self.stack), ip=self.ip)

    # =========================================================================
    # Opcode Handlers
    # =========================================================================

    def _op_lit(self, operand: int) -> None:
        self._push(wrap_int32(operand))

    def _op_lod(self, operand: int) -> None:
        self._check_index(operand)
        self._push(self.stack[operand])

    def _op_sto(self, operand: int) -> None:
        value = self._pop()
        self._check_index(operand)
        self.stack[operand] = value

    def _op_add(self, operand: int) -> None:
        b = self._pop()
        a = self._pop()
        self._push(wrap_int32(a + b))

    def _op_sub(self, operand: int) -> None:
        b = self._pop()
        a = self._pop()
        self._push(wrap_int32(a - b))

    def _op_mul(self, operand: int) -> None:
        b = self._pop()
        a = self._pop()
        self._push(wrap_int32(a * b))

    def _op_div(self, operand: int) -> None:
        b = self._pop()
        a = self._pop()
        if b == 0:
            raise DivisionByZeroError("division by zero", ip=self.ip)
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
        self._push(wrap_int32(quotient))

    def _op_wrt(self, operand: int) -> None:
        value = self._pop()
        self.output(value)

    def _op_ill(self, operand: int) -> None:
        raise IllegalInstructionError("illegal instruction", ip=self.ip)


def run(
    instructions: Iterable[Instruction],
    output_sink: Optional[OutputSink] = None,
    options: Optional[VMOptions] = None,
) -> list[int]:
    """
    Execute instructions on a fresh VM.

    Every printed value is passed to output_sink (default: stdout) and
    also returned, in order.
    """
    printed: list[int] = []
    sink = output_sink if output_sink is not None else stream_sink()

    def collect(value: int) -> None:
        printed.append(value)
        sink(value)

    MiniVM(instructions, output=collect, options=options).run()
    return printed
