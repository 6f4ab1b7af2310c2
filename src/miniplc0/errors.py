"""
miniplc0 Error Hierarchy
========================

This module defines the exception hierarchy for the whole toolchain.
All exceptions inherit from MiniPLError, allowing callers to catch every
compiler and interpreter error with a single except clause if desired.

Exception Hierarchy
-------------------
MiniPLError (base)
├── CompileError (anything found before a single instruction runs)
│   ├── TokenizeError - the lexer cannot produce a token
│   │   ├── InvalidInputError - character that starts no token
│   │   └── IntegerOverflowError - literal too large for an integer
│   ├── ExpectedTokenError - grammar mismatch
│   ├── NestingTooDeepError - parentheses nested past the limit
│   └── AnalyzeError - semantic violation
│       ├── DuplicateDeclarationError - name declared twice
│       ├── NotDeclaredError - reference to an undeclared name
│       ├── NotInitializedError - read of a variable never assigned
│       └── AssignToConstantError - assignment to a constant
├── InstructionFormatError - malformed textual instruction listing
└── VMError (runtime faults)
    ├── StackUnderflowError - pop on an empty stack
    ├── StackIndexError - LOD/STO index outside the stack
    ├── StackOverflowError - configured stack depth exceeded
    ├── DivisionByZeroError - DIV with a zero divisor
    └── IllegalInstructionError - ILL executed

Error Message Format
--------------------
Compile errors include source location information and follow this format:

    filename:line:column: error: description
        source_line_text
        ^ (pointer to error location)
    hint: suggestion for fixing

Example:
    demo.pl0:3:11: error: variable 'x' is used before being initialized
            print(x);
                  ^
    hint: assign a value to 'x' before reading it
"""

from dataclasses import dataclass
from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from miniplc0.lexer import Token, TokenType


# =============================================================================
# Base Exception Class
# =============================================================================

class MiniPLError(Exception):
    """
    Base exception for all miniplc0 errors.

    Example:
        try:
            run_source(source)
        except MiniPLError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in source code for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for string input)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Compile-Time Exceptions
# =============================================================================

class CompileError(MiniPLError):
    """
    Base exception for all errors raised before execution starts.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
        source_line: The actual source text at the error location (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        self.source_line = source_line
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location, source context, and hint.

        Example output:
            demo.pl0:2:11: error: redeclaration of 'x'
                var x; var x;
                           ^
            hint: 'x' was first declared at demo.pl0:2:5
        """
        parts = []

        # Location prefix
        if self.location:
            parts.append(f"{self.location}: error: {self.message}")
        else:
            parts.append(f"error: {self.message}")

        # Source context with caret pointer
        if self.source_line is not None and self.location is not None:
            parts.append(f"    {self.source_line}")
            if self.location.column > 0:
                padding = " " * (4 + self.location.column - 1)
                parts.append(f"{padding}^")

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)

    def with_source_line(self, source_line: Optional[str]) -> "CompileError":
        """Attach the offending source line and re-render the message."""
        self.source_line = source_line
        self.args = (self._format_message(),)
        return self


# =============================================================================
# Tokenize Errors
# =============================================================================

class TokenizeError(CompileError):
    """
    The lexer could not produce the next token.

    Raised while the analyser pulls tokens, so a tokenize fault surfaces
    in the middle of analysis and aborts it like any other compile error.
    """
    pass


class InvalidInputError(TokenizeError):
    """A character that cannot start any token."""

    def __init__(
        self,
        char: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.char = char
        super().__init__(
            f"invalid character '{char}' (0x{ord(char):02X})",
            location=location,
            source_line=source_line,
        )


class IntegerOverflowError(TokenizeError):
    """
    Unsigned integer literal out of range.

    Literals must fit in a signed 32-bit integer, since that is the only
    value type the machine has.
    """

    def __init__(
        self,
        literal: str,
        limit: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.literal = literal
        self.limit = limit
        super().__init__(
            f"integer literal {literal} is too large",
            location=location,
            hint=f"the largest literal is {limit}",
            source_line=source_line,
        )


# =============================================================================
# Syntax Errors
# =============================================================================

class ExpectedTokenError(CompileError):
    """
    The parser found a token that does not fit the grammar.

    Attributes:
        expected: Token types that would have been accepted
        found: The token actually seen
    """

    def __init__(
        self,
        expected: "Sequence[TokenType]",
        found: "Token",
        source_line: Optional[str] = None,
    ):
        self.expected = tuple(expected)
        self.found = found

        names = " or ".join(t.describe() for t in self.expected)
        super().__init__(
            f"expected {names}, found {found.describe()}",
            location=found.location,
            source_line=source_line,
        )


class NestingTooDeepError(CompileError):
    """
    Parenthesized expressions nested past the analyser's limit.

    Attributes:
        limit: The deepest nesting accepted
    """

    def __init__(
        self,
        limit: int,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.limit = limit
        super().__init__(
            f"expression nested more than {limit} parentheses deep",
            location=location,
            hint="split the expression using a temporary variable",
            source_line=source_line,
        )


# =============================================================================
# Semantic Errors
# =============================================================================

class AnalyzeError(CompileError):
    """
    Semantic error in a syntactically valid program.

    Attributes:
        name: The identifier the error is about
    """

    def __init__(
        self,
        name: str,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
        source_line: Optional[str] = None,
    ):
        self.name = name
        super().__init__(
            message,
            location=location,
            hint=hint,
            source_line=source_line,
        )


class DuplicateDeclarationError(AnalyzeError):
    """
    Identifier declared more than once.

    There is a single flat namespace, so constants and variables collide
    with each other too.
    """

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        original_location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        self.original_location = original_location

        hint = None
        if original_location:
            hint = f"'{name}' was first declared at {original_location}"

        super().__init__(
            name,
            f"redeclaration of '{name}'",
            location=location,
            hint=hint,
            source_line=source_line,
        )


class NotDeclaredError(AnalyzeError):
    """Reference to a name that has no declaration."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            name,
            f"undeclared identifier '{name}'",
            location=location,
            hint=f"declare it first with 'var {name};'",
            source_line=source_line,
        )


class NotInitializedError(AnalyzeError):
    """Read of a variable that has not been assigned yet."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            name,
            f"variable '{name}' is used before being initialized",
            location=location,
            hint=f"assign a value to '{name}' before reading it",
            source_line=source_line,
        )


class AssignToConstantError(AnalyzeError):
    """Assignment whose target was declared with 'const'."""

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ):
        super().__init__(
            name,
            f"cannot assign to constant '{name}'",
            location=location,
            hint=f"declare '{name}' with 'var' if it needs to change",
            source_line=source_line,
        )


# =============================================================================
# Instruction Listing Errors
# =============================================================================

class InstructionFormatError(MiniPLError):
    """
    A textual instruction could not be parsed.

    Attributes:
        text: The offending instruction text
        line: 1-based line number within a listing, when known
    """

    def __init__(self, message: str, text: str, line: Optional[int] = None):
        self.message = message
        self.text = text
        self.line = line
        prefix = f"line {line}: " if line is not None else ""
        super().__init__(f"{prefix}{message}: {text!r}")


# =============================================================================
# Runtime Exceptions
# =============================================================================

class VMError(MiniPLError):
    """
    Base exception for faults raised while executing bytecode.

    Attributes:
        description: What went wrong
        ip: Index of the faulting instruction (optional)
    """

    def __init__(self, description: str, ip: Optional[int] = None):
        self.description = description
        self.ip = ip
        if ip is not None:
            super().__init__(f"runtime error at ip {ip}: {description}")
        else:
            super().__init__(f"runtime error: {description}")


class StackUnderflowError(VMError):
    """An instruction popped from an empty stack."""
    pass


class StackIndexError(VMError):
    """
    LOD or STO addressed a slot that does not exist.

    Attributes:
        index: The requested absolute stack index
        depth: Stack depth at the time of the access
    """

    def __init__(self, index: int, depth: int, ip: Optional[int] = None):
        self.index = index
        self.depth = depth
        super().__init__(
            f"stack index {index} out of range (depth {depth})",
            ip=ip,
        )


class StackOverflowError(VMError):
    """The stack grew past the configured maximum depth."""
    pass


class DivisionByZeroError(VMError):
    """DIV executed with a zero divisor."""
    pass


class IllegalInstructionError(VMError):
    """ILL executed. A correct analyser never emits it."""
    pass
