"""
miniplc0 Lexer (Tokenizer)
==========================

This module converts source text into a forward-only stream of tokens
for the analyser.

Token Categories
----------------
- Keywords: begin, end, const, var, print (case-sensitive)
- Identifiers: an ASCII letter followed by ASCII letters and digits
- Unsigned integers: decimal digits only
- Operators and delimiters: + - * / = ; ( )

Whitespace separates tokens and is otherwise ignored. There are no
comments in the language.

Example Usage
-------------
>>> from miniplc0.lexer import Lexer
>>> for token in Lexer("begin var x = 1; end").tokenize():
...     print(token)
Token(BEGIN, 'begin', 1:1)
Token(VAR, 'var', 1:7)
Token(IDENT, 'x', 1:11)
Token(EQUAL, '=', 1:13)
Token(UINT, 1, 1:15)
Token(SEMICOLON, ';', 1:16)
Token(END, 'end', 1:18)
Token(EOF, 1:21)
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator
import string

from miniplc0.errors import (
    SourceLocation,
    InvalidInputError,
    IntegerOverflowError,
)


# Largest value an unsigned literal may have. Every value in the machine
# is a signed 32-bit integer.
INT32_MAX = 2**31 - 1


# =============================================================================
# Token Type Enumeration
# =============================================================================

class TokenType(Enum):
    """Token types for the miniplc0 language."""

    # === Keywords ===
    BEGIN = auto()          # begin
    END = auto()            # end
    CONST = auto()          # const
    VAR = auto()            # var
    PRINT = auto()          # print

    # === Identifiers and Literals ===
    IDENT = auto()          # Variable/constant names
    UINT = auto()           # Unsigned decimal literal

    # === Operators ===
    PLUS = auto()           # +
    MINUS = auto()          # -
    MULT = auto()           # *
    DIV = auto()            # /
    EQUAL = auto()          # =

    # === Delimiters ===
    SEMICOLON = auto()      # ;
    LPAREN = auto()         # (
    RPAREN = auto()         # )

    EOF = auto()            # End of input

    def describe(self) -> str:
        """Human-readable name for diagnostics, e.g. "';'" or "identifier"."""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS: dict[TokenType, str] = {
    TokenType.BEGIN: "'begin'",
    TokenType.END: "'end'",
    TokenType.CONST: "'const'",
    TokenType.VAR: "'var'",
    TokenType.PRINT: "'print'",
    TokenType.IDENT: "identifier",
    TokenType.UINT: "integer literal",
    TokenType.PLUS: "'+'",
    TokenType.MINUS: "'-'",
    TokenType.MULT: "'*'",
    TokenType.DIV: "'/'",
    TokenType.EQUAL: "'='",
    TokenType.SEMICOLON: "';'",
    TokenType.LPAREN: "'('",
    TokenType.RPAREN: "')'",
    TokenType.EOF: "end of input",
}


# Map keyword strings to their token types
KEYWORDS: dict[str, TokenType] = {
    "begin": TokenType.BEGIN,
    "end": TokenType.END,
    "const": TokenType.CONST,
    "var": TokenType.VAR,
    "print": TokenType.PRINT,
}

# Single character operators and delimiters
OPERATORS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULT,
    "/": TokenType.DIV,
    "=": TokenType.EQUAL,
    ";": TokenType.SEMICOLON,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
}


# =============================================================================
# Token Data Class
# =============================================================================

@dataclass(frozen=True)
class Token:
    """
    A single token with its source span.

    Attributes:
        type: The TokenType classification
        value: str for keywords, identifiers and operators, int for UINT,
            None for EOF
        start: Location of the first character
        end: Location just past the last character
    """
    type: TokenType
    value: str | int | None
    start: SourceLocation
    end: SourceLocation

    def __repr__(self) -> str:
        pos = f"{self.start.line}:{self.start.column}"
        if self.value is None:
            return f"Token({self.type.name}, {pos})"
        return f"Token({self.type.name}, {self.value!r}, {pos})"

    @property
    def location(self) -> SourceLocation:
        """Return the start location for error reporting."""
        return self.start

    def describe(self) -> str:
        """Describe the token for diagnostics."""
        if self.type in (TokenType.IDENT, TokenType.UINT):
            return f"{self.type.describe()} '{self.value}'"
        return self.type.describe()


# =============================================================================
# Lexer Implementation
# =============================================================================

class Lexer:
    """
    Tokenizes miniplc0 source code.

    Usage:
        lexer = Lexer(source_text, filename)
        tokens = list(lexer.tokenize())

    or pull tokens one at a time with next_token(), which is what the
    analyser does through its own one-token lookahead.

    Attributes:
        source: The source code being tokenized
        filename: Name of the source file (for error reporting)
    """

    IDENT_START = string.ascii_letters
    IDENT_CHARS = string.ascii_letters + string.digits

    def __init__(self, source: str, filename: str = "<input>"):
        self.source = source
        self.filename = filename

        self._pos = 0
        self._line = 1
        self._column = 1
        self._line_start_pos = 0

    def tokenize(self) -> Iterator[Token]:
        """
        Generate tokens from the source code, ending with one EOF token.

        Raises:
            TokenizeError: If a character or literal cannot be tokenized
        """
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def __iter__(self) -> Iterator[Token]:
        return self.tokenize()

    def next_token(self) -> Token:
        """
        Scan and return the next token.

        Once the end of input is reached every further call returns EOF.
        """
        self._skip_whitespace()

        if self._at_end():
            here = self._location()
            return Token(TokenType.EOF, None, here, here)

        char = self._peek()
        if char in string.digits:
            return self._scan_uint()
        if char in self.IDENT_START:
            return self._scan_identifier()
        return self._scan_operator()

    # =========================================================================
    # Character Access Methods
    # =========================================================================

    def _at_end(self) -> bool:
        return self._pos >= len(self.source)

    def _peek(self) -> str:
        if self._at_end():
            return ""
        return self.source[self._pos]

    def _advance(self) -> str:
        """Consume and return the current character, tracking line/column."""
        char = self.source[self._pos]
        self._pos += 1

        if char == "\n":
            self._line += 1
            self._column = 1
            self._line_start_pos = self._pos
        else:
            self._column += 1

        return char

    def _location(self) -> SourceLocation:
        return SourceLocation(self.filename, self._line, self._column)

    def _skip_whitespace(self) -> None:
        while not self._at_end() and self._peek().isspace():
            self._advance()

    # =========================================================================
    # Token Scanning
    # =========================================================================

    def _scan_uint(self) -> Token:
        start = self._location()
        line_text = self._get_current_line()

        chars = []
        while self._peek() and self._peek() in string.digits:
            chars.append(self._advance())

        literal = "".join(chars)
        value = int(literal)
        if value > INT32_MAX:
            raise IntegerOverflowError(literal, INT32_MAX, start, line_text)

        return Token(TokenType.UINT, value, start, self._location())

    def _scan_identifier(self) -> Token:
        start = self._location()

        chars = []
        while self._peek() and self._peek() in self.IDENT_CHARS:
            chars.append(self._advance())

        name = "".join(chars)
        token_type = KEYWORDS.get(name, TokenType.IDENT)
        return Token(token_type, name, start, self._location())

    def _scan_operator(self) -> Token:
        start = self._location()
        line_text = self._get_current_line()
        char = self._advance()

        token_type = OPERATORS.get(char)
        if token_type is None:
            raise InvalidInputError(char, start, line_text)

        return Token(token_type, char, start, self._location())

    # =========================================================================
    # Utility Methods
    # =========================================================================

    def _get_current_line(self) -> str:
        """Get the current line of source text for error reporting."""
        line_end = self.source.find("\n", self._line_start_pos)
        if line_end == -1:
            line_end = len(self.source)
        return self.source[self._line_start_pos:line_end]


def tokenize(source: str, filename: str = "<input>") -> list[Token]:
    """Tokenize a whole source string, EOF token included."""
    return list(Lexer(source, filename).tokenize())
