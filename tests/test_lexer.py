# =============================================================================
# test_lexer.py - Lexer Unit Tests
# =============================================================================
# Tests for the miniplc0 tokenizer.
#
# Test coverage includes:
#   - Keywords, identifiers and unsigned integer literals
#   - Operators and delimiters
#   - Source positions (start and end of every token)
#   - Error conditions: invalid characters and literal overflow
# =============================================================================

import pytest
from miniplc0.lexer import Lexer, TokenType, tokenize, INT32_MAX
from miniplc0.errors import (
    SourceLocation,
    TokenizeError,
    InvalidInputError,
    IntegerOverflowError,
)


# =============================================================================
# Helper Function
# =============================================================================

def types(source: str) -> list[TokenType]:
    """Token types of a source string, EOF excluded."""
    return [t.type for t in tokenize(source) if t.type != TokenType.EOF]


# =============================================================================
# Basic Token Recognition Tests
# =============================================================================

class TestBasicTokens:
    """Test basic token recognition for simple inputs."""

    def test_empty_source(self):
        """Empty source should produce only EOF."""
        tokens = tokenize("")
        assert len(tokens) == 1
        assert tokens[0].type == TokenType.EOF
        assert tokens[0].value is None

    def test_whitespace_only(self):
        """Whitespace-only source should produce only EOF."""
        tokens = tokenize("  \n\t \r\n ")
        assert [t.type for t in tokens] == [TokenType.EOF]

    def test_keywords(self):
        """All five keywords are recognised, and keep their text as value."""
        keywords = [
            ("begin", TokenType.BEGIN),
            ("end", TokenType.END),
            ("const", TokenType.CONST),
            ("var", TokenType.VAR),
            ("print", TokenType.PRINT),
        ]
        for text, expected in keywords:
            tokens = tokenize(text)
            assert tokens[0].type == expected
            assert tokens[0].value == text

    def test_keywords_are_case_sensitive(self):
        """Capitalised keywords are plain identifiers."""
        assert types("Begin END Print") == [TokenType.IDENT] * 3

    def test_identifiers(self):
        """Identifiers start with a letter and may contain digits."""
        for name in ["x", "abc", "x1", "a1b2c3", "beginning", "endx"]:
            tokens = tokenize(name)
            assert tokens[0].type == TokenType.IDENT
            assert tokens[0].value == name

    def test_unsigned_integer(self):
        """Digits form one UINT token with an int value."""
        tokens = tokenize("12345")
        assert tokens[0].type == TokenType.UINT
        assert tokens[0].value == 12345

    def test_leading_zeros(self):
        """Leading zeros are plain decimal digits."""
        assert tokenize("007")[0].value == 7

    def test_number_then_identifier(self):
        """A digit run ends where letters begin."""
        tokens = tokenize("123abc")
        assert tokens[0].type == TokenType.UINT
        assert tokens[0].value == 123
        assert tokens[1].type == TokenType.IDENT
        assert tokens[1].value == "abc"

    def test_operators(self):
        """Every operator and delimiter is a single-character token."""
        assert types("+-*/=;()") == [
            TokenType.PLUS,
            TokenType.MINUS,
            TokenType.MULT,
            TokenType.DIV,
            TokenType.EQUAL,
            TokenType.SEMICOLON,
            TokenType.LPAREN,
            TokenType.RPAREN,
        ]

    def test_operator_values(self):
        """Operator tokens carry their character."""
        tokens = tokenize("( )")
        assert tokens[0].value == "("
        assert tokens[1].value == ")"

    def test_statement(self):
        """A whole statement without spaces."""
        assert types("x=x*(2+y);") == [
            TokenType.IDENT,
            TokenType.EQUAL,
            TokenType.IDENT,
            TokenType.MULT,
            TokenType.LPAREN,
            TokenType.UINT,
            TokenType.PLUS,
            TokenType.IDENT,
            TokenType.RPAREN,
            TokenType.SEMICOLON,
        ]


# =============================================================================
# Position Tracking Tests
# =============================================================================

class TestPositions:
    """Tokens record where they start and end."""

    def test_start_positions(self):
        """Start columns are 1-indexed."""
        tokens = tokenize("begin var x = 1; end")
        columns = [t.start.column for t in tokens]
        assert columns == [1, 7, 11, 13, 15, 16, 18, 21]

    def test_end_position_is_exclusive(self):
        """End points just past the last character."""
        token = tokenize("begin")[0]
        assert token.start == SourceLocation("<input>", 1, 1)
        assert token.end == SourceLocation("<input>", 1, 6)

    def test_multiline_positions(self):
        """Line numbers advance and columns reset on newlines."""
        tokens = tokenize("begin\n  var x;\nend")
        var_token = tokens[1]
        assert var_token.type == TokenType.VAR
        assert var_token.location.line == 2
        assert var_token.location.column == 3
        assert tokens[-2].location.line == 3

    def test_filename_in_location(self):
        """The filename given to the lexer appears in every location."""
        token = tokenize("x", "demo.pl0")[0]
        assert token.location.filename == "demo.pl0"
        assert str(token.location) == "demo.pl0:1:1"


# =============================================================================
# Stream Protocol Tests
# =============================================================================

class TestStream:
    """Pulling tokens one at a time."""

    def test_next_token_after_eof(self):
        """Once exhausted, next_token keeps returning EOF."""
        lexer = Lexer("x")
        assert lexer.next_token().type == TokenType.IDENT
        assert lexer.next_token().type == TokenType.EOF
        assert lexer.next_token().type == TokenType.EOF

    def test_tokenize_yields_single_eof(self):
        """tokenize() stops right after the EOF token."""
        tokens = list(Lexer("a b").tokenize())
        assert [t.type for t in tokens].count(TokenType.EOF) == 1

    def test_lexer_is_iterable(self):
        """Iterating a Lexer is the same as tokenize()."""
        assert [t.type for t in Lexer("print")] == [TokenType.PRINT, TokenType.EOF]

    def test_token_is_immutable(self):
        """Tokens are frozen dataclasses."""
        token = tokenize("x")[0]
        with pytest.raises(Exception):
            token.value = "y"

    def test_repr(self):
        """repr shows type, value and position."""
        tokens = tokenize("x 5")
        assert repr(tokens[0]) == "Token(IDENT, 'x', 1:1)"
        assert repr(tokens[1]) == "Token(UINT, 5, 1:3)"
        assert repr(tokens[2]) == "Token(EOF, 1:4)"


# =============================================================================
# Error Tests
# =============================================================================

class TestErrors:
    """Tokenize faults."""

    def test_invalid_character(self):
        """Characters outside the language raise InvalidInputError."""
        with pytest.raises(InvalidInputError) as exc_info:
            tokenize("x = 1 @ 2")
        assert exc_info.value.char == "@"
        assert exc_info.value.location.column == 7

    def test_underscore_is_invalid(self):
        """Identifiers cannot contain underscores."""
        with pytest.raises(InvalidInputError):
            tokenize("my_var")

    def test_invalid_character_is_tokenize_error(self):
        """InvalidInputError belongs to the tokenize fault family."""
        with pytest.raises(TokenizeError):
            tokenize("{")

    def test_error_includes_source_line(self):
        """The offending line is shown in the message."""
        with pytest.raises(InvalidInputError) as exc_info:
            tokenize("begin\n  x = 1 % 2;\nend")
        assert exc_info.value.source_line == "  x = 1 % 2;"
        assert "  x = 1 % 2;" in str(exc_info.value)

    def test_largest_literal(self):
        """INT32_MAX is the largest accepted literal."""
        assert tokenize(str(INT32_MAX))[0].value == 2147483647

    def test_literal_overflow(self):
        """Literals past INT32_MAX raise IntegerOverflowError at their start."""
        with pytest.raises(IntegerOverflowError) as exc_info:
            tokenize("x = 2147483648")
        assert exc_info.value.literal == "2147483648"
        assert exc_info.value.location.column == 5

    def test_errors_are_lazy(self):
        """Tokens before a bad character are produced before the fault."""
        lexer = Lexer("begin $")
        assert lexer.next_token().type == TokenType.BEGIN
        with pytest.raises(InvalidInputError):
            lexer.next_token()
