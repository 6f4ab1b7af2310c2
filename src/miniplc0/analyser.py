"""
miniplc0 Analyser
=================

Single-pass recursive descent analyser. Parsing, semantic checking and
code generation happen in the same walk: every grammar rule emits its
instructions as soon as it has recognised them, so there is no syntax
tree and the order of the generated code is the left-to-right order of
the source.

Grammar (EBNF)
--------------
program     ::= 'begin' main 'end' EOF
main        ::= const_decl* var_decl* statement_seq
const_decl  ::= 'const' IDENT '=' ('+' | '-')? UINT ';'
var_decl    ::= 'var' IDENT ('=' expr)? ';'
statement_seq ::= (assignment | print_stmt | ';')*
assignment  ::= IDENT '=' expr ';'
print_stmt  ::= 'print' '(' expr ')' ';'
expr        ::= term (('+' | '-') term)*
term        ::= factor (('*' | '/') factor)*
factor      ::= ('-' | '+')? (IDENT | UINT | '(' expr ')')

Code Generation
---------------
| Construct           | Code                              |
|---------------------|-----------------------------------|
| const c = -5;       | LIT -5                            |
| var x;              | LIT 0   (placeholder slot)        |
| var x = e;          | <e>                               |
| x = e;              | <e> STO offset(x)                 |
| print(e);           | <e> WRT                           |
| a + b, a - b        | <a> <b> ADD / SUB                 |
| a * b, a / b        | <a> <b> MUL / DIV                 |
| -f                  | LIT 0 <f> SUB                     |
| name                | LOD offset(name)                  |
| 123                 | LIT 123                           |

Unary minus has no opcode of its own; -f is compiled as 0 - f to keep
the instruction set minimal.

Parentheses may nest at most MAX_NESTING_DEPTH levels deep; deeper input
raises NestingTooDeepError at the first parenthesis past the limit.

Example Usage
-------------
>>> from miniplc0.lexer import Lexer
>>> from miniplc0.analyser import Analyser
>>> analyser = Analyser(Lexer("begin var x = -3; print(x); end"))
>>> [str(i) for i in analyser.analyse()]
['LIT 0', 'LIT 3', 'SUB', 'LOD 0', 'WRT']
"""

import logging
from typing import Callable, Iterable, Iterator, Optional

from miniplc0.errors import (
    SourceLocation,
    CompileError,
    ExpectedTokenError,
    NestingTooDeepError,
    NotInitializedError,
    AssignToConstantError,
)
from miniplc0.instruction import Instruction, Operation, wrap_int32
from miniplc0.lexer import Token, TokenType
from miniplc0.symbols import SymbolTable

logger = logging.getLogger(__name__)


# First tokens of a factor once any sign has been consumed
FACTOR_START = (TokenType.IDENT, TokenType.UINT, TokenType.LPAREN)

ADDITIVE_OPS = {
    TokenType.PLUS: Operation.ADD,
    TokenType.MINUS: Operation.SUB,
}

MULTIPLICATIVE_OPS = {
    TokenType.MULT: Operation.MUL,
    TokenType.DIV: Operation.DIV,
}

# Deepest parenthesis nesting accepted. Each level costs several Python
# frames; deeper input would run into the interpreter recursion limit.
MAX_NESTING_DEPTH = 100


class Analyser:
    """
    Turns a token stream into an instruction sequence.

    One instance handles exactly one compilation. The symbol table and the
    lookahead buffer belong to the instance and are never shared.

    Attributes:
        symbols: Symbol table built during analysis
        instructions: Instructions emitted so far
        filename: Used in log messages and for the EOF synthesized when the
            stream is empty; errors otherwise take their location from tokens
    """

    def __init__(
        self,
        tokens: Iterable[Token],
        filename: str = "<input>",
        source_lines: Optional[list[str]] = None,
    ):
        """
        Initialize the analyser.

        Args:
            tokens: Token stream, typically a Lexer or a list of tokens
            filename: Filename for log messages and for an EOF synthesized
                from an empty stream; should match the lexer's filename
            source_lines: Original source lines for error context
        """
        self._tokens: Iterator[Token] = iter(tokens)
        self.filename = filename
        self.source_lines = source_lines or []

        self.symbols = SymbolTable()
        self.instructions: list[Instruction] = []

        # One-token lookahead buffer
        self._peeked: Optional[Token] = None
        self._last: Optional[Token] = None

        # Open parentheses around the factor being analysed
        self._depth = 0

    def analyse(self) -> list[Instruction]:
        """
        Analyse the whole program.

        Returns:
            The instruction sequence

        Raises:
            CompileError: On the first tokenize, syntax or semantic error
        """
        try:
            self._analyse_program()
        except CompileError as e:
            if e.source_line is None and e.location is not None:
                e.with_source_line(self._get_source_line(e.location.line))
            raise

        logger.debug(
            f"Analysed {self.filename}: {len(self.symbols)} symbols, "
            f"{len(self.instructions)} instructions"
        )
        return self.instructions

    # =========================================================================
    # Token Access Methods
    # =========================================================================

    def _peek(self) -> Token:
        """Look at the next token without consuming it."""
        if self._peeked is None:
            self._peeked = self._pull()
        return self._peeked

    def _next(self) -> Token:
        """Consume and return the next token."""
        token = self._peek()
        self._peeked = None
        return token

    def _pull(self) -> Token:
        token = next(self._tokens, None)
        if token is None:
            # Streams that stop without EOF behave as if EOF followed
            if self._last is not None:
                end = self._last.end
            else:
                end = SourceLocation(self.filename, 1, 1)
            token = Token(TokenType.EOF, None, end, end)
        self._last = token
        return token

    def _check(self, token_type: TokenType) -> bool:
        return self._peek().type == token_type

    def _match(self, token_type: TokenType) -> Optional[Token]:
        """Consume the next token if it has the given type."""
        if self._check(token_type):
            return self._next()
        return None

    def _expect(self, token_type: TokenType) -> Token:
        """
        Consume a token of the given type.

        Raises:
            ExpectedTokenError: If the next token has another type
        """
        if self._check(token_type):
            return self._next()
        raise ExpectedTokenError((token_type,), self._peek())

    def _emit(self, op: Operation, operand: int = 0) -> None:
        self.instructions.append(Instruction(op, operand))

    def _get_source_line(self, line: int) -> Optional[str]:
        if 0 < line <= len(self.source_lines):
            return self.source_lines[line - 1]
        return None

    # =========================================================================
    # Program Structure
    # =========================================================================

    def _analyse_program(self) -> None:
        self._expect(TokenType.BEGIN)
        self._analyse_main()
        self._expect(TokenType.END)
        self._expect(TokenType.EOF)

    def _analyse_main(self) -> None:
        self._analyse_constant_declarations()
        self._analyse_variable_declarations()
        self._analyse_statement_sequence()

    # =========================================================================
    # Declarations
    # =========================================================================

    def _analyse_constant_declarations(self) -> None:
        """
        const_decl ::= 'const' IDENT '=' ('+' | '-')? UINT ';'

        The constant's value goes straight onto the stack at its offset.
        """
        while self._match(TokenType.CONST):
            name_token = self._expect(TokenType.IDENT)
            self.symbols.declare(
                name_token.value,
                name_token.location,
                is_constant=True,
                is_initialized=True,
            )

            self._expect(TokenType.EQUAL)
            value = self._analyse_constant_expression()
            self._expect(TokenType.SEMICOLON)

            self._emit(Operation.LIT, value)

    def _analyse_constant_expression(self) -> int:
        """Optionally signed literal, evaluated at compile time."""
        negative = False
        if self._match(TokenType.MINUS):
            negative = True
        else:
            self._match(TokenType.PLUS)

        value = self._expect(TokenType.UINT).value
        if negative:
            value = -value
        return wrap_int32(value)

    def _analyse_variable_declarations(self) -> None:
        """
        var_decl ::= 'var' IDENT ('=' expr)? ';'

        The name is registered only after the whole declaration, so an
        initializer cannot refer to the variable it initializes.
        """
        while self._match(TokenType.VAR):
            name_token = self._expect(TokenType.IDENT)

            initialized = False
            if self._match(TokenType.EQUAL):
                self._analyse_expression()
                initialized = True

            self._expect(TokenType.SEMICOLON)

            self.symbols.declare(
                name_token.value,
                name_token.location,
                is_constant=False,
                is_initialized=initialized,
            )

            if not initialized:
                self._emit(Operation.LIT, 0)

    # =========================================================================
    # Statements
    # =========================================================================

    def _analyse_statement_sequence(self) -> None:
        """
        Dispatch on the next token until one starts no statement.

        The token that ends the sequence is left in the lookahead buffer for
        the caller, which expects 'end'.
        """
        while True:
            token_type = self._peek().type
            if token_type == TokenType.IDENT:
                self._analyse_assignment_statement()
            elif token_type == TokenType.PRINT:
                self._analyse_output_statement()
            elif token_type == TokenType.SEMICOLON:
                self._next()
            else:
                break

    def _analyse_assignment_statement(self) -> None:
        """assignment ::= IDENT '=' expr ';'"""
        ident = self._next()
        name = ident.value

        entry = self.symbols.lookup(name, ident.location)
        if entry.is_constant:
            raise AssignToConstantError(name, location=ident.location)

        # Marked before the right-hand side is compiled: 'x = x;' is
        # accepted for an unassigned x and reads the placeholder 0.
        self.symbols.mark_initialized(name, ident.location)

        self._expect(TokenType.EQUAL)
        self._analyse_expression()
        self._expect(TokenType.SEMICOLON)

        self._emit(Operation.STO, entry.stack_offset)

    def _analyse_output_statement(self) -> None:
        """print_stmt ::= 'print' '(' expr ')' ';'"""
        self._expect(TokenType.PRINT)
        self._expect(TokenType.LPAREN)
        self._analyse_expression()
        self._expect(TokenType.RPAREN)
        self._expect(TokenType.SEMICOLON)

        self._emit(Operation.WRT)

    # =========================================================================
    # Expressions (Operator Precedence)
    # =========================================================================

    def _analyse_expression(self) -> None:
        """expr ::= term (('+' | '-') term)*"""
        self._analyse_binary(self._analyse_term, ADDITIVE_OPS)

    def _analyse_term(self) -> None:
        """term ::= factor (('*' | '/') factor)*"""
        self._analyse_binary(self._analyse_factor, MULTIPLICATIVE_OPS)

    def _analyse_binary(
        self,
        operand_analyser: Callable[[], None],
        operators: dict[TokenType, Operation],
    ) -> None:
        """
        Left-associative binary level.

        Both operands are emitted before the operator, so 'a - b - c'
        becomes <a> <b> SUB <c> SUB.
        """
        operand_analyser()

        while self._peek().type in operators:
            op_token = self._next()
            operand_analyser()
            self._emit(operators[op_token.type])

    def _analyse_factor(self) -> None:
        """factor ::= ('-' | '+')? (IDENT | UINT | '(' expr ')')"""
        negate = False
        if self._match(TokenType.MINUS):
            negate = True
            self._emit(Operation.LIT, 0)
        else:
            self._match(TokenType.PLUS)

        token = self._peek()

        if token.type == TokenType.IDENT:
            self._next()
            entry = self.symbols.lookup(token.value, token.location)
            if not entry.is_initialized:
                raise NotInitializedError(token.value, location=token.location)
            self._emit(Operation.LOD, entry.stack_offset)

        elif token.type == TokenType.UINT:
            self._next()
            self._emit(Operation.LIT, token.value)

        elif token.type == TokenType.LPAREN:
            self._next()
            if self._depth >= MAX_NESTING_DEPTH:
                raise NestingTooDeepError(MAX_NESTING_DEPTH, location=token.location)
            self._depth += 1
            self._analyse_expression()
            self._expect(TokenType.RPAREN)
            self._depth -= 1

        else:
            raise ExpectedTokenError(FACTOR_START, token)

        if negate:
            self._emit(Operation.SUB)


def analyse(
    tokens: Iterable[Token],
    filename: str = "<input>",
    source_lines: Optional[list[str]] = None,
) -> list[Instruction]:
    """Analyse a token stream and return its instruction sequence."""
    return Analyser(tokens, filename, source_lines).analyse()
