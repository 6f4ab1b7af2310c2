"""
miniplc0 - Compiler and Stack Machine for a Minimal Imperative Language
=======================================================================

This package compiles programs written in a tiny block-structured language
to a linear stack-machine bytecode and runs that bytecode on an interpreter.

A program is one flat block of constant declarations, variable
declarations and assignment/print statements over 32-bit integers:

    begin
        const limit = 10;
        var x = limit * 2;
        var y;
        y = x - -3;
        print(y / 2);
    end

Main Components
---------------
- **lexer**: source text → tokens
- **analyser**: tokens → instructions, in one recursive-descent pass that
  also builds the symbol table and checks declarations
- **instruction**: the instruction set and its textual listing form
- **vm**: the stack-machine interpreter
- **compiler**: driver tying the stages together
- **cli**: the ``miniplc0`` command-line tool

Quick Start
-----------
Compile and inspect the bytecode:
    >>> from miniplc0 import compile_source, format_listing
    >>> print(format_listing(compile_source("begin print(-2); end")), end="")
    LIT 0
    LIT 2
    SUB
    WRT

Run a program:
    >>> from miniplc0 import run_source
    >>> run_source("begin const a = 1; var b; b = a + 2; print(b); end")
    3
    [3]

Or use the command-line tool:
    $ miniplc0 run demo.pl0
    $ miniplc0 compile demo.pl0 -o demo.lst
    $ miniplc0 run --listing demo.lst
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from miniplc0.errors import (
    MiniPLError,
    SourceLocation,
    CompileError,
    TokenizeError,
    InvalidInputError,
    IntegerOverflowError,
    ExpectedTokenError,
    NestingTooDeepError,
    AnalyzeError,
    DuplicateDeclarationError,
    NotDeclaredError,
    NotInitializedError,
    AssignToConstantError,
    InstructionFormatError,
    VMError,
    StackUnderflowError,
    StackIndexError,
    StackOverflowError,
    DivisionByZeroError,
    IllegalInstructionError,
)
from miniplc0.lexer import Lexer, Token, TokenType, tokenize
from miniplc0.symbols import SymbolEntry, SymbolTable
from miniplc0.instruction import (
    Instruction,
    Operation,
    format_listing,
    parse_listing,
)
from miniplc0.analyser import Analyser, analyse
from miniplc0.vm import MiniVM, VMOptions, run, stream_sink
from miniplc0.compiler import (
    Compiler,
    CompilerOptions,
    CompilationResult,
    compile_source,
    run_source,
)

__all__ = [
    "__version__",
    # Errors
    "MiniPLError",
    "SourceLocation",
    "CompileError",
    "TokenizeError",
    "InvalidInputError",
    "IntegerOverflowError",
    "ExpectedTokenError",
    "NestingTooDeepError",
    "AnalyzeError",
    "DuplicateDeclarationError",
    "NotDeclaredError",
    "NotInitializedError",
    "AssignToConstantError",
    "InstructionFormatError",
    "VMError",
    "StackUnderflowError",
    "StackIndexError",
    "StackOverflowError",
    "DivisionByZeroError",
    "IllegalInstructionError",
    # Lexer
    "Lexer",
    "Token",
    "TokenType",
    "tokenize",
    # Symbols
    "SymbolEntry",
    "SymbolTable",
    # Instructions
    "Instruction",
    "Operation",
    "format_listing",
    "parse_listing",
    # Analyser
    "Analyser",
    "analyse",
    # VM
    "MiniVM",
    "VMOptions",
    "run",
    "stream_sink",
    # Driver
    "Compiler",
    "CompilerOptions",
    "CompilationResult",
    "compile_source",
    "run_source",
]
