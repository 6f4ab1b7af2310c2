"""
miniplc0 Compiler Main Module
=============================

This module provides the programmatic driver for the toolchain:

    Source → Lex → Analyse → Instructions → VM

Usage
-----
Command line:
    $ miniplc0 compile demo.pl0 -o demo.lst
    $ miniplc0 run demo.pl0

Programmatic:
    >>> from miniplc0 import compile_source, run_source
    >>> [str(i) for i in compile_source("begin print(1 + 2); end")]
    ['LIT 1', 'LIT 2', 'ADD', 'WRT']
    >>> run_source("begin print(1 + 2); end", output_sink=lambda v: None)
    [3]

Error Handling
--------------
Compilation stops at the first error, which propagates as a CompileError
subclass carrying the source location and the offending source line.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from miniplc0.analyser import Analyser
from miniplc0.instruction import Instruction, format_listing
from miniplc0.lexer import Lexer, Token
from miniplc0.symbols import SymbolTable
from miniplc0.vm import OutputSink, VMOptions, run

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        filename: Name used in diagnostics for string input
        vm: Options used when the compiled program is executed
    """
    filename: str = "<input>"
    vm: VMOptions = field(default_factory=VMOptions)


@dataclass
class CompilationResult:
    """
    Result of compiling one source file.

    Attributes:
        filename: Source filename
        instructions: Generated instruction sequence
        symbols: Symbol table built by the analyser
        token_count: Number of tokens consumed, EOF included
    """
    filename: str
    instructions: list[Instruction] = field(default_factory=list)
    symbols: SymbolTable = field(default_factory=SymbolTable)
    token_count: int = 0

    def listing(self) -> str:
        """Return the instructions in textual listing form."""
        return format_listing(self.instructions)


class _CountingTokens:
    """Pass-through token iterator that counts what the analyser pulls."""

    def __init__(self, lexer: Lexer):
        self._tokens = lexer.tokenize()
        self.count = 0

    def __iter__(self):
        return self

    def __next__(self) -> Token:
        token = next(self._tokens)
        self.count += 1
        return token


class Compiler:
    """
    Compiler for miniplc0 programs.

    Example:
        compiler = Compiler()
        result = compiler.compile_file("demo.pl0")
        print(result.listing())

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def tokenize(self, source: str, filename: Optional[str] = None) -> list[Token]:
        """Tokenize source text, EOF token included."""
        return list(Lexer(source, filename or self.options.filename).tokenize())

    def compile_source(
        self, source: str, filename: Optional[str] = None
    ) -> CompilationResult:
        """
        Compile source text to instructions.

        Raises:
            CompileError: On the first tokenize, syntax or semantic error
        """
        filename = filename or self.options.filename
        tokens = _CountingTokens(Lexer(source, filename))

        analyser = Analyser(tokens, filename, source.splitlines())
        instructions = analyser.analyse()

        logger.info(f"Compiled {filename}: {len(instructions)} instructions")
        return CompilationResult(
            filename=filename,
            instructions=instructions,
            symbols=analyser.symbols,
            token_count=tokens.count,
        )

    def compile_file(self, filepath: str | Path) -> CompilationResult:
        """
        Compile a source file.

        Raises:
            CompileError: If compilation fails
            FileNotFoundError: If the source file does not exist
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Source file not found: {filepath}")

        source = path.read_text(encoding="utf-8")
        return self.compile_source(source, str(path))

    def run_source(
        self,
        source: str,
        output_sink: Optional[OutputSink] = None,
        filename: Optional[str] = None,
    ) -> list[int]:
        """Compile source text and execute it, returning the printed values."""
        result = self.compile_source(source, filename)
        return run(result.instructions, output_sink, self.options.vm)


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_source(source: str, filename: str = "<input>") -> list[Instruction]:
    """Compile source text and return its instruction sequence."""
    return Compiler(CompilerOptions(filename=filename)).compile_source(source).instructions


def run_source(
    source: str,
    output_sink: Optional[OutputSink] = None,
    options: Optional[VMOptions] = None,
) -> list[int]:
    """Compile and run source text, returning the printed values in order."""
    compiler = Compiler(CompilerOptions(vm=options or VMOptions()))
    return compiler.run_source(source, output_sink)
