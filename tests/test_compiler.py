"""
Compiler Integration Tests
==========================

End-to-end tests for the Compiler driver: source text in, instructions
and printed values out. Covers file handling, diagnostics formatting and
the module-level convenience functions.
"""

import pytest
from miniplc0 import (
    Compiler,
    CompilerOptions,
    CompilationResult,
    VMOptions,
    compile_source,
    run_source,
)
from miniplc0.lexer import TokenType
from miniplc0.errors import (
    CompileError,
    NotInitializedError,
    DivisionByZeroError,
    StackOverflowError,
    IntegerOverflowError,
    NestingTooDeepError,
)


DEMO_PROGRAM = """\
begin
    const limit = 10;
    const step = -2;
    var total = 0;
    var n;
    n = limit / 3;
    total = n * (limit + step) - 13;
    print(total);
end
"""


def outputs(source: str) -> list[int]:
    """Run source without printing, returning what it would print."""
    return run_source(source, output_sink=lambda v: None)


# =============================================================================
# Compilation Tests
# =============================================================================

class TestCompile:
    """Compiler.compile_source() and compile_source()"""

    def test_result_fields(self):
        """A result carries instructions, symbols and the token count."""
        result = Compiler().compile_source("begin const a = 1; print(a); end")

        assert isinstance(result, CompilationResult)
        assert result.filename == "<input>"
        assert [str(i) for i in result.instructions] == ["LIT 1", "LOD 0", "WRT"]
        assert result.symbols.get("a").is_constant

    def test_token_count_includes_eof(self):
        """'begin end' consumes three tokens."""
        assert Compiler().compile_source("begin end").token_count == 3

    def test_listing(self):
        """listing() renders the instruction text."""
        result = Compiler().compile_source("begin print(2 * 3); end")
        assert result.listing() == "LIT 2\nLIT 3\nMUL\nWRT\n"

    def test_convenience_function(self):
        """compile_source() returns just the instructions."""
        assert [str(i) for i in compile_source("begin print(1 + 2); end")] == [
            "LIT 1", "LIT 2", "ADD", "WRT",
        ]

    def test_tokenize(self):
        """Compiler.tokenize() returns the full token list."""
        tokens = Compiler().tokenize("begin end")
        assert [t.type for t in tokens] == [TokenType.BEGIN, TokenType.END, TokenType.EOF]

    def test_filename_option(self):
        """CompilerOptions.filename names string input in diagnostics."""
        compiler = Compiler(CompilerOptions(filename="snippet.pl0"))
        with pytest.raises(CompileError) as exc_info:
            compiler.compile_source("begin print(y); end")
        assert exc_info.value.location.filename == "snippet.pl0"


# =============================================================================
# File Handling Tests
# =============================================================================

class TestCompileFile:
    """Compiler.compile_file()"""

    def test_compile_file(self, tmp_path):
        """Source files are read and their path used as filename."""
        source_file = tmp_path / "demo.pl0"
        source_file.write_text(DEMO_PROGRAM)

        result = Compiler().compile_file(source_file)

        assert result.filename == str(source_file)
        assert len(result.symbols) == 4

    def test_missing_file(self, tmp_path):
        """A missing file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError, match="Source file not found"):
            Compiler().compile_file(tmp_path / "nope.pl0")

    def test_error_points_into_file(self, tmp_path):
        """Diagnostics show file, line, column, the line and a caret."""
        source_file = tmp_path / "demo.pl0"
        source_file.write_text("begin var x; print(x); end\n")

        with pytest.raises(NotInitializedError) as exc_info:
            Compiler().compile_file(source_file)

        lines = str(exc_info.value).splitlines()
        assert lines[0] == (
            f"{source_file}:1:20: error: variable 'x' is used before being initialized"
        )
        assert lines[1] == "    begin var x; print(x); end"
        assert lines[2] == " " * 23 + "^"
        assert lines[3] == "hint: assign a value to 'x' before reading it"

    def test_tokenize_error_in_file(self, tmp_path):
        """Lexer faults carry the file location too."""
        source_file = tmp_path / "big.pl0"
        source_file.write_text("begin\n  print(9999999999);\nend\n")

        with pytest.raises(IntegerOverflowError) as exc_info:
            Compiler().compile_file(source_file)
        assert str(exc_info.value).startswith(f"{source_file}:2:9: error:")


# =============================================================================
# Execution Tests
# =============================================================================

class TestRun:
    """run_source() end to end."""

    def test_reference_program(self):
        """The canonical example prints 3."""
        assert outputs("begin const a = 1; var b; b = a + 2; print(b); end") == [3]

    def test_demo_program(self):
        """A program using every construct."""
        assert outputs(DEMO_PROGRAM) == [11]

    def test_multiple_prints(self):
        """Each print adds one value, in order."""
        assert outputs("begin print(1); print(-2); print(3 * 3); end") == [1, -2, 9]

    def test_unary_minus(self):
        """-x is 0 - x."""
        assert outputs("begin var x = 5; print(-x); print(-(-x)); end") == [-5, 5]

    def test_reassignment(self):
        """A variable can be assigned many times."""
        source = "begin var x = 1; x = x + 1; x = x * 10; print(x); end"
        assert outputs(source) == [20]

    def test_self_assignment_reads_placeholder(self):
        """x = x + 1 on an unassigned x starts from 0."""
        assert outputs("begin var x; x = x + 1; print(x); end") == [1]

    def test_left_associative_subtraction(self):
        """8 - 3 - 2 is (8 - 3) - 2."""
        assert outputs("begin print(8 - 3 - 2); end") == [3]

    def test_truncating_division(self):
        """Division truncates toward zero."""
        assert outputs("begin print(-7 / 2); print(7 / -2); end") == [-3, -3]

    def test_wraparound(self):
        """Overflow wraps to signed 32-bit."""
        assert outputs("begin print(2147483647 + 1); end") == [-2147483648]

    def test_runtime_fault(self):
        """Division by zero surfaces as a VMError after earlier output."""
        printed = []
        with pytest.raises(DivisionByZeroError):
            run_source("begin print(1); print(1 / 0); end", output_sink=printed.append)
        assert printed == [1]

    def test_deep_nesting_is_compile_error(self):
        """Heavily nested parentheses fail as a compile error."""
        source = "begin print(" + "(" * 250 + "1" + ")" * 250 + "); end"
        with pytest.raises(NestingTooDeepError):
            outputs(source)

    def test_vm_options(self):
        """VM options pass through run_source()."""
        with pytest.raises(StackOverflowError):
            run_source(
                "begin var a; var b; var c; end",
                output_sink=lambda v: None,
                options=VMOptions(max_stack_depth=2),
            )

    def test_compiler_run_source(self):
        """Compiler.run_source() uses the compiler's VM options."""
        compiler = Compiler(CompilerOptions(vm=VMOptions(max_stack_depth=1)))
        with pytest.raises(StackOverflowError):
            compiler.run_source("begin print(1 + 2); end", output_sink=lambda v: None)

    def test_default_output_is_stdout(self, capsys):
        """Without a sink, printed values go to stdout."""
        assert run_source("begin print(42); end") == [42]
        assert capsys.readouterr().out == "42\n"
