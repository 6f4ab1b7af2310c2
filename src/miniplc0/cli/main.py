"""
miniplc0 - Command-Line Interface
=================================

This module implements the ``miniplc0`` command: tokenize, compile and run
programs from the terminal.

Usage Examples
--------------
Show the token stream:
    $ miniplc0 tokens demo.pl0

Compile to an instruction listing:
    $ miniplc0 compile demo.pl0 -o demo.lst

Compile and run:
    $ miniplc0 run demo.pl0

Run a previously written listing:
    $ miniplc0 run --listing demo.lst

Exit Codes
----------
0 - Success
1 - Compile error, malformed listing, or runtime fault
2 - Invalid arguments or missing file
3 - Internal error
"""

import logging
from pathlib import Path
from typing import Optional

import click

from miniplc0 import __version__
from miniplc0.cli.errors import handle_cli_exception
from miniplc0.compiler import Compiler, CompilerOptions
from miniplc0.instruction import parse_listing
from miniplc0.vm import MiniVM, VMOptions

logger = logging.getLogger(__name__)


# =============================================================================
# CLI Context
# =============================================================================

class Context:
    """Shared options for all subcommands."""

    def __init__(self) -> None:
        self.verbose: bool = False

    def setup_logging(self) -> None:
        """Configure logging based on verbosity."""
        level = logging.DEBUG if self.verbose else logging.WARNING
        logging.basicConfig(
            level=level,
            format="%(levelname)s: %(name)s: %(message)s" if self.verbose else "%(message)s",
        )


pass_context = click.make_pass_decorator(Context, ensure=True)


def echo_value(value: int) -> None:
    """Output sink printing one value per line."""
    click.echo(str(value))


# =============================================================================
# Main CLI Group
# =============================================================================

@click.group()
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Enable debug logging and tracebacks for internal errors",
)
@click.version_option(version=__version__, prog_name="miniplc0")
@pass_context
def main(ctx: Context, verbose: bool) -> None:
    """
    Compile and run miniplc0 programs.

    \b
    A program is a single block:
        begin
            const a = 1;
            var b;
            b = a + 2;
            print(b);
        end
    """
    ctx.verbose = verbose
    ctx.setup_logging()


# =============================================================================
# Commands
# =============================================================================

@main.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@pass_context
def tokens(ctx: Context, input_file: Path) -> None:
    """
    Print the tokens of INPUT_FILE, one per line.
    """
    try:
        source = input_file.read_text(encoding="utf-8")
        for token in Compiler().tokenize(source, str(input_file)):
            click.echo(repr(token))
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


@main.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the listing to this file (default: stdout)",
)
@pass_context
def compile(ctx: Context, input_file: Path, output: Optional[Path]) -> None:
    """
    Compile INPUT_FILE to an instruction listing.

    \b
    Examples:
        miniplc0 compile demo.pl0              # Listing on stdout
        miniplc0 compile demo.pl0 -o demo.lst  # Listing to a file
    """
    try:
        result = Compiler().compile_file(input_file)

        if output is None:
            click.echo(result.listing(), nl=False)
        else:
            output.write_text(result.listing(), encoding="utf-8")
            logger.info(f"Wrote {len(result.instructions)} instructions to {output}")
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


@main.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--listing",
    is_flag=True,
    help="INPUT_FILE is an instruction listing rather than source code",
)
@click.option(
    "--max-stack",
    type=click.IntRange(min=1),
    default=None,
    help="Fault if the stack grows past this many slots",
)
@click.option(
    "--trace",
    is_flag=True,
    help="Log every executed instruction (implies --verbose logging level)",
)
@pass_context
def run(
    ctx: Context,
    input_file: Path,
    listing: bool,
    max_stack: Optional[int],
    trace: bool,
) -> None:
    """
    Compile and execute INPUT_FILE, printing each value it outputs.

    \b
    Examples:
        miniplc0 run demo.pl0
        miniplc0 run --listing demo.lst
        miniplc0 run --trace demo.pl0
    """
    vm_options = VMOptions(max_stack_depth=max_stack, trace=trace)
    if trace:
        logging.getLogger("miniplc0").setLevel(logging.DEBUG)

    try:
        if listing:
            instructions = parse_listing(input_file.read_text(encoding="utf-8"))
        else:
            compiler = Compiler(CompilerOptions(vm=vm_options))
            instructions = compiler.compile_file(input_file).instructions

        MiniVM(instructions, output=echo_value, options=vm_options).run()
    except Exception as e:
        handle_cli_exception(e, verbose=ctx.verbose)


if __name__ == "__main__":
    main()
