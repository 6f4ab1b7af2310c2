"""
miniplc0 Command-Line Interface
===============================

This package provides the ``miniplc0`` command, a Click-based tool with
three subcommands:

- **tokens**: dump the token stream of a source file
- **compile**: write the instruction listing of a source file
- **run**: execute a source file or an instruction listing
"""

__all__ = ["main"]
