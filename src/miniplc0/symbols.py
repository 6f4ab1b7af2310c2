"""
Symbol Table
============

A single flat mapping from identifier to its declaration record. There
are no nested scopes: every name lives for the whole compilation, and
declaration order fixes where its value lives on the VM stack.

Stack Layout
------------
The declarations compile to one initializer each (a LIT for constants
and uninitialized variables, the initializer expression otherwise), in
declaration order, before any statement code. After they have run, the
value of the n-th declared name sits at absolute stack index n, which is
exactly the offset recorded here:

    const a = 1;    -> offset 0
    var b;          -> offset 1
    var c = a + 2;  -> offset 2
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional

from miniplc0.errors import (
    SourceLocation,
    DuplicateDeclarationError,
    NotDeclaredError,
)

logger = logging.getLogger(__name__)


@dataclass
class SymbolEntry:
    """
    Declaration record for one name.

    Attributes:
        name: The declared identifier
        is_constant: Declared with 'const'
        is_initialized: Holds an assigned value (always True for constants)
        stack_offset: Absolute VM stack index holding the value
        location: Where the name was declared
    """
    name: str
    is_constant: bool
    is_initialized: bool
    stack_offset: int
    location: Optional[SourceLocation] = None


class SymbolTable:
    """
    Insertion-ordered symbol table with monotonically allocated offsets.

    Offsets start at 0 and are never reused; constants and variables share
    the same counter. Names are never removed.

    Example:
        table = SymbolTable()
        table.declare("a", loc, is_constant=True, is_initialized=True)
        table.lookup("a", loc).stack_offset   # 0
    """

    def __init__(self):
        self._entries: dict[str, SymbolEntry] = {}
        self._next_offset = 0

    def declare(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        *,
        is_constant: bool,
        is_initialized: bool,
    ) -> SymbolEntry:
        """
        Register a new name at the next stack offset.

        Raises:
            DuplicateDeclarationError: If the name is already declared
        """
        existing = self._entries.get(name)
        if existing is not None:
            raise DuplicateDeclarationError(
                name,
                location=location,
                original_location=existing.location,
            )

        entry = SymbolEntry(
            name=name,
            is_constant=is_constant,
            is_initialized=is_initialized,
            stack_offset=self._next_offset,
            location=location,
        )
        self._entries[name] = entry
        self._next_offset += 1

        kind = "const" if is_constant else "var"
        logger.debug(f"Declared {kind} '{name}' at offset {entry.stack_offset}")
        return entry

    def lookup(self, name: str, location: Optional[SourceLocation] = None) -> SymbolEntry:
        """
        Return the entry for a name.

        Raises:
            NotDeclaredError: If the name was never declared
        """
        entry = self._entries.get(name)
        if entry is None:
            raise NotDeclaredError(name, location=location)
        return entry

    def mark_initialized(
        self, name: str, location: Optional[SourceLocation] = None
    ) -> SymbolEntry:
        """Flag a name as holding a value. Idempotent."""
        entry = self.lookup(name, location)
        entry.is_initialized = True
        return entry

    def get(self, name: str) -> Optional[SymbolEntry]:
        return self._entries.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SymbolEntry]:
        """Iterate entries in declaration (and offset) order."""
        return iter(self._entries.values())
