from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Union

from typing_extensions import TypeAlias

logger = logging.getLogger("minipas.semantic")

# ---------- Symbols ----------

@dataclass
class BuiltinTypeSymbol:
    name: str

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"<BuiltinTypeSymbol(name={self.name})>"


@dataclass
class VarSymbol:
    name: str
    type: BuiltinTypeSymbol  # owned by this scope or an enclosing one

    def __repr__(self) -> str:
        return f"<VarSymbol(name={self.name}, type={self.type})>"


@dataclass
class ProcedureSymbol:
    name: str
    params: List[VarSymbol] = field(default_factory=list)

    def __repr__(self) -> str:
        params = ", ".join(repr(p) for p in self.params)
        return f"<ProcedureSymbol(name={self.name}, parameters=[{params}])>"


@dataclass
class ProgramSymbol:
    name: str

    def __repr__(self) -> str:
        return f"<ProgramSymbol(name={self.name})>"


Symbol: TypeAlias = Union[BuiltinTypeSymbol, VarSymbol, ProcedureSymbol, ProgramSymbol]

BUILTIN_TYPES = ("INTEGER", "REAL")

# ---------- Scopes ----------

class ScopedSymbolTable:
    """One lexical level of names, chained to its enclosing level.

    Level 0 is the builtin scope, 1 the global scope, deeper levels belong to
    procedures. A scope never holds its children, so the enclosing link
    cannot form a cycle.
    """

    def __init__(self, name: str, level: int, enclosing_scope: Optional[ScopedSymbolTable] = None):
        self._symbols: Dict[str, Symbol] = {}
        self.scope_name = name
        self.scope_level = level
        self.enclosing_scope = enclosing_scope

    @classmethod
    def builtins(cls) -> ScopedSymbolTable:
        scope = cls("builtins", 0)
        for type_name in BUILTIN_TYPES:
            scope.define(BuiltinTypeSymbol(type_name))
        return scope

    def child(self, name: str) -> ScopedSymbolTable:
        return ScopedSymbolTable(name, self.scope_level + 1, self)

    def define(self, symbol: Symbol) -> None:
        logger.debug("Define: %s (scope %s)", symbol.name, self.scope_name)
        self._symbols[symbol.name] = symbol

    def lookup(self, name: str, current_scope_only: bool = False) -> Optional[Symbol]:
        logger.debug("Lookup: %s (scope %s)", name, self.scope_name)
        scope: Optional[ScopedSymbolTable] = self

        while scope is not None:
            symbol = scope._symbols.get(name)
            if symbol is not None:
                return symbol

            if current_scope_only:
                return None
            scope = scope.enclosing_scope

        return None

    def global_scope(self) -> ScopedSymbolTable:
        scope = self
        while scope.scope_level > 1 and scope.enclosing_scope is not None:
            scope = scope.enclosing_scope
        return scope

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[Symbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)

    def __str__(self) -> str:
        h1 = 'SCOPE (SCOPED SYMBOL TABLE)'
        lines = [h1, '=' * len(h1)]
        enclosing = self.enclosing_scope.scope_name if self.enclosing_scope else None

        for header_name, header_value in (
            ('Scope name', self.scope_name),
            ('Scope level', self.scope_level),
            ('Enclosing scope', enclosing),
        ):
            lines.append(f"{header_name:<15}: {header_value}")

        h2 = 'Scope (Scoped symbol table) contents'
        lines.extend([h2, '-' * len(h2)])
        lines.extend(f"{key:>7}: {value!r}" for key, value in self._symbols.items())
        return '\n'.join(lines)

    def __repr__(self) -> str:
        return f"<ScopedSymbolTable(name={self.scope_name}, level={self.scope_level})>"
