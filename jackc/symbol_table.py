from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Union

from jackc.errors import SemanticError
from jackc.vm import Segment


class SymbolKind(Enum):
    STATIC = "static"
    FIELD = "field"
    ARGUMENT = "argument"
    LOCAL = "local"

    @property
    def segment(self) -> Segment:
        return _KIND_SEGMENTS[self]

    @property
    def is_class_level(self) -> bool:
        return self in (SymbolKind.STATIC, SymbolKind.FIELD)


_KIND_SEGMENTS = {
    SymbolKind.STATIC: Segment.STATIC,
    SymbolKind.FIELD: Segment.THIS,
    SymbolKind.ARGUMENT: Segment.ARGUMENT,
    SymbolKind.LOCAL: Segment.LOCAL,
}


class PrimitiveType(Enum):
    INT = "int"
    CHAR = "char"
    BOOLEAN = "boolean"

    @property
    def name_text(self) -> str:
        return self.value


@dataclass(frozen=True)
class ClassType:
    name: str

    @property
    def name_text(self) -> str:
        return self.name


VarType = Union[PrimitiveType, ClassType]


def var_type(name: str) -> VarType:
    """Map a declared type name to its primitive or class variant."""
    try:
        return PrimitiveType(name)
    except ValueError:
        return ClassType(name)


@dataclass(frozen=True)
class Symbol:
    name: str
    kind: SymbolKind
    type: VarType
    index: int


class Scope:
    """One level of name bindings with dense per-kind slot numbering."""

    def __init__(self, name: str):
        self.name = name
        self.symbols: Dict[str, Symbol] = {}

    def __contains__(self, name: str) -> bool:
        return name in self.symbols

    def __len__(self) -> int:
        return len(self.symbols)

    def get(self, name: str) -> Optional[Symbol]:
        return self.symbols.get(name)

    def next_index(self, kind: SymbolKind) -> int:
        indices = [s.index for s in self.symbols.values() if s.kind == kind]
        return max(indices) + 1 if indices else 0

    def declare(self, name: str, kind: SymbolKind, type_: VarType) -> Symbol:
        symbol = Symbol(name, kind, type_, self.next_index(kind))
        self.symbols[name] = symbol
        return symbol

    def count_of(self, kind: SymbolKind) -> int:
        return sum(1 for s in self.symbols.values() if s.kind == kind)

    def clear(self):
        self.symbols.clear()


class SymbolTable:
    """
    Two-tier symbol table:
      - class scope: 'static' and 'field' declarations, kept for the whole class
      - subroutine scope: arguments and locals, reset for every subroutine
    Lookups try the subroutine scope first, so locals and arguments shadow
    class-level names.
    """

    def __init__(self, filename: str = ""):
        self.class_scope = Scope("class")
        self.subroutine_scope = Scope("subroutine")
        self.filename = filename

    def _scope_for(self, kind: SymbolKind) -> Scope:
        return self.class_scope if kind.is_class_level else self.subroutine_scope

    def reset_subroutine_scope(self):
        self.subroutine_scope.clear()

    def declare(
        self, name: str, kind: SymbolKind, type_: VarType, line: int = 0, column: int = 0
    ) -> Symbol:
        scope = self._scope_for(kind)
        if name in scope:
            raise SemanticError(
                f"'{name}' is already declared in {scope.name} scope",
                self.filename,
                line,
                column,
            )
        return scope.declare(name, kind, type_)

    def lookup(self, name: str) -> Optional[Symbol]:
        return self.subroutine_scope.get(name) or self.class_scope.get(name)

    def resolve(self, name: str, line: int = 0, column: int = 0) -> Symbol:
        symbol = self.lookup(name)
        if symbol is None:
            raise SemanticError(f"undeclared identifier '{name}'", self.filename, line, column)
        return symbol

    def count_of(self, kind: SymbolKind) -> int:
        return self._scope_for(kind).count_of(kind)
