import pytest

from jackc.errors import SemanticError
from jackc.symbol_table import (
    ClassType,
    PrimitiveType,
    SymbolKind,
    SymbolTable,
    var_type,
)
from jackc.vm import Segment


def test_dense_indices_per_kind():
    table = SymbolTable()
    indices = [
        table.declare("a", SymbolKind.LOCAL, PrimitiveType.INT).index,
        table.declare("p", SymbolKind.ARGUMENT, PrimitiveType.INT).index,
        table.declare("b", SymbolKind.LOCAL, PrimitiveType.INT).index,
        table.declare("q", SymbolKind.ARGUMENT, PrimitiveType.INT).index,
        table.declare("c", SymbolKind.LOCAL, PrimitiveType.INT).index,
    ]
    assert indices == [0, 0, 1, 1, 2]
    assert table.declare("r", SymbolKind.ARGUMENT, PrimitiveType.INT).index == 2
    assert table.count_of(SymbolKind.LOCAL) == 3
    assert table.count_of(SymbolKind.ARGUMENT) == 3


def test_class_and_subroutine_kinds_use_separate_scopes():
    table = SymbolTable()
    table.declare("s", SymbolKind.STATIC, PrimitiveType.INT)
    table.declare("f", SymbolKind.FIELD, PrimitiveType.INT)
    table.declare("g", SymbolKind.FIELD, ClassType("Point"))
    table.declare("l", SymbolKind.LOCAL, PrimitiveType.INT)
    assert set(table.class_scope.symbols) == {"s", "f", "g"}
    assert set(table.subroutine_scope.symbols) == {"l"}
    assert table.count_of(SymbolKind.FIELD) == 2
    assert table.lookup("g").index == 1


def test_local_shadows_field():
    table = SymbolTable()
    table.declare("x", SymbolKind.FIELD, PrimitiveType.INT)
    table.declare("x", SymbolKind.LOCAL, PrimitiveType.BOOLEAN)
    symbol = table.lookup("x")
    assert symbol.kind == SymbolKind.LOCAL
    assert symbol.type == PrimitiveType.BOOLEAN


def test_reset_subroutine_scope_keeps_class_scope():
    table = SymbolTable()
    table.declare("x", SymbolKind.FIELD, PrimitiveType.INT)
    table.declare("x", SymbolKind.LOCAL, PrimitiveType.INT)
    table.declare("y", SymbolKind.ARGUMENT, PrimitiveType.INT)
    table.reset_subroutine_scope()
    assert table.lookup("x").kind == SymbolKind.FIELD
    assert table.lookup("y") is None
    assert table.declare("z", SymbolKind.ARGUMENT, PrimitiveType.INT).index == 0


def test_redeclaration_in_same_scope_is_an_error():
    table = SymbolTable("Main.jack")
    table.declare("x", SymbolKind.STATIC, PrimitiveType.INT)
    with pytest.raises(SemanticError, match="already declared in class scope"):
        table.declare("x", SymbolKind.FIELD, PrimitiveType.INT, 4, 15)


def test_resolve_unknown_name():
    table = SymbolTable("Main.jack")
    with pytest.raises(SemanticError) as excinfo:
        table.resolve("ghost", 7, 9)
    assert str(excinfo.value) == "Main.jack:7:9: undeclared identifier 'ghost'"


def test_kind_segments():
    assert SymbolKind.STATIC.segment == Segment.STATIC
    assert SymbolKind.FIELD.segment == Segment.THIS
    assert SymbolKind.ARGUMENT.segment == Segment.ARGUMENT
    assert SymbolKind.LOCAL.segment == Segment.LOCAL


def test_var_type():
    assert var_type("char") == PrimitiveType.CHAR
    assert var_type("Robot") == ClassType("Robot")
    assert var_type("Robot").name_text == "Robot"
    assert PrimitiveType.INT.name_text == "int"
