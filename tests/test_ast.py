import json

import hypothesis.strategies as st
from hypothesis import given

from couch.couch_ast import ASTNode, contains_errors
from couch.couch_errors import Position


def test_astnode_repr() -> None:
    node = ASTNode("let", "x", [ASTNode("integer", 1)], mutable=True)
    assert repr(node) == "ASTNode(let, value='x', mutable=True, children=[ASTNode(integer, value=1)])"


def test_astnode_repr_truncates_children() -> None:
    node = ASTNode("array", None, [ASTNode("integer", i) for i in range(5)])
    assert repr(node).endswith("ASTNode(integer, value=2), ...])")


def test_astnode_eq_equal() -> None:
    n1 = ASTNode("identifier", "x", line=1, col=2)
    n2 = ASTNode("identifier", "x", line=1, col=2)
    assert n1 == n2


def test_astnode_eq_not_equal_kind() -> None:
    assert ASTNode("identifier", "x") != ASTNode("string", "x")


def test_astnode_eq_not_equal_children() -> None:
    n1 = ASTNode("unary", "NEG", [ASTNode("identifier", "x")])
    n2 = ASTNode("unary", "NEG", [ASTNode("identifier", "y")])
    assert n1 != n2


def test_astnode_eq_distinguishes_bool_from_int() -> None:
    assert ASTNode("integer", 1) != ASTNode("integer", True)


def test_astnode_eq_compares_else_branch_and_mutability() -> None:
    a = ASTNode("if", None, [ASTNode("bool", True), ASTNode("block")])
    b = ASTNode("if", None, [ASTNode("bool", True), ASTNode("block")])
    assert a == b
    b.else_children = [ASTNode("block")]
    assert a != b
    assert ASTNode("let", "x", mutable=True) != ASTNode("let", "x")


def test_astnode_eq_non_astnode() -> None:
    assert ASTNode("identifier", "x") != "not an ast"


def test_astnode_at_position() -> None:
    node = ASTNode.at("identifier", Position(7, 2, 3), "x")
    assert (node.index, node.line, node.col) == (7, 2, 3)
    assert node.position == Position(7, 2, 3)


def test_astnode_to_dict_nested_value() -> None:
    call = ASTNode("call", ASTNode("identifier", "len"), [ASTNode("string", "ab")])
    d = call.to_dict()
    assert d["kind"] == "call"
    assert d["value"]["kind"] == "identifier"
    assert d["children"][0]["value"] == "ab"
    assert d["else_children"] == []
    json.dumps(d)


def test_walk_visits_value_children_and_else_branch() -> None:
    node = ASTNode(
        "if",
        None,
        [ASTNode("identifier", "c"), ASTNode("block", ASTNode("integer", 1))],
    )
    node.else_children = [ASTNode("block", ASTNode("integer", 2))]
    assert [n.kind for n in node.walk()] == [
        "if",
        "identifier",
        "block",
        "integer",
        "block",
        "integer",
    ]


def test_contains_errors() -> None:
    clean = [ASTNode("integer", 1)]
    nested = [ASTNode("block", ASTNode("error", "boom"))]
    assert not contains_errors(clean)
    assert contains_errors(nested)
    assert ASTNode("error", "boom").is_error


def test_contains_errors_handles_very_deep_trees() -> None:
    node = ASTNode("error", "boom")
    for _ in range(20000):
        node = ASTNode("unary", "NEG", [node])
    assert contains_errors([node])
    assert sum(1 for _ in node.walk()) == 20001


@given(st.text(min_size=1), st.text(min_size=1))  # type: ignore[misc]
def test_astnode_eq_same_kind_value(kind: str, value: str) -> None:
    assert ASTNode(kind, value) == ASTNode(kind, value)


@given(st.text(min_size=1), st.text(min_size=1))  # type: ignore[misc]
def test_astnode_eq_different_kind_value(kind: str, value: str) -> None:
    assert ASTNode(kind, value) != ASTNode(kind + "x", value + "x")
