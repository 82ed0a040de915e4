"""
Defines the abstract syntax tree (AST) node structure for the couch language.

Classes:
    ASTNode:
        A node in the syntax tree. Each node exclusively owns its children; the tree has
        no sharing and no cycles.

    ASTDict:
        TypedDict representation for serializing ASTNode instances to plain Python dictionaries,
        used by the CLI's `--ast` dump and by tests.

Node kinds and how their fields are used:

    ==============  =============================  ======================================
    kind            value                          children / else_children
    ==============  =============================  ======================================
    integer         int                            -
    float           float                          -
    string          str (unescaped)                -
    bool            bool                           -
    unit            None                           -
    identifier      name                           -
    unary           "NEG" | "NOT"                  [operand]
    binary          "ADD" "SUB" "MUL" "DIV" "EQ"   [left, right]
                    "NE" "AND" "OR" "IN" "NOT_IN"
    call            callee ASTNode                 arguments
    index           None                           [subject, index]
    tuple           None                           items
    array           None                           items
    block           trailing ASTNode | None        statements
    if              None                           [condition, then-block]; else_children
                                                   holds the else branch (block or if)
    let             name                           [initializer]; `mutable` flag
    assign          "ASSIGN" "ADD" "SUB" "MUL"     [target identifier, right-hand side]
                    "DIV"
    return          None                           [] or [expression]
    error           diagnostic message             -
    ==============  =============================  ======================================

Every node records line, col and index of the token it starts at. Positions are only used
for diagnostics and never affect evaluation.
"""

from collections.abc import Iterator
from typing import Any, TypedDict

from couch.couch_errors import Position


class ASTDict(TypedDict, total=False):
    """
    TypedDict representation of an ASTNode used for serialization.

    Fields:
        kind (str): The type of AST node (e.g., "binary", "let", "block").
        value (Any): The node's value, which may be a literal, a name, or a nested ASTDict.
        line (int): Line number in the source code where the node originates.
        col (int): Column number in the source code where the node originates.
        index (int): Character offset where the node originates.
        mutable (bool): Mutability flag of a `let` binding.
        children (List[ASTDict]): Primary child nodes in the AST hierarchy.
        else_children (List[ASTDict]): The else branch of an `if`.
    """

    kind: str
    value: Any
    line: int
    col: int
    index: int
    mutable: bool
    children: list["ASTDict"]
    else_children: list["ASTDict"]


class ASTNode:
    """
    Represents a node in the abstract syntax tree (AST) for the couch language.

    Args:
        kind (str): The type of node (see the module table).
        value (Any, optional): A literal, name, operator name, or a nested ASTNode.
        children (list[ASTNode], optional): Primary child nodes in the syntax tree.
        line (int): Source line number (default is 0).
        col (int): Source column number (default is 0).
        index (int): Source character offset (default is 0).
        mutable (bool): Whether a `let` binding was declared with `mut`.

    Methods:
        __repr__(): Returns a structured string representation for debugging.
        __eq__(other): Checks structural equality with another ASTNode.
        to_dict(): Converts the node (and all descendants) into a nested dictionary format.
        walk(): Yields the node and every descendant, depth first.
    """

    def __init__(
        self,
        kind: str,
        value: Any = None,
        children: list["ASTNode"] | None = None,
        line: int = 0,
        col: int = 0,
        index: int = 0,
        mutable: bool = False,
    ):
        self.kind = kind
        self.value = value
        self.children: list["ASTNode"] = children or []
        self.line = line
        self.col = col
        self.index = index
        self.mutable = mutable
        self.else_children: list["ASTNode"] = []

    @classmethod
    def at(
        cls,
        kind: str,
        position: Position,
        value: Any = None,
        children: list["ASTNode"] | None = None,
        mutable: bool = False,
    ) -> "ASTNode":
        """Builds a node located at `position`."""
        return cls(
            kind,
            value,
            children,
            line=position.line,
            col=position.col,
            index=position.index,
            mutable=mutable,
        )

    @property
    def position(self) -> Position:
        return Position(self.index, self.line, self.col)

    @property
    def is_error(self) -> bool:
        return self.kind == "error"

    def __repr__(self) -> str:
        parts = [f"{self.kind}"]
        if self.value is not None:
            parts.append(f"value={repr(self.value)}")
        if self.mutable:
            parts.append("mutable=True")
        if self.children:
            preview = ", ".join(repr(c) for c in self.children[:3])
            if len(self.children) > 3:
                preview += ", ..."
            parts.append(f"children=[{preview}]")
        if self.else_children:
            preview = ", ".join(repr(c) for c in self.else_children[:3])
            parts.append(f"else_children=[{preview}]")
        return f"ASTNode({', '.join(parts)})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, ASTNode):
            return False
        # bool is an int subclass; keep `true` distinct from `1`
        values_equal = type(self.value) is type(other.value) and self.value == other.value
        return (
            self.kind == other.kind
            and values_equal
            and self.line == other.line
            and self.col == other.col
            and self.mutable == other.mutable
            and self.children == other.children
            and self.else_children == other.else_children
        )

    def walk(self) -> Iterator["ASTNode"]:
        """Yields this node and its descendants in preorder, without recursing."""
        stack: list[ASTNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.else_children))
            stack.extend(reversed(node.children))
            if isinstance(node.value, ASTNode):
                stack.append(node.value)

    def to_dict(self) -> ASTDict:
        val: Any = self.value
        if isinstance(val, ASTNode):
            val = val.to_dict()

        return {
            "kind": self.kind,
            "value": val,
            "line": self.line,
            "col": self.col,
            "index": self.index,
            "mutable": self.mutable,
            "children": [c.to_dict() for c in self.children],
            "else_children": [c.to_dict() for c in self.else_children],
        }


def contains_errors(nodes: list[ASTNode]) -> bool:
    """Returns True if any node in the forest is an error placeholder."""
    return any(n.is_error for root in nodes for n in root.walk())


__all__ = ["ASTDict", "ASTNode", "contains_errors"]
