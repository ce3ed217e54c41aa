"""AST nodes for formula expressions.

Every node records the `[start, end)` character span it was parsed from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, Union

LiteralValue = Union[str, float, bool, None]


@dataclass(frozen=True)
class Literal:
    value: LiteralValue
    raw: str
    start: int
    end: int


@dataclass(frozen=True)
class Identifier:
    name: str
    start: int
    end: int


@dataclass(frozen=True)
class BinaryExpression:
    operator: str
    left: "Expr"
    right: "Expr"
    start: int
    end: int


@dataclass(frozen=True)
class UnaryExpression:
    operator: str
    argument: "Expr"
    start: int
    end: int
    prefix: bool = True


@dataclass(frozen=True)
class ConditionalExpression:
    test: "Expr"
    consequent: "Expr"
    alternate: "Expr"
    start: int
    end: int


@dataclass(frozen=True)
class CallExpression:
    callee: "Expr"
    arguments: tuple["Expr", ...]
    start: int
    end: int


@dataclass(frozen=True)
class MemberExpression:
    object: "Expr"
    property: "Expr"
    computed: bool
    start: int
    end: int


@dataclass(frozen=True)
class ArrayExpression:
    elements: tuple["Expr", ...]
    start: int
    end: int


@dataclass(frozen=True)
class Property:
    key: Union[Identifier, Literal]
    value: "Expr"


@dataclass(frozen=True)
class ObjectExpression:
    properties: tuple[Property, ...]
    start: int
    end: int


Expr = Union[
    Literal,
    Identifier,
    BinaryExpression,
    UnaryExpression,
    ConditionalExpression,
    CallExpression,
    MemberExpression,
    ArrayExpression,
    ObjectExpression,
]


def children(node: Expr) -> tuple[Expr, ...]:
    """Direct child nodes in source order."""
    if isinstance(node, BinaryExpression):
        return (node.left, node.right)
    if isinstance(node, UnaryExpression):
        return (node.argument,)
    if isinstance(node, ConditionalExpression):
        return (node.test, node.consequent, node.alternate)
    if isinstance(node, CallExpression):
        return (node.callee, *node.arguments)
    if isinstance(node, MemberExpression):
        return (node.object, node.property)
    if isinstance(node, ArrayExpression):
        return node.elements
    if isinstance(node, ObjectExpression):
        out: list[Expr] = []
        for prop in node.properties:
            out.append(prop.key)
            out.append(prop.value)
        return tuple(out)
    return ()


def walk(node: Expr) -> Iterator[Expr]:
    """Yield `node` and all of its descendants, parents before children.

    Uses an explicit stack so arbitrarily deep trees do not hit the
    interpreter recursion limit.
    """
    stack: list[Expr] = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(children(current)))


def to_dict(node: Expr) -> dict[str, Any]:
    """Render a node as a JSON-ready mapping tagged with a `type` field."""
    if isinstance(node, Literal):
        return {"type": "Literal", "value": node.value, "raw": node.raw, "start": node.start, "end": node.end}
    if isinstance(node, Identifier):
        return {"type": "Identifier", "name": node.name, "start": node.start, "end": node.end}
    if isinstance(node, BinaryExpression):
        return {
            "type": "BinaryExpression",
            "operator": node.operator,
            "left": to_dict(node.left),
            "right": to_dict(node.right),
            "start": node.start,
            "end": node.end,
        }
    if isinstance(node, UnaryExpression):
        return {
            "type": "UnaryExpression",
            "operator": node.operator,
            "argument": to_dict(node.argument),
            "prefix": node.prefix,
            "start": node.start,
            "end": node.end,
        }
    if isinstance(node, ConditionalExpression):
        return {
            "type": "ConditionalExpression",
            "test": to_dict(node.test),
            "consequent": to_dict(node.consequent),
            "alternate": to_dict(node.alternate),
            "start": node.start,
            "end": node.end,
        }
    if isinstance(node, CallExpression):
        return {
            "type": "CallExpression",
            "callee": to_dict(node.callee),
            "arguments": [to_dict(arg) for arg in node.arguments],
            "start": node.start,
            "end": node.end,
        }
    if isinstance(node, MemberExpression):
        return {
            "type": "MemberExpression",
            "object": to_dict(node.object),
            "property": to_dict(node.property),
            "computed": node.computed,
            "start": node.start,
            "end": node.end,
        }
    if isinstance(node, ArrayExpression):
        return {
            "type": "ArrayExpression",
            "elements": [to_dict(el) for el in node.elements],
            "start": node.start,
            "end": node.end,
        }
    if isinstance(node, ObjectExpression):
        return {
            "type": "ObjectExpression",
            "properties": [{"key": to_dict(prop.key), "value": to_dict(prop.value)} for prop in node.properties],
            "start": node.start,
            "end": node.end,
        }
    raise TypeError(f"Unsupported AST node {node!r}")
