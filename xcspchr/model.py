"""Core data types describing a constraint problem instance."""

from __future__ import annotations

import enum
import re
from collections import deque
from dataclasses import dataclass, field


@dataclass(frozen=True, order=True)
class VarDecl:
    """A declared integer variable with its numeric id and domain bounds."""

    id: int
    name: str
    min: int
    max: int


@dataclass
class IdCounter:
    """A mutable id counter shared between the objects that allocate ids."""

    value: int = 0

    def increment(self) -> int:
        """Advance the counter by one and return the new value."""
        self.value += 1
        return self.value

    def __int__(self) -> int:
        return self.value


@dataclass(frozen=True)
class XVariable:
    """A variable reference as it appears in a constraint."""

    id: str


class OrderType(enum.Enum):
    """Relational operators used in constraint conditions."""

    LE = "le"
    LT = "lt"
    GE = "ge"
    GT = "gt"
    IN = "in"
    EQ = "eq"
    NE = "ne"


@dataclass(frozen=True)
class XCondition:
    """A condition such as ``= 10`` attached to a sum constraint."""

    op: OrderType
    val: int = 0


class Node:
    """Base class of expression tree nodes."""


@dataclass
class NodeVariable(Node):
    """A variable leaf."""

    var: str


@dataclass
class NodeConstant(Node):
    """An integer constant leaf."""

    val: int


@dataclass
class NodeOperator(Node):
    """An operator applied to sub-expressions."""

    op: str
    parameters: list[Node] = field(default_factory=list)


@dataclass
class Tree:
    """An intension expression tree."""

    root: Node


_LEXEME = re.compile(r"[(),]|[^(),]+")
_INTEGER = re.compile(r"[+-]?\d+")


def _split_lexemes(text: str) -> deque[str]:
    pieces: deque[str] = deque()
    for match in _LEXEME.finditer(text):
        piece = "".join(match.group().split())
        if piece:
            pieces.append(piece)
    return pieces


def _parse_node(pieces: deque[str], text: str) -> Node:
    if not pieces:
        raise ValueError(f"unexpected end of expression in {text!r}")
    head = pieces.popleft()
    if head in "(),":
        raise ValueError(f"unexpected {head!r} in {text!r}")
    if pieces and pieces[0] == "(":
        pieces.popleft()
        parameters = [_parse_node(pieces, text)]
        while True:
            if not pieces:
                raise ValueError(f"unterminated call to {head!r} in {text!r}")
            delimiter = pieces.popleft()
            if delimiter == ")":
                break
            if delimiter != ",":
                raise ValueError(f"expected ',' or ')' but found {delimiter!r} in {text!r}")
            parameters.append(_parse_node(pieces, text))
        return NodeOperator(head, parameters)
    if _INTEGER.fullmatch(head):
        return NodeConstant(int(head))
    return NodeVariable(head)


def parse_expression(text: str) -> Tree:
    """Parse a functional expression such as ``eq(x,add(y,3))`` into a tree."""
    pieces = _split_lexemes(text)
    root = _parse_node(pieces, text)
    if pieces:
        raise ValueError(f"trailing input {''.join(pieces)!r} in {text!r}")
    return Tree(root)