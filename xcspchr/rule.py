"""CHR rules and the library of fixed propagation rules."""

from __future__ import annotations

import abc
from typing import Any, ClassVar

from .predicate import Predicate, set_predicate_prefix

_prefix_op = ""


def set_prefix_op(prefix: str) -> None:
    """Set the operator prefix for rules and predicates alike."""
    global _prefix_op
    _prefix_op = prefix
    set_predicate_prefix(prefix)


def prefix_op() -> str:
    """Return the current operator prefix."""
    return _prefix_op


def enable_minimal_mode() -> None:
    """Switch every rule to minimal mode."""
    Rule.minimal_mode = True


class Rule(abc.ABC):
    """A CHR rule: ``name @ head symbol guard | tail;;``."""

    minimal_mode: ClassVar[bool] = False

    def __init__(self, name: str = "", callback: Any = None) -> None:
        self.name = name
        self.callback = callback
        self.symbol = "==>"
        self.head: list[Predicate] = []
        self.guard: list[str] = []
        self.tail: list[Predicate] = []

    def to_chr(self) -> str:
        """Render the rule in CHR syntax."""
        text = f"{self.name} @ " if self.name else ""
        text += ", ".join(pred.to_string() for pred in self.head)
        text += f" {self.symbol} "
        if self.guard:
            text += ", ".join(self.guard) + " | "
        text += ", ".join(pred.to_string() for pred in self.tail)
        return text + ";;"

    def to_string(self) -> str:
        """Render the rule with the base formatting."""
        return Rule.to_chr(self)

    @abc.abstractmethod
    def finalize(self) -> None:
        """Register whatever supporting rules and constraints the rule needs."""

    def add_head(self, predicate: Predicate) -> None:
        if predicate not in self.head:
            self.head.append(predicate)

    def add_tail(self, predicate: Predicate) -> None:
        if predicate not in self.tail:
            self.tail.append(predicate)

    def add_guard(self, guard: str) -> None:
        self.guard.append(guard)


class RawRule(Rule):
    """A rule given directly as CHR text."""

    def __init__(self, text: str = "") -> None:
        super().__init__()
        self.text = text

    def to_chr(self) -> str:
        return self.text

    def to_string(self) -> str:
        return self.text

    def finalize(self) -> None:
        """Raw rules need no supporting declarations."""

    @staticmethod
    def declaration_rules() -> RawRule:
        return RawRule(
            "CspVarIntDec(Id,_,X,Dom) ==> CspVarInt(Id,X,Dom);;\n"
            "CspTmpInt(I,X,Dom) ==> CspVarInt(I,X,Dom);;"
        )

    @staticmethod
    def domain_propagation_rules() -> RawRule:
        return RawRule(
            "CspVarInt(_,_, Dom) ==> (*Dom).empty() | failure();;\n"
            "CspVarInt(_,X, XDom) ==> (*XDom).singleton() | X %= (*XDom).val();;\n"
            "CspVarInt(_,Val, Dom) ==> Val.ground() | maj_dom(Dom, *Val);;"
        )

    @staticmethod
    def labelling_rules() -> RawRule:
        return RawRule(
            "CspVarIntDec(Id, _, _, Dom) \\ labelling(Id) <=> "
            "exists_it(i, *Dom, ( set_eq(Dom,i) , labelling(Id+1)));;\n"
            "labelling(Id) <=> print_store(*this);;"
        )

    @staticmethod
    def eq_rule() -> RawRule:
        return RawRule(
            "eq_var_var @ CspVarInt(IdX,X, XDom), CspVarInt(IdY,Y, YDom), "
            + _prefix_op
            + "eq(IdX, X, IdY, Y) ==> XDom %= YDom, X %= Y ;;"
        )

    @staticmethod
    def neq_rule() -> RawRule:
        return RawRule(
            "neq_var_var @ CspVarInt(Id1, X, XDom), CspVarInt(Id2, Y, YDom), "
            + _prefix_op
            + "neq(Id1, X, Id2, Y) ==> Solvint::ne(XDom, YDom);;\n"
            "neq_cste_var @ CspVarInt(Id, Y, YDom), "
            + _prefix_op
            + "neq(_,X,Id,Y) ==> X.ground() | Solvint::ne(YDom, *X) ;;\n"
            "neq_var_cste @ CspVarInt(Id, X, XDom), "
            + _prefix_op
            + "neq(Id,X,_,Y) ==> Y.ground() | Solvint::ne(XDom, *Y) ;;"
        )

    @staticmethod
    def _comparison_rule(op: str) -> RawRule:
        return RawRule(
            f"{op}_var_var @ CspVarInt(IdX,X, XDom), CspVarInt(IdY,Y, YDom), "
            f"{_prefix_op}{op}(IdX, X, IdY, Y) =>> Solvint::{op}(XDom, YDom) ;;"
        )

    @staticmethod
    def lt_rule() -> RawRule:
        return RawRule._comparison_rule("lt")

    @staticmethod
    def le_rule() -> RawRule:
        return RawRule._comparison_rule("le")

    @staticmethod
    def gt_rule() -> RawRule:
        return RawRule._comparison_rule("gt")

    @staticmethod
    def ge_rule() -> RawRule:
        return RawRule._comparison_rule("ge")

    @staticmethod
    def plus_rule() -> RawRule:
        return RawRule(
            "plus @ CspVarInt(Id1,X,XDom), CspVarInt(Id2,Y,YDom), CspVarInt(Id3,Z,ZDom), "
            + _prefix_op
            + "plus(Id1,X,Id2,Y,Id3,Z) =>> Solvint::plus_boundConsistency(XDom, YDom, ZDom) ;;"
        )

    @staticmethod
    def div_rule() -> RawRule:
        return RawRule(
            "div @ CspVarInt(IdX,X, XDom), CspVarInt(IdY,Y, YDom), CspVarInt(IdZ,Z, ZDom), "
            + _prefix_op
            + "div(IdX, X, IdY, Y, IdZ, Z) =>> Solvint::div_boundConsistency(XDom, Y, ZDom) ;;"
        )