"""Typed CHR constraint predicates."""

from __future__ import annotations

from dataclasses import dataclass, field

_COMPARISONS = frozenset({"lt", "le", "gt", "ge", "eq", "neq"})
_ARITHMETIC = frozenset({"plus", "sub", "mul", "div"})


@dataclass
class _OperatorPrefix:
    value: str = ""


_OPERATOR_PREFIX = _OperatorPrefix()


def set_predicate_prefix(prefix: str) -> None:
    """Set the prefix given to operator predicate names."""
    _OPERATOR_PREFIX.value = prefix


@dataclass
class Predicate:
    """A CHR constraint: a name with argument types and/or argument values."""

    name: str = ""
    types: list[str] = field(default_factory=list)
    elements: list[str] = field(default_factory=list)

    def add_type(self, type_name: str) -> None:
        self.types.append(type_name)

    def add_element(self, element: str) -> None:
        self.elements.append(element)

    def to_string(self) -> str:
        return self.to_string_element()

    def to_string_element(self) -> str:
        """Render as a call with the argument values."""
        return f"{self.name}({','.join(self.elements)})"

    def to_string_type(self) -> str:
        """Render as a declaration with the argument types."""
        return f"{self.name}({','.join(self.types)})"

    def __str__(self) -> str:
        return self.to_string()

    @staticmethod
    def var_int_dec() -> Predicate:
        return Predicate("CspVarIntDec", ["+int", "+string", "?int", "-interval"])

    @staticmethod
    def var_int() -> Predicate:
        return Predicate("CspVarInt", ["+int", "?int", "-interval"])

    @staticmethod
    def tmp_int() -> Predicate:
        return Predicate("CspTmpInt", ["+int", "?int", "-interval"])

    @staticmethod
    def labelling() -> Predicate:
        return Predicate("labelling", ["+int"])

    @staticmethod
    def csp_op(op_name: str) -> Predicate:
        """Declaration of a comparison or arithmetic operator constraint."""
        prefix = _OPERATOR_PREFIX.value
        if op_name in _COMPARISONS:
            return Predicate(prefix + op_name, ["+int", "?int", "+int", "?int"])
        if op_name in _ARITHMETIC:
            return Predicate(
                prefix + op_name, ["+int", "?int", "+int", "?int", "+int", "?int"]
            )
        raise ValueError(f"unknown operator {op_name!r}")