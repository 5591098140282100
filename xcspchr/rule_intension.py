"""Rules translating intension expressions into CHR operator constraints."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable

from .model import Node, NodeConstant, NodeOperator, NodeVariable, Tree
from .predicate import Predicate
from .rule import RawRule, Rule, prefix_op

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1

_COMPARISONS = frozenset({"lt", "le", "gt", "ge", "eq", "neq"})
_ARITHMETIC = frozenset({"add", "sub", "mul", "div"})

_BUILTIN_RULES: dict[str, Callable[[], RawRule]] = {
    "eq": RawRule.eq_rule,
    "neq": RawRule.neq_rule,
    "lt": RawRule.lt_rule,
    "le": RawRule.le_rule,
    "gt": RawRule.gt_rule,
    "ge": RawRule.ge_rule,
    "plus": RawRule.plus_rule,
    "div": RawRule.div_rule,
}


@dataclass(frozen=True)
class _TempVar:
    name: str
    interval: str
    id: int


_NO_RESULT = _TempVar("", "", -1)


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a < 0) == (b < 0) else -quotient


def _result_interval(
    op: str, first: tuple[int, int], second: tuple[int, int]
) -> tuple[int, int]:
    (lo1, hi1), (lo2, hi2) = first, second
    if op == "add":
        return lo1 + lo2, hi1 + hi2
    if op == "sub":
        return lo1 - hi2, hi1 - lo2
    if op == "mul":
        products = (lo1 * lo2, lo1 * hi2, hi1 * lo2, hi1 * hi2)
        return min(products), max(products)
    if lo2 <= 0 <= hi2:
        return _INT_MIN, _INT_MAX
    quotients = (
        _trunc_div(lo1, lo2),
        _trunc_div(lo1, hi2),
        _trunc_div(hi1, lo2),
        _trunc_div(hi1, hi2),
    )
    return min(quotients), max(quotients)


class IntensionRule(Rule):
    """Posts the operator constraints of an expression tree and declares temporaries."""

    def __init__(self, tree: Tree, callbacks: Any) -> None:
        super().__init__("intension", callbacks)
        self.tree = tree
        self._translate(tree.root)

    def to_chr(self) -> str:
        return Rule.to_chr(self)

    def finalize(self) -> None:
        """Register the propagation rule of every built-in operator used."""
        offset = len(prefix_op())
        for pred in list(self.tail):
            make_rule = _BUILTIN_RULES.get(pred.name[offset:])
            if make_rule is None:
                continue
            rule = make_rule()
            if not self.callback.has_rule(rule.to_string()):
                self.callback.add_rule(rule)
                self.callback.add_constraint(
                    replace(pred, types=list(pred.types), elements=list(pred.elements))
                )

    def _translate(self, node: Node) -> _TempVar:
        callbacks = self.callback
        if isinstance(node, NodeVariable):
            name = "".join(node.var.split())
            try:
                var_id = callbacks.name_id_map[name]
            except KeyError:
                raise KeyError(f"unknown variable {name!r}") from None
            return _TempVar(f"X[{var_id}]", f"Interval_{var_id}", var_id)

        if isinstance(node, NodeConstant):
            name = f"C{node.val}"
            callbacks.build_cst_integer(name, node.val)
            const_id = callbacks.name_id_map[name]
            return _TempVar(f"X[{const_id}]", f"Interval_{const_id}", const_id)

        if isinstance(node, NodeOperator):
            args = [self._translate(child) for child in node.parameters]
            if node.op in _COMPARISONS or node.op in _ARITHMETIC:
                if len(args) < 2:
                    raise ValueError(f"operator {node.op!r} needs two operands")
                first, second = args[0], args[1]
            if node.op in _COMPARISONS:
                pred = Predicate.csp_op(node.op)
                pred.elements = [str(first.id), first.name, str(second.id), second.name]
                self._post(pred)
                return _NO_RESULT
            if node.op in _ARITHMETIC:
                tmp_id = callbacks.global_id
                xname = f"X[{tmp_id}]"
                low, high = _result_interval(
                    node.op, self._bounds(first), self._bounds(second)
                )
                callbacks.build_tmp_variable_integer(xname, low, high)
                pred = Predicate.csp_op("plus" if node.op == "add" else node.op)
                pred.elements = [
                    str(first.id), first.name,
                    str(second.id), second.name,
                    str(tmp_id), xname,
                ]
                self._post(pred)
                return _TempVar(xname, f"IntervalTmp_{tmp_id}", tmp_id)

        return _NO_RESULT

    def _post(self, pred: Predicate) -> None:
        self.add_tail(pred)
        self.callback.builder.add_predicate_call_to_space(pred.to_string())

    def _bounds(self, arg: _TempVar) -> tuple[int, int]:
        if arg.id >= 0:
            return self._interval(arg.id)
        value = int(arg.name)
        return value, value

    def _interval(self, var_id: int) -> tuple[int, int]:
        for decl in self.callback.vars:
            if decl.id == var_id:
                return decl.min, decl.max
        raise KeyError(f"no interval for id {var_id}")