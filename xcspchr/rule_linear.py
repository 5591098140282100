"""The linear sum constraint, posted as a chain of additions."""

from __future__ import annotations

import enum
from typing import Any, ClassVar, Sequence

from .model import OrderType, XCondition, XVariable
from .predicate import Predicate
from .rule import RawRule, Rule


class CoeffType(enum.Enum):
    """Kind of coefficients attached to a sum."""

    NONE = "none"
    CONST_INT = "const_int"
    VAR = "var"


class LinearRule(Rule):
    """Posts a ``linear_post`` call for sums compared with ``=``."""

    linear_rules_defined: ClassVar[bool] = False

    def __init__(
        self,
        variables: Sequence[XVariable],
        condition: XCondition,
        callbacks: Any,
        coeffs: Sequence[int] | Sequence[XVariable] | None = None,
    ) -> None:
        super().__init__("", callbacks)
        self.variables = list(variables)
        self.condition = condition
        if coeffs is None:
            self.coeff_type = CoeffType.NONE
            self.coeffs: list = []
        else:
            self.coeffs = list(coeffs)
            self.coeff_type = (
                CoeffType.VAR
                if any(isinstance(coeff, XVariable) for coeff in self.coeffs)
                else CoeffType.CONST_INT
            )
        self.coeff_list = ""
        self._posted = False
        self._post()

    def _post(self) -> None:
        if not self.variables:
            return
        name_id_map = self.callback.name_id_map
        ids: list[int] = []
        for var in self.variables:
            if var.id not in name_id_map:
                continue
            var_id = name_id_map[var.id]
            pred = Predicate.var_int()
            pred.elements = [f"X[{var_id}]", f"Interval_{var_id}"]
            self.add_head(pred)
            ids.append(var_id)

        if not ids or self.condition.op is not OrderType.EQ:
            return

        if self.coeff_type is CoeffType.CONST_INT:
            self.coeff_list = ", ".join(str(coeff) for coeff in self.coeffs)
        elif self.coeff_type is CoeffType.VAR:
            self.coeff_list = ", ".join(
                f"X[{name_id_map[coeff.id]}]"
                for coeff in self.coeffs
                if coeff.id in name_id_map
            )

        var_list = ", ".join(f"X[{var_id}]" for var_id in ids)
        id_list = ", ".join(str(var_id) for var_id in ids)
        self.callback.builder.add_predicate_call_to_main(
            f"linear_post(*space, {{{var_list}}}, {{{id_list}}}, {self.condition.val})"
        )
        self._posted = True

    def to_chr(self) -> str:
        return Rule.to_chr(self) if self._posted else ""

    def finalize(self) -> None:
        """Declare addition and equality with their rules the first time."""
        if LinearRule.linear_rules_defined:
            return
        self.callback.add_constraint(Predicate.csp_op("plus"))
        self.callback.add_constraint(Predicate.csp_op("eq"))
        self.callback.add_rule(RawRule.plus_rule())
        self.callback.add_rule(RawRule.eq_rule())
        self.callback.builder.add_linear_functions()
        LinearRule.linear_rules_defined = True