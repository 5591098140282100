"""The all-different constraint, posted as pairwise disequalities."""

from __future__ import annotations

from typing import Any, ClassVar, Sequence

from .model import XVariable
from .predicate import Predicate
from .rule import RawRule, Rule


class AllDiffRule(Rule):
    """Posts an ``alldiff_post`` call over the known variables of the list."""

    neq_rules_defined: ClassVar[bool] = False

    def __init__(
        self, constraint_id: str, variables: Sequence[XVariable], callbacks: Any
    ) -> None:
        super().__init__("", callbacks)
        self.constraint_id = constraint_id
        self.variables = list(variables)
        self._post()

    def _post(self) -> None:
        name_id_map = self.callback.name_id_map
        ids = [name_id_map[var.id] for var in self.variables if var.id in name_id_map]
        builder = self.callback.builder
        if ids and builder is not None:
            logical = ", ".join(f"X[{var_id}]" for var_id in ids)
            id_list = ", ".join(str(var_id) for var_id in ids)
            builder.add_predicate_call_to_main(
                f"alldiff_post(*space, {{{logical}}}, {{{id_list}}})"
            )

    def to_chr(self) -> str:
        return ""

    def finalize(self) -> None:
        """Declare the disequality constraint and its rules the first time."""
        if AllDiffRule.neq_rules_defined:
            return
        self.callback.add_constraint(Predicate.csp_op("neq"))
        self.callback.add_rule(RawRule.neq_rule())
        AllDiffRule.neq_rules_defined = True
        self.callback.builder.add_alldifferent_functions()