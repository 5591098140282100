"""The instantiation constraint: fixing variables to given values."""

from __future__ import annotations

from typing import Any, ClassVar, Sequence

from .model import XVariable
from .predicate import Predicate
from .rule import RawRule, Rule


class InstantiationRule(Rule):
    """Records ``set_eq`` instantiations for each variable and value pair."""

    eq_rules_defined: ClassVar[bool] = False

    def __init__(
        self, variables: Sequence[XVariable], values: Sequence[int], callbacks: Any
    ) -> None:
        super().__init__("", callbacks)
        self.variables = list(variables)
        self.values = list(values)
        self._post()

    def _post(self) -> None:
        if len(self.variables) != len(self.values):
            raise ValueError(
                f"{len(self.variables)} variables but {len(self.values)} values"
            )
        name_id_map = self.callback.name_id_map
        instantiations: dict[int, int] = {}
        for var, value in zip(self.variables, self.values):
            try:
                instantiations[name_id_map[var.id]] = value
            except KeyError:
                raise KeyError(f"unknown variable {var.id!r}") from None
        builder = self.callback.builder
        if builder is not None:
            builder.add_instantiations(instantiations)

    def to_chr(self) -> str:
        return ""

    def finalize(self) -> None:
        """Declare the equality constraint and its rule the first time."""
        if InstantiationRule.eq_rules_defined:
            return
        self.callback.add_constraint(Predicate.csp_op("eq"))
        self.callback.add_rule(RawRule.eq_rule())
        InstantiationRule.eq_rules_defined = True