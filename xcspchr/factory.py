"""Construction of the rule objects for each kind of constraint."""

from __future__ import annotations

from typing import Any, Sequence

from .model import Tree, XCondition, XVariable
from .rule import RawRule, Rule
from .rule_alldiff import AllDiffRule
from .rule_instantiation import InstantiationRule
from .rule_intension import IntensionRule
from .rule_linear import LinearRule


class RuleFactory:
    """Creates rules bound to a callbacks object."""

    @staticmethod
    def create_raw_rule(content: str) -> Rule:
        return RawRule(content)

    def create_intension_rule(self, tree: Tree, callbacks: Any) -> Rule:
        return IntensionRule(tree, callbacks)

    def create_alldiff_rule(
        self, constraint_id: str, variables: Sequence[XVariable], callbacks: Any
    ) -> Rule:
        return AllDiffRule(constraint_id, variables, callbacks)

    def create_instantiation(
        self, variables: Sequence[XVariable], values: Sequence[int], callbacks: Any
    ) -> Rule:
        return InstantiationRule(variables, values, callbacks)

    def create_linear(
        self,
        variables: Sequence[XVariable],
        condition: XCondition,
        callbacks: Any,
        coeffs: Sequence[int] | Sequence[XVariable] | None = None,
    ) -> Rule:
        return LinearRule(variables, condition, callbacks, coeffs)