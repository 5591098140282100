"""Instance callbacks that collect variables and constraints into a CHR program."""

from __future__ import annotations

import sys
from typing import Any, Iterable, Mapping, Sequence, TextIO

from .builder import CHRStructBuilder
from .factory import RuleFactory
from .model import IdCounter, Tree, VarDecl, XCondition, XVariable
from .predicate import Predicate
from .rule import RawRule, Rule, enable_minimal_mode, set_prefix_op

OPERATOR_PREFIX = "CspOp"


def _report(message: str, end: str = "\n") -> None:
    print(message, end=end, file=sys.stdout)


class CHRCallbacks:
    """Receives the parts of an instance and turns them into CHR rules and code."""

    def __init__(
        self,
        builder: CHRStructBuilder | None = None,
        out: TextIO | None = None,
        name: str = "defaultName",
        minimal_mode: bool = False,
        selected_rules: Iterable[str] | None = None,
    ) -> None:
        self.builder = builder
        self.out = out if out is not None else sys.stdout
        self.chrname = name
        self.minimal_mode = minimal_mode
        self.selected_rules: list[str] = list(selected_rules or [])
        self.constraints: list[Predicate] = []
        self.rules: list[Rule] = []
        self.id_name_map: dict[int, str] = {}
        self.name_id_map: dict[str, int] = {}
        self.global_id_val = builder.global_id_val if builder is not None else IdCounter()
        self.var_declaration_rule_added = False
        self.init_predicates: list[Predicate] = []
        self.vars: set[VarDecl] = set()
        self.unsupported: list[tuple[str, str]] = []
        self.factory = RuleFactory()
        set_prefix_op(OPERATOR_PREFIX)
        if minimal_mode:
            enable_minimal_mode()

    # Configuration

    def set_minimal_mode(self) -> None:
        self.minimal_mode = True

    def only_selected_rules(self, rules: Iterable[str]) -> None:
        """Restrict translation to the named kinds of constraints."""
        self.selected_rules = list(rules)

    def is_rule_selected(self, rule_name: str) -> bool:
        """True when no selection was made or the name is among those selected."""
        return not self.selected_rules or rule_name in self.selected_rules

    # Instance lifecycle

    def begin_instance(self, instance_type: Any) -> None:
        _report("Début de l'instance")

    def end_instance(self) -> None:
        _report("Fin de l'instance.")
        self.close()

    def close(self) -> None:
        """Add labelling and write the CHR block or the whole program to ``out``."""
        self.add_constraint(Predicate.labelling())
        self.rules.append(RawRule.labelling_rules())

        declarations = ", ".join(pred.to_string_type() for pred in self.constraints)
        chr_text = f'<CHR name="{self.chrname}">\n<chr_constraint> {declarations}\n'
        chr_text += "".join(
            rule.to_string() + "\n" for rule in self.rules if isinstance(rule, RawRule)
        )
        chr_text += "</CHR>\n"

        if self.builder is None:
            self.out.write(chr_text)
            return

        self.builder.set_chr_block(chr_text)
        self.builder.add_initialisation_block(self.global_id)
        instantiations: dict[int, int] = {}
        for pred in self.init_predicates:
            if pred.name == "set_eq" and len(pred.elements) == 2:
                var, value = pred.elements
                if var in self.name_id_map:
                    instantiations[self.name_id_map[var]] = int(value)
        self.builder.add_instantiations(instantiations)
        self.builder.build_file()
        self.builder.chr_code.generate_full_code(self.out)

    # Variables

    def build_variable_integer(self, name: str, min_value: int, max_value: int) -> None:
        """Declare a decision variable with an interval domain."""
        _report(f"Variable entière : {name} avec domaine [{min_value}, {max_value}]")
        if not self.var_declaration_rule_added:
            self.add_domain_propagation_rules()
            self.add_constraint(Predicate.var_int_dec())
            self.add_constraint(Predicate.var_int())
            self.add_constraint(Predicate.tmp_int())
            self.rules.append(RawRule.declaration_rules())
            self.var_declaration_rule_added = True
        self._declare(name, min_value, max_value)
        if self.builder is not None:
            self.builder.add_initialisation_var(name, min_value, max_value)
        self.inc_global_id()

    def build_variable_integer_values(self, name: str, values: Sequence[int]) -> None:
        """Variables with an enumerated domain are not translated; they are recorded."""
        _report(f"Variable entière : {name} avec valeurs NI", end="")
        self.unsupported.append(("variable_values", name))

    def build_tmp_variable_integer(
        self, name: str, min_value: int, max_value: int
    ) -> None:
        """Declare an auxiliary variable with an interval domain."""
        self._declare(name, min_value, max_value)
        if self.builder is not None:
            self.builder.add_initialisation_tmp_var(name, min_value, max_value)
        self.inc_global_id()

    def build_cst_integer(self, name: str, value: int) -> None:
        """Declare a constant as a variable with a singleton domain."""
        self._declare(name, value, value)
        if self.builder is not None:
            self.builder.add_initialisation_tmp_var(name, value, value)
        self.inc_global_id()

    def _declare(self, name: str, min_value: int, max_value: int) -> None:
        self.vars.add(VarDecl(self.global_id, name, min_value, max_value))
        self.add_id_name_pair(self.global_id, name)

    # Constraints

    def _install(self, rule: Rule) -> None:
        self.rules.append(rule)
        rule.finalize()

    def build_constraint_intension(self, constraint_id: str, tree: Tree) -> None:
        if self.is_rule_selected("intension"):
            _report("Intension (Tree)")
            self._install(self.factory.create_intension_rule(tree, self))

    def build_constraint_intension_text(self, constraint_id: str, expr: str) -> None:
        _report("Intension (NI)")
        self.unsupported.append(("intension_text", constraint_id))

    def build_constraint_alldifferent(
        self, constraint_id: str, variables: Sequence[XVariable]
    ) -> None:
        if self.is_rule_selected("alldiff"):
            _report("AlldifferentRule")
            self._install(self.factory.create_alldiff_rule(constraint_id, variables, self))

    def build_constraint_alldifferent_trees(
        self, constraint_id: str, trees: Sequence[Tree]
    ) -> None:
        _report("AllDifferent (expressions) (NI) ")
        self.unsupported.append(("alldiff_trees", constraint_id))

    def build_constraint_alldifferent_except(
        self, constraint_id: str, variables: Sequence[XVariable], excepted: Sequence[int]
    ) -> None:
        _report("AllDifferent (avec exceptions) (NI) ")
        self.unsupported.append(("alldiff_except", constraint_id))

    def build_constraint_alldifferent_list(
        self, constraint_id: str, lists: Sequence[Sequence[XVariable]]
    ) -> None:
        _report("AllDifferent (listes) (NI)")
        self.unsupported.append(("alldiff_list", constraint_id))

    def build_constraint_alldifferent_matrix(
        self, constraint_id: str, matrix: Sequence[Sequence[XVariable]]
    ) -> None:
        _report("AllDifferent (matrice) (NI)")
        self.unsupported.append(("alldiff_matrix", constraint_id))

    def build_constraint_instantiation(
        self, constraint_id: str, variables: Sequence[XVariable], values: Sequence[int]
    ) -> None:
        if self.is_rule_selected("instantiation"):
            _report("InstantiationRule")
            self._install(self.factory.create_instantiation(variables, values, self))

    def build_constraint_sum(
        self,
        constraint_id: str,
        variables: Sequence[XVariable],
        condition: XCondition,
        coeffs: Sequence[int] | Sequence[XVariable] | None = None,
    ) -> None:
        """Post a (possibly weighted) sum constraint."""
        if not self.is_rule_selected("linear"):
            return
        if coeffs is None:
            _report("LinearRule")
        elif any(isinstance(coeff, XVariable) for coeff in coeffs):
            _report("LinearRule_coeffs_var")
        else:
            _report("LinearRule_coeffs")
        self._install(self.factory.create_linear(variables, condition, self, coeffs))

    # Identifiers

    @property
    def global_id(self) -> int:
        return self.global_id_val.value

    def add_id_name_pair(self, var_id: int, name: str) -> bool:
        """Record a two-way id/name link; False if either side is already taken."""
        if var_id in self.id_name_map or name in self.name_id_map:
            return False
        self.id_name_map[var_id] = name
        self.name_id_map[name] = var_id
        return True

    def name_by_id(self, var_id: int) -> str:
        return self.id_name_map[var_id]

    def id_by_name(self, name: str) -> int:
        return self.name_id_map[name]

    def inc_global_id(self) -> None:
        self.global_id_val.increment()

    def next_id(self) -> int:
        """Advance the global id and return it."""
        return self.global_id_val.increment()

    # Rule tools

    def add_constraint(self, predicate: Predicate) -> bool:
        """Declare a CHR constraint once; False if an equal one exists."""
        if predicate in self.constraints:
            return False
        self.constraints.append(predicate)
        return True

    def add_domain_propagation_rules(self) -> None:
        self.rules.append(RawRule.domain_propagation_rules())

    def add_rule(self, rule: Rule) -> None:
        self.rules.append(rule)

    def has_rule(self, rule_text: str) -> bool:
        return any(rule.to_string() == rule_text for rule in self.rules)

    def add_to_init(self, predicate: Predicate) -> None:
        self.init_predicates.append(predicate)

    @property
    def instantiation_map(self) -> Mapping[str, int]:
        """Names fixed by ``set_eq`` init predicates."""
        return {
            pred.elements[0]: int(pred.elements[1])
            for pred in self.init_predicates
            if pred.name == "set_eq" and len(pred.elements) == 2
        }