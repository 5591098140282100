import io

import pytest

from xcspchr.builder import CHRStructBuilder
from xcspchr.callbacks import CHRCallbacks
from xcspchr.model import OrderType, VarDecl, XCondition, XVariable, parse_expression
from xcspchr.predicate import Predicate
from xcspchr.rule import RawRule, Rule
from xcspchr.rule_alldiff import AllDiffRule
from xcspchr.rule_instantiation import InstantiationRule
from xcspchr.rule_intension import IntensionRule
from xcspchr.rule_linear import LinearRule


def _make(selected=None):
    builder = CHRStructBuilder("demo")
    out = io.StringIO()
    cb = CHRCallbacks(builder, out, "demo", False, selected)
    return cb, builder, out


def _with_vars(cb, *names):
    for name in names:
        cb.build_variable_integer(name, 0, 5)


def test_variables_get_sequential_ids():
    cb, builder, _ = _make()
    _with_vars(cb, "x", "y")
    assert cb.id_by_name("x") == 0
    assert cb.name_by_id(1) == "y"
    assert cb.global_id == 2
    assert builder.global_id == 2
    assert VarDecl(0, "x", 0, 5) in cb.vars


def test_declaration_rules_added_once():
    cb, _, _ = _make()
    cb.build_variable_integer("x", 0, 5)
    count = len(cb.rules)
    cb.build_variable_integer("y", 0, 5)
    assert len(cb.rules) == count
    assert cb.has_rule(RawRule.declaration_rules().to_string())
    assert cb.has_rule(RawRule.domain_propagation_rules().to_string())
    assert Predicate.var_int_dec() in cb.constraints


def test_add_constraint_deduplicates():
    cb, _, _ = _make()
    assert cb.add_constraint(Predicate.labelling()) is True
    assert cb.add_constraint(Predicate.labelling()) is False
    assert cb.constraints.count(Predicate.labelling()) == 1


def test_add_id_name_pair_rejects_duplicates():
    cb, _, _ = _make()
    assert cb.add_id_name_pair(7, "a") is True
    assert cb.add_id_name_pair(7, "b") is False
    assert cb.add_id_name_pair(8, "a") is False
    assert cb.name_by_id(7) == "a"


def test_unknown_lookup_raises():
    cb, _, _ = _make()
    with pytest.raises(KeyError):
        cb.name_by_id(42)
    with pytest.raises(KeyError):
        cb.id_by_name("nope")


def test_rule_selection():
    cb, _, _ = _make()
    assert cb.is_rule_selected("alldiff") is True
    cb.only_selected_rules(["linear"])
    assert cb.is_rule_selected("linear") is True
    assert cb.is_rule_selected("alldiff") is False


def test_unselected_constraint_is_skipped():
    cb, builder, _ = _make(["linear"])
    _with_vars(cb, "x", "y")
    count = len(cb.rules)
    cb.build_constraint_alldifferent("c", [XVariable("x"), XVariable("y")])
    assert len(cb.rules) == count
    assert builder.build_call == ""


def test_alldifferent_posts_call_and_rules():
    cb, builder, _ = _make()
    _with_vars(cb, "x", "y")
    fresh = not AllDiffRule.neq_rules_defined
    cb.build_constraint_alldifferent("c", [XVariable("x"), XVariable("y")])
    assert builder.build_call == "alldiff_post(*space, {X[0], X[1]}, {0, 1});\n"
    assert cb.has_rule(RawRule.neq_rule().to_string()) is fresh
    assert (Predicate.csp_op("neq") in cb.constraints) is fresh
    assert AllDiffRule.neq_rules_defined is True


def test_intension_comparison_registers_rule():
    cb, builder, _ = _make()
    _with_vars(cb, "x", "y")
    cb.build_constraint_intension("c", parse_expression("lt(x,y)"))
    assert any(isinstance(rule, IntensionRule) for rule in cb.rules)
    assert cb.has_rule(RawRule.lt_rule().to_string())
    assert builder.build_call.startswith("space->CspOplt(")


def test_intension_arithmetic_creates_temporary():
    cb, _, _ = _make()
    _with_vars(cb, "x", "y", "z")
    cb.build_constraint_intension("c", parse_expression("eq(z,add(x,y))"))
    assert cb.id_by_name("X[3]") == 3
    assert cb.global_id == 4
    assert cb.has_rule(RawRule.plus_rule().to_string())
    assert cb.has_rule(RawRule.eq_rule().to_string())


def test_cst_integer_is_singleton():
    cb, _, _ = _make()
    cb.build_cst_integer("C5", 5)
    const_id = cb.id_by_name("C5")
    assert VarDecl(const_id, "C5", 5, 5) in cb.vars
    assert cb.global_id == const_id + 1


def test_sum_posts_linear_call():
    cb, builder, _ = _make()
    _with_vars(cb, "x", "y")
    fresh = not LinearRule.linear_rules_defined
    cb.build_constraint_sum("c", [XVariable("x"), XVariable("y")], XCondition(OrderType.EQ, 10))
    assert "linear_post(*space, {X[0], X[1]}, {0, 1}, 10);\n" in builder.build_call
    assert cb.has_rule(RawRule.plus_rule().to_string()) is fresh
    assert ("bool linear_post(" in builder.chr_code.functions) is fresh
    assert LinearRule.linear_rules_defined is True


def test_sum_with_other_operator_posts_nothing():
    cb, builder, _ = _make()
    _with_vars(cb, "x", "y")
    cb.build_constraint_sum(
        "c", [XVariable("x"), XVariable("y")], XCondition(OrderType.LE, 10), [1, 2]
    )
    assert builder.build_call == ""


def test_instantiation_records_values():
    cb, builder, _ = _make()
    _with_vars(cb, "x", "y")
    fresh = not InstantiationRule.eq_rules_defined
    cb.build_constraint_instantiation("c", [XVariable("y")], [4])
    assert "set_eq(Dom[1], 4);\n" in builder.build_instantiation
    assert cb.has_rule(RawRule.eq_rule().to_string()) is fresh
    assert InstantiationRule.eq_rules_defined is True


def test_next_id_advances():
    cb, _, _ = _make()
    before = cb.global_id
    assert cb.next_id() == before + 1
    assert cb.global_id == before + 1


def test_unsupported_constraints_are_recorded():
    cb, _, _ = _make()
    count = len(cb.rules)
    cb.build_constraint_alldifferent_except("c1", [XVariable("x")], [0])
    cb.build_constraint_intension_text("c2", "eq(x,y)")
    assert cb.unsupported == [("alldiff_except", "c1"), ("intension_text", "c2")]
    assert len(cb.rules) == count


def test_close_without_builder_writes_chr_block():
    out = io.StringIO()
    cb = CHRCallbacks(None, out, "demo")
    cb.build_variable_integer("x", 0, 3)
    cb.close()
    text = out.getvalue()
    assert text.startswith('<CHR name="demo">\n<chr_constraint> ')
    assert text.endswith("</CHR>\n")
    assert Predicate.labelling().to_string_type() in text
    assert RawRule.labelling_rules().to_string() in text


def test_close_with_builder_in_chr_only_mode():
    cb, builder, out = _make()
    _with_vars(cb, "x", "y")
    cb.close()
    assert out.getvalue() == builder.chr_code.chr_blocks + "\n"
    assert builder.build_init.startswith("chr::Logical_var<int> X[2];")


def test_close_applies_init_predicates():
    cb, builder, _ = _make()
    _with_vars(cb, "x")
    cb.add_to_init(Predicate("set_eq", elements=["x", "3"]))
    assert cb.instantiation_map == {"x": 3}
    cb.close()
    assert "set_eq(Dom[0], 3);\n" in builder.build_instantiation


def test_end_instance_reports_and_writes(capsys):
    cb, builder, out = _make()
    builder.enable_builder()
    _with_vars(cb, "x")
    cb.end_instance()
    assert "Fin de l'instance." in capsys.readouterr().out
    assert builder.chr_code.main_code in out.getvalue()
    assert "int main(" in out.getvalue()


def test_minimal_mode():
    cb = CHRCallbacks(None, io.StringIO(), "demo", True)
    assert Rule.minimal_mode is True
    other = CHRCallbacks(None, io.StringIO(), "demo")
    assert other.minimal_mode is False
    other.set_minimal_mode()
    assert other.minimal_mode is True
    assert cb.minimal_mode is True