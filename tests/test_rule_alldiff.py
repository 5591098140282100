import pytest

from xcspchr.builder import CHRStructBuilder
from xcspchr.model import XVariable
from xcspchr.predicate import Predicate
from xcspchr.rule import RawRule, set_prefix_op
from xcspchr.rule_alldiff import AllDiffRule


class _Callbacks:
    def __init__(self, builder=None):
        self.builder = builder
        self.name_id_map = {"a": 0, "b": 1, "c": 2}
        self.rules = []
        self.constraints = []

    def add_rule(self, rule):
        self.rules.append(rule)

    def add_constraint(self, predicate):
        self.constraints.append(predicate)


@pytest.fixture(autouse=True)
def _prefix():
    set_prefix_op("CspOp")
    yield
    set_prefix_op("")


def _vars(*names):
    return [XVariable(name) for name in names]


def test_posts_alldiff_call():
    cb = _Callbacks(CHRStructBuilder())
    AllDiffRule("c1", _vars("a", "b", "c"), cb)
    assert cb.builder.build_call == "alldiff_post(*space, {X[0], X[1], X[2]}, {0, 1, 2});\n"


def test_unknown_variables_are_skipped():
    cb = _Callbacks(CHRStructBuilder())
    AllDiffRule("c1", _vars("a", "zz", "c"), cb)
    assert "X[2]" in cb.builder.build_call
    assert "zz" not in cb.builder.build_call
    assert cb.builder.build_call.count("X[") == 2


def test_no_known_variable_posts_nothing():
    cb = _Callbacks(CHRStructBuilder())
    AllDiffRule("c1", _vars("p", "q"), cb)
    assert cb.builder.build_call == ""


def test_to_chr_is_empty():
    cb = _Callbacks(CHRStructBuilder())
    assert AllDiffRule("c1", _vars("a", "b"), cb).to_chr() == ""


def test_finalize_registers_neq_at_most_once():
    cb = _Callbacks(CHRStructBuilder())
    fresh = not AllDiffRule.neq_rules_defined
    AllDiffRule("c1", _vars("a", "b"), cb).finalize()
    AllDiffRule("c2", _vars("b", "c"), cb).finalize()
    expected_rules = [RawRule.neq_rule().to_string()] if fresh else []
    expected_constraints = [Predicate.csp_op("neq")] if fresh else []
    assert [rule.to_string() for rule in cb.rules] == expected_rules
    assert cb.constraints == expected_constraints
    assert cb.builder.chr_code.functions.count("bool alldiff_post(") == (1 if fresh else 0)
    assert AllDiffRule.neq_rules_defined is True