import pytest

from xcspchr.builder import CHRStructBuilder
from xcspchr.factory import RuleFactory
from xcspchr.model import OrderType, VarDecl, XCondition, XVariable, parse_expression
from xcspchr.rule import RawRule, set_prefix_op
from xcspchr.rule_alldiff import AllDiffRule
from xcspchr.rule_instantiation import InstantiationRule
from xcspchr.rule_intension import IntensionRule
from xcspchr.rule_linear import CoeffType, LinearRule


class _Callbacks:
    def __init__(self):
        self.builder = CHRStructBuilder()
        self.name_id_map = {"a": 0, "b": 1}
        self.vars = {VarDecl(0, "a", 0, 4), VarDecl(1, "b", 0, 4)}
        self.builder.global_id_val.value = 2

    @property
    def global_id(self):
        return self.builder.global_id

    def build_tmp_variable_integer(self, name, low, high):
        self.vars.add(VarDecl(self.global_id, name, low, high))
        self.name_id_map.setdefault(name, self.global_id)
        self.builder.global_id_val.increment()


@pytest.fixture(autouse=True)
def _prefix():
    set_prefix_op("CspOp")
    yield
    set_prefix_op("")


@pytest.fixture
def callbacks():
    return _Callbacks()


def test_raw_rule_keeps_text():
    rule = RuleFactory.create_raw_rule("a ==> b;;")
    assert isinstance(rule, RawRule)
    assert rule.to_string() == "a ==> b;;"


def test_intension_rule(callbacks):
    rule = RuleFactory().create_intension_rule(parse_expression("lt(a,b)"), callbacks)
    assert isinstance(rule, IntensionRule)
    assert rule.tail[0].elements == ["0", "X[0]", "1", "X[1]"]


def test_alldiff_rule(callbacks):
    rule = RuleFactory().create_alldiff_rule("c", [XVariable("a"), XVariable("b")], callbacks)
    assert isinstance(rule, AllDiffRule)
    assert rule.constraint_id == "c"
    assert callbacks.builder.build_call.startswith("alldiff_post(*space, {X[0], X[1]}")


def test_instantiation_rule(callbacks):
    rule = RuleFactory().create_instantiation([XVariable("b")], [2], callbacks)
    assert isinstance(rule, InstantiationRule)
    assert callbacks.builder.build_instantiation.startswith("set_eq(Dom[1], 2);")


def test_linear_rule_with_and_without_coefficients(callbacks):
    factory = RuleFactory()
    cond = XCondition(OrderType.EQ, 4)
    plain = factory.create_linear([XVariable("a"), XVariable("b")], cond, callbacks)
    weighted = factory.create_linear([XVariable("a")], cond, callbacks, [3])
    assert isinstance(plain, LinearRule)
    assert plain.coeff_type is CoeffType.NONE
    assert weighted.coeff_type is CoeffType.CONST_INT
    assert callbacks.builder.build_call.count("linear_post(") == 2