import math

import pytest
from jigmath.jig_datatypes import Partial, Identifier, Operator, NumberLiteral
from jigmath.jig_evaluator import evaluate, render
from jigmath.jig_runtime import parse

# --- Numeric results ---

def test_variables_read_their_slot():
    system = parse("3x")
    system.set_variable("x", 4)
    assert system.get_value() == 12

def test_comparisons_return_integers_not_booleans():
    value = parse("1<2").get_value()
    assert value == 1
    assert type(value) is int

def test_function_names_are_case_insensitive():
    assert parse("SIN(0)").get_value() == 0
    assert parse("Sqrt(16)").get_value() == 4

def test_zero_argument_function():
    assert parse("pi()").get_value() == pytest.approx(math.pi)

def test_group_with_one_parameter_is_its_value():
    assert parse("(((5)))").get_value() == 5

# --- Symbolic results ---

SYMBOLIC_CASES = [
    ("unbound_variable", "x+1", "(x+1)"),
    ("unbound_in_call", "sin(y)", "sin(y)"),
    ("unbound_unary", "-x", "(-x)"),
    ("division_by_zero", "1/0", "(1/0)"),
    ("domain_error", "sqrt(-1)", "sqrt(-1)"),
    ("overflow", "10^400", "(10^400)"),
    ("overflowing_literal", "1e400", "1e400"),
    ("overflowing_literal_operand", "1e400*0", "(1e400*0)"),
    ("unknown_function", "foo(2)", "foo(2)"),
    ("wrong_arity", "sin(1,2)", "sin(1,2)"),
    ("empty_group", "()", "()"),
    ("multi_parameter_group", "(1,2)", "(1,2)"),
    ("leftovers", "x+", "x+"),
    ("partial_substitution", "2*x+1", "((2*x)+1)"),
]

@pytest.mark.parametrize("case_id, text, expected", SYMBOLIC_CASES, ids=[c[0] for c in SYMBOLIC_CASES])
def test_symbolic_results(case_id, text, expected):
    value = parse(text).get_value()
    assert isinstance(value, Partial)
    assert value == expected

def test_symbolic_result_substitutes_bound_operands():
    system = parse("x/y")
    system.set_variable("x", 3)
    assert system.get_value() == "(3/y)"

def test_rebinding_reevaluates_without_reparse():
    system = parse("x*x + x")
    root = system.root
    for x in (1, 2, 3):
        system.set_variable("x", x)
        assert system.get_value() == x * x + x
    assert system.root is root

def test_non_finite_binding_is_unbound():
    system = parse("x+1")
    system.set_variable("x", math.nan)
    assert system.get_value() == "(x+1)"

# --- Direct dispatch ---

def test_evaluate_raw_identifier_and_token():
    assert evaluate(Identifier("k")) == Partial("k")
    assert evaluate(Operator(" * ")) == Partial("*")

def test_evaluate_rejects_foreign_objects():
    with pytest.raises(TypeError):
        evaluate(object())

def test_render():
    assert render(4.0) == "4"
    assert render(Partial("(x+1)")) == "(x+1)"
    assert render(NumberLiteral(2.5).number) == "2.5"
