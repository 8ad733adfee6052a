import pytest
from jigmath import jig_functions
from jigmath.jig_datatypes import NumberLiteral, FunctionCall, BinaryOp, Equation, Variable
from jigmath.jig_functions import register_custom_function, unregister_custom_function
from jigmath.jig_runtime import parse, get_system
from jigmath.jig_simplifier import simplify


def test_constant_formula_folds_to_one_literal():
    system = get_system("2*(3+4)")
    assert isinstance(system.root, NumberLiteral)
    assert system.get_value() == 14
    assert system.original_text() == "2*(3+4)"

def test_folded_literal_keeps_whitespace():
    system = get_system(" 1 + 2 ")
    assert isinstance(system.root, NumberLiteral)
    assert system.root.number == 3
    assert system.original_text() == " 1 + 2 "

def test_partial_fold_leaves_variables():
    system = parse("1+2+x").simplify()
    assert system.get_literal() == "(3+x)"
    assert system.original_text() == "1+2+x"
    system.set_variable("x", 1)
    assert system.get_value() == 4

def test_variable_subtrees_are_not_folded():
    system = get_system("x*2")
    (node,) = system.root.sentences
    assert isinstance(node, BinaryOp)
    assert isinstance(node.left, Variable)

def test_simplify_is_idempotent():
    system = parse("sin(0)*x + (1+1)").simplify()
    literal = system.get_literal()
    text = system.original_text()
    assert literal == "((0*x)+2)"
    system.simplify()
    assert system.get_literal() == literal
    assert system.original_text() == text == "sin(0)*x + (1+1)"

def test_simplify_preserves_value():
    formula = "x^2 - (3*4) + max(1, 2) * x"
    plain = parse(formula)
    folded = get_system(formula)
    for x in (-2, 0, 5):
        plain.set_variable("x", x)
        folded.set_variable("x", x)
        assert plain.get_value() == folded.get_value()

def test_simplify_returns_new_nodes():
    system = parse("1+2")
    (original,) = system.root.sentences
    result = simplify(system.root)
    assert isinstance(result, NumberLiteral)
    assert isinstance(original, BinaryOp)

def test_random_is_never_folded():
    system = get_system("random()+1")
    assert any(isinstance(n, FunctionCall) for n in system.walk())

def test_volatile_custom_function_is_kept():
    calls = []

    def tick():
        calls.append(1)
        return len(calls)

    register_custom_function("tick", tick, volatile=True)
    try:
        system = get_system("tick()")
        assert calls == []
        assert system.get_value() == 1
        assert system.get_value() == 2
    finally:
        unregister_custom_function("tick")
    assert tick not in jig_functions.VOLATILE_FUNCTIONS

def test_unknown_function_keeps_call_but_folds_arguments():
    system = get_system("foo(1+1)")
    (call,) = system.root.sentences
    assert isinstance(call, FunctionCall)
    assert isinstance(call.args[0], NumberLiteral)
    assert call.args[0].number == 2
    assert system.get_value() == "foo(2)"

def test_multi_parameter_group_is_kept():
    system = get_system("(1+1, 2)")
    assert isinstance(system.root, Equation)
    assert system.get_literal() == "(2,2)"

def test_failed_evaluation_is_not_folded():
    system = get_system("1/0")
    (node,) = system.root.sentences
    assert isinstance(node, BinaryOp)
    assert system.get_value() == "(1/0)"

def test_raw_text_passes_through():
    assert simplify("  ") == "  "
