"""
Evaluates jigmath trees.

`evaluate` never raises for unbound names or failing arithmetic: a node that
cannot be reduced to a finite number evaluates to a `Partial` holding its
symbolic rendering with the operands' current values substituted.
"""
from typing import Callable, List, Optional, Union

from jigmath.jig_datatypes import (
    Node, NumberLiteral, Identifier, Variable, Token, Group, FunctionCall, UnaryOp, BinaryOp,
    Equation, Partial, is_number, format_number,
)

Number = Union[int, float]
Result = Union[int, float, Partial]


def render(value: Result) -> str:
    if isinstance(value, str):
        return str(value)
    return format_number(value)


def _apply(operation: Callable, *args: Number) -> Optional[Number]:
    """Calls an operation, returning None when it has no finite numeric result."""
    try:
        result = operation(*args)
    except (ArithmeticError, ValueError, TypeError):
        return None
    if isinstance(result, bool):
        result = int(result)
    return result if is_number(result) else None


def _evaluate_sentences(sentences: List[Union[Node, str]]) -> Result:
    if all(isinstance(s, str) and not s.strip() for s in sentences):
        return 0
    if len(sentences) == 1:
        sentence = sentences[0]
        return Partial(sentence) if isinstance(sentence, str) else evaluate(sentence)
    # Leftovers of a partially typed formula: best effort concatenation.
    return Partial("".join(s if isinstance(s, str) else render(evaluate(s)) for s in sentences))


def evaluate(node: Node) -> Result:
    match node:
        case NumberLiteral():
            # A literal that overflowed to infinity stays symbolic.
            return node.number if is_number(node.number) else Partial(node.core_text())
        case Variable():
            value = node.slot.value
            return value if is_number(value) else Partial(node.name)
        case BinaryOp():
            a = evaluate(node.left)
            b = evaluate(node.right)
            if is_number(a) and is_number(b):
                result = _apply(node.operation, a, b)
                if result is not None:
                    return result
            return Partial(f"({render(a)}{node.operator.symbol}{render(b)})")
        case UnaryOp():
            v = evaluate(node.operand)
            if is_number(v):
                result = _apply(node.operation, v)
                if result is not None:
                    return result
            return Partial(f"({node.operator.symbol}{render(v)})")
        case FunctionCall():
            values = [evaluate(p) for p in node.args]
            if node.function is not None and all(is_number(v) for v in values):
                result = _apply(node.function, *values)
                if result is not None:
                    return result
            return Partial(f"{node.name}({','.join(render(v) for v in values)})")
        case Group():
            if len(node.params) == 1:
                return evaluate(node.params[0])
            return Partial(node.literal())
        case Equation():
            return _evaluate_sentences(node.sentences)
        case Identifier():
            return Partial(node.name)
        case Token():
            return Partial(node.symbol)
        case _:
            raise TypeError(f"Cannot evaluate {type(node).__name__}")
