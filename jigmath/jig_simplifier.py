"""
Constant folding for jigmath trees.

Subtrees whose operands are all literals are replaced by one NumberLiteral.
The literal keeps the source text and whitespace of the subtree it replaces,
so `original_text()` of a simplified tree is the text that was parsed.
"""
from typing import Union

from jigmath.jig_datatypes import (
    Node, NumberLiteral, Group, FunctionCall, UnaryOp, BinaryOp, Equation, is_number,
)
from jigmath.jig_evaluator import evaluate
from jigmath.jig_functions import VOLATILE_FUNCTIONS


def _with_spaces(new: Node, old: Node) -> Node:
    new.space_before = old.space_before
    new.space_after = old.space_after
    return new


def _fold_to_literal(node: Node) -> Node:
    """Replaces `node` by a literal of its value, or returns it when not numeric."""
    value = evaluate(node)
    if not is_number(value):
        return node
    return _with_spaces(NumberLiteral(value, node.core_text()), node)


def _all_literals(nodes) -> bool:
    return all(isinstance(n, NumberLiteral) for n in nodes)


def simplify(node: Union[Node, str]) -> Union[Node, str]:
    match node:
        case BinaryOp():
            left = simplify(node.left)
            right = simplify(node.right)
            new = _with_spaces(BinaryOp(left, node.operator, right, node.operation), node)
            return _fold_to_literal(new) if _all_literals((left, right)) else new
        case UnaryOp():
            operand = simplify(node.operand)
            new = _with_spaces(UnaryOp(node.operator, operand, node.operation), node)
            return _fold_to_literal(new) if _all_literals((operand,)) else new
        case FunctionCall():
            group = _simplify_params(node.group)
            new = _with_spaces(FunctionCall(node.identifier, group, node.function), node)
            if node.function is None or node.function in VOLATILE_FUNCTIONS:
                return new
            return _fold_to_literal(new) if _all_literals(group.params) else new
        case Group():
            group = _simplify_params(node)
            if len(group.params) == 1 and isinstance(group.params[0], NumberLiteral):
                return _fold_to_literal(group)
            return group
        case Equation():
            sentences = [simplify(s) for s in node.sentences]
            if len(sentences) == 1 and isinstance(sentences[0], NumberLiteral):
                return sentences[0]
            return _with_spaces(Equation(sentences, node.offset), node)
        case _:
            # Leaves, tokens and raw text are already as simple as they get.
            return node


def _simplify_params(group: Group) -> Group:
    params = [simplify(p) for p in group.params]
    return _with_spaces(Group(group.begin, params, group.separators, group.end), group)
