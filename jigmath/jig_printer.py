"""
A pretty-printer for jigmath trees.
"""
from jigmath.jig_datatypes import (
    NumberLiteral, Identifier, Variable, Token, Operator, Delimiter, Separator,
    Group, FunctionCall, UnaryOp, BinaryOp, Equation, format_number,
)


class Printer:
    """Formats jigmath nodes as canonical, fully parenthesized formula text."""

    def __init__(self, indent_width=2):
        self._indent_char = " " * indent_width
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, str):
            return self._pformat_str
        # Default to Python's repr for unknown types
        return lambda o, l: repr(o)

    def _create_handlers(self):
        return {
            str: self._pformat_str,
            int: self._pformat_number,
            float: self._pformat_number,
            NumberLiteral: self._pformat_number_literal,
            Identifier: self._pformat_name,
            Variable: self._pformat_name,
            Operator: self._pformat_token,
            Delimiter: self._pformat_token,
            Separator: self._pformat_token,
            Group: self._pformat_group,
            FunctionCall: self._pformat_function_call,
            UnaryOp: self._pformat_unary,
            BinaryOp: self._pformat_binary,
            Equation: self._pformat_equation,
        }

    def _pformat_str(self, obj, level):
        return str(obj)

    def _pformat_number(self, obj, level):
        return format_number(obj)

    def _pformat_number_literal(self, obj, level):
        return format_number(obj.number)

    def _pformat_name(self, obj, level):
        return obj.name

    def _pformat_token(self, obj, level):
        return obj.symbol

    def _pformat_group(self, obj, level):
        params = ",".join(self.pformat(p, level) for p in obj.params)
        return f"{obj.begin.symbol}{params}{obj.end.symbol}"

    def _pformat_function_call(self, obj, level):
        return f"{obj.name}{self._pformat_group(obj.group, level)}"

    def _pformat_unary(self, obj, level):
        return f"({obj.operator.symbol}{self.pformat(obj.operand, level)})"

    def _pformat_binary(self, obj, level):
        left = self.pformat(obj.left, level)
        right = self.pformat(obj.right, level)
        return f"({left}{obj.operator.symbol}{right})"

    def _pformat_equation(self, obj, level):
        return "".join(self.pformat(s, level) for s in obj.sentences)

    # --- Tree dump ---

    def pformat_tree(self, node, level=0):
        """Indented outline of a tree: one line per node with kind and source text."""
        indent = self._indent_char * level
        if isinstance(node, str):
            return f"{indent}text {node!r}"
        lines = [f"{indent}{node.kind.value} {node.original_text()!r}"]
        for part in node.parts():
            if isinstance(part, Token):
                continue
            lines.append(self.pformat_tree(part, level + 1))
        return "\n".join(lines)
