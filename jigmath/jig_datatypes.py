"""
Defines the core data types of the jigmath expression engine.

This module provides the node classes the parser builds the formula tree
from, the shared variable slot, the symbolic `Partial` value, and the
structural `ParseError`.
"""

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional, Union


class NodeKind(Enum):
    NUMBER = "number"
    IDENTIFIER = "identifier"
    VARIABLE = "variable"
    GROUP = "group"
    FUNCTION = "function"
    UNARY = "unary"
    BINARY = "binary"
    OPERATOR = "operator"
    DELIMITER = "delimiter"
    SEPARATOR = "separator"
    EQUATION = "equation"


class Partial(str):
    """A symbolic, not-yet-numeric result (e.g. `(3+x)`).

    This is a distinct type from a raw string, signaling to callers that the
    formula could not be reduced to a number with the current bindings.
    """
    def __repr__(self) -> str:
        return f"Partial({str.__repr__(self)})"


def is_number(value: Any) -> bool:
    """True for finite ints and floats. Booleans are not numbers here."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def format_number(value: Union[int, float]) -> str:
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return str(value)


def text_of(sentence: Union['Node', str]) -> str:
    """Original source text of a sentence, whitespace included."""
    if isinstance(sentence, str):
        return sentence
    return sentence.original_text()


class ParseError(Exception):
    """A structural error that aborts the parse.

    Carries the offending node (or equation), the owning system, and a data
    dict with at least `sentence_index` and `char_offset` where known.
    """
    def __init__(self, message: str, node: Any = None, system: Any = None, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.node = node
        self.system = system
        self.data: Dict[str, Any] = dict(data or {})

    @property
    def position(self) -> Optional[int]:
        return self.data.get("char_offset")

    @property
    def sentence_index(self) -> Optional[int]:
        return self.data.get("sentence_index")


class Slot:
    """The mutable cell backing one variable name, shared by all its occurrences."""
    __slots__ = ("name", "value")

    def __init__(self, name: str, value: Optional[float] = None):
        self.name = name
        self.value = value

    def __repr__(self) -> str:
        return f"<Slot {self.name}={self.value!r}>"


# =================================================================
# Abstract Base Classes
# =================================================================

class Node(ABC):
    """Abstract base class for every element of a formula tree."""
    kind: NodeKind

    def __init__(self):
        self.space_before = ""
        self.space_after = ""

    @abstractmethod
    def core_text(self) -> str:
        """Source text of the node without its attached whitespace."""

    def parts(self) -> List[Union['Node', str]]:
        """Structural sub-items in source order. Leaves have none."""
        return []

    def children(self) -> List[Union['Node', str]]:
        """Sub-items for renderers, attached whitespace included as strings."""
        parts = self.parts()
        if not parts:
            return []
        out: List[Union[Node, str]] = []
        if self.space_before:
            out.append(self.space_before)
        out.extend(parts)
        if self.space_after:
            out.append(self.space_after)
        return out

    def original_text(self) -> str:
        return self.space_before + self.core_text() + self.space_after

    @property
    def value(self) -> Union[int, float, Partial]:
        from jigmath.jig_evaluator import evaluate
        return evaluate(self)

    def literal(self) -> str:
        from jigmath.jig_printer import Printer
        return Printer().pformat(self)

    def walk(self) -> Iterator['Node']:
        """Depth-first, pre-order iteration over this node and its descendants."""
        yield self
        for part in self.parts():
            if isinstance(part, Node):
                yield from part.walk()

    def leaves(self) -> List[Union['Node', str]]:
        """Flattened leaf items (tokens, leaves and whitespace strings)."""
        children = self.children()
        if not children:
            return [self]
        out: List[Union[Node, str]] = []
        for child in children:
            if isinstance(child, str):
                out.append(child)
            else:
                out.extend(child.leaves())
        return out


class Value(Node):
    """Base class for nodes that can stand as an operand."""


class Composite(Value):
    def core_text(self) -> str:
        return "".join(text_of(p) for p in self.parts())


# =================================================================
# Leaves
# =================================================================

class NumberLiteral(Value):
    """A decimal, hexadecimal or binary literal, or a folded constant."""
    kind = NodeKind.NUMBER

    def __init__(self, number: Union[int, float], text: Optional[str] = None):
        super().__init__()
        self.number = number
        self.text = format_number(number) if text is None else text

    @classmethod
    def from_decimal(cls, text: str) -> 'NumberLiteral':
        # Integers (no '.' or exponent) are kept exact.
        if text.isdigit():
            try:
                return cls(int(text), text)
            except ValueError:
                # Longer than the interpreter's int conversion limit.
                pass
        return cls(float(text), text)

    @classmethod
    def from_hex(cls, text: str) -> 'NumberLiteral':
        digits = text[1:] if text.startswith("#") else text[2:]
        return cls(int(digits, 16), text)

    @classmethod
    def from_binary(cls, text: str) -> 'NumberLiteral':
        return cls(int(text[2:], 2), text)

    def core_text(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"NumberLiteral<{self.number!r}>"


class Identifier(Node):
    """A raw name pending resolution into a Variable or a FunctionCall."""
    kind = NodeKind.IDENTIFIER

    def __init__(self, text: str):
        super().__init__()
        self.text = text

    @property
    def name(self) -> str:
        return self.text

    def core_text(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Identifier<{self.text!r}>"


class Variable(Value):
    """A resolved name reading its value from a shared slot."""
    kind = NodeKind.VARIABLE

    def __init__(self, identifier: Identifier, slot: Slot):
        super().__init__()
        self.text = identifier.text
        self.space_before = identifier.space_before
        self.space_after = identifier.space_after
        self.slot = slot

    @property
    def name(self) -> str:
        return self.slot.name

    def core_text(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"Variable<{self.name!r}>"


class Token(Node):
    """Structural token; carries source text only."""
    def __init__(self, text: str):
        super().__init__()
        self.text = text

    @property
    def symbol(self) -> str:
        return self.text.strip()

    def core_text(self) -> str:
        return self.text

    def __repr__(self) -> str:
        return f"{type(self).__name__}<{self.text!r}>"


class Operator(Token):
    kind = NodeKind.OPERATOR


class Delimiter(Token):
    kind = NodeKind.DELIMITER


class Separator(Token):
    kind = NodeKind.SEPARATOR


# =================================================================
# Composites
# =================================================================

class Equation(Node):
    """A sentence buffer: the root of a system, or one group parameter.

    `sentences` holds raw text fragments and typed nodes. Their concatenated
    source text is the equation's text at every parsing step.
    """
    kind = NodeKind.EQUATION

    def __init__(self, sentences: List[Union[Node, str]], offset: int = 0):
        super().__init__()
        self.sentences: List[Union[Node, str]] = list(sentences)
        # Absolute position of the first character in the parsed input.
        self.offset = offset

    def parts(self) -> List[Union[Node, str]]:
        return list(self.sentences)

    def children(self) -> List[Union[Node, str]]:
        return self.parts()

    def core_text(self) -> str:
        return "".join(text_of(s) for s in self.sentences)

    def char_offset(self, index: int, within: int = 0) -> int:
        """Absolute character offset of `within` chars into sentence `index`."""
        return self.offset + sum(len(text_of(s)) for s in self.sentences[:index]) + within

    def __repr__(self) -> str:
        return f"Equation({self.sentences!r})"


class Group(Composite):
    """A bracketed, comma-separated parameter list collapsed into one node."""
    kind = NodeKind.GROUP

    def __init__(self, begin: Delimiter, params: List[Node], separators: List[Separator], end: Delimiter):
        super().__init__()
        self.begin = begin
        self.params = params
        self.separators = separators
        self.end = end

    def parts(self) -> List[Union[Node, str]]:
        out: List[Union[Node, str]] = [self.begin]
        for i, param in enumerate(self.params):
            if i > 0:
                out.append(self.separators[i - 1])
            out.append(param)
        # Separators of a dropped trailing empty parameter.
        out.extend(self.separators[max(len(self.params), 1) - 1:])
        out.append(self.end)
        return out

    def __repr__(self) -> str:
        return f"Group({self.begin.symbol}{self.params!r}{self.end.symbol})"


class FunctionCall(Composite):
    """An identifier applied to a group of arguments."""
    kind = NodeKind.FUNCTION

    def __init__(self, identifier: Identifier, group: Group, function: Optional[Callable] = None):
        super().__init__()
        self.identifier = identifier
        self.group = group
        self.function = function

    @property
    def name(self) -> str:
        return self.identifier.name

    @property
    def args(self) -> List[Node]:
        return self.group.params

    def parts(self) -> List[Union[Node, str]]:
        return [self.identifier, self.group]

    def __repr__(self) -> str:
        return f"FunctionCall<{self.name!r} args={self.args!r}>"


class UnaryOp(Composite):
    """A prefix operator applied to one operand."""
    kind = NodeKind.UNARY

    def __init__(self, operator: Operator, operand: Node, operation: Callable):
        super().__init__()
        self.operator = operator
        self.operand = operand
        self.operation = operation

    def parts(self) -> List[Union[Node, str]]:
        return [self.operator, self.operand]

    def __repr__(self) -> str:
        return f"UnaryOp<{self.operator.symbol!r} {self.operand!r}>"


class BinaryOp(Composite):
    """An infix operator; implicit multiplication has an empty operator."""
    kind = NodeKind.BINARY

    def __init__(self, left: Node, operator: Operator, right: Node, operation: Callable):
        super().__init__()
        self.left = left
        self.operator = operator
        self.right = right
        self.operation = operation

    def parts(self) -> List[Union[Node, str]]:
        return [self.left, self.operator, self.right]

    def __repr__(self) -> str:
        return f"BinaryOp<{self.left!r} {self.operator.symbol!r} {self.right!r}>"
