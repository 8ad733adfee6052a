"""
Loads the jigmath grammar (leaf regexes, brackets and fold tiers) from YAML
and compiles it into matchers and fold rules for the parser.
"""
from __future__ import annotations

import os
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

import yaml

from jigmath.jig_datatypes import (
    Node, Value, Identifier, Group, Variable, FunctionCall, UnaryOp, BinaryOp, Operator,
    NumberLiteral,
)
from jigmath.jig_functions import OPERATIONS, resolve_function

DEFAULT_GRAMMAR_PATH = Path(__file__).parent / "jig_grammar.yaml"

Sentence = Union[Node, str]


# =================================================================
# Pattern matchers
# =================================================================

class Matcher(ABC):
    @abstractmethod
    def matches(self, sentence: Sentence) -> bool: ...


class KindMatcher(Matcher):
    def __init__(self, cls: type):
        self.cls = cls

    def matches(self, sentence: Sentence) -> bool:
        return isinstance(sentence, self.cls)

    def __repr__(self) -> str:
        return self.cls.__name__


class SpaceMatcher(Matcher):
    _regex = re.compile(r"\s+")

    def matches(self, sentence: Sentence) -> bool:
        return isinstance(sentence, str) and self._regex.fullmatch(sentence) is not None

    def __repr__(self) -> str:
        return "space"


class OperatorMatcher(Matcher):
    """Matches a raw fragment holding exactly one operator, spaces allowed around it."""
    def __init__(self, symbol: str):
        self.symbol = symbol
        self._regex = re.compile(r"\s*" + re.escape(symbol) + r"\s*")

    def matches(self, sentence: Sentence) -> bool:
        return isinstance(sentence, str) and self._regex.fullmatch(sentence) is not None

    def __repr__(self) -> str:
        return repr(self.symbol)


KIND_MATCHERS: Dict[str, Matcher] = {
    "space": SpaceMatcher(),
    "node": KindMatcher(Node),
    "value": KindMatcher(Value),
    "identifier": KindMatcher(Identifier),
    "group": KindMatcher(Group),
}


# =================================================================
# Builders: matched slice -> replacement node
# =================================================================

def _build_space_before(rule, matched, system):
    space, node = matched
    node.space_before = space + node.space_before
    return node


def _build_space_after(rule, matched, system):
    node, space = matched
    node.space_after = node.space_after + space
    return node


def _build_function_call(rule, matched, system):
    identifier, group = matched
    return FunctionCall(identifier, group, resolve_function(identifier.name))


def _build_variable(rule, matched, system):
    (identifier,) = matched
    return Variable(identifier, system.intern_variable(identifier.name))


def _build_binary(rule, matched, system):
    left, op, right = matched
    return BinaryOp(left, Operator(op), right, rule.operation)


def _build_implicit(rule, matched, system):
    left, right = matched
    return BinaryOp(left, Operator(""), right, rule.operation)


def _build_unary(rule, matched, system):
    op, operand = matched
    return UnaryOp(Operator(op), operand, rule.operation)


BUILDERS: Dict[str, Callable] = {
    "space-before": _build_space_before,
    "space-after": _build_space_after,
    "function-call": _build_function_call,
    "variable": _build_variable,
    "binary": _build_binary,
    "implicit": _build_implicit,
    "unary": _build_unary,
}

LEAF_FACTORIES: Dict[str, Callable[[str], Node]] = {
    "hex": NumberLiteral.from_hex,
    "binary": NumberLiteral.from_binary,
    "identifier": Identifier,
    "decimal": NumberLiteral.from_decimal,
}


# =================================================================
# Compiled grammar
# =================================================================

@dataclass
class LeafRule:
    kind: str
    regex: re.Pattern
    factory: Callable[[str], Node]


@dataclass
class FoldRule:
    pattern: List[Matcher]
    builder: Callable
    operation: Optional[Callable] = None
    build: str = ""

    def find(self, sentences: List[Sentence]) -> Optional[int]:
        """Start index of the leftmost match in `sentences`, or None."""
        n = len(self.pattern)
        for start in range(len(sentences) - n + 1):
            if all(m.matches(sentences[start + k]) for k, m in enumerate(self.pattern)):
                return start
        return None

    def build_node(self, matched: List[Sentence], system: Any) -> Node:
        return self.builder(self, matched, system)

    def __repr__(self) -> str:
        return f"<FoldRule {self.build} {self.pattern!r}>"


@dataclass
class Tier:
    name: str
    rules: List[FoldRule] = field(default_factory=list)

    def leftmost(self, sentences: List[Sentence]) -> Optional[Tuple[int, FoldRule]]:
        best: Optional[Tuple[int, FoldRule]] = None
        for rule in self.rules:
            start = rule.find(sentences)
            # Strict '<': the earlier-declared rule wins a tie.
            if start is not None and (best is None or start < best[0]):
                best = (start, rule)
        return best


@dataclass
class Grammar:
    leaves: List[LeafRule]
    brackets: List[Tuple[str, str]]
    separator: re.Pattern
    tiers: List[Tier]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Grammar':
        leaves = [
            LeafRule(leaf["kind"], re.compile(leaf["pattern"], re.IGNORECASE), LEAF_FACTORIES[leaf["kind"]])
            for leaf in data["leaves"]
        ]
        brackets = []
        for pair in data["brackets"]:
            if len(pair) != 2:
                raise ValueError(f"Bracket pair must be two characters, got {pair!r}")
            brackets.append((pair[0], pair[1]))
        tiers = []
        for tier in data["tiers"]:
            rules = []
            for rule in tier["rules"]:
                pattern = [KIND_MATCHERS.get(el) or OperatorMatcher(str(el)) for el in rule["pattern"]]
                op_name = rule.get("operation")
                rules.append(FoldRule(
                    pattern=pattern,
                    builder=BUILDERS[rule["build"]],
                    operation=OPERATIONS[op_name] if op_name else None,
                    build=rule["build"],
                ))
            tiers.append(Tier(tier["name"], rules))
        return cls(leaves, brackets, re.compile(data["separator"]), tiers)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> 'Grammar':
        with Path(path).open(encoding="utf-8") as f:
            return cls.from_dict(yaml.safe_load(f))


@lru_cache(maxsize=None)
def _load_cached(path: str) -> Grammar:
    return Grammar.from_yaml(path)


def load_grammar(path: Optional[Union[str, Path]] = None) -> Grammar:
    """Returns the grammar at `path`, $JIGMATH_GRAMMAR, or the bundled default."""
    if path is None:
        path = os.environ.get("JIGMATH_GRAMMAR") or DEFAULT_GRAMMAR_PATH
    return _load_cached(str(Path(path).resolve()))
