"""
The public face of the jigmath engine: parsing a formula into a System,
binding its variables and reading its value.
"""
import copy
import re
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Literal, Optional, Union

from jigmath.jig_datatypes import (
    Node, Equation, Variable, FunctionCall, Slot, Partial, ParseError, is_number,
)
from jigmath.jig_functions import register_custom_function, unregister_custom_function
from jigmath.jig_grammar import Grammar
from jigmath.jig_logging import log, set_log_level, setup_logging
from jigmath.jig_parser import EquationParser
from jigmath.jig_simplifier import simplify

__all__ = [
    "System", "ParseResult", "ResolutionWarning", "ParseError", "Partial", "Slot",
    "parse", "try_parse", "get_system", "strip_formula_prefix",
    "register_custom_function", "unregister_custom_function", "set_log_level", "setup_logging",
]

_FORMULA_PREFIX = re.compile(r"^f\([\w,]+\)=")


@dataclass
class ResolutionWarning:
    """A name the formula uses that the caller may not accept."""
    code: Literal['unknown-function', 'unexpected-variable']
    name: str
    node: Node


class System:
    """One parsed formula: its tree and its variable table.

    Every Variable node of the tree reads a Slot owned by this table, and all
    occurrences of a name share the same Slot, so rebinding is O(1) and the
    next `get_value()` sees it without re-parsing.
    """
    def __init__(self, text: str):
        self.text = text
        self.root: Node = Equation([text] if text else [])
        self.variables: List[Slot] = []
        self._slots: Dict[str, Slot] = {}

    # --- Variable table ---

    def intern_variable(self, name: str) -> Slot:
        """Returns the slot for `name`, creating it on first use (parse time only)."""
        slot = self._slots.get(name)
        if slot is None:
            slot = Slot(name)
            self._slots[name] = slot
            self.variables.append(slot)
        return slot

    def get_variable(self, name: str) -> Optional[Slot]:
        return self._slots.get(name)

    def set_variable(self, name: str, value: Union[int, float]) -> None:
        """Binds `name`; names the formula never references are ignored."""
        slot = self._slots.get(name)
        if slot is not None:
            slot.value = value

    def variables_unset(self) -> List[str]:
        return [slot.name for slot in self.variables if not is_number(slot.value)]

    # --- Evaluation ---

    def get_value(self) -> Union[int, float, Partial]:
        return self.root.value

    def simplify(self) -> 'System':
        """Folds constant subtrees in place and returns this system."""
        self.root = simplify(self.root)
        return self

    def clone(self) -> 'System':
        """An independent copy (tree and slots) for another worker."""
        return copy.deepcopy(self)

    # --- Tree access for renderers ---

    def walk(self) -> Iterator[Node]:
        return self.root.walk()

    def get_items(self) -> List[Union[Node, str]]:
        return self.root.leaves()

    def get_literal(self) -> str:
        return self.root.literal()

    def original_text(self) -> str:
        return self.root.original_text()

    def warnings(self, allowed_variables: Optional[Iterable[str]] = None) -> List[ResolutionWarning]:
        """Unknown functions, and variables outside `allowed_variables` when given."""
        allowed = set(allowed_variables) if allowed_variables is not None else None
        found: List[ResolutionWarning] = []
        for node in self.walk():
            if isinstance(node, FunctionCall) and node.function is None:
                found.append(ResolutionWarning('unknown-function', node.name, node))
            elif isinstance(node, Variable) and allowed is not None and node.name not in allowed:
                found.append(ResolutionWarning('unexpected-variable', node.name, node))
        return found

    def __repr__(self) -> str:
        names = ', '.join(slot.name for slot in self.variables)
        return f"<System {self.text!r} variables=[{names}]>"


# ===================================================================
# Parsing entry points
# ===================================================================

def parse(text: str, grammar: Optional[Grammar] = None) -> System:
    """Parses `text` into a System. Raises ParseError on structural errors."""
    system = System(text)
    EquationParser(system, grammar).parse_equation(system.root)
    log(2, "Parsed %r into %r", text, system.root)
    return system


def get_system(text: str, grammar: Optional[Grammar] = None) -> System:
    """Parses and simplifies `text`."""
    return parse(text, grammar).simplify()


def strip_formula_prefix(text: str) -> str:
    """Drops a leading `f(x,y)=` declaration."""
    return _FORMULA_PREFIX.sub("", text, count=1)


@dataclass
class ParseResult:
    """The structured result of a parse."""
    status: Literal['success', 'error']
    source: str = ""
    system: Optional[System] = None
    error: Optional[ParseError] = None

    def format_error(self) -> str:
        """Formats the error message with line, column and a caret under the offender."""
        if self.status != 'error' or self.error is None:
            return ""
        msg = f"ParseError: {self.error.message}"
        offset = self.error.position
        if offset is None:
            return msg
        line, col = _line_col(self.source, offset)
        return f"{msg} (line {line}, col {col})\n{_source_context(self.source, line, col)}"


def try_parse(text: str, grammar: Optional[Grammar] = None) -> ParseResult:
    try:
        system = parse(text, grammar)
    except ParseError as e:
        log(1, "Formula rejected: %s", e.message)
        return ParseResult(status='error', source=text, error=e)
    return ParseResult(status='success', source=text, system=system)


def _line_col(source: str, offset: int) -> tuple:
    before = source[:offset]
    line = before.count("\n") + 1
    col = offset - (before.rfind("\n") + 1) + 1
    return line, col


def _source_context(source: str, line: int, col: Optional[int], radius: int = 2) -> str:
    lines = source.splitlines() or [""]
    if not line or line < 1 or line > len(lines):
        return ""
    start = max(1, line - radius)
    end = min(len(lines), line + radius)
    width = len(str(end))
    out = []
    for i in range(start, end + 1):
        prefix = ">" if i == line else " "
        ln = str(i).rjust(width)
        content = lines[i - 1]
        out.append(f"{prefix} {ln} | {content}")
        if i == line and col is not None:
            caret = " " * max(col - 1, 0)
            out.append(f"  {' ' * width} | {caret}^")
    return "\n".join(out)
