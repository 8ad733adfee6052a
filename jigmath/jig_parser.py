"""
Turns formula text into a jigmath tree.

The parser rewrites an equation's sentence buffer in three passes: leaves
(numbers, identifiers) are split out of the raw text, bracket groups are
collapsed innermost-first, then the fold tiers of the grammar combine
neighbouring sentences into operator and call nodes. Every rewrite keeps the
concatenated source text of the buffer unchanged.
"""
from typing import Any, List, Optional, Tuple

from jigmath.jig_datatypes import (
    Node, Equation, Group, Delimiter, Separator, NumberLiteral, ParseError, text_of,
)
from jigmath.jig_grammar import Grammar, Sentence, load_grammar
from jigmath.jig_logging import log


def _splice(equation: Equation, start: int, end: int, items: List[Sentence]) -> None:
    equation.sentences = equation.sentences[:start] + list(items) + equation.sentences[end:]


class EquationParser:
    def __init__(self, system: Any, grammar: Optional[Grammar] = None):
        self.system = system
        self.grammar = grammar or load_grammar()

    def parse_equation(self, equation: Equation) -> Equation:
        self.parse_into_sentences(equation)
        self.parse_into_groups(equation)
        self.fold_operators(equation)
        return equation

    def replace(self, equation: Equation, start: int, length: int, node: Node) -> None:
        if not isinstance(node, Node):
            raise ParseError("Invalid value, must be a node", node, self.system, {
                "sentence_index": start,
                "char_offset": equation.char_offset(start),
                "length": length,
            })
        log(2, "Replaced %r by %r", equation.sentences[start:start + length], node)
        _splice(equation, start, start + length, [node])

    # --- Step 1: leaves ---

    def parse_into_sentences(self, equation: Equation) -> Equation:
        i = 0
        while i < len(equation.sentences):
            # A split may expose a new match at the same position: rescan it.
            if isinstance(equation.sentences[i], str) and self._split_leaf(equation, i):
                continue
            i += 1
        log(3, "Equation parsed: %r", equation.sentences)
        return equation

    def _split_leaf(self, equation: Equation, i: int) -> bool:
        text = equation.sentences[i]
        for leaf in self.grammar.leaves:
            match = leaf.regex.search(text)
            if not match:
                continue
            try:
                node = leaf.factory(match.group())
            except ValueError as e:
                raise ParseError(f"Invalid number literal {match.group()!r}", equation, self.system, {
                    "sentence_index": i,
                    "char_offset": equation.char_offset(i, match.start()),
                    "literal": match.group(),
                }) from e
            pieces = [p for p in (text[:match.start()], node, text[match.end():]) if p != ""]
            _splice(equation, i, i + 1, pieces)
            return True
        return False

    # --- Step 2: groups ---

    def parse_into_groups(self, equation: Equation) -> Equation:
        changed = True
        while changed:
            changed = False
            for opener, closer in self.grammar.brackets:
                found = self._find_char(equation, closer)
                if found is None:
                    continue
                end_i, _ = self._isolate(equation, found[0], found[1], len(closer))

                found = self._rfind_char(equation, opener, end_i)
                if found is None:
                    raise ParseError(f"Unmatched closing bracket {closer!r}", equation, self.system, {
                        "sentence_index": end_i,
                        "char_offset": equation.char_offset(end_i),
                        "bracket": closer,
                    })
                begin_i, added = self._isolate(equation, found[0], found[1], len(opener))
                end_i += added

                group = self._build_group(equation, begin_i, end_i)
                self.replace(equation, begin_i, end_i - begin_i + 1, group)
                changed = True
                break

        for opener, _ in self.grammar.brackets:
            found = self._find_char(equation, opener)
            if found is not None:
                raise ParseError(f"Unmatched opening bracket {opener!r}", equation, self.system, {
                    "sentence_index": found[0],
                    "char_offset": equation.char_offset(found[0], found[1]),
                    "bracket": opener,
                })

        log(3, "Equation grouped: %r", equation.sentences)
        return equation

    def _find_char(self, equation: Equation, char: str, start: int = 0) -> Optional[Tuple[int, int]]:
        for i in range(start, len(equation.sentences)):
            sentence = equation.sentences[i]
            if isinstance(sentence, str) and char in sentence:
                return i, sentence.index(char)
        return None

    def _rfind_char(self, equation: Equation, char: str, end: int) -> Optional[Tuple[int, int]]:
        for i in range(end, -1, -1):
            sentence = equation.sentences[i]
            if isinstance(sentence, str) and char in sentence:
                return i, sentence.rindex(char)
        return None

    def _isolate(self, equation: Equation, i: int, pos: int, length: int) -> Tuple[int, int]:
        """Splits sentence i so that text[pos:pos+length] stands alone.

        Returns the new index of that piece and the number of sentences added.
        """
        text = equation.sentences[i]
        pieces = [p for p in (text[:pos], text[pos:pos + length], text[pos + length:]) if p]
        _splice(equation, i, i + 1, pieces)
        return i + (1 if pos > 0 else 0), len(pieces) - 1

    def _build_group(self, equation: Equation, begin_i: int, end_i: int) -> Group:
        sentences = equation.sentences
        begin = Delimiter(sentences[begin_i])
        end_text = sentences[end_i]
        separator = self.grammar.separator

        params: List[Node] = []
        separators: List[Separator] = []
        param: List[Sentence] = []
        pos = equation.char_offset(begin_i + 1)
        param_offset = pos

        for sentence in sentences[begin_i + 1:end_i]:
            if isinstance(sentence, Node):
                if not param:
                    param_offset = pos
                param.append(sentence)
                pos += len(text_of(sentence))
                continue
            text = sentence
            while (match := separator.search(text)) is not None:
                before = text[:match.start()]
                if not param:
                    param_offset = pos
                if before:
                    param.append(before)
                else:
                    if not param:
                        # Empty parameter before a comma.
                        param.append(NumberLiteral(0, ""))
                params.append(self._parse_param(param, param_offset))
                separators.append(Separator(match.group()))
                pos += match.end()
                text = text[match.end():]
                param = []
            if text:
                if not param:
                    param_offset = pos
                param.append(text)
                pos += len(text)

        if param and all(isinstance(p, str) and not p.strip() for p in param):
            # Blank interior such as "( )": keep the spaces with the closer.
            end_text = "".join(param) + end_text
        elif param:
            params.append(self._parse_param(param, param_offset))

        return Group(begin, params, separators, Delimiter(end_text))

    def _parse_param(self, sentences: List[Sentence], offset: int) -> Equation:
        return self.parse_equation(Equation(sentences, offset))

    # --- Step 3: operators ---

    def fold_operators(self, equation: Equation) -> Equation:
        for tier in self.grammar.tiers:
            while (found := tier.leftmost(equation.sentences)) is not None:
                start, rule = found
                length = len(rule.pattern)
                node = rule.build_node(equation.sentences[start:start + length], self.system)
                self.replace(equation, start, length, node)
        log(3, "Equation joined: %r", equation.sentences)
        return equation
