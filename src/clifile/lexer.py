"""Lexer for Clifile sources.

Token patterns are tried in a fixed priority order against the start of the
remaining text; the first one that matches wins. Order does the grammar
disambiguation: ``##`` must be tried before ``#``, calls before plain
variable assignments, and the catch-all action line last.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum

from .errors import LexError

logger = logging.getLogger(__name__)


class TokenKind(Enum):
    LINE = "line"
    INDENT = "indent"
    DOCSTRING = "docstring"
    COMMENT = "comment"
    CALL = "call"
    VARIABLE = "variable"
    RULE = "rule"
    ACTION = "action"
    UNKNOWN = "unknown"  # never emitted


@dataclass
class Match:
    """A matched token.

    ``groups[0]`` is the whole matched text, the remaining entries are the
    pattern's capture groups (empty string when a group did not take part).
    """

    kind: TokenKind
    groups: list[str]
    line: int = 1
    col: int = 1

    @property
    def text(self) -> str:
        return self.groups[0]

    def group(self, index: int) -> str:
        if index < len(self.groups):
            return self.groups[index]
        return ""


class Lexer:
    """Ranked-pattern lexer for Clifile sources."""

    TOKEN_PATTERNS = [
        (re.compile(r"[\n ]+"), TokenKind.LINE),
        (re.compile(r"\t+"), TokenKind.INDENT),
        (re.compile(r"## ?([^\n]*)"), TokenKind.DOCSTRING),
        (re.compile(r"#([^\n]*)"), TokenKind.COMMENT),
        (re.compile(r"(\w+)=\$\{\s*(\w+)\s*([^}]+)?\}"), TokenKind.CALL),
        (re.compile(r'(\w+)=(?:"([^"]*)"|([^"\n]*))'), TokenKind.VARIABLE),
        (re.compile(r"(\w+):([\w ]*)"), TokenKind.RULE),
        (re.compile(r"[^\n]+"), TokenKind.ACTION),
    ]

    def __init__(self, source: str, line: int = 1, col: int = 1):
        self.source = source
        self.pos = 0
        self.line = line
        self.col = col
        self.tokens: list[Match] = list(self.iter_tokens())
        logger.debug("lexed %d tokens", len(self.tokens))

    def iter_tokens(self) -> Iterator[Match]:
        """Yield matches one at a time, consuming the source as it goes."""
        while True:
            self._skip_spaces()
            if self.pos >= len(self.source):
                return
            yield self._next_match()

    def _skip_spaces(self) -> None:
        while self.pos < len(self.source) and self.source[self.pos] == " ":
            self.pos += 1
            self.col += 1

    def _next_match(self) -> Match:
        for pattern, kind in self.TOKEN_PATTERNS:
            m = pattern.match(self.source, self.pos)
            if m and m.end() > self.pos:
                groups = [m.group(0)] + [g or "" for g in m.groups()]
                match = Match(kind, groups, self.line, self.col)
                self._advance(m.group(0))
                return match

        raise LexError(self.source[self.pos :], self.line, self.col)

    def _advance(self, value: str) -> None:
        newlines = value.count("\n")
        if newlines:
            self.line += newlines
            self.col = len(value) - value.rfind("\n")
        else:
            self.col += len(value)
        self.pos += len(value)


def tokenize(source: str) -> list[Match]:
    """Tokenize Clifile source code into a list of matches."""
    return Lexer(source).tokens
