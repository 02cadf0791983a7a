"""Parser for Clifile token streams.

Grammar (line oriented):
    doc-block   = ("##" [" "] text NEWLINE)+
    variable    = NAME "=" ( '"' text '"' | rest-of-line )
    call        = NAME "=" "${" NAME args? "}"
    rule        = NAME ":" NAME*
    action      = any other line, indented one tab deeper than its rule
    comment     = "#" rest-of-line

Nesting is driven by leading tabs, one tab per level. Assignments inside a
rule body are shell statements and become actions.
"""

import logging
import re
from pathlib import Path

from .errors import ClifileError, ParseError, RuleError
from .lexer import Lexer, Match, TokenKind
from .models import Call, Program, Rule, Variable

logger = logging.getLogger(__name__)

POSITIONAL_PATTERN = re.compile(r"\w+")


class Parser:
    """Indentation-sensitive parser turning lexer matches into a Program."""

    def __init__(self, tokens: list[Match]):
        self.tokens = tokens
        self.program = Program()

    def parse(self) -> Program:
        if not self.tokens:
            raise ParseError("no tokens to parse", 1, 1)

        body = self._parse_doc(self.tokens)
        self._parse_body(body)
        return self.program

    def _parse_doc(self, tokens: list[Match]) -> list[Match]:
        """Consume the leading doc block, returning the remaining tokens.

        Docstring lines separated by more than one newline end the block.
        """
        if tokens[0].kind != TokenKind.DOCSTRING:
            return tokens

        doc = ""
        newlines = 0
        consumed = 0
        for tok in tokens:
            if tok.kind == TokenKind.DOCSTRING:
                if newlines > 1:
                    break
                doc += tok.group(1) + "\n"
                newlines = 0
            elif tok.kind == TokenKind.LINE:
                newlines = tok.text.count("\n")
            else:
                break
            consumed += 1

        if not doc:
            return tokens

        self.program.doc = doc
        return tokens[consumed:]

    def _parse_body(self, tokens: list[Match]) -> None:
        indent = 0
        branch: list[Rule] = []
        pending_doc = ""
        current: Rule | None = None

        for tok in tokens:
            kind = tok.kind
            if indent > 0 and kind in (TokenKind.VARIABLE, TokenKind.CALL):
                kind = TokenKind.ACTION

            if kind == TokenKind.LINE:
                indent = 0
            elif kind == TokenKind.COMMENT:
                continue
            elif kind == TokenKind.INDENT:
                indent = len(tok.text)
            elif kind == TokenKind.VARIABLE:
                self.program.add_variable(parse_variable(tok))
            elif kind == TokenKind.CALL:
                self.program.add_call(parse_call(tok))
            elif kind == TokenKind.DOCSTRING:
                if indent > len(branch):
                    raise ParseError(
                        f"overly indented docstring near '{tok.text}'", tok.line, tok.col
                    )
                pending_doc += tok.group(1) + "\n"
            elif kind == TokenKind.RULE:
                if indent > len(branch):
                    raise ParseError(
                        f"overly indented rule near '{tok.text}'", tok.line, tok.col
                    )
                del branch[indent:]
                parent = branch[-1] if branch else None
                current = Rule(
                    name=tok.group(1),
                    positional=POSITIONAL_PATTERN.findall(tok.group(2)),
                    doc=pending_doc,
                )
                pending_doc = ""
                branch.append(current)
                if parent is None:
                    self.program.add_rule(current)
                else:
                    try:
                        parent.add_rule(current)
                    except RuleError as e:
                        raise ParseError(str(e), tok.line, tok.col) from e
                logger.debug("rule %s at depth %d", current.name, indent)
            elif kind == TokenKind.ACTION:
                if indent < len(branch):
                    raise ParseError(f"bad indentation near '{tok.text}'", tok.line, tok.col)
                if current is None:
                    raise ParseError(
                        f"action outside of rule near '{tok.text}'", tok.line, tok.col
                    )
                try:
                    current.append_actions(tok.text + "\n")
                except RuleError as e:
                    raise ParseError(str(e), tok.line, tok.col) from e
            else:
                raise ParseError(f"unexpected token: {kind.value}", tok.line, tok.col)


def parse_variable(tok: Match) -> Variable:
    """Build a variable from a VARIABLE match (quoted value wins)."""
    value = tok.group(2) or tok.group(3).strip()
    return Variable(name=tok.group(1), value=value)


def parse_call(tok: Match) -> Call:
    """Build a call from a CALL match, re-lexing its argument text as keywords."""
    arguments: dict[str, str] = {}
    text = tok.group(3)
    if text:
        line, col = _argument_position(tok)
        for sub in Lexer(text, line=line, col=col).tokens:
            if sub.kind == TokenKind.VARIABLE:
                variable = parse_variable(sub)
                arguments[variable.name] = variable.value
            elif sub.kind in (TokenKind.LINE, TokenKind.COMMENT, TokenKind.INDENT):
                continue
            else:
                raise ParseError(
                    f"unexpected syntax inside function call near '{sub.text}'",
                    sub.line,
                    sub.col,
                )
    return Call(name=tok.group(1), function=tok.group(2), arguments=arguments)


def _argument_position(tok: Match) -> tuple[int, int]:
    """Source position where a call's argument text starts."""
    offset = len(tok.text) - len(tok.group(3)) - 1  # text ends with args + "}"
    head = tok.text[:offset]
    newlines = head.count("\n")
    if newlines:
        return tok.line + newlines, len(head) - head.rfind("\n")
    return tok.line, tok.col + offset


def parse(tokens: list[Match]) -> Program:
    """Parse lexer matches into a Program."""
    return Parser(tokens).parse()


def parse_source(source: str) -> Program:
    """Tokenize and parse Clifile source code."""
    return parse(Lexer(source).tokens)


def parse_file(filepath: str | Path) -> Program:
    """Parse a Clifile from disk."""
    filepath = Path(filepath)
    try:
        source = filepath.read_text(encoding="utf-8")
    except OSError as e:
        raise ClifileError(f"unable to read '{filepath}'") from e
    except UnicodeDecodeError as e:
        raise ClifileError(f"unable to decode '{filepath}' as UTF-8") from e
    logger.debug("parsing %s", filepath)
    return parse_source(source)
