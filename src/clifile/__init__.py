"""clifile: compile Makefile-like Clifiles into command line programs.

Pipeline: tokenize Clifile source -> parse into a Program -> substitute
variables into rule actions -> run them in a shell.

Example:
    from clifile import parse_source, substitute, program_values

    program = parse_source(open("Clifile").read())
    build = program.rules["build"]
    script = substitute(build.actions, program_values(program))
"""

__version__ = "0.1.0"

from .errors import (
    ClifileError,
    ConfigError,
    FlagError,
    LexError,
    ParseError,
    RuleError,
    ShellError,
    SubstitutionError,
)
from .lexer import Lexer, Match, TokenKind, tokenize
from .models import DEFAULT_DOC, Call, Program, Rule, Variable
from .parser import Parser, parse, parse_file, parse_source
from .substitution import program_values, render_actions, substitute


def compile(source: str) -> Program:  # noqa: A001
    """Compile Clifile source code into a Program."""
    return parse_source(source)


__all__ = [
    # Lex
    "tokenize",
    "Lexer",
    "Match",
    "TokenKind",
    # Parse
    "parse",
    "parse_source",
    "parse_file",
    "compile",
    "Parser",
    # Model
    "Program",
    "Rule",
    "Variable",
    "Call",
    "DEFAULT_DOC",
    # Substitution
    "substitute",
    "program_values",
    "render_actions",
    # Errors
    "ClifileError",
    "LexError",
    "ParseError",
    "RuleError",
    "SubstitutionError",
    "FlagError",
    "ConfigError",
    "ShellError",
]
