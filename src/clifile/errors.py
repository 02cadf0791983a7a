"""Exceptions raised while compiling and running a Clifile."""


class ClifileError(Exception):
    pass


class ParseError(ClifileError):
    """A lexical or semantic error at a known position in the source."""

    def __init__(self, msg: str, line: int, col: int):
        super().__init__(f"line {line}, col {col}: {msg}")
        self.msg = msg
        self.line = line
        self.col = col


class LexError(ParseError):
    """No token pattern matches the remaining source text."""

    def __init__(self, remainder: str, line: int, col: int):
        snippet = remainder.split("\n", 1)[0]
        super().__init__(f"invalid syntax near '{snippet}'", line, col)
        self.remainder = remainder


class RuleError(ClifileError):
    """A rule would hold both actions and nested rules."""


class SubstitutionError(ClifileError):
    def __init__(self, name: str):
        super().__init__(f"variable '{name}' not found")
        self.name = name


class FlagError(ClifileError):
    pass


class ConfigError(ClifileError):
    pass


class ShellError(ClifileError):
    pass
