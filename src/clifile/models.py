"""Program model produced by the parser."""

from collections.abc import Iterator

from pydantic import BaseModel

from .errors import RuleError

DEFAULT_DOC = """Software Command Line Interface (CLI)
Use this as shortcut for user-defined commands"""


class Variable(BaseModel):
    """Top-level ``NAME=value`` declaration."""

    name: str
    value: str = ""


class Call(BaseModel):
    """Function call declaration (e.g. ``NAME=${flag default="x"}``)."""

    name: str
    function: str
    arguments: dict[str, str] = {}

    def argument(self, key: str, default: str = "") -> str:
        return self.arguments.get(key, default)


class Rule(BaseModel):
    """A named group of actions, or of nested rules, never both."""

    name: str
    positional: list[str] = []
    doc: str = ""
    actions: str = ""  # raw shell lines, newline terminated
    children: dict[str, "Rule"] = {}

    @property
    def is_group(self) -> bool:
        return bool(self.children)

    @property
    def short_doc(self) -> str:
        return self.doc.split("\n", 1)[0]

    def add_rule(self, rule: "Rule") -> None:
        if self.actions:
            raise RuleError(
                f"cannot add nested rule '{rule.name}': "
                f"parent '{self.name}' already has actions"
            )
        self.children[rule.name] = rule

    def append_actions(self, actions: str) -> None:
        if self.children:
            raise RuleError(
                f"cannot add actions to rule '{self.name}' because it has nested rules"
            )
        self.actions += actions

    def walk(self, prefix: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], "Rule"]]:
        """Yield ``(path, rule)`` for this rule and its descendants, depth first."""
        path = prefix + (self.name,)
        yield path, self
        for child in self.children.values():
            yield from child.walk(path)


class Program(BaseModel):
    """A parsed Clifile."""

    doc: str = DEFAULT_DOC
    variables: dict[str, Variable] = {}
    calls: dict[str, Call] = {}
    rules: dict[str, Rule] = {}  # top level only, in declaration order

    def add_variable(self, variable: Variable) -> None:
        self.variables[variable.name] = variable

    def set_variable(self, name: str, value: str) -> None:
        """Overwrite a variable's value, creating the variable if needed."""
        if name in self.variables:
            self.variables[name].value = value
        else:
            self.variables[name] = Variable(name=name, value=value)

    def add_call(self, call: Call) -> None:
        self.calls[call.name] = call

    def add_rule(self, rule: Rule) -> None:
        self.rules[rule.name] = rule

    def flag_calls(self) -> list[Call]:
        return [call for call in self.calls.values() if call.function == "flag"]

    def walk(self) -> Iterator[tuple[tuple[str, ...], Rule]]:
        for rule in self.rules.values():
            yield from rule.walk()


Rule.model_rebuild()
