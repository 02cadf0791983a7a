"""Command line flags declared with ``NAME=${flag ...}`` calls.

Supported call arguments:
    default     value used when the flag is not passed
    type        prompt widget: input, multiline, confirm, password, select,
                editor or multiselect (default: input)
    doc         help text
    prompt      question shown when asking for the value
    validation  regular expression the value must match
    init        comma separated options (select, multiselect) or the
                temporary file name (editor)

A flag given on the command line is validated and used as is. Otherwise the
default is used, and the user is asked until the value validates.
"""

import logging
import os
import re
import shlex
import subprocess
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm, Prompt

from .errors import FlagError
from .models import Call, Program

logger = logging.getLogger(__name__)

FLAG_FUNCTION = "flag"


class FlagType(Enum):
    INPUT = "input"
    MULTILINE = "multiline"
    CONFIRM = "confirm"
    PASSWORD = "password"
    SELECT = "select"
    EDITOR = "editor"
    MULTISELECT = "multiselect"


@dataclass
class Flag:
    name: str
    default: str = ""
    type: FlagType = FlagType.INPUT
    doc: str = ""
    prompt: str = ""
    validation: re.Pattern | None = None
    init: str = ""

    @classmethod
    def from_call(cls, call: Call) -> "Flag":
        if call.function != FLAG_FUNCTION:
            raise FlagError(f"call '{call.name}' is not a flag")

        type_name = call.argument("type") or FlagType.INPUT.value
        try:
            flag_type = FlagType(type_name)
        except ValueError:
            raise FlagError(f"invalid flag type '{type_name}'") from None

        pattern = call.argument("validation")
        try:
            validation = re.compile(pattern) if pattern else None
        except re.error as e:
            raise FlagError(f"invalid validation for flag '{call.name}': {e}") from e

        return cls(
            name=call.name,
            default=call.argument("default"),
            type=flag_type,
            doc=call.argument("doc"),
            prompt=call.argument("prompt"),
            validation=validation,
            init=call.argument("init"),
        )

    @property
    def option_name(self) -> str:
        """Name used on the command line (``MY_FLAG`` -> ``my-flag``)."""
        return self.name.replace("_", "-").lower()

    @property
    def help_text(self) -> str:
        if self.default:
            return f"{self.doc} (default: {self.default})"
        return self.doc

    @property
    def question(self) -> str:
        return self.prompt or self.option_name

    @property
    def options(self) -> list[str]:
        return [opt for opt in self.init.split(", ") if opt]

    def validate(self, value: str) -> bool:
        if self.validation is None:
            return True
        return self.validation.search(value) is not None

    def resolve(self, given: str | None = None, prompter: "Prompter | None" = None) -> str:
        """Value for this flag, asking the user while it does not validate."""
        if given is not None:
            if not self.validate(given):
                raise FlagError(f"invalid value '{given}' for flag '{self.option_name}'")
            return given

        value = self.default
        while not self.validate(value):
            if prompter is None:
                raise FlagError(f"missing or invalid value for flag '{self.option_name}'")
            logger.debug("asking for flag %s", self.option_name)
            value = prompter.ask(self)
        return value


class Prompter:
    """Asks for flag values on the terminal."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def ask(self, flag: Flag) -> str:
        if flag.help_text:
            self.console.print(f"[dim]{flag.help_text}[/dim]")
        handler = getattr(self, f"_ask_{flag.type.value}")
        return handler(flag)

    def _ask_input(self, flag: Flag) -> str:
        return Prompt.ask(flag.question, console=self.console, default="", show_default=False)

    def _ask_password(self, flag: Flag) -> str:
        return Prompt.ask(
            flag.question, console=self.console, password=True, default="", show_default=False
        )

    def _ask_confirm(self, flag: Flag) -> str:
        return "y" if Confirm.ask(flag.question, console=self.console) else "n"

    def _ask_select(self, flag: Flag) -> str:
        return Prompt.ask(flag.question, console=self.console, choices=flag.options)

    def _ask_multiselect(self, flag: Flag) -> str:
        options = flag.options
        while True:
            answer = Prompt.ask(
                f"{flag.question} [dim](comma separated: {', '.join(options)})[/dim]",
                console=self.console,
                default="",
                show_default=False,
            )
            chosen = [item.strip() for item in answer.split(",") if item.strip()]
            unknown = [item for item in chosen if item not in options]
            if not unknown:
                return " ".join(f'"{item}"' for item in chosen)
            self.console.print(f"[red]unknown option(s): {', '.join(unknown)}[/red]")

    def _ask_multiline(self, flag: Flag) -> str:
        self.console.print(f"{flag.question} [dim](finish with an empty line)[/dim]")
        lines = []
        while line := self.console.input():
            lines.append(line)
        return "\n".join(lines)

    def _ask_editor(self, flag: Flag) -> str:
        editor = os.environ.get("VISUAL") or os.environ.get("EDITOR") or "vi"
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / (flag.init or f"{flag.option_name}.txt")
            path.write_text(flag.default, encoding="utf-8")
            self.console.print(f"{flag.question} [dim](opening {editor})[/dim]")
            subprocess.run([*shlex.split(editor), str(path)], check=False)
            return path.read_text(encoding="utf-8").rstrip("\n")


def program_flags(program: Program) -> list[Flag]:
    return [Flag.from_call(call) for call in program.flag_calls()]


def bind_flags(
    program: Program,
    given: Mapping[str, str | None],
    prompter: Prompter | None = None,
) -> dict[str, str]:
    """Resolve every flag of the program and store the values as variables.

    ``given`` maps flag (call) names to command line values, ``None`` when the
    flag was not passed.
    """
    bound = {}
    for flag in program_flags(program):
        value = flag.resolve(given.get(flag.name), prompter)
        program.set_variable(flag.name, value)
        bound[flag.name] = value
    return bound
