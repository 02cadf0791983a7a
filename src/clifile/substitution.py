"""``${name}`` substitution into rule actions.

``$$`` is an escaped literal ``$`` and never triggers a lookup. A ``$`` that
starts neither form is kept as written.
"""

import re
from collections.abc import Mapping

from .errors import ClifileError, SubstitutionError
from .models import Program, Rule

REFERENCE_PATTERN = re.compile(r"\$\$|\$\{(\w+)\}")


def substitute(text: str, values: Mapping[str, str]) -> str:
    """Replace variable references in ``text`` with their bound values."""

    def replace(m: re.Match) -> str:
        name = m.group(1)
        if name is None:
            return "$"
        if name not in values:
            raise SubstitutionError(name)
        return values[name]

    return REFERENCE_PATTERN.sub(replace, text)


def program_values(program: Program) -> dict[str, str]:
    """Variable name -> value map of a program, including flag-entered values."""
    return {name: var.value for name, var in program.variables.items()}


def render_actions(rule: Rule, values: Mapping[str, str]) -> str:
    """Substituted script for a leaf rule."""
    if rule.is_group:
        raise ClifileError(f"rule '{rule.name}' is a group and has no actions")
    return substitute(rule.actions, values)
