"""Tests for ${name} substitution."""

import pytest

from clifile import (
    ClifileError,
    SubstitutionError,
    parse_source,
    program_values,
    render_actions,
    substitute,
)


class TestSubstitute:
    def test_reference(self):
        assert substitute("echo ${NAME}", {"NAME": "world"}) == "echo world"

    def test_escape_skips_lookup(self):
        assert substitute("echo $$HOME", {}) == "echo $HOME"

    def test_escaped_brace_is_not_a_reference(self):
        assert substitute("echo $${NAME}", {}) == "echo ${NAME}"

    def test_escape_followed_by_reference(self):
        assert substitute("$$${NAME}", {"NAME": "world"}) == "$world"

    def test_lone_dollar_is_kept(self):
        assert substitute("echo $HOME costs 5$", {}) == "echo $HOME costs 5$"

    def test_missing_variable(self):
        with pytest.raises(SubstitutionError) as exc_info:
            substitute("echo ${MISSING}", {})
        assert exc_info.value.name == "MISSING"
        assert str(exc_info.value) == "variable 'MISSING' not found"

    def test_multiline(self):
        text = "cd ${DIR}\nmake ${TARGET}\n"
        values = {"DIR": "src", "TARGET": "all"}
        assert substitute(text, values) == "cd src\nmake all\n"


class TestProgramValues:
    SOURCE = 'GREETING="hello"\ngreet:\n\techo ${GREETING} $$USER\ngroup:\n\tchild:\n\t\techo\n'

    def test_program_values(self):
        program = parse_source(self.SOURCE)
        assert program_values(program) == {"GREETING": "hello"}

    def test_render_actions(self):
        program = parse_source(self.SOURCE)
        script = render_actions(program.rules["greet"], program_values(program))
        assert script == "echo hello $USER\n"

    def test_render_sees_overwritten_values(self):
        program = parse_source(self.SOURCE)
        program.set_variable("GREETING", "hi")
        script = render_actions(program.rules["greet"], program_values(program))
        assert script == "echo hi $USER\n"

    def test_render_group_fails(self):
        program = parse_source(self.SOURCE)
        with pytest.raises(ClifileError, match="is a group"):
            render_actions(program.rules["group"], {})
