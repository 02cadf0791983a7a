"""Tests for the Clifile parser."""

import pytest

from clifile import DEFAULT_DOC, Match, ParseError, TokenKind, parse, parse_file, parse_source
from clifile.errors import ClifileError
from clifile.parser import parse_call

NESTED = """\
docker:
\t## Build the image
\tbuild:
\t\tdocker build .
\trun: image
\t\tdocker run ${image}
"""


class TestDoc:
    def test_program_doc(self):
        program = parse_source("## A\n## B\nrule:\n\techo")
        assert program.doc == "A\nB\n"
        assert program.rules["rule"].doc == ""

    def test_default_doc(self):
        program = parse_source("rule:\n\techo")
        assert program.doc == DEFAULT_DOC

    def test_blank_line_ends_program_doc(self):
        program = parse_source("## Program\n\n## Rule doc\nrule:\n\techo hi\n")
        assert program.doc == "Program\n"
        assert program.rules["rule"].doc == "Rule doc\n"

    def test_doc_only_source(self):
        program = parse_source("## Just docs\n")
        assert program.doc == "Just docs\n"
        assert program.rules == {}

    def test_rule_doc_aggregation(self):
        program = parse_source("X=1\n## A\n## B\nrule:\n\techo")
        assert program.rules["rule"].doc == "A\nB\n"

    def test_doc_is_consumed_by_one_rule(self):
        program = parse_source("X=1\n## first\na:\n\techo a\nb:\n\techo b\n")
        assert program.rules["a"].doc == "first\n"
        assert program.rules["b"].doc == ""

    def test_nested_rule_doc(self):
        program = parse_source(NESTED)
        assert program.rules["docker"].children["build"].doc == "Build the image\n"


class TestVariables:
    def test_quoted_and_unquoted(self):
        program = parse_source('NAME="hello world"\nOTHER=plain  \n')
        assert program.variables["NAME"].value == "hello world"
        assert program.variables["OTHER"].value == "plain"

    def test_quoted_value_keeps_newlines(self):
        program = parse_source('TEXT="line1\nline2"\n')
        assert program.variables["TEXT"].value == "line1\nline2"

    def test_last_declaration_wins(self):
        program = parse_source("A=1\nA=2\n")
        assert program.variables["A"].value == "2"

    def test_assignment_inside_rule_is_an_action(self):
        program = parse_source("rule:\n\tX=1\n\techo $X\n")
        assert program.variables == {}
        assert program.rules["rule"].actions == "X=1\necho $X\n"

    def test_call_inside_rule_is_an_action(self):
        program = parse_source("rule:\n\tX=${fn a=1}\n")
        assert program.calls == {}
        assert program.rules["rule"].actions == "X=${fn a=1}\n"


class TestCalls:
    def test_keyword_arguments(self):
        program = parse_source('X=${fn a="1" b=2}')
        call = program.calls["X"]
        assert call.function == "fn"
        assert call.arguments == {"a": "1", "b": "2"}

    def test_multiline_arguments(self):
        source = 'NAME=${flag\n\tdefault="world"\n\tdoc="Who to greet"\n\t# ignored\n}\n'
        call = parse_source(source).calls["NAME"]
        assert call.function == "flag"
        assert call.arguments == {"default": "world", "doc": "Who to greet"}

    def test_no_arguments(self):
        call = parse_source("H=${home}").calls["H"]
        assert call.function == "home"
        assert call.arguments == {}

    def test_last_argument_wins(self):
        call = parse_source('X=${fn a="1"\na="2"}').calls["X"]
        assert call.arguments == {"a": "2"}

    def test_unexpected_syntax(self):
        with pytest.raises(ParseError, match="unexpected syntax inside function call near 'a:b'"):
            parse_source("X=${fn a:b}")

    def test_error_position_inside_arguments(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("A=1\nX=${fn\n\ta:b\n}\n")
        assert (exc_info.value.line, exc_info.value.col) == (3, 2)

    def test_calls_do_not_nest(self):
        tok = Match(TokenKind.CALL, ["X=${fn y=${z}}", "X", "fn", "y=${z}"])
        with pytest.raises(ParseError, match="unexpected syntax inside function call"):
            parse_call(tok)


class TestRules:
    def test_positional_parameters(self):
        program = parse_source("deploy: env region\n\techo ${env}\n")
        rule = program.rules["deploy"]
        assert rule.positional == ["env", "region"]
        assert rule.actions == "echo ${env}\n"

    def test_actions_are_newline_joined(self):
        program = parse_source("build:\n\tmake\n\tmake install\n")
        assert program.rules["build"].actions == "make\nmake install\n"

    def test_comments_inside_rule_are_ignored(self):
        program = parse_source("build:\n\t# compile\n\tmake\n")
        assert program.rules["build"].actions == "make\n"

    def test_nested_rules(self):
        program = parse_source(NESTED)
        assert list(program.rules) == ["docker"]
        docker = program.rules["docker"]
        assert list(docker.children) == ["build", "run"]
        assert docker.actions == ""
        run = docker.children["run"]
        assert run.positional == ["image"]
        assert run.actions == "docker run ${image}\n"

    def test_back_to_top_level(self):
        program = parse_source(NESTED + "clean:\n\trm -rf build\n")
        assert list(program.rules) == ["docker", "clean"]
        assert program.rules["clean"].actions == "rm -rf build\n"

    def test_sibling_order_is_declaration_order(self):
        program = parse_source("b:\n\techo b\na:\n\techo a\nc:\n\techo c\n")
        assert list(program.rules) == ["b", "a", "c"]

    def test_extra_indentation_on_actions(self):
        program = parse_source("rule:\n\t\techo deep\n")
        assert program.rules["rule"].actions == "echo deep\n"


class TestErrors:
    def test_no_tokens(self):
        with pytest.raises(ParseError, match="no tokens to parse"):
            parse([])

    def test_empty_source(self):
        with pytest.raises(ParseError):
            parse_source("")

    def test_overly_indented_rule(self):
        with pytest.raises(ParseError, match="overly indented rule near 'rule:'") as exc_info:
            parse_source("\trule:\n\techo")
        assert (exc_info.value.line, exc_info.value.col) == (1, 2)

    def test_overly_indented_docstring(self):
        with pytest.raises(ParseError, match="overly indented docstring"):
            parse_source("rule:\n\t\t## doc\n\t\techo\n")

    def test_nested_rule_under_actions(self):
        source = 'rule:\n\techo "a"\n\tsub:\n\t\techo "b"\n'
        with pytest.raises(ParseError, match="cannot add nested rule 'sub'") as exc_info:
            parse_source(source)
        assert "parent 'rule' already has actions" in str(exc_info.value)
        assert exc_info.value.line == 3

    def test_bad_indentation(self):
        with pytest.raises(ParseError, match="bad indentation near 'echo b'"):
            parse_source("rule:\n\techo a\necho b\n")

    def test_action_outside_rule(self):
        with pytest.raises(ParseError, match="action outside of rule"):
            parse_source('echo "hi"')

    def test_error_message_has_position(self):
        with pytest.raises(ParseError) as exc_info:
            parse_source("A=1\necho hi\n")
        assert str(exc_info.value) == "line 2, col 1: action outside of rule near 'echo hi'"


class TestProperties:
    SOURCE = """\
## Tools
## for the project

VERSION="1.0"
TARGET=${flag default="debug" type="select" init="debug, release"}

## Build things
build: target
\tmake ${TARGET}
docker:
\timage:
\t\tbuild:
\t\t\tdocker build -t app:${VERSION} .
\t\tpush:
\t\t\tdocker push app:${VERSION}
\tprune:
\t\tdocker system prune
"""

    def test_deterministic(self):
        assert parse_source(self.SOURCE) == parse_source(self.SOURCE)

    def test_depth_matches_indentation(self):
        depths = {path: len(path) - 1 for path, _ in parse_source(self.SOURCE).walk()}
        assert depths == {
            ("build",): 0,
            ("docker",): 0,
            ("docker", "image"): 1,
            ("docker", "image", "build"): 2,
            ("docker", "image", "push"): 2,
            ("docker", "prune"): 1,
        }

    def test_actions_and_children_are_exclusive(self):
        for _, rule in parse_source(self.SOURCE).walk():
            assert not (rule.actions and rule.children)

    def test_program_shape(self):
        program = parse_source(self.SOURCE)
        assert program.doc == "Tools\nfor the project\n"
        assert program.variables["VERSION"].value == "1.0"
        assert program.calls["TARGET"].arguments == {
            "default": "debug",
            "type": "select",
            "init": "debug, release",
        }
        assert program.rules["build"].doc == "Build things\n"


class TestParseFile:
    def test_parse_file(self, tmp_path):
        path = tmp_path / "Clifile"
        path.write_text("hello:\n\techo hello\n")
        program = parse_file(path)
        assert program.rules["hello"].actions == "echo hello\n"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ClifileError, match="unable to read"):
            parse_file(tmp_path / "Clifile")

    def test_file_not_utf8(self, tmp_path):
        path = tmp_path / "Clifile"
        path.write_bytes(b"show:\n\techo \xff\xfe\n")
        with pytest.raises(ClifileError, match="unable to decode .* as UTF-8"):
            parse_file(path)
