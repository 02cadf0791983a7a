"""Command line interface built from a Clifile.

Every rule becomes a sub-command (group rules nest their children), every
``flag`` call becomes a ``--option`` of the leaf commands.

Usage:
    clifile                     # list commands
    clifile build --target=x    # run the actions of rule ``build``
    clifile -f other/Clifile deploy staging --dry-run
"""

import argparse
import logging
import sys
from collections.abc import Sequence

from . import __version__
from .config import Settings, configure_logging, load_settings
from .errors import ClifileError, FlagError
from .flags import Flag, Prompter, bind_flags, program_flags
from .models import Program, Rule
from .parser import parse_file
from .shell import run_script
from .substitution import program_values, render_actions

logger = logging.getLogger(__name__)

# Rule parameters and flag names are \w+ words, so these dests never clash
# with each other or with the parser defaults.
ARG_DEST_PREFIX = "arg:"
FLAG_DEST_PREFIX = "flag:"

# Options every leaf command already has.
RESERVED_OPTIONS = ("help", "file", "config", "verbose", "dry-run")


def _add_global_options(parser: argparse.ArgumentParser, suppress: bool = False) -> None:
    # Sub-commands accept the global options too; their values are read by the
    # pre-parser, so sub-command copies must not overwrite them.
    default = argparse.SUPPRESS if suppress else None
    flag_default = argparse.SUPPRESS if suppress else False
    parser.add_argument(
        "-f", "--file", default=default, help="Clifile to read (default: ./Clifile)"
    )
    parser.add_argument("-c", "--config", default=default, help="YAML settings file")
    parser.add_argument(
        "-v", "--verbose", action="store_true", default=flag_default, help="Log debug output"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=flag_default,
        help="Print the substituted actions instead of running them",
    )


def _pre_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(add_help=False, allow_abbrev=False)
    _add_global_options(parser)
    return parser


def _check_flag_options(flags: list[Flag]) -> None:
    seen: dict[str, str] = {}
    for flag in flags:
        option = flag.option_name
        if option in RESERVED_OPTIONS:
            raise FlagError(f"flag '{flag.name}' conflicts with the built-in option '--{option}'")
        if option in seen:
            raise FlagError(
                f"flags '{seen[option]}' and '{flag.name}' both define option '--{option}'"
            )
        seen[option] = flag.name


def build_parser(program: Program, flags: list[Flag]) -> argparse.ArgumentParser:
    """Argument parser with one sub-command per rule, in declaration order."""
    _check_flag_options(flags)
    parser = argparse.ArgumentParser(
        prog="clifile",
        description=program.doc,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
    )
    _add_global_options(parser, suppress=True)
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.set_defaults(_parser=parser)
    if program.rules:
        subparsers = parser.add_subparsers(title="commands", metavar="COMMAND")
        _add_rules(subparsers, program.rules.values(), flags)
    return parser


def _add_rules(subparsers, rules, flags: list[Flag]) -> None:
    for rule in rules:
        sub = subparsers.add_parser(
            rule.name,
            help=rule.short_doc.replace("%", "%%"),
            description=rule.doc,
            formatter_class=argparse.RawDescriptionHelpFormatter,
            allow_abbrev=False,
        )
        _add_global_options(sub, suppress=True)
        if rule.is_group:
            sub.set_defaults(_parser=sub)
            children = sub.add_subparsers(title="commands", metavar="COMMAND")
            _add_rules(children, rule.children.values(), flags)
            continue

        sub.set_defaults(_rule=rule, _parser=sub)
        for name in rule.positional:
            sub.add_argument(ARG_DEST_PREFIX + name, nargs="?", default=None, metavar=name)
        for flag in flags:
            sub.add_argument(
                f"--{flag.option_name}",
                dest=FLAG_DEST_PREFIX + flag.name,
                default=None,
                metavar=flag.type.value.upper(),
                help=flag.help_text.replace("%", "%%") or None,
            )


def run_rule(
    program: Program,
    rule: Rule,
    args: argparse.Namespace,
    settings: Settings,
    dry_run: bool = False,
) -> int:
    """Bind flags and positionals, substitute the actions and run them."""
    given = {
        dest[len(FLAG_DEST_PREFIX) :]: value
        for dest, value in vars(args).items()
        if dest.startswith(FLAG_DEST_PREFIX)
    }
    prompter = Prompter() if settings.prompt and sys.stdin.isatty() else None
    bind_flags(program, given, prompter)

    values = program_values(program)
    for name in rule.positional:
        value = getattr(args, ARG_DEST_PREFIX + name, None)
        if value is not None:
            values[name] = value

    script = render_actions(rule, values)
    if dry_run:
        sys.stdout.write(script)
        return 0

    logger.info("running rule %s", rule.name)
    return run_script(script, settings.shell)


def main(argv: Sequence[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    pre, _ = _pre_parser().parse_known_args(argv)

    try:
        settings = load_settings(pre.config)
        configure_logging("DEBUG" if pre.verbose else settings.log_level)
        program = parse_file(pre.file or settings.file)
        flags = program_flags(program)

        parser = build_parser(program, flags)
        args = parser.parse_args(argv)
        rule = getattr(args, "_rule", None)
        if rule is None:
            args._parser.print_help()
            return 0
        return run_rule(program, rule, args, settings, dry_run=pre.dry_run)
    except ClifileError as e:
        print(f"clifile: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
