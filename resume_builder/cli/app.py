"""Declarative argparse application.

Commands are registered with decorators; ``@argument`` decorators sit below
``@command`` and are collected when the command is registered::

    app = CLIApp("resume-builder", "Compose and export résumés")

    @app.command("show", help="Print the rendered outline")
    @app.argument("--template", choices=["classic", "two-side"])
    def cmd_show(args):
        ...
        return 0
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..errors import ExitCode, handle_error

CommandFunc = Callable[[argparse.Namespace], int]


@dataclass
class Argument:
    name_or_flags: tuple
    kwargs: Dict[str, Any] = field(default_factory=dict)


@dataclass
class CommandDef:
    name: str
    func: CommandFunc
    help: str = ""
    description: str = ""
    arguments: List[Argument] = field(default_factory=list)
    aliases: List[str] = field(default_factory=list)


class CLIApp:
    def __init__(self, name: str, description: str = "", *, version: Optional[str] = None):
        self.name = name
        self.description = description
        self.version = version
        self._commands: Dict[str, CommandDef] = {}
        self._groups: Dict[str, "CommandGroup"] = {}
        self._pending_arguments: List[Argument] = []
        self._common: List[Argument] = []

    def common_argument(self, *name_or_flags: str, **kwargs: Any) -> None:
        """Add an argument accepted by every command (e.g. ``--draft``)."""
        self._common.append(Argument(name_or_flags, kwargs))

    def _take_pending(self) -> List[Argument]:
        arguments = list(reversed(self._pending_arguments))
        self._pending_arguments.clear()
        return arguments

    def command(self, name: str, *, help: str = "", description: str = "",
                aliases: Optional[List[str]] = None) -> Callable[[CommandFunc], CommandFunc]:
        def decorator(func: CommandFunc) -> CommandFunc:
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=self._take_pending(),
                aliases=aliases or [],
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        """Add an argument to the next command; must sit below ``@command``."""
        def decorator(func: CommandFunc) -> CommandFunc:
            self._pending_arguments.append(Argument(name_or_flags, kwargs))
            return func
        return decorator

    def group(self, name: str, *, help: str = "", description: str = "") -> "CommandGroup":
        group = CommandGroup(self, name, help=help, description=description)
        self._groups[name] = group
        return group

    def _add_common_arguments(self, parser: argparse.ArgumentParser, *, suppress: bool) -> None:
        # Subparsers re-declare the common flags with SUPPRESS defaults so a
        # value given before the command is not reset by the subparser.
        def add(*flags: str, **kwargs: Any) -> None:
            if suppress:
                kwargs = dict(kwargs, default=argparse.SUPPRESS)
            parser.add_argument(*flags, **kwargs)

        add("--verbose", "-v", action="store_true", default=False, help="Enable debug logging")
        add("--output", "-o", choices=["text", "json", "yaml"], default="text",
            help="Output format (default: text)")
        for arg in self._common:
            add(*arg.name_or_flags, **arg.kwargs)

    def _add_command(self, subparsers, cmd_def: CommandDef) -> None:
        cmd_parser = subparsers.add_parser(
            cmd_def.name,
            help=cmd_def.help,
            description=cmd_def.description,
            aliases=cmd_def.aliases,
        )
        self._add_common_arguments(cmd_parser, suppress=True)
        for arg in cmd_def.arguments:
            cmd_parser.add_argument(*arg.name_or_flags, **arg.kwargs)
        cmd_parser.set_defaults(_cmd_func=cmd_def.func)

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog=self.name,
            description=self.description,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        if self.version:
            parser.add_argument("--version", "-V", action="version", version=f"%(prog)s {self.version}")
        self._add_common_arguments(parser, suppress=False)

        subparsers = parser.add_subparsers(dest="command", metavar="<command>")
        for group_name, group in self._groups.items():
            group_parser = subparsers.add_parser(group_name, help=group.help, description=group.description)
            group_sub = group_parser.add_subparsers(dest=f"{group_name}_cmd", metavar="<subcommand>")
            for cmd_def in group._commands.values():
                self._add_command(group_sub, cmd_def)
            group_parser.set_defaults(_group_parser=group_parser)
        for cmd_def in self._commands.values():
            self._add_command(subparsers, cmd_def)
        return parser

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        parser = self.build_parser()
        args = parser.parse_args(argv)
        verbose = bool(getattr(args, "verbose", False))
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.WARNING,
            format="%(levelname)s %(name)s: %(message)s",
        )

        cmd_func = getattr(args, "_cmd_func", None)
        if cmd_func is None:
            (getattr(args, "_group_parser", None) or parser).print_help()
            return int(ExitCode.USAGE)
        try:
            return int(cmd_func(args))
        except (KeyboardInterrupt, Exception) as e:
            return handle_error(e, verbose=verbose)

    def main(self, argv: Optional[Sequence[str]] = None) -> None:
        sys.exit(self.run(argv))


class CommandGroup:
    """Nested commands, e.g. ``sections up``."""

    def __init__(self, app: CLIApp, name: str, *, help: str = "", description: str = ""):
        self.app = app
        self.name = name
        self.help = help
        self.description = description or help
        self._commands: Dict[str, CommandDef] = {}

    def command(self, name: str, *, help: str = "", description: str = "",
                aliases: Optional[List[str]] = None) -> Callable[[CommandFunc], CommandFunc]:
        def decorator(func: CommandFunc) -> CommandFunc:
            self._commands[name] = CommandDef(
                name=name,
                func=func,
                help=help,
                description=description or help,
                arguments=self.app._take_pending(),
                aliases=aliases or [],
            )
            return func
        return decorator

    def argument(self, *name_or_flags: str, **kwargs: Any) -> Callable[[CommandFunc], CommandFunc]:
        return self.app.argument(*name_or_flags, **kwargs)


# -------------------------------------------------------------------------
# Output
# -------------------------------------------------------------------------

def print_data(data: Any, fmt: str = "text", stream=None) -> None:
    """Print plain data (dicts, lists, scalars) as text, JSON or YAML."""
    stream = stream or sys.stdout
    if fmt == "json":
        print(json.dumps(data, indent=2, ensure_ascii=False), file=stream)
    elif fmt == "yaml":
        from ..config import _require_yaml

        yaml = _require_yaml()
        print(yaml.safe_dump(data, sort_keys=False, allow_unicode=True).rstrip(), file=stream)
    elif isinstance(data, (list, tuple)):
        for item in data:
            print(item, file=stream)
    else:
        print(data, file=stream)
