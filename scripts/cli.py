"""Single entry point for the fertilizer engine scripts.

Usage::

    fertilizer-tools <command> [args]
    fertilizer-tools --list

Every module of the ``scripts`` package that exposes ``main(argv)`` becomes a
command, with underscores written as dashes. The first line of the module
docstring is shown as the command summary.
"""

from __future__ import annotations

import argparse
from dataclasses import dataclass
import importlib
import pkgutil
import sys
from typing import Callable, Dict

import scripts

_SKIPPED = {"cli", "__init__", "__main__"}


@dataclass(frozen=True)
class Command:
    name: str
    module: str
    summary: str
    entry: Callable[[list[str]], object]


def _summary(doc: str | None) -> str:
    lines = (doc or "").strip().splitlines()
    return lines[0].strip() if lines else ""


def discover_commands() -> Dict[str, Command]:
    """Return the runnable script commands keyed by their dashed name."""

    commands: Dict[str, Command] = {}
    for info in pkgutil.iter_modules(scripts.__path__):
        if info.ispkg or info.name in _SKIPPED:
            continue
        module_name = f"{scripts.__name__}.{info.name}"
        module = importlib.import_module(module_name)
        entry = getattr(module, "main", None)
        if not callable(entry):
            continue
        name = info.name.replace("_", "-")
        commands[name] = Command(name, module_name, _summary(module.__doc__), entry)
    return commands


def format_listing(commands: Dict[str, Command]) -> str:
    width = max((len(name) for name in commands), default=0)
    lines = ["commands:"]
    for name in sorted(commands):
        lines.append(f"  {name.ljust(width)}  {commands[name].summary}".rstrip())
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    commands = discover_commands()
    parser = argparse.ArgumentParser(
        prog="fertilizer-tools",
        description="Fertilizer product finder utilities",
        epilog=format_listing(commands),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--list", action="store_true", help="show available commands and exit")
    parser.add_argument("command", nargs="?", choices=sorted(commands))
    parser.add_argument("args", nargs=argparse.REMAINDER)
    ns = parser.parse_args(argv)

    if ns.list or ns.command is None:
        print(format_listing(commands))
        return 0 if ns.list else 2

    result = commands[ns.command].entry(ns.args)
    return result if isinstance(result, int) else 0


if __name__ == "__main__":  # pragma: no cover - manual execution
    sys.exit(main())
