"""Top-level ``mdpress`` command dispatcher."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from mdpress import __version__

CommandHandler = Callable[[Sequence[str]], int]


@dataclass(frozen=True)
class CommandSpec:
    name: str
    summary: str
    handler: CommandHandler


def _convert(argv: Sequence[str]) -> int:
    from mdpress.convert.cli import main

    return main(argv)


def _config(argv: Sequence[str]) -> int:
    from mdpress.convert.cli import config_main

    return config_main(argv)


_COMMAND_SPECS: Sequence[CommandSpec] = (
    CommandSpec(
        name="convert",
        summary="Convert a Markdown document into PDF or DOCX.",
        handler=_convert,
    ),
    CommandSpec(
        name="config",
        summary="Write the default configuration file.",
        handler=_config,
    ),
)

COMMANDS: Mapping[str, CommandSpec] = {
    spec.name: spec for spec in _COMMAND_SPECS
}


def format_usage() -> str:
    width = max(len(spec.name) for spec in _COMMAND_SPECS)
    lines = [
        "Usage: mdpress <command> [args...]",
        "",
        "Available commands:",
    ]
    for spec in _COMMAND_SPECS:
        lines.append(f"  {spec.name.ljust(width)}  {spec.summary}")
    return "\n".join(lines)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(argv if argv is not None else sys.argv[1:])
    if not args:
        sys.stdout.write(format_usage() + "\n")
        return 2

    head, *tail = args
    if head in ("-h", "--help", "help"):
        sys.stdout.write(format_usage() + "\n")
        return 0
    if head in ("-V", "--version", "version"):
        sys.stdout.write(__version__ + "\n")
        return 0

    spec = COMMANDS.get(head)
    if spec is None:
        sys.stderr.write(f"Unknown command '{head}'.\n")
        sys.stderr.write(format_usage() + "\n")
        return 2
    try:
        return spec.handler(tail)
    except SystemExit as exc:
        return _exit_code(exc)


def _exit_code(exc: SystemExit) -> int:
    code = exc.code
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    sys.stderr.write(f"{code}\n")
    return 1


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
