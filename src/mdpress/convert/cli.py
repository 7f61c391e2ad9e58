"""Command-line handlers for ``mdpress convert`` and ``mdpress config``."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Sequence

from mdpress.core import config_templates
from mdpress.core import workspace as workspace_mod
from mdpress.core.config_templates import ConfigTemplateError
from mdpress.core.logging import configure_logger
from mdpress.core.workspace import WorkspaceError

from .config import CONFIG_FILENAME, ConfigOverrides, load_config
from .errors import ConvertConfigError
from .exporter import (
    ExportOutcome,
    ExportStatus,
    default_dependencies,
    export_document,
)
from .models import OutputFormat, PageTheme


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdpress convert",
        description=(
            "Convert a Markdown document (with optional YAML front matter "
            "and Mermaid diagrams) into a paginated PDF or a DOCX file."
        ),
        epilog=(
            "Run `mdpress config init` to scaffold the default "
            f"{CONFIG_FILENAME}."
        ),
    )
    parser.add_argument(
        "path",
        type=Path,
        help="Markdown file to convert (.md, .markdown or .txt).",
    )
    parser.add_argument(
        "--format",
        dest="output_format",
        choices=[member.value for member in OutputFormat],
        help="Output format (defaults to pdf).",
    )
    parser.add_argument(
        "--theme",
        choices=[member.value for member in PageTheme],
        help="PDF theme; ignored for docx output.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        help="Directory for the converted file.",
    )
    parser.add_argument(
        "--renderer-url",
        help="Kroki server used to render Mermaid diagrams.",
    )
    parser.add_argument("--config", type=Path, help="Path to a TOML config.")
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root for config, logs and default exports.",
    )
    parser.add_argument("--log-level", help="Log file level (default INFO).")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parser = _build_parser()
    args = parser.parse_args(args_list)

    overrides = ConfigOverrides(
        output_dir=args.output_dir,
        output_format=(
            OutputFormat.from_value(args.output_format)
            if args.output_format
            else None
        ),
        theme=PageTheme.from_value(args.theme) if args.theme else None,
        renderer_url=args.renderer_url,
        log_level=args.log_level,
    )
    try:
        load_result = load_config(
            config_path=args.config,
            overrides=overrides,
            workspace_path=args.workspace,
        )
    except ConvertConfigError as exc:
        parser.error(str(exc))

    config = load_result.config
    logger, log_path = configure_logger(
        "mdpress",
        log_dir=load_result.layout.path_for("logs"),
        level=config.log_level,
        verbose=args.verbose,
    )
    logger.debug("mdpress convert invoked", extra={"argv": args_list})

    outcome = asyncio.run(
        export_document(
            args.path,
            config=config,
            dependencies=default_dependencies(config),
            logger=logger,
        )
    )
    _print_outcome(outcome, log_path)
    return 0 if outcome.status is ExportStatus.SUCCESS else 1


def _print_outcome(outcome: ExportOutcome, log_path: Path) -> None:
    if outcome.status is ExportStatus.SUCCESS:
        sys.stdout.write(
            f"Wrote {outcome.output_path}\n  log file: {log_path}\n"
        )
        return
    sys.stderr.write(
        f"Conversion failed: {outcome.reason}\n  log file: {log_path}\n"
    )


def config_main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="mdpress config",
        description="Manage the mdpress configuration file.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    init_parser = subparsers.add_parser(
        "init", help=f"Write the default {CONFIG_FILENAME} template."
    )
    init_parser.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory).",
    )
    init_parser.add_argument("--workspace", type=Path)
    init_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file.",
    )
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        target = _config_target(args.path, args.workspace)
        written = config_templates.get_template("convert").write(
            target, overwrite=args.force
        )
    except (WorkspaceError, ConfigTemplateError) as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1
    sys.stdout.write(f"Wrote mdpress config to {written}\n")
    return 0


def _config_target(path: Path | None, workspace: Path | None) -> Path:
    if path is not None:
        candidate = path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate
    layout = workspace_mod.ensure_workspace(path=workspace)
    return layout.path_for("config") / CONFIG_FILENAME


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
