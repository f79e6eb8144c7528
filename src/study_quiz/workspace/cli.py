"""CLI entry point that bootstraps the study-quiz workspace."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Mapping, Sequence

from study_quiz.core import config_templates
from study_quiz.core import workspace as workspace_mod
from study_quiz.quizzer.config import CONFIG_FILENAME


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="study-quiz init",
        description=(
            "Create the study-quiz workspace (config, logs and saved "
            "quizzes) and optionally write a starter quizzer.toml."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to STUDY_QUIZ_DATA_HOME "
            "or ~/.study-quiz-data)."
        ),
    )
    parser.add_argument(
        "--write-config",
        action="store_true",
        help="Write the default quizzer.toml into the config directory.",
    )
    parser.add_argument(
        "--overwrite",
        action="store_true",
        help="Replace an existing quizzer.toml when used with --write-config.",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def _format_created(created: Mapping[str, bool], key: str) -> str:
    return "created" if created.get(key, False) else "exists"


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    config_line = None
    if args.write_config:
        target = layout.path_for("config") / CONFIG_FILENAME
        try:
            config_templates.get_template("quizzer").write(
                target, overwrite=args.overwrite
            )
        except config_templates.ConfigTemplateError as exc:
            sys.stderr.write(f"Error: {exc}\n")
            return 1
        config_line = f"Config template written to {target}"

    if args.quiet:
        return 0

    lines = [
        "Workspace ready at {0} ({1})".format(
            layout.home, _format_created(layout.created, "home")
        )
    ]
    width = max(len(name) for name in layout.directories)
    lines.append("Subdirectories:")
    for name, directory in layout.items():
        status = _format_created(layout.created, name)
        lines.append(f"  {name.ljust(width)}  {directory} ({status})")
    if config_line:
        lines.append(config_line)

    sys.stdout.write("\n".join(lines) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
