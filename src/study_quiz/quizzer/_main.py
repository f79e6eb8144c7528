import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence, Tuple

from rich.console import Console

from ..core import configure_logger
from .config import (
    ConfigOverrides,
    LoadResult,
    QuizzerConfig,
    QuizzerConfigError,
    load_config,
)
from .console import run_quiz_session
from .content import QuizContent
from .errors import ContentError, GenerationError
from .generation import (
    QuizGenerator,
    QuizInput,
    TextInput,
    UrlInput,
    request_quiz,
)
from .utils import (
    default_quiz_path,
    file_input_from_path,
    read_quiz_file,
    write_quiz_file,
)
from .view import QuizApp

_RETRY_HINT = "Check the input and try again."


def _error(message: str) -> None:
    sys.stderr.write(f"Error: {message}\n")


def _payload_from_args(args: argparse.Namespace) -> QuizInput:
    if args.url:
        return UrlInput(args.url)
    if args.text is not None:
        return TextInput(args.text)
    if args.text_file:
        path = Path(args.text_file).expanduser()
        return TextInput(path.read_text(encoding="utf-8", errors="replace"))
    return file_input_from_path(Path(args.file).expanduser(), note=args.note)


def _prepare(
    args: argparse.Namespace,
) -> Tuple[LoadResult, logging.Logger, Path]:
    show = getattr(args, "explain", None)
    overrides = ConfigOverrides(
        model=getattr(args, "model", None),
        language=getattr(args, "language", None),
        show_explanations=show,
        log_level=getattr(args, "log_level", None),
    )
    load_result = load_config(
        config_path=Path(args.config) if args.config else None,
        overrides=overrides,
        workspace_path=Path(args.workspace) if args.workspace else None,
    )
    logger, log_path = configure_logger(
        "study_quiz.quizzer",
        log_dir=load_result.layout.path_for("logs"),
        level=load_result.config.log_level,
        verbose=bool(getattr(args, "verbose", False)),
    )
    return load_result, logger, log_path


def _build_generator(
    config: QuizzerConfig, logger: logging.Logger
) -> QuizGenerator:
    return QuizGenerator(config=config.generation, logger=logger)


def _read_payload(args: argparse.Namespace) -> Optional[QuizInput]:
    try:
        return _payload_from_args(args)
    except OSError as exc:
        _error(f"Could not read input file: {exc}")
        return None


def _generate(
    payload: QuizInput,
    load_result: LoadResult,
    logger: logging.Logger,
    console: Console,
) -> Optional[QuizContent]:
    generator = _build_generator(load_result.config, logger)
    try:
        with console.status("Generating quiz..."):
            return asyncio.run(request_quiz(payload, generator=generator))
    except ContentError as exc:
        _error(f"{exc} {_RETRY_HINT}")
    except GenerationError as exc:
        _error(f"Quiz generation failed: {exc} {_RETRY_HINT}")
    return None


def _play(
    content: QuizContent,
    config: QuizzerConfig,
    args: argparse.Namespace,
    logger: logging.Logger,
    console: Console,
) -> int:
    if getattr(args, "tui", False):
        QuizApp(content, show_explanations=config.show_explanations).run()
        return 0
    result = run_quiz_session(
        content,
        console,
        lambda: console.input("[bold]> [/]"),
        show_explanations=config.show_explanations,
        logger=logger,
    )
    return 0 if result.exit_action == "finished" else 1


def _cmd_generate(
    args: argparse.Namespace, console: Optional[Console] = None
) -> int:
    console = console or Console()
    try:
        load_result, logger, _ = _prepare(args)
    except QuizzerConfigError as exc:
        _error(str(exc))
        return 2
    payload = _read_payload(args)
    if payload is None:
        return 1
    content = _generate(payload, load_result, logger, console)
    if content is None:
        return 1
    if args.output:
        out_path = Path(args.output).expanduser()
    else:
        out_path = default_quiz_path(
            load_result.layout.path_for("quizzes"), payload
        )
    write_quiz_file(out_path, content)
    logger.info("Quiz saved", extra={"path": str(out_path)})
    console.print(
        f"Wrote {len(content.multiple_choice)} multiple-choice and "
        f"{len(content.true_false)} true/false question(s) -> {out_path}"
    )
    return 0


def _cmd_play(
    args: argparse.Namespace, console: Optional[Console] = None
) -> int:
    console = console or Console()
    try:
        load_result, logger, _ = _prepare(args)
    except QuizzerConfigError as exc:
        _error(str(exc))
        return 2
    path = Path(args.quiz).expanduser()
    try:
        content = read_quiz_file(path)
    except OSError as exc:
        _error(f"Could not read quiz file: {exc}")
        return 1
    except ContentError as exc:
        _error(f"{path} is not a usable quiz: {exc}")
        return 1
    return _play(content, load_result.config, args, logger, console)


def _cmd_run(
    args: argparse.Namespace, console: Optional[Console] = None
) -> int:
    console = console or Console()
    try:
        load_result, logger, _ = _prepare(args)
    except QuizzerConfigError as exc:
        _error(str(exc))
        return 2
    payload = _read_payload(args)
    if payload is None:
        return 1
    content = _generate(payload, load_result, logger, console)
    if content is None:
        return 1
    return _play(content, load_result.config, args, logger, console)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", help="Path to quizzer.toml")
    parser.add_argument("--workspace", help="Override the workspace root")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr",
    )


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--url", help="Page or video URL to quiz on")
    source.add_argument("--text", help="Text to quiz on")
    source.add_argument("--text-file", help="Read the text from a file")
    source.add_argument(
        "--file",
        help="Upload a document, image, audio or video file",
    )
    parser.add_argument(
        "--note", help="Extra instruction sent along with --file"
    )
    parser.add_argument("--model", help="Chat model override")
    parser.add_argument("--language", help="Language for the questions")


def _add_play_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--tui", action="store_true", help="Use the Textual interface"
    )
    parser.add_argument("--explain", dest="explain", action="store_true")
    parser.add_argument("--no-explain", dest="explain", action="store_false")
    parser.set_defaults(explain=None)


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="study-quiz",
        description="Generate quizzes from study material and take them",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_gen = sub.add_parser("generate", help="Generate and save a quiz")
    _add_source_arguments(sp_gen)
    sp_gen.add_argument("-o", "--output", help="Quiz JSON output path")
    _add_common_arguments(sp_gen)

    sp_play = sub.add_parser("play", help="Take a saved quiz")
    sp_play.add_argument("quiz", help="Quiz JSON written by 'generate'")
    _add_play_arguments(sp_play)
    _add_common_arguments(sp_play)

    sp_run = sub.add_parser("run", help="Generate a quiz and take it")
    _add_source_arguments(sp_run)
    _add_play_arguments(sp_run)
    _add_common_arguments(sp_run)
    return p


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    if args.command == "generate":
        return _cmd_generate(args)
    if args.command == "play":
        return _cmd_play(args)
    if args.command == "run":
        return _cmd_run(args)
    parser.print_help()  # pragma: no cover - argparse enforces commands
    return 2


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
