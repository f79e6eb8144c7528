"""Rich-powered console loop over a :class:`QuizSession`.

The loop renders the current question, reads one command per turn from an
input provider and applies it to the session. All scoring lives in the
session; this module only translates keystrokes and draws snapshots, which
keeps it testable with a recording console and a scripted provider.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Literal, Optional, Union

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .content import MultipleChoiceQuestion, Question, QuizContent
from .errors import InvalidOperationError
from .session import (
    AnswerValue,
    OptionStatus,
    QuizReport,
    QuizSession,
    SessionSnapshot,
)

InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "interrupted"]

_OPTION_STYLES = {
    OptionStatus.NEUTRAL: "",
    OptionStatus.CORRECT: "bold green",
    OptionStatus.INCORRECT: "bold red",
    OptionStatus.MUTED: "dim",
}
_OPTION_MARKS = {
    OptionStatus.NEUTRAL: " ",
    OptionStatus.CORRECT: "✔",
    OptionStatus.INCORRECT: "✘",
    OptionStatus.MUTED: " ",
}
_TRUE_WORDS = {"t", "true", "yes"}
_FALSE_WORDS = {"f", "false", "no"}


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["next", "quit", "restart", "select"]
    choice: Optional[str] = None


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from :func:`run_quiz_session`."""

    report: Optional[QuizReport]
    exit_action: ExitAction
    snapshot: SessionSnapshot


def parse_session_command(raw: Optional[str]) -> Optional[SessionCommand]:
    """Parse raw user input into a structured command.

    An empty line means "continue" so learners can press Enter after reading
    the feedback.
    """

    if raw is None:
        return None
    text = raw.strip()
    lowered = text.lower()
    if lowered in {"", "n", "next"}:
        return SessionCommand("next")
    if lowered in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if lowered in {"r", "restart"}:
        return SessionCommand("restart")
    if text.isalnum():
        return SessionCommand("select", text)
    return None


def option_key(question: Question, option: AnswerValue) -> str:
    if isinstance(question, MultipleChoiceQuestion):
        return chr(ord("A") + int(option))
    return "T" if option else "F"


def resolve_answer(
    question: Question, choice: Optional[str]
) -> Optional[AnswerValue]:
    """Map a typed choice (``B``, ``2``, ``true``) onto an answer value."""

    if not choice:
        return None
    token = choice.strip().lower()
    if isinstance(question, MultipleChoiceQuestion):
        count = len(question.options)
        if token.isdigit():
            index = int(token) - 1
        elif len(token) == 1 and token.isalpha():
            index = ord(token) - ord("a")
        else:
            return None
        return index if 0 <= index < count else None
    if token in _TRUE_WORDS:
        return True
    if token in _FALSE_WORDS:
        return False
    return None


def run_quiz_session(
    quiz: Union[QuizContent, QuizSession],
    console: Console,
    input_provider: InputProvider,
    *,
    show_explanations: bool = True,
    logger: Optional[logging.Logger] = None,
) -> QuizSessionResult:
    """Run an interactive quiz using Rich-rendered prompts."""

    session = quiz if isinstance(quiz, QuizSession) else QuizSession(quiz)
    log = logger or logging.getLogger("study_quiz.quizzer")
    log.info("Quiz session started", extra={"total": session.total})

    exit_action: ExitAction = "quit"
    while not session.is_finished:
        _render_question(console, session, show_explanations=show_explanations)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            exit_action = "interrupted"
            break
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if _apply_command(command, session, console, log):
            exit_action = "quit"
            break
    else:
        exit_action = "finished"

    report = session.report() if session.is_finished else None
    if report is not None:
        log.info(
            "Quiz session finished",
            extra={
                "score": report.final_score,
                "total": report.total,
                "percentage": report.percentage,
                "tier": report.feedback_tier.value,
            },
        )
        render_report(console, report)
    return QuizSessionResult(report, exit_action, session.snapshot())


def _apply_command(
    command: SessionCommand,
    session: QuizSession,
    console: Console,
    logger: logging.Logger,
) -> bool:
    """Apply ``command``; return True when the loop should stop."""

    if command.type == "quit":
        console.print("\n[bold yellow]Ending session early.[/]")
        return True
    if command.type == "restart":
        session.reset()
        console.print("[bold cyan]Restarting quiz.[/]")
        return False
    try:
        if command.type == "next":
            session.advance()
            return False
        question = session.current_question
        value = resolve_answer(question, command.choice) if question else None
        if value is None:
            console.print(
                "[red]'%s' is not a valid choice for this question.[/red]"
                % command.choice,
            )
            return False
        correct = session.submit_answer(value)
        logger.debug(
            "Answer submitted",
            extra={"position": session.position, "correct": correct},
        )
    except InvalidOperationError as exc:
        logger.debug("Ignored command", extra={"reason": str(exc)})
        hint = (
            "Already answered. Press Enter to continue."
            if session.is_revealed
            else "Answer the question first."
        )
        console.print(f"[yellow]{hint}[/yellow]")
    return False


def _render_question(
    console: Console, session: QuizSession, *, show_explanations: bool
) -> None:
    snapshot = session.snapshot()
    question = snapshot.current_question
    if question is None:
        return
    kind = (
        "Multiple choice"
        if isinstance(question, MultipleChoiceQuestion)
        else "True / False"
    )
    header = Text.assemble(
        (f"Question {snapshot.position + 1}", "bold cyan"),
        (f" / {snapshot.total}", "dim"),
        (f"  {kind}", "magenta"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")
    for option in question.answer_options():
        status = session.option_status(option)
        label = question.label_for(option)
        row = Text(_OPTION_MARKS[status] + " ")
        row.append(label or "", style=_OPTION_STYLES[status])
        table.add_row(option_key(question, option), row)
    console.print(table)

    if snapshot.is_revealed:
        selection = snapshot.current_selection
        if session.option_status(selection) is OptionStatus.CORRECT:
            console.print("[bold green]Correct![/]")
        else:
            console.print(
                "[bold red]Incorrect.[/] The answer is "
                f"[bold]{option_key(question, question.correct_answer)}[/]."
            )
        if show_explanations and question.explanation:
            console.print(
                Panel(question.explanation, title="Explanation", box=box.ROUNDED)
            )
        action = "see results" if session.is_last_question else "continue"
        hint = f"Press Enter (or n) to {action}, r to restart, q to quit"
    else:
        keys = "/".join(
            option_key(question, option)
            for option in question.answer_options()
        )
        hint = f"Answer [{keys}], r to restart, q to quit"
    console.print(
        Text(f"Score {snapshot.score} | {hint}", style="dim"),
    )


def render_report(console: Console, report: QuizReport) -> None:
    """Print the final score, tier message and answer log."""

    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))
    console.print(
        Panel(
            Text.assemble(
                (f"{report.final_score} / {report.total}", "bold"),
                (f"  ({report.percentage}%)\n", "cyan"),
                (report.feedback_tier.message, "italic"),
            ),
            box=box.DOUBLE,
            expand=False,
        )
    )

    history = Table(title="Answers", box=box.SIMPLE, expand=True)
    history.add_column("#", justify="right")
    history.add_column("Question", overflow="fold")
    history.add_column("Result", justify="center")
    for idx, record in enumerate(report.history, start=1):
        history.add_row(
            str(idx),
            record.question_text,
            "✅" if record.was_correct else "❌",
        )
    console.print(history)
