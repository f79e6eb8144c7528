from typing import Dict, List, Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widget import Widget
from textual.widgets import Static, Button
from textual.containers import Vertical, Container

from .console import option_key
from .content import QuizContent, Question
from .errors import InvalidOperationError
from .session import AnswerValue, OptionStatus, QuizReport, QuizSession


def _button_id(option: AnswerValue) -> str:
    if isinstance(option, bool):
        return "choice-true" if option else "choice-false"
    return f"choice-{option}"


class QuizApp(App):
    CSS_PATH = None
    CSS = """
#choices Button.correct { background: $success; color: black; }
#choices Button.incorrect { background: $error; }
#choices Button.muted { opacity: 50%; }
#feedback { margin-top: 1; }
#footer { height: auto; }
"""
    BINDINGS = [
        ("a", "select_a", "A"),
        ("b", "select_b", "B"),
        ("c", "select_c", "C"),
        ("d", "select_d", "D"),
        ("t", "select_true", "True"),
        ("f", "select_false", "False"),
        ("n", "next", "Next"),
        # Focused footer buttons would otherwise take enter.
        Binding("enter", "next", "Next", priority=True),
        ("r", "restart", "Restart"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self, content: QuizContent, *, show_explanations: bool = True
    ):
        super().__init__()
        self.session = QuizSession(content)
        self.show_explanations = show_explanations

    def compose(self) -> ComposeResult:
        with Container(id="stage"):
            yield self._stage_widget()
        with Container(id="footer"):
            yield Button("Next", id="next")
            yield Button("Restart", id="restart")
            yield Static(self._status_text(), id="status")

    # Pure helpers driving the session (testable without running App)
    def select_answer(self, value: AnswerValue) -> bool:
        try:
            self.session.submit_answer(value)
        except InvalidOperationError:
            return False
        self._update_stage()
        return True

    def select_option(self, index: int) -> bool:
        question = self.session.current_question
        if question is None:
            return False
        options = question.answer_options()
        if not 0 <= index < len(options):
            return False
        return self.select_answer(options[index])

    def next_question(self) -> bool:
        try:
            self.session.advance()
        except InvalidOperationError:
            return False
        self._update_stage()
        return True

    def restart(self) -> None:
        self.session.reset()
        self._update_stage()

    def _stage_widget(self) -> Widget:
        if self.session.is_finished:
            return ResultsView(self.session.report())
        question = self.session.current_question
        return QuestionView(
            question,
            index=self.session.position + 1,
            total=self.session.total,
            statuses={
                option: self.session.option_status(option)
                for option in question.answer_options()
            },
            selection=self.session.current_selection,
            show_explanation=self.show_explanations,
        )

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except Exception:  # not mounted yet
            return
        stage.remove_children()
        stage.mount(self._stage_widget())
        try:
            self.query_one("#status", Static).update(self._status_text())
        except Exception:
            pass

    def _status_text(self) -> str:
        snapshot = self.session.snapshot()
        return f"Score: {snapshot.score}/{snapshot.total}"

    def action_select_a(self) -> None:
        self.select_option(0)

    def action_select_b(self) -> None:
        self.select_option(1)

    def action_select_c(self) -> None:
        self.select_option(2)

    def action_select_d(self) -> None:
        self.select_option(3)

    def action_select_true(self) -> None:
        self.select_answer(True)

    def action_select_false(self) -> None:
        self.select_answer(False)

    def action_next(self) -> None:
        self.next_question()

    def action_restart(self) -> None:
        self.restart()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid == "choice-true":
            self.select_answer(True)
        elif bid == "choice-false":
            self.select_answer(False)
        elif bid.startswith("choice-") and bid[7:].isdigit():
            self.select_option(int(bid[7:]))
        elif bid == "next":
            self.action_next()
        elif bid == "restart":
            self.action_restart()


class QuestionView(Widget):
    """Renders one question with its options, progress and feedback."""

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        statuses: Dict[AnswerValue, OptionStatus],
        selection: Optional[AnswerValue] = None,
        show_explanation: bool = True,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.statuses = statuses
        self.selection = selection
        self.show_explanation = show_explanation

    @property
    def revealed(self) -> bool:
        return self.selection is not None

    def compose(self) -> ComposeResult:
        yield Static(self.question.question, id="stem")
        with Vertical(id="choices"):
            for option in self.question.answer_options():
                key = option_key(self.question, option)
                label = f"{key}) {self.question.label_for(option)}"
                btn = Button(
                    label, id=_button_id(option), disabled=self.revealed
                )
                status = self.statuses.get(option, OptionStatus.NEUTRAL)
                if status is not OptionStatus.NEUTRAL:
                    btn.add_class(status.value)
                yield btn
        yield Static(f"{self.index}/{self.total}", id="progress")
        yield Static(self.feedback_text(), id="feedback")

    def feedback_text(self) -> str:
        if not self.revealed:
            return ""
        status = self.statuses.get(self.selection, OptionStatus.NEUTRAL)
        if status is OptionStatus.CORRECT:
            head = "Correct."
        else:
            answer = option_key(self.question, self.question.correct_answer)
            head = f"Incorrect. The answer is {answer}."
        if self.show_explanation and self.question.explanation:
            return f"{head} {self.question.explanation}"
        return head


class ResultsView(Widget):
    """Final score, tier message and the answer log."""

    def __init__(self, report: QuizReport) -> None:
        super().__init__()
        self.report = report

    def compose(self) -> ComposeResult:
        for idx, line in enumerate(self.summary_lines()):
            yield Static(line, id=f"summary-{idx}")

    def summary_lines(self) -> List[str]:
        report = self.report
        lines = [
            f"{report.final_score} / {report.total} ({report.percentage}%)",
            report.feedback_tier.message,
        ]
        for idx, record in enumerate(report.history, start=1):
            mark = "✔" if record.was_correct else "✘"
            lines.append(f"{mark} {idx}. {record.question_text}")
        return lines
