from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from textual.widgets import Button

from fixtures import mcq, tfq
from study_quiz.quizzer import view as qv
from study_quiz.quizzer.content import QuizContent
from study_quiz.quizzer.session import FeedbackTier, OptionStatus


class StubContainer:
    def __init__(self, *_, **kwargs):
        self.id = kwargs.get("id")
        self.children = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        return False

    def remove_children(self) -> None:
        self.children.clear()

    def mount(self, widget) -> None:
        self.children.append(widget)


class StubVertical(StubContainer):
    pass


class StubStatic:
    def __init__(self, text: str = "", id: str | None = None):
        self.text = text
        self.id = id

    def update(self, new: str) -> None:
        self.text = new


class StubButton:
    def __init__(
        self, label: str, id: str | None = None, disabled: bool = False
    ):
        self.label = label
        self.id = id
        self.disabled = disabled
        self.classes: set[str] = set()

    def add_class(self, name: str) -> None:
        self.classes.add(name)


@pytest.fixture
def stub_widgets(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(qv, "Container", StubContainer)
    monkeypatch.setattr(qv, "Vertical", StubVertical)
    monkeypatch.setattr(qv, "Static", StubStatic)
    monkeypatch.setattr(qv, "Button", StubButton)


@pytest.fixture
def mounted_app(content, stub_widgets, monkeypatch: pytest.MonkeyPatch):
    app = qv.QuizApp(content)
    stage = StubContainer(id="stage")
    status = StubStatic("", id="status")

    def query_one(selector: str, _type):
        if selector == "#stage":
            return stage
        if selector == "#status":
            return status
        raise LookupError(selector)

    monkeypatch.setattr(app, "query_one", query_one)
    return SimpleNamespace(app=app, stage=stage, status=status)


def _press(app: qv.QuizApp, button_id: str) -> None:
    app.on_button_pressed(SimpleNamespace(button=SimpleNamespace(id=button_id)))


def test_compose_yields_stage_and_footer(content, stub_widgets):
    app = qv.QuizApp(content)

    rendered = list(app.compose())

    assert isinstance(rendered[0], qv.QuestionView)
    ids = [getattr(item, "id", None) for item in rendered[1:]]
    assert ids == ["next", "restart", "status"]
    assert rendered[-1].text == "Score: 0/3"


def test_helpers_tolerate_unmounted_app(content, monkeypatch):
    app = qv.QuizApp(content)

    def not_mounted(selector, _type):
        raise LookupError(selector)

    monkeypatch.setattr(app, "query_one", not_mounted)

    assert app.select_answer(1) is True
    assert app.session.score == 1


def test_select_answer_refreshes_stage(mounted_app):
    app = mounted_app.app

    assert app.select_answer(1) is True

    widget = mounted_app.stage.children[-1]
    assert isinstance(widget, qv.QuestionView)
    assert widget.revealed
    assert widget.statuses[1] is OptionStatus.CORRECT
    assert mounted_app.status.text == "Score: 1/3"


def test_second_answer_is_ignored(mounted_app):
    app = mounted_app.app
    app.select_answer(0)

    assert app.select_answer(1) is False
    assert app.session.current_selection == 0
    assert app.session.score == 0


def test_next_requires_answer(mounted_app):
    app = mounted_app.app

    assert app.next_question() is False
    assert app.session.position == 0


def test_select_option_bounds(mounted_app):
    app = mounted_app.app

    assert app.select_option(7) is False
    assert app.select_option(-1) is False
    assert app.select_option(2) is True
    assert app.session.current_selection == 2


def test_keyboard_actions_walk_the_quiz(mounted_app):
    app = mounted_app.app

    app.action_select_b()
    app.action_next()
    app.action_select_c()
    app.action_next()
    app.action_select_true()
    app.action_select_false()
    app.action_next()

    assert app.session.is_finished
    widget = mounted_app.stage.children[-1]
    assert isinstance(widget, qv.ResultsView)
    assert widget.report.final_score == 2
    assert widget.report.feedback_tier is FeedbackTier.FAIR


def test_letter_actions_map_to_options(mounted_app):
    app = mounted_app.app

    app.action_select_d()

    assert app.session.current_selection == 3


def test_true_false_buttons(stub_widgets, monkeypatch):
    content = QuizContent(
        multiple_choice=(mcq(),), true_false=(tfq(correct=True),)
    )
    app = qv.QuizApp(content)
    monkeypatch.setattr(
        app,
        "query_one",
        lambda selector, _type: StubContainer(id=selector),
    )

    _press(app, "choice-1")
    _press(app, "next")
    assert app.session.position == 1

    _press(app, "choice-true")
    assert app.session.current_selection is True
    assert app.session.score == 2


def test_buttons_drive_restart(mounted_app):
    app = mounted_app.app

    _press(mounted_app.app, "choice-0")
    _press(mounted_app.app, "restart")

    assert app.session.position == 0
    assert app.session.current_selection is None
    assert mounted_app.status.text == "Score: 0/3"


def test_select_after_finish_is_rejected(mounted_app):
    app = mounted_app.app
    for value in (1, 2, False):
        app.select_answer(value)
        app.next_question()

    assert app.select_option(0) is False
    assert app.select_answer(True) is False


def test_question_view_compose_marks_statuses(stub_widgets):
    question = mcq()
    view = qv.QuestionView(
        question,
        index=1,
        total=3,
        statuses={
            0: OptionStatus.INCORRECT,
            1: OptionStatus.CORRECT,
            2: OptionStatus.MUTED,
            3: OptionStatus.MUTED,
        },
        selection=0,
    )

    elements = list(view.compose())

    buttons = [item for item in elements if isinstance(item, StubButton)]
    assert [b.id for b in buttons] == [
        "choice-0",
        "choice-1",
        "choice-2",
        "choice-3",
    ]
    assert buttons[0].label == "A) 3"
    assert buttons[0].classes == {"incorrect"}
    assert buttons[1].classes == {"correct"}
    assert all(b.disabled for b in buttons)
    ids = {getattr(item, "id", "") for item in elements}
    assert {"stem", "progress", "feedback"}.issubset(ids)


def test_question_view_feedback_text():
    question = mcq()
    neutral = {option: OptionStatus.NEUTRAL for option in range(4)}

    unanswered = qv.QuestionView(question, 1, 3, statuses=neutral)
    right = qv.QuestionView(
        question,
        1,
        3,
        statuses={1: OptionStatus.CORRECT},
        selection=1,
    )
    wrong = qv.QuestionView(
        question,
        1,
        3,
        statuses={0: OptionStatus.INCORRECT, 1: OptionStatus.CORRECT},
        selection=0,
        show_explanation=False,
    )

    assert unanswered.feedback_text() == ""
    assert right.feedback_text() == "Correct. Basic addition."
    assert wrong.feedback_text() == "Incorrect. The answer is B."


def test_true_false_buttons_ids(stub_widgets):
    view = qv.QuestionView(
        tfq(),
        index=3,
        total=3,
        statuses={True: OptionStatus.NEUTRAL, False: OptionStatus.NEUTRAL},
    )

    buttons = [b for b in view.compose() if isinstance(b, StubButton)]

    assert [b.id for b in buttons] == ["choice-true", "choice-false"]
    assert [b.label for b in buttons] == ["T) True", "F) False"]
    assert not any(b.disabled for b in buttons)


def test_results_view_summary(mounted_app):
    app = mounted_app.app
    for value in (1, 0, True):
        app.select_answer(value)
        app.next_question()

    results = qv.ResultsView(app.session.report())
    lines = results.summary_lines()

    assert lines[0] == "1 / 3 (33%)"
    assert lines[1] == FeedbackTier.NEEDS_IMPROVEMENT.message
    assert lines[2] == "✔ 1. What is 2 + 2?"
    assert lines[3] == "✘ 2. Capital of France?"


def test_results_view_compose(stub_widgets, mounted_app):
    app = mounted_app.app
    for value in (1, 2, False):
        app.select_answer(value)
        app.next_question()

    view = qv.ResultsView(app.session.report())
    texts = [item.text for item in view.compose()]

    assert texts[0] == "3 / 3 (100%)"
    assert len(texts) == 5


def test_enter_advances_even_when_a_footer_button_has_focus(content):
    app = qv.QuizApp(content)

    async def scenario():
        async with app.run_test() as pilot:
            await pilot.press("b")
            await pilot.pause()
            app.set_focus(app.query_one("#restart", Button))
            await pilot.press("enter")
            await pilot.pause()
            return app.session.snapshot()

    snapshot = asyncio.run(scenario())

    assert snapshot.position == 1
    assert snapshot.score == 1
    assert len(app.session.history) == 1
    assert snapshot.current_selection is None
