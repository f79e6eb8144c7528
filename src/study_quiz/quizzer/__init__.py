from ._main import build_arg_parser, main
from .content import (
    MultipleChoiceQuestion,
    Question,
    QuizContent,
    TrueFalseQuestion,
    validate,
)
from .errors import (
    ConfigurationError,
    ContentError,
    EmptyContentError,
    GenerationBusyError,
    GenerationError,
    InvalidOperationError,
    MalformedContentError,
    QuizError,
)
from .generation import (
    FileInput,
    QuizGenerator,
    TextInput,
    UrlInput,
    request_quiz,
)
from .session import (
    AnsweredRecord,
    FeedbackTier,
    OptionStatus,
    QuizReport,
    QuizSession,
    SessionSnapshot,
    SessionStatus,
)
from .console import QuizSessionResult, run_quiz_session
from .view import QuizApp, QuestionView, ResultsView

__all__ = [
    "build_arg_parser",
    "main",
    "MultipleChoiceQuestion",
    "TrueFalseQuestion",
    "Question",
    "QuizContent",
    "validate",
    "QuizError",
    "ContentError",
    "EmptyContentError",
    "MalformedContentError",
    "ConfigurationError",
    "InvalidOperationError",
    "GenerationError",
    "GenerationBusyError",
    "UrlInput",
    "TextInput",
    "FileInput",
    "QuizGenerator",
    "request_quiz",
    "AnsweredRecord",
    "FeedbackTier",
    "OptionStatus",
    "QuizReport",
    "QuizSession",
    "SessionSnapshot",
    "SessionStatus",
    "QuizSessionResult",
    "run_quiz_session",
    "QuizApp",
    "QuestionView",
    "ResultsView",
]
