"""unutma - natural-language task capture with date and reminder inference."""

__version__ = "0.1.0"

from .parser import ParseContext, ParseResult, TemporalPhraseParser, parse_task_text
from .task import Task, TaskStatus

__all__ = [
    "ParseContext",
    "ParseResult",
    "TemporalPhraseParser",
    "parse_task_text",
    "Task",
    "TaskStatus",
    "__version__",
]
