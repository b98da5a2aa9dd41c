"""Field contract for employer questions.

Maps each QuestionType to the widget the front end renders and converts raw
field input into the stored answer value. Conversion is strict: values keep
their type (ints stay ints, booleans stay booleans) so answers round-trip to
the platform without coercion loss.

Value shapes by type:
- TEXT, TEXTAREA, SELECT: str
- NUMBER: int or float
- DATE: ISO date string (YYYY-MM-DD)
- BOOLEAN: bool
- MULTISELECT: list[str]
"""

import math
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from app.core.errors import ValidationError
from app.schemas.application_wizard import AnswerValue, Question, QuestionType

_WIDGETS: dict[QuestionType, str] = {
    QuestionType.TEXT: "input",
    QuestionType.TEXTAREA: "textarea",
    QuestionType.NUMBER: "number",
    QuestionType.DATE: "date",
    QuestionType.BOOLEAN: "checkbox",
    QuestionType.SELECT: "select",
    QuestionType.MULTISELECT: "multiselect",
}

_INTEGER_PATTERN = re.compile(r"^[+-]?\d+$")
_ISO_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_BOOLEAN_STRINGS: dict[str, bool] = {"true": True, "false": False}

_MAX_ANSWER_LENGTH = 10000
"""Safety bound on a single text answer."""


@dataclass(frozen=True)
class FieldDescriptor:
    """What the front end needs to render one question.

    Attributes:
        key: Answer key.
        label: Prompt text.
        widget: Widget name (input, textarea, number, date, checkbox,
            select, multiselect).
        required: Whether an answer is needed before review.
        options: Choices for select widgets.
        help_text: Optional hint.
    """

    key: str
    label: str
    widget: str
    required: bool
    options: tuple[str, ...] = ()
    help_text: str | None = None


def field_for(question: Question) -> FieldDescriptor:
    """Describe the widget for a question."""
    return FieldDescriptor(
        key=question.key,
        label=question.label,
        widget=_WIDGETS[question.type],
        required=question.required,
        options=tuple(question.options or ()),
        help_text=question.help_text,
    )


def _invalid(question: Question, reason: str) -> ValidationError:
    return ValidationError(
        f"Invalid answer for '{question.label}': {reason}",
        details=[{"field": f"answers.{question.key}", "reason": reason}],
    )


def _check_option(question: Question, choice: str) -> None:
    if question.options and choice not in question.options:
        raise _invalid(question, f"'{choice}' is not one of the available options")


def _coerce_text(question: Question, raw: object) -> str:
    if not isinstance(raw, str):
        raise _invalid(question, "expected text")
    if len(raw) > _MAX_ANSWER_LENGTH:
        raise _invalid(question, f"must be at most {_MAX_ANSWER_LENGTH} characters")
    return raw


def _coerce_number(question: Question, raw: object) -> int | float | None:
    # bool is an int subclass; a checkbox value is never a number
    if isinstance(raw, bool):
        raise _invalid(question, "expected a number")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        if not math.isfinite(raw):
            raise _invalid(question, "expected a finite number")
        return raw
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        if _INTEGER_PATTERN.match(text):
            return int(text)
        try:
            value = float(text)
        except ValueError:
            raise _invalid(question, "expected a number") from None
        if not math.isfinite(value):
            raise _invalid(question, "expected a finite number")
        return value
    raise _invalid(question, "expected a number")


def _coerce_date(question: Question, raw: object) -> str | None:
    if isinstance(raw, date):
        return raw.isoformat()
    if not isinstance(raw, str):
        raise _invalid(question, "expected a date (YYYY-MM-DD)")
    text = raw.strip()
    if not text:
        return None
    if not _ISO_DATE_PATTERN.match(text):
        raise _invalid(question, "expected a date (YYYY-MM-DD)")
    try:
        date.fromisoformat(text)
    except ValueError:
        raise _invalid(question, "not a valid calendar date") from None
    return text


def _coerce_boolean(question: Question, raw: object) -> bool:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().lower() in _BOOLEAN_STRINGS:
        return _BOOLEAN_STRINGS[raw.strip().lower()]
    raise _invalid(question, "expected true or false")


def _coerce_select(question: Question, raw: object) -> str:
    if not isinstance(raw, str):
        raise _invalid(question, "expected a single choice")
    # Empty means "nothing chosen yet"; the validator rejects it if required
    if raw:
        _check_option(question, raw)
    return raw


def _coerce_multiselect(question: Question, raw: object) -> list[str]:
    if not isinstance(raw, (list, tuple)):
        raise _invalid(question, "expected a list of choices")
    choices: list[str] = []
    for item in raw:
        if not isinstance(item, str):
            raise _invalid(question, "expected a list of choices")
        _check_option(question, item)
        if item not in choices:
            choices.append(item)
    return choices


# Type → conversion. A QuestionType without an entry is rejected, never
# stored unchecked.
_COERCERS: dict[QuestionType, Callable[[Question, object], AnswerValue]] = {
    QuestionType.TEXT: _coerce_text,
    QuestionType.TEXTAREA: _coerce_text,
    QuestionType.NUMBER: _coerce_number,
    QuestionType.DATE: _coerce_date,
    QuestionType.BOOLEAN: _coerce_boolean,
    QuestionType.SELECT: _coerce_select,
    QuestionType.MULTISELECT: _coerce_multiselect,
}


def coerce_answer(question: Question, raw: object) -> AnswerValue:
    """Convert raw field input into the stored answer for ``question``.

    Args:
        question: The question being answered.
        raw: Value from the front end. None clears the answer.

    Returns:
        Typed answer value (shape depends on question type).

    Raises:
        ValidationError: If the input does not fit the question type or is
            not among the declared options.
    """
    if raw is None:
        return None

    coerce = _COERCERS.get(question.type)
    if coerce is None:
        raise _invalid(question, f"unsupported question type {question.type}")
    return coerce(question, raw)
