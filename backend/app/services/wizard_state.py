"""Application wizard state and events.

All form data for one wizard session lives in a single ``WizardState``
aggregate. It changes only through ``apply_field_change``, which returns a
new state and never performs I/O.

Events are the controller's inputs:
- FieldChanged: one field edited (keystroke, checkbox, selection)
- Next: Continue (or Submit on the review step)
- Back: previous step
- Submit: explicit submit from the review step
- DismissError: close the error banner

Field names accepted by FieldChanged:
    resume_id, cover_id,
    terms_accepted, email_updates_accepted, signature_name,
    gender_identity, race_ethnicity, veteran_status, disability_status,
    answers.<question_key>
"""

from dataclasses import dataclass, field, replace
from typing import Any

from app.core.errors import ValidationError
from app.schemas.application_wizard import AnswerValue, Question
from app.services.question_fields import coerce_answer

ANSWER_FIELD_PREFIX = "answers."

_MAX_SIGNATURE_LENGTH = 200
_MAX_SELF_ID_LENGTH = 500

# =============================================================================
# State
# =============================================================================


@dataclass(frozen=True)
class DocumentSelection:
    """Resume (required) and cover letter (optional) chosen for the job."""

    resume_id: int | None = None
    cover_id: int | None = None


@dataclass(frozen=True)
class ConsentForm:
    """Consent step fields."""

    terms_accepted: bool = False
    email_updates_accepted: bool = False
    signature_name: str = ""


@dataclass(frozen=True)
class SelfIdForm:
    """Voluntary self-identification; every field optional."""

    gender_identity: str | None = None
    race_ethnicity: str | None = None
    veteran_status: str | None = None
    disability_status: str | None = None


@dataclass(frozen=True)
class WizardState:
    """Everything the applicant has entered so far.

    Attributes:
        job_id: Job being applied to.
        documents: Resume/cover selection.
        self_id: Self-identification answers.
        consent: Terms acceptance and signature.
        questions: Flattened employer questions (empty when none).
        answers: Additional-question answers keyed by question key.
    """

    job_id: int
    documents: DocumentSelection = field(default_factory=DocumentSelection)
    self_id: SelfIdForm = field(default_factory=SelfIdForm)
    consent: ConsentForm = field(default_factory=ConsentForm)
    questions: tuple[Question, ...] = ()
    answers: dict[str, AnswerValue] = field(default_factory=dict)

    def question(self, key: str) -> Question | None:
        """Look up a template question by key."""
        for question in self.questions:
            if question.key == key:
                return question
        return None


# =============================================================================
# Events
# =============================================================================


@dataclass(frozen=True)
class FieldChanged:
    """One form field changed."""

    field: str
    value: Any = None


@dataclass(frozen=True)
class Next:
    """Continue from the current step (submit on the review step)."""


@dataclass(frozen=True)
class Back:
    """Return to the previous step."""


@dataclass(frozen=True)
class Submit:
    """Submit the application from the review step."""


@dataclass(frozen=True)
class DismissError:
    """Close the error banner."""


WizardEvent = FieldChanged | Next | Back | Submit | DismissError


# =============================================================================
# Field coercion helpers
# =============================================================================


def _field_error(name: str, reason: str) -> ValidationError:
    return ValidationError(
        f"Invalid value for '{name}': {reason}",
        details=[{"field": name, "reason": reason}],
    )


def _document_id(name: str, value: object) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise _field_error(name, "expected a document id")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise _field_error(name, "expected a document id")


def _flag(name: str, value: object) -> bool:
    if isinstance(value, bool):
        return value
    raise _field_error(name, "expected true or false")


def _bounded_text(name: str, value: object, max_length: int) -> str:
    if not isinstance(value, str):
        raise _field_error(name, "expected text")
    if len(value) > max_length:
        raise _field_error(name, f"must be at most {max_length} characters")
    return value


def _optional_text(name: str, value: object) -> str | None:
    if value is None:
        return None
    return _bounded_text(name, value, _MAX_SELF_ID_LENGTH)


# =============================================================================
# Reducer
# =============================================================================


_DOCUMENT_FIELDS = frozenset({"resume_id", "cover_id"})
_SELF_ID_FIELDS = frozenset(
    {"gender_identity", "race_ethnicity", "veteran_status", "disability_status"}
)
_CONSENT_FLAGS = frozenset({"terms_accepted", "email_updates_accepted"})


def apply_field_change(state: WizardState, name: str, value: object) -> WizardState:
    """Return a new state with one field changed.

    Args:
        state: Current wizard state (not modified).
        name: Field name (see module docstring).
        value: Raw value from the front end.

    Returns:
        The updated state.

    Raises:
        ValidationError: Unknown field, unknown question key, or a value that
            does not fit the field. The caller's state is unchanged.
    """
    if name in _DOCUMENT_FIELDS:
        documents = replace(state.documents, **{name: _document_id(name, value)})
        return replace(state, documents=documents)

    if name in _CONSENT_FLAGS:
        consent = replace(state.consent, **{name: _flag(name, value)})
        return replace(state, consent=consent)

    if name == "signature_name":
        signature = _bounded_text(name, "" if value is None else value, _MAX_SIGNATURE_LENGTH)
        return replace(state, consent=replace(state.consent, signature_name=signature))

    if name in _SELF_ID_FIELDS:
        self_id = replace(state.self_id, **{name: _optional_text(name, value)})
        return replace(state, self_id=self_id)

    if name.startswith(ANSWER_FIELD_PREFIX):
        key = name[len(ANSWER_FIELD_PREFIX) :]
        question = state.question(key)
        if question is None:
            raise _field_error(name, "no such question for this job")
        answers = dict(state.answers)
        answers[key] = coerce_answer(question, value)
        return replace(state, answers=answers)

    raise _field_error(name, "unknown field")


def initial_state(
    job_id: int,
    questions: tuple[Question, ...] = (),
    resume_id: int | None = None,
    cover_id: int | None = None,
) -> WizardState:
    """Fresh state for a newly loaded wizard."""
    return WizardState(
        job_id=job_id,
        documents=DocumentSelection(resume_id=resume_id, cover_id=cover_id),
        questions=questions,
    )
