"""Application wizard step validators.

One pure predicate per step key, evaluated against the full WizardState:

- documents: a resume is selected (cover letter optional)
- selfid: always passes (entirely optional)
- consent: terms accepted and signature of at least 2 non-blank characters
- additional: every required question has a meaningful answer
- review: documents, consent and additional together

Predicates are side-effect free and cheap; the controller re-runs them on
every request rather than caching a validity flag.
"""

from collections.abc import Callable, Iterable, Mapping

from app.schemas.application_wizard import AnswerValue, Question, StepKey
from app.services.wizard_state import WizardState

MIN_SIGNATURE_LENGTH = 2

# =============================================================================
# Helpers
# =============================================================================


def has_meaningful_value(value: object) -> bool:
    """Whether an answer counts as provided.

    Not meaningful: None, a string that is empty after stripping, an empty
    list. Everything else (including False and 0) is meaningful.
    """
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return True


def missing_required_answers(
    questions: Iterable[Question],
    answers: Mapping[str, AnswerValue],
) -> list[str]:
    """Keys of required questions without a meaningful answer, in order."""
    return [
        question.key
        for question in questions
        if question.required and not has_meaningful_value(answers.get(question.key))
    ]


# =============================================================================
# Step predicates
# =============================================================================


def documents_valid(state: WizardState) -> bool:
    """A resume must be selected; the cover letter is optional."""
    return state.documents.resume_id is not None


def selfid_valid(_state: WizardState) -> bool:
    """Self-identification is voluntary."""
    return True


def consent_valid(state: WizardState) -> bool:
    """Terms accepted and a signature of at least two characters."""
    return (
        state.consent.terms_accepted is True
        and len(state.consent.signature_name.strip()) >= MIN_SIGNATURE_LENGTH
    )


def additional_valid(state: WizardState) -> bool:
    """Every required employer question is answered."""
    return not missing_required_answers(state.questions, state.answers)


def review_valid(state: WizardState) -> bool:
    """Re-check everything submission depends on."""
    return documents_valid(state) and consent_valid(state) and additional_valid(state)


_VALIDATORS: dict[StepKey, Callable[[WizardState], bool]] = {
    StepKey.DOCUMENTS: documents_valid,
    StepKey.SELFID: selfid_valid,
    StepKey.CONSENT: consent_valid,
    StepKey.ADDITIONAL: additional_valid,
    StepKey.REVIEW: review_valid,
}


# =============================================================================
# Public Functions
# =============================================================================


def can_advance(step_key: StepKey | str, state: WizardState) -> bool:
    """Whether Continue/Submit is enabled on ``step_key``.

    Args:
        step_key: Step key (enum or its string value).
        state: Full accumulated wizard state.

    Returns:
        True if the step's predicate passes. Unknown step keys never pass.
    """
    try:
        key = StepKey(step_key)
    except ValueError:
        return False
    return _VALIDATORS[key](state)


def missing_fields(step_key: StepKey | str, state: WizardState) -> list[str]:
    """Field names to flag inline on ``step_key``.

    Names match the FieldChanged field names so the front end can highlight
    the corresponding inputs.
    """
    try:
        key = StepKey(step_key)
    except ValueError:
        return []

    missing: list[str] = []
    if key in (StepKey.DOCUMENTS, StepKey.REVIEW) and not documents_valid(state):
        missing.append("resume_id")
    if key in (StepKey.CONSENT, StepKey.REVIEW):
        if state.consent.terms_accepted is not True:
            missing.append("terms_accepted")
        if len(state.consent.signature_name.strip()) < MIN_SIGNATURE_LENGTH:
            missing.append("signature_name")
    if key in (StepKey.ADDITIONAL, StepKey.REVIEW):
        missing.extend(
            f"answers.{k}" for k in missing_required_answers(state.questions, state.answers)
        )
    return missing
