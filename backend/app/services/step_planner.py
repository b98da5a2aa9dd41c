"""Application wizard step planning.

Computes the ordered wizard steps for a job from its question template:

    documents → selfid → consent → [additional] → review

The additional-questions step is inserted only when the employer's template
contains at least one question, and it carries every question flattened into
a single page regardless of how the employer grouped them.

Pure functions: no I/O, no state. The controller calls ``plan_steps`` once per
template load and keeps the result.
"""

from app.schemas.application_wizard import (
    Question,
    QuestionTemplate,
    StepDefinition,
    StepKey,
)

# =============================================================================
# Step titles
# =============================================================================

_STEP_TITLES: dict[StepKey, str] = {
    StepKey.DOCUMENTS: "Resume & cover letter",
    StepKey.SELFID: "Self-identification",
    StepKey.CONSENT: "Consent & signature",
    StepKey.ADDITIONAL: "Additional questions",
    StepKey.REVIEW: "Review & submit",
}

_FIXED_LEADING_STEPS: tuple[StepKey, ...] = (
    StepKey.DOCUMENTS,
    StepKey.SELFID,
    StepKey.CONSENT,
)


# =============================================================================
# Public Functions
# =============================================================================


def flatten_questions(template: QuestionTemplate | None) -> list[Question]:
    """Flatten all template steps into one ordered question list.

    Duplicate keys keep their first occurrence so every answer key maps to
    exactly one question.

    Args:
        template: Employer template, or None when none was loaded.

    Returns:
        Questions in template order.
    """
    if template is None:
        return []

    seen: set[str] = set()
    flattened: list[Question] = []
    for step in template.steps:
        for question in step.questions:
            if question.key in seen:
                continue
            seen.add(question.key)
            flattened.append(question)
    return flattened


def plan_steps(template: QuestionTemplate | None) -> list[StepDefinition]:
    """Compute the wizard's ordered step list.

    Args:
        template: Employer template. None or an empty template (the fallback
            after a failed fetch) yields no additional-questions step.

    Returns:
        Ordered step definitions, always ending with the review step.
    """
    steps = [
        StepDefinition(key=key, title=_STEP_TITLES[key])
        for key in _FIXED_LEADING_STEPS
    ]

    questions = flatten_questions(template)
    if questions:
        steps.append(
            StepDefinition(
                key=StepKey.ADDITIONAL,
                title=_STEP_TITLES[StepKey.ADDITIONAL],
                questions=tuple(questions),
            )
        )

    steps.append(StepDefinition(key=StepKey.REVIEW, title=_STEP_TITLES[StepKey.REVIEW]))
    return steps


def additional_questions(steps: list[StepDefinition]) -> tuple[Question, ...]:
    """Questions carried by the additional step, or () when it is absent."""
    for step in steps:
        if step.key == StepKey.ADDITIONAL:
            return step.questions
    return ()
