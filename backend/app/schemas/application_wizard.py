"""Application wizard schemas.

Passive data shared by the step planner, validators, draft session and the
platform client:

- Question / StepDefinition / QuestionTemplate: the employer's questions and
  the planned wizard topology.
- JobDetail / DocumentSummary: read-only records fetched from the platform.
- ApplicationDraft / ConsentRecord / SelfIdentification / AnswerSet: the
  records the wizard writes back.

WHY CAMELCASE ALIASES:
The recruiting platform speaks camelCase JSON (``jobId``, ``signatureName``).
Models keep snake_case attributes and accept either form on input, and
``to_wire()`` dumps by alias for outgoing payloads.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

AnswerValue = str | int | float | bool | list[str] | None
"""Shape of a stored answer; depends on the referenced Question.type."""


class WireModel(BaseModel):
    """Base for models exchanged with the platform (camelCase on the wire)."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump with camelCase keys for a platform request body."""
        return self.model_dump(by_alias=True, mode="json")


# =============================================================================
# Questions and steps
# =============================================================================


class QuestionType(str, Enum):
    """Question types recognized by the field renderer."""

    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    NUMBER = "NUMBER"
    DATE = "DATE"
    BOOLEAN = "BOOLEAN"
    SELECT = "SELECT"
    MULTISELECT = "MULTISELECT"


class StepKey(str, Enum):
    """Stable step identifiers, in canonical order."""

    DOCUMENTS = "documents"
    SELFID = "selfid"
    CONSENT = "consent"
    ADDITIONAL = "additional"
    REVIEW = "review"


class Question(WireModel):
    """A single employer-defined question.

    Attributes:
        key: Stable answer key (unique within a template).
        label: Prompt shown to the applicant.
        type: Field type; determines the answer's value shape.
        required: Whether a meaningful answer is needed before review.
        options: Allowed choices for SELECT / MULTISELECT.
        help_text: Optional hint shown under the field.
    """

    key: str = Field(..., min_length=1)
    label: str
    type: QuestionType = QuestionType.TEXT
    required: bool = False
    options: list[str] | None = None
    help_text: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v: object) -> object:
        """Accept lower/mixed-case type names from older templates."""
        if isinstance(v, str):
            return v.strip().upper()
        return v


class TemplateStep(WireModel):
    """Employer grouping of questions; flattened by the planner."""

    title: str | None = None
    questions: list[Question] = Field(default_factory=list)


class QuestionTemplate(WireModel):
    """Employer-defined question template attached to a job posting.

    An empty template is the fallback when the fetch fails.
    """

    steps: list[TemplateStep] = Field(default_factory=list)

    @classmethod
    def empty(cls) -> "QuestionTemplate":
        """Template with no questions."""
        return cls(steps=[])


class StepDefinition(BaseModel):
    """One page of the wizard.

    Attributes:
        key: Stable step key.
        title: Title shown in the progress indicator.
        questions: Flattened employer questions (additional step only).
    """

    model_config = ConfigDict(frozen=True)

    key: StepKey
    title: str
    questions: tuple[Question, ...] = ()


# =============================================================================
# Platform read models
# =============================================================================


class JobDetail(WireModel):
    """Job record returned by the job-detail fetch."""

    id: int
    title: str
    company: str | None = None
    description: str | None = None
    location: str | None = None
    origin: str = "INTERNAL"

    @property
    def is_internal(self) -> bool:
        """Only internally posted jobs can be applied to through the wizard."""
        return self.origin.strip().upper() == "INTERNAL"


class DocumentSummary(WireModel):
    """Resume or cover letter listing entry."""

    id: int
    name: str
    is_primary: bool = False


# =============================================================================
# Draft and step records
# =============================================================================


class ApplicationDraft(WireModel):
    """Backing record of an in-progress application.

    ``id`` is immutable once the platform assigns it. ``status`` only moves
    from ``draft`` to ``submitted``.
    """

    id: int
    job_id: int
    resume_id: int | None = None
    cover_id: int | None = None
    status: Literal["draft", "submitted"] = "draft"


class CreateDraftRequest(WireModel):
    """Body for create-draft."""

    job_id: int
    resume_id: int | None = None
    cover_id: int | None = None


class UpdateDraftRequest(WireModel):
    """Body for update-draft (documents step re-save)."""

    id: int
    resume_id: int | None = None
    cover_id: int | None = None


class ConsentRecord(WireModel):
    """Terms acceptance and signature for an application."""

    application_id: int
    terms_accepted: bool
    email_updates_accepted: bool = False
    signature_name: str
    consent_text_version: str | None = None


class SelfIdentification(WireModel):
    """Voluntary self-identification. Every field is optional free text."""

    application_id: int
    gender_identity: str | None = None
    race_ethnicity: str | None = None
    veteran_status: str | None = None
    disability_status: str | None = None

    @field_validator(
        "gender_identity",
        "race_ethnicity",
        "veteran_status",
        "disability_status",
        mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        """Treat blank answers as not provided."""
        if isinstance(v, str) and not v.strip():
            return None
        return v


class Answer(WireModel):
    """One additional-question answer."""

    question_key: str
    value: AnswerValue = None


class AnswerSet(WireModel):
    """Ordered additional-question answers for one application."""

    application_id: int
    answers: list[Answer] = Field(default_factory=list)


class SubmitRequest(WireModel):
    """Body for the final submit call."""

    application_id: int
