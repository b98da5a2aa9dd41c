"""Pydantic schemas for the application wizard and the platform it talks to."""

from app.schemas.application_wizard import (
    Answer,
    AnswerSet,
    AnswerValue,
    ApplicationDraft,
    ConsentRecord,
    CreateDraftRequest,
    DocumentSummary,
    JobDetail,
    Question,
    QuestionTemplate,
    QuestionType,
    SelfIdentification,
    StepDefinition,
    StepKey,
    SubmitRequest,
    TemplateStep,
    UpdateDraftRequest,
)

__all__ = [
    # Questions and steps
    "Question",
    "QuestionTemplate",
    "QuestionType",
    "StepDefinition",
    "StepKey",
    "TemplateStep",
    # Platform reads
    "DocumentSummary",
    "JobDetail",
    # Draft records
    "Answer",
    "AnswerSet",
    "AnswerValue",
    "ApplicationDraft",
    "ConsentRecord",
    "CreateDraftRequest",
    "SelfIdentification",
    "SubmitRequest",
    "UpdateDraftRequest",
]
