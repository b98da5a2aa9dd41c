"""Shared fixtures for application wizard tests.

Builds questions, templates, an in-memory platform and loaded controllers.
No network access: every platform call goes to MockPlatformClient.
"""

from collections.abc import Callable

import pytest

from app.adapters.platform.mock_client import MockPlatformClient
from app.schemas.application_wizard import (
    DocumentSummary,
    JobDetail,
    Question,
    QuestionTemplate,
    QuestionType,
    TemplateStep,
)
from app.services.wizard_controller import WizardController

TEST_JOB_ID = 101
TEST_REDIRECT_URL = "http://frontend.test/seeker/applications"
PRIMARY_RESUME_ID = 7
ALTERNATE_RESUME_ID = 42
COVER_ID = 9


@pytest.fixture
def make_question() -> Callable[..., Question]:
    """Factory for template questions."""

    def _make(
        key: str = "q1",
        label: str | None = None,
        type: QuestionType = QuestionType.TEXT,
        required: bool = False,
        options: list[str] | None = None,
    ) -> Question:
        return Question(
            key=key,
            label=label or key.replace("_", " ").title(),
            type=type,
            required=required,
            options=options,
        )

    return _make


@pytest.fixture
def make_template() -> Callable[..., QuestionTemplate]:
    """Factory for templates; each positional list is one employer step."""

    def _make(*groups: list[Question]) -> QuestionTemplate:
        return QuestionTemplate(
            steps=[TemplateStep(questions=list(group)) for group in groups]
        )

    return _make


@pytest.fixture
def screening_template(make_question, make_template) -> QuestionTemplate:
    """Two required employer questions split across two employer steps."""
    return make_template(
        [
            make_question(
                "years_experience",
                label="Years of experience",
                type=QuestionType.NUMBER,
                required=True,
            )
        ],
        [
            make_question(
                "relocate",
                label="Willing to relocate?",
                type=QuestionType.BOOLEAN,
                required=True,
            )
        ],
    )


@pytest.fixture
def resumes() -> list[DocumentSummary]:
    """Applicant resumes; the primary one is preselected."""
    return [
        DocumentSummary(id=PRIMARY_RESUME_ID, name="General resume", is_primary=True),
        DocumentSummary(id=ALTERNATE_RESUME_ID, name="Backend resume"),
    ]


@pytest.fixture
def covers() -> list[DocumentSummary]:
    """Applicant cover letters (none primary)."""
    return [DocumentSummary(id=COVER_ID, name="Cover letter")]


@pytest.fixture
def job() -> JobDetail:
    """Internally posted job."""
    return JobDetail(
        id=TEST_JOB_ID,
        title="Backend Engineer",
        company="Forge Co",
        description="Build APIs.",
        origin="INTERNAL",
    )


@pytest.fixture
def platform(job, resumes, covers) -> MockPlatformClient:
    """In-memory platform with no employer questions."""
    return MockPlatformClient(job=job, resumes=resumes, covers=covers, first_draft_id=500)


@pytest.fixture
def screening_platform(job, resumes, covers, screening_template) -> MockPlatformClient:
    """In-memory platform whose job has two required employer questions."""
    return MockPlatformClient(
        job=job,
        template=screening_template,
        resumes=resumes,
        covers=covers,
        first_draft_id=500,
    )


@pytest.fixture
def make_controller() -> Callable[[MockPlatformClient], WizardController]:
    """Factory for unloaded controllers over a given platform."""

    def _make(client: MockPlatformClient) -> WizardController:
        return WizardController(
            client,
            TEST_JOB_ID,
            redirect_url=TEST_REDIRECT_URL,
            consent_text_version="v1",
        )

    return _make


@pytest.fixture
async def controller(platform, make_controller) -> WizardController:
    """Loaded controller for a job without employer questions."""
    wizard = make_controller(platform)
    await wizard.load()
    return wizard


@pytest.fixture
async def screening_controller(screening_platform, make_controller) -> WizardController:
    """Loaded controller for a job with two required employer questions."""
    wizard = make_controller(screening_platform)
    await wizard.load()
    return wizard
