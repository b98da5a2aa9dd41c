"""Abstract base class for the recruiting platform client.

The wizard never talks HTTP directly. It consumes the platform's job-detail,
question-template and document listings and calls the draft, consent,
self-identification, answers and submit endpoints through this interface.
"""

from abc import ABC, abstractmethod

from app.schemas.application_wizard import (
    AnswerSet,
    ApplicationDraft,
    ConsentRecord,
    CreateDraftRequest,
    DocumentSummary,
    JobDetail,
    QuestionTemplate,
    SelfIdentification,
    UpdateDraftRequest,
)


class PlatformClient(ABC):
    """Interface to the recruiting platform's application endpoints.

    WHY ABSTRACT CLASS:
    - DraftSession and WizardController are testable without HTTP
    - The in-memory client doubles as a local-development backend

    Every method raises NetworkError (or a subclass) on failure.
    """

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    @abstractmethod
    async def get_job_detail(self, job_id: int) -> JobDetail:
        """Fetch the job being applied to."""
        ...

    @abstractmethod
    async def get_question_template(self, job_id: int) -> QuestionTemplate:
        """Fetch the employer's question template.

        Raises:
            TemplateLoadError: On any failure.
        """
        ...

    @abstractmethod
    async def list_resumes(self) -> list[DocumentSummary]:
        """List the applicant's resumes.

        Raises:
            DocumentListError: On any failure.
        """
        ...

    @abstractmethod
    async def list_covers(self) -> list[DocumentSummary]:
        """List the applicant's cover letters.

        Raises:
            DocumentListError: On any failure.
        """
        ...

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    @abstractmethod
    async def create_draft(self, request: CreateDraftRequest) -> ApplicationDraft:
        """Create the backing draft record and return it with its id."""
        ...

    @abstractmethod
    async def update_draft(self, request: UpdateDraftRequest) -> None:
        """Update the draft's resume/cover selection."""
        ...

    @abstractmethod
    async def save_consent(self, record: ConsentRecord) -> None:
        """Store terms acceptance and signature."""
        ...

    @abstractmethod
    async def save_self_identification(self, record: SelfIdentification) -> None:
        """Store voluntary self-identification."""
        ...

    @abstractmethod
    async def save_answers(self, answer_set: AnswerSet) -> None:
        """Store additional-question answers."""
        ...

    @abstractmethod
    async def submit_application(self, application_id: int) -> None:
        """Finalize the draft (draft -> submitted)."""
        ...

    async def aclose(self) -> None:
        """Release any held connections. No-op by default."""
        return None
