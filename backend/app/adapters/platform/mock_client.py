"""In-memory platform client for testing.

MockPlatformClient enables wizard tests without an HTTP server.
"""

from typing import Any

from app.adapters.platform.base import PlatformClient
from app.core.errors import NetworkError
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


class MockPlatformClient(PlatformClient):
    """Mock platform for testing.

    WHY MOCK:
    - Unit tests shouldn't hit the real platform
    - Deterministic draft ids and call ordering
    - Can simulate failures for any method

    Attributes:
        job: Job returned by get_job_detail.
        template: Template returned by get_question_template.
        resumes: Resume listing.
        covers: Cover letter listing.
        drafts: Drafts created so far, keyed by id.
        calls: Record of every method invocation (name, payload) in order.
    """

    def __init__(
        self,
        job: JobDetail | None = None,
        template: QuestionTemplate | None = None,
        resumes: list[DocumentSummary] | None = None,
        covers: list[DocumentSummary] | None = None,
        first_draft_id: int = 1,
    ) -> None:
        self.job = job or JobDetail(id=1, title="Software Engineer", company="Acme")
        self.template = template or QuestionTemplate.empty()
        self.resumes = list(resumes or [])
        self.covers = list(covers or [])
        self.drafts: dict[int, ApplicationDraft] = {}
        self.calls: list[tuple[str, Any]] = []
        self._next_draft_id = first_draft_id
        self._failures: dict[str, list[Exception]] = {}
        self.closed = False

    def fail_next(self, method: str, error: Exception | None = None) -> None:
        """Make the next call to ``method`` raise ``error``.

        Args:
            method: PlatformClient method name (e.g. "save_consent").
            error: Exception to raise; defaults to a generic NetworkError.
        """
        self._failures.setdefault(method, []).append(error or NetworkError())

    def call_names(self) -> list[str]:
        """Names of recorded calls, in order."""
        return [name for name, _ in self.calls]

    def payloads(self, method: str) -> list[Any]:
        """Payloads recorded for one method, in order."""
        return [payload for name, payload in self.calls if name == method]

    def _record(self, method: str, payload: Any = None) -> None:
        self.calls.append((method, payload))
        pending = self._failures.get(method)
        if pending:
            raise pending.pop(0)

    async def get_job_detail(self, job_id: int) -> JobDetail:
        self._record("get_job_detail", job_id)
        return self.job

    async def get_question_template(self, job_id: int) -> QuestionTemplate:
        self._record("get_question_template", job_id)
        return self.template

    async def list_resumes(self) -> list[DocumentSummary]:
        self._record("list_resumes")
        return list(self.resumes)

    async def list_covers(self) -> list[DocumentSummary]:
        self._record("list_covers")
        return list(self.covers)

    async def create_draft(self, request: CreateDraftRequest) -> ApplicationDraft:
        self._record("create_draft", request)
        draft = ApplicationDraft(
            id=self._next_draft_id,
            job_id=request.job_id,
            resume_id=request.resume_id,
            cover_id=request.cover_id,
        )
        self._next_draft_id += 1
        self.drafts[draft.id] = draft
        return draft

    async def update_draft(self, request: UpdateDraftRequest) -> None:
        self._record("update_draft", request)
        draft = self.drafts.get(request.id)
        if draft is not None:
            self.drafts[draft.id] = draft.model_copy(
                update={"resume_id": request.resume_id, "cover_id": request.cover_id}
            )

    async def save_consent(self, record: ConsentRecord) -> None:
        self._record("save_consent", record)

    async def save_self_identification(self, record: SelfIdentification) -> None:
        self._record("save_self_identification", record)

    async def save_answers(self, answer_set: AnswerSet) -> None:
        self._record("save_answers", answer_set)

    async def submit_application(self, application_id: int) -> None:
        self._record("submit_application", application_id)
        draft = self.drafts.get(application_id)
        if draft is not None:
            self.drafts[application_id] = draft.model_copy(
                update={"status": "submitted"}
            )

    async def aclose(self) -> None:
        self.closed = True
