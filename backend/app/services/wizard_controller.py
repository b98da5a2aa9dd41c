"""Application wizard controller.

State machine over ``step_index`` in ``[0, len(steps) - 1]``:

- load(): fetch job, template and documents once; plan the steps
- next(): validate → persist the current step's slice → advance
- back(): step back (floor 0); no validation, no I/O, state retained
- submit(): on the review step, finalize instead of persisting

Failures from the platform never escape next()/submit(): they become the
view's error banner and the index stays put so the applicant can retry.
Only load-time job failures and contract violations (editing a submitted or
closed session, submitting off the review step) are raised.

Concurrency: one operation with I/O at a time per session. While busy,
next()/submit()/back() are ignored, so step saves never overlap and always
follow step order. close() cancels the in-flight call and no late response
mutates a closed controller.
"""

import asyncio
import logging
import secrets
from collections.abc import Awaitable
from typing import TypeVar

from pydantic import BaseModel

from app.adapters.platform.base import PlatformClient
from app.core.errors import (
    DocumentListError,
    ForbiddenError,
    InvalidStateError,
    NetworkError,
    TemplateLoadError,
)
from app.schemas.application_wizard import (
    AnswerValue,
    DocumentSummary,
    JobDetail,
    QuestionTemplate,
    StepDefinition,
    StepKey,
)
from app.services.draft_session import DraftSession
from app.services.question_fields import FieldDescriptor, field_for
from app.services.step_planner import additional_questions, plan_steps
from app.services.step_validators import can_advance, missing_fields
from app.services.submission_finalizer import SubmissionFinalizer
from app.services.wizard_state import (
    Back,
    DismissError,
    FieldChanged,
    Next,
    Submit,
    WizardEvent,
    WizardState,
    apply_field_change,
    initial_state,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# =============================================================================
# View models
# =============================================================================


class Notice(BaseModel):
    """Non-fatal load problem shown to the applicant."""

    code: str
    message: str


TEMPLATE_UNAVAILABLE = Notice(
    code="TEMPLATE_UNAVAILABLE",
    message=(
        "We couldn't load this employer's additional questions. "
        "You can still apply; the employer may follow up with them."
    ),
)
DOCUMENTS_UNAVAILABLE = Notice(
    code="DOCUMENTS_UNAVAILABLE",
    message="We couldn't load your saved resumes or cover letters. Try again shortly.",
)


class StepProgress(BaseModel):
    """One pill of the (display-only) step indicator."""

    key: StepKey
    title: str
    index: int
    current: bool
    complete: bool


class WizardView(BaseModel):
    """Serializable snapshot of a wizard session."""

    session_id: str
    job: JobDetail | None = None
    steps: list[StepProgress] = []
    step_index: int = 0
    current_step: StepKey | None = None
    question_fields: list[FieldDescriptor] = []
    resumes: list[DocumentSummary] = []
    covers: list[DocumentSummary] = []
    values: dict[str, object] = {}
    can_continue: bool = False
    missing_fields: list[str] = []
    error: str | None = None
    notices: list[Notice] = []
    busy: bool = False
    draft_id: int | None = None
    submitted: bool = False
    redirect_url: str | None = None


def _preselect(documents: list[DocumentSummary], *, fallback_first: bool) -> int | None:
    """Primary document, else (optionally) the first one."""
    for document in documents:
        if document.is_primary:
            return document.id
    if fallback_first and documents:
        return documents[0].id
    return None


def _state_values(state: WizardState) -> dict[str, object]:
    answers: dict[str, AnswerValue] = dict(state.answers)
    return {
        "resume_id": state.documents.resume_id,
        "cover_id": state.documents.cover_id,
        "gender_identity": state.self_id.gender_identity,
        "race_ethnicity": state.self_id.race_ethnicity,
        "veteran_status": state.self_id.veteran_status,
        "disability_status": state.self_id.disability_status,
        "terms_accepted": state.consent.terms_accepted,
        "email_updates_accepted": state.consent.email_updates_accepted,
        "signature_name": state.consent.signature_name,
        "answers": answers,
    }


# =============================================================================
# Controller
# =============================================================================


class WizardController:
    """Drives one applicant through the application wizard for one job.

    Args:
        client: Platform client (owned by the controller; closed by close()).
        job_id: Job being applied to.
        redirect_url: Where to send the applicant after submission.
        consent_text_version: Terms version recorded with the consent.
        session_id: Optional fixed id (a random one is generated otherwise).
    """

    def __init__(
        self,
        client: PlatformClient,
        job_id: int,
        *,
        redirect_url: str,
        consent_text_version: str | None = None,
        session_id: str | None = None,
    ) -> None:
        self.session_id = session_id or secrets.token_urlsafe(16)
        self._client = client
        self._job_id = job_id
        self._draft = DraftSession(client, job_id, consent_text_version)
        self._finalizer = SubmissionFinalizer(client, redirect_url)

        self._job: JobDetail | None = None
        self._steps: list[StepDefinition] = []
        self._step_index = 0
        self._state: WizardState = initial_state(job_id)
        self._resumes: list[DocumentSummary] = []
        self._covers: list[DocumentSummary] = []

        self._error: str | None = None
        self._notices: list[Notice] = []
        self._busy = False
        self._loaded = False
        self._closed = False
        self._inflight: asyncio.Future | None = None

    # -------------------------------------------------------------------------
    # Read-only accessors
    # -------------------------------------------------------------------------

    @property
    def state(self) -> WizardState:
        return self._state

    @property
    def steps(self) -> list[StepDefinition]:
        return list(self._steps)

    @property
    def step_index(self) -> int:
        return self._step_index

    @property
    def current_step(self) -> StepDefinition | None:
        if not self._steps:
            return None
        return self._steps[self._step_index]

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def draft_id(self) -> int | None:
        return self._draft.draft_id

    @property
    def is_submitted(self) -> bool:
        return self._finalizer.is_finalized

    @property
    def is_closed(self) -> bool:
        return self._closed

    def can_continue(self) -> bool:
        """Whether Continue/Submit is enabled right now."""
        step = self.current_step
        if step is None or self._busy or self.is_submitted or self._closed:
            return False
        return can_advance(step.key, self._state)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def load(self) -> "WizardView":
        """Fetch the job, template and documents, then plan the steps.

        Template and document failures are non-fatal (recorded as notices).

        Raises:
            NetworkError: If the job itself cannot be fetched.
            ForbiddenError: If the job is not an internally posted job.
        """
        if self._loaded:
            return self.view()
        self._ensure_open()

        job = await self._run(self._client.get_job_detail(self._job_id))
        if not job.is_internal:
            raise ForbiddenError(
                "This job accepts applications on the employer's site only."
            )

        try:
            template = await self._run(self._client.get_question_template(self._job_id))
        except TemplateLoadError:
            logger.warning("Question template unavailable for job %s", self._job_id)
            template = QuestionTemplate.empty()
            self._notices.append(TEMPLATE_UNAVAILABLE)

        documents_failed = False
        try:
            self._resumes = await self._run(self._client.list_resumes())
        except DocumentListError:
            documents_failed = True
        try:
            self._covers = await self._run(self._client.list_covers())
        except DocumentListError:
            documents_failed = True
        if documents_failed:
            logger.warning("Document listing unavailable for job %s", self._job_id)
            self._notices.append(DOCUMENTS_UNAVAILABLE)

        self._job = job
        self._steps = plan_steps(template)
        self._state = initial_state(
            self._job_id,
            questions=additional_questions(self._steps),
            resume_id=_preselect(self._resumes, fallback_first=True),
            cover_id=_preselect(self._covers, fallback_first=False),
        )
        self._step_index = 0
        self._loaded = True
        logger.info(
            "Wizard %s loaded for job %s with %d steps",
            self.session_id,
            self._job_id,
            len(self._steps),
        )
        return self.view()

    async def close(self) -> None:
        """Abandon the session: cancel in-flight work and release the client.

        The draft (if any) stays on the platform with status ``draft``.
        """
        if self._closed:
            return
        self._closed = True
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        await self._client.aclose()
        logger.info("Wizard %s closed", self.session_id)

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    async def dispatch(self, event: WizardEvent) -> "WizardView":
        """Apply one event and return the resulting view."""
        if isinstance(event, FieldChanged):
            self.update_field(event.field, event.value)
        elif isinstance(event, Next):
            await self.next()
        elif isinstance(event, Back):
            self.back()
        elif isinstance(event, Submit):
            await self.submit()
        elif isinstance(event, DismissError):
            self.dismiss_error()
        return self.view()

    def update_field(self, name: str, value: object) -> None:
        """Change one field in memory. No validation gate, no I/O.

        Raises:
            ValidationError: If the value does not fit the field.
            InvalidStateError: If the session is submitted, closed or not loaded.
        """
        self._ensure_mutable()
        self._state = apply_field_change(self._state, name, value)

    def back(self) -> None:
        """Go to the previous step (floor 0). Never validates, never persists."""
        self._ensure_mutable()
        if self._busy:
            return
        self._step_index = max(0, self._step_index - 1)

    def dismiss_error(self) -> None:
        """Close the error banner."""
        self._error = None

    async def next(self) -> None:
        """Validate, persist the current step, and advance.

        A failing predicate is a silent no-op (no I/O, index unchanged).
        On the review step this submits instead.
        """
        self._ensure_mutable()
        step = self.current_step
        if step is None or self._busy:
            return
        if not can_advance(step.key, self._state):
            return
        if step.key == StepKey.REVIEW:
            await self.submit()
            return

        snapshot = self._state
        self._busy = True
        self._error = None
        try:
            await self._run(self._draft.persist_step(step.key, snapshot))
        except NetworkError as e:
            self._error = e.message
            logger.info(
                "Step %s save failed for wizard %s (status=%s)",
                step.key.value,
                self.session_id,
                e.upstream_status,
            )
            return
        finally:
            self._busy = False

        self._step_index = min(self._step_index + 1, len(self._steps) - 1)

    async def submit(self) -> None:
        """Finalize the application from the review step.

        Raises:
            InvalidStateError: Off the review step, or already submitted.
        """
        self._ensure_mutable()
        step = self.current_step
        if step is None or step.key != StepKey.REVIEW:
            raise InvalidStateError("Submission is only available from the review step.")
        if self._busy or not can_advance(StepKey.REVIEW, self._state):
            return

        self._busy = True
        self._error = None
        try:
            draft_id = await self._run(self._draft.ensure_draft(self._state.documents))
            await self._run(self._finalizer.submit(draft_id))
        except NetworkError as e:
            self._error = e.message
            logger.info(
                "Submission failed for wizard %s (status=%s)",
                self.session_id,
                e.upstream_status,
            )
        finally:
            self._busy = False

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    def view(self) -> WizardView:
        """Snapshot of everything the front end renders."""
        step = self.current_step
        result = self._finalizer.result
        questions = additional_questions(self._steps)
        return WizardView(
            session_id=self.session_id,
            job=self._job,
            steps=[
                StepProgress(
                    key=s.key,
                    title=s.title,
                    index=i,
                    current=i == self._step_index,
                    complete=i < self._step_index or self.is_submitted,
                )
                for i, s in enumerate(self._steps)
            ],
            step_index=self._step_index,
            current_step=step.key if step else None,
            question_fields=[field_for(q) for q in questions],
            resumes=self._resumes,
            covers=self._covers,
            values=_state_values(self._state),
            can_continue=self.can_continue(),
            missing_fields=missing_fields(step.key, self._state) if step else [],
            error=self._error,
            notices=list(self._notices),
            busy=self._busy,
            draft_id=self._draft.draft_id,
            submitted=result is not None,
            redirect_url=result.redirect_url if result else None,
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self._closed:
            raise InvalidStateError("This application session was closed.")

    def _ensure_mutable(self) -> None:
        self._ensure_open()
        if not self._loaded:
            raise InvalidStateError("The application wizard has not been loaded.")
        if self.is_submitted:
            raise InvalidStateError("This application has already been submitted.")

    async def _run(self, awaitable: Awaitable[T]) -> T:
        """Await a platform call so close() can cancel it.

        Raises:
            InvalidStateError: If the session was closed while waiting; the
                late result is discarded.
        """
        future = asyncio.ensure_future(awaitable)
        self._inflight = future
        try:
            result = await future
        except asyncio.CancelledError:
            current = asyncio.current_task()
            if self._closed and (current is None or not current.cancelling()):
                raise InvalidStateError("This application session was closed.") from None
            raise
        finally:
            self._inflight = None

        if self._closed:
            raise InvalidStateError("This application session was closed.")
        return result
