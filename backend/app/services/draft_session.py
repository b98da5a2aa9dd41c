"""Draft session: owns the backing draft record for one wizard session.

The draft is created lazily on the first successful Continue past the
documents step and reused by every later step save:

- ensure_draft: create once, then return the held id
- persist_step: one platform call per step key, scoped by application id

    documents  → create-draft (first time) or update-draft (PATCH)
    selfid     → save-selfid
    consent    → save-consent
    additional → save-answers

The review step is not persisted here; SubmissionFinalizer handles it.
"""

import asyncio
import logging

from app.adapters.platform.base import PlatformClient
from app.core.errors import InvalidStateError
from app.schemas.application_wizard import (
    Answer,
    AnswerSet,
    ConsentRecord,
    CreateDraftRequest,
    SelfIdentification,
    StepKey,
    UpdateDraftRequest,
)
from app.services.wizard_state import DocumentSelection, WizardState

logger = logging.getLogger(__name__)


def build_answer_set(application_id: int, state: WizardState) -> AnswerSet:
    """Ordered answers for the current template.

    Entries follow template question order. Only keys present in
    ``state.answers`` are sent, so every key belongs to the template.
    """
    return AnswerSet(
        application_id=application_id,
        answers=[
            Answer(question_key=question.key, value=state.answers[question.key])
            for question in state.questions
            if question.key in state.answers
        ],
    )


class DraftSession:
    """Lazily created draft plus per-step persistence.

    WHY A LOCK:
    Two overlapping ensure_draft() calls must not create two drafts. The
    lock makes the second caller wait for the first creation and reuse its id.

    Args:
        client: Platform client for the draft endpoints.
        job_id: Job being applied to.
        consent_text_version: Terms version recorded with the consent.
    """

    def __init__(
        self,
        client: PlatformClient,
        job_id: int,
        consent_text_version: str | None = None,
    ) -> None:
        self._client = client
        self._job_id = job_id
        self._consent_text_version = consent_text_version
        self._draft_id: int | None = None
        self._lock = asyncio.Lock()

    @property
    def draft_id(self) -> int | None:
        """Id of the created draft, None until the first creation succeeds."""
        return self._draft_id

    async def ensure_draft(self, selection: DocumentSelection | None = None) -> int:
        """Return the draft id, creating the draft on first use.

        Args:
            selection: Resume/cover to record on creation. Ignored once the
                draft exists.

        Returns:
            The draft id (stable for the life of this session).

        Raises:
            NetworkError: If creation fails; a later call retries creation.
        """
        if self._draft_id is not None:
            return self._draft_id

        async with self._lock:
            if self._draft_id is not None:
                return self._draft_id

            selection = selection or DocumentSelection()
            draft = await self._client.create_draft(
                CreateDraftRequest(
                    job_id=self._job_id,
                    resume_id=selection.resume_id,
                    cover_id=selection.cover_id,
                )
            )
            self._draft_id = draft.id
            logger.info("Created application draft %s for job %s", draft.id, self._job_id)
            return self._draft_id

    async def persist_step(self, step_key: StepKey, state: WizardState) -> int:
        """Persist the slice of ``state`` owned by ``step_key``.

        Args:
            step_key: Step being left via Continue.
            state: Full wizard state; only the step's slice is sent.

        Returns:
            The draft id the slice was saved against.

        Raises:
            NetworkError: If any platform call fails. Nothing is retried.
            InvalidStateError: For the review step (submission is separate).
        """
        if step_key == StepKey.REVIEW:
            raise InvalidStateError(
                "The review step is finalized by submission, not saved as a step."
            )

        if step_key == StepKey.DOCUMENTS:
            return await self._persist_documents(state.documents)

        application_id = await self.ensure_draft(state.documents)

        if step_key == StepKey.SELFID:
            await self._client.save_self_identification(
                SelfIdentification(
                    application_id=application_id,
                    gender_identity=state.self_id.gender_identity,
                    race_ethnicity=state.self_id.race_ethnicity,
                    veteran_status=state.self_id.veteran_status,
                    disability_status=state.self_id.disability_status,
                )
            )
        elif step_key == StepKey.CONSENT:
            await self._client.save_consent(
                ConsentRecord(
                    application_id=application_id,
                    terms_accepted=state.consent.terms_accepted,
                    email_updates_accepted=state.consent.email_updates_accepted,
                    signature_name=state.consent.signature_name.strip(),
                    consent_text_version=self._consent_text_version,
                )
            )
        elif step_key == StepKey.ADDITIONAL:
            await self._client.save_answers(build_answer_set(application_id, state))

        logger.info("Saved step %s for application %s", step_key.value, application_id)
        return application_id

    async def _persist_documents(self, selection: DocumentSelection) -> int:
        """Create the draft, or PATCH the selection if it already exists."""
        if self._draft_id is None:
            return await self.ensure_draft(selection)

        await self._client.update_draft(
            UpdateDraftRequest(
                id=self._draft_id,
                resume_id=selection.resume_id,
                cover_id=selection.cover_id,
            )
        )
        logger.info("Updated documents for application %s", self._draft_id)
        return self._draft_id
