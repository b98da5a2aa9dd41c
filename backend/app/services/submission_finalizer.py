"""Submission finalizer: the wizard's terminal transition.

Calls the platform's submit endpoint for the draft. On success the draft is
submitted (the platform flips its status) and the wizard hands back a
one-time redirect away from the flow. On failure nothing changes and the
applicant may retry from the review step.

Double-submit guard: after one success, further submits are rejected locally
without reaching the platform.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlencode

from app.adapters.platform.base import PlatformClient
from app.core.errors import InvalidStateError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    """Outcome of a successful submission.

    Attributes:
        application_id: The submitted draft's id.
        redirect_url: Where the front end navigates next.
        submitted_at: When the platform acknowledged the submission.
    """

    application_id: int
    redirect_url: str
    submitted_at: datetime


class SubmissionFinalizer:
    """Submits a draft exactly once.

    Args:
        client: Platform client for the submit endpoint.
        redirect_url: Base URL to send the applicant to after submission.
    """

    def __init__(self, client: PlatformClient, redirect_url: str) -> None:
        self._client = client
        self._redirect_url = redirect_url
        self._result: SubmissionResult | None = None

    @property
    def result(self) -> SubmissionResult | None:
        """The successful submission, None until one happens."""
        return self._result

    @property
    def is_finalized(self) -> bool:
        """Whether the draft has been submitted."""
        return self._result is not None

    async def submit(self, draft_id: int) -> SubmissionResult:
        """Submit the draft.

        Args:
            draft_id: Id from DraftSession.ensure_draft().

        Returns:
            SubmissionResult with the redirect target.

        Raises:
            InvalidStateError: If this finalizer already submitted.
            NetworkError: If the platform rejects or the call fails.
        """
        if self._result is not None:
            raise InvalidStateError("This application has already been submitted.")

        await self._client.submit_application(draft_id)

        query = urlencode({"submitted": draft_id})
        self._result = SubmissionResult(
            application_id=draft_id,
            redirect_url=f"{self._redirect_url}?{query}",
            submitted_at=datetime.now(UTC),
        )
        logger.info("Submitted application %s", draft_id)
        return self._result
