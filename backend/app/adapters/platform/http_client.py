"""HTTP platform client.

Talks to the recruiting platform's REST endpoints with ``httpx``.

- Every call carries the configured timeout.
- Non-OK responses become NetworkError with the body's ``error`` text.
- Reads are retried on transient failures; writes are not.
- Malformed records become the call's NetworkError, never a raw
  pydantic error. Bad list entries are skipped individually.
"""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from app.adapters.platform.base import PlatformClient
from app.core.errors import (
    GENERIC_NETWORK_MESSAGE,
    DocumentListError,
    NetworkError,
    TemplateLoadError,
)
from app.core.retry import RetryPolicy, with_retries
from app.schemas.application_wizard import (
    AnswerSet,
    ApplicationDraft,
    ConsentRecord,
    CreateDraftRequest,
    DocumentSummary,
    JobDetail,
    Question,
    QuestionTemplate,
    SelfIdentification,
    SubmitRequest,
    TemplateStep,
    UpdateDraftRequest,
)

logger = structlog.get_logger()

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

_TIMEOUT_MESSAGE = "The request timed out. Please try again."
_MAX_ERROR_MESSAGE_LENGTH = 500
"""Safety bound on upstream error text surfaced to the applicant."""

_DRAFT_PATH = "/apply/application"


def _error_message(response: httpx.Response) -> str:
    """Pull a human-readable message from a non-OK response body.

    Accepts ``{"error": "text"}`` and ``{"error": {"message": "text"}}``;
    anything else yields the generic fallback.
    """
    try:
        body = response.json()
    except ValueError:
        return GENERIC_NETWORK_MESSAGE

    if not isinstance(body, dict):
        return GENERIC_NETWORK_MESSAGE

    error = body.get("error")
    if isinstance(error, dict):
        error = error.get("message")
    if isinstance(error, str) and error.strip():
        return error.strip()[:_MAX_ERROR_MESSAGE_LENGTH]
    return GENERIC_NETWORK_MESSAGE


def _extract_list(body: Any, key: str) -> list[Any]:
    """Accept a bare JSON array or an object wrapping it under ``key``."""
    if isinstance(body, list):
        return body
    if isinstance(body, dict):
        for candidate in (key, "data", "items"):
            value = body.get(candidate)
            if isinstance(value, list):
                return value
    return []


def _decode_valid(model: type[M], items: Any, kind: str) -> list[M]:
    """Validate each item, skipping (and logging) the ones that do not fit.

    One malformed entry from the platform drops only that entry; the rest
    of the list is still usable.
    """
    decoded: list[M] = []
    for index, item in enumerate(items if isinstance(items, list) else []):
        try:
            decoded.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed platform record",
                kind=kind,
                index=index,
                errors=e.error_count(),
            )
    return decoded


class HttpPlatformClient(PlatformClient):
    """PlatformClient over HTTP.

    Args:
        base_url: Platform API root (e.g. ``https://example.com/api``).
        authorization: Caller's Authorization header, forwarded verbatim.
        timeout: Per-request timeout in seconds.
        retry_policy: Backoff settings for reads.
        transport: Optional httpx transport (tests use MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        *,
        authorization: str | None = None,
        timeout: float = 10.0,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if authorization:
            headers["Authorization"] = authorization
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._retry_policy = retry_policy or RetryPolicy()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
        error_cls: type[NetworkError] = NetworkError,
    ) -> Any:
        """Send one request and decode the JSON body.

        Returns:
            Decoded JSON, or None for an empty/non-JSON success body.

        Raises:
            NetworkError: Subclass given by ``error_cls`` on any failure.
        """
        try:
            response = await self._client.request(method, path, json=json)
        except httpx.TimeoutException as e:
            logger.warning("Platform request timed out", method=method, path=path)
            raise error_cls(_TIMEOUT_MESSAGE, transient=True) from e
        except httpx.HTTPError as e:
            logger.warning(
                "Platform request failed",
                method=method,
                path=path,
                error_type=type(e).__name__,
            )
            raise error_cls(GENERIC_NETWORK_MESSAGE, transient=True) from e

        if response.is_error:
            logger.info(
                "Platform returned error status",
                method=method,
                path=path,
                status_code=response.status_code,
            )
            raise error_cls(
                _error_message(response),
                upstream_status=response.status_code,
                transient=response.status_code >= 500,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None

    async def _read(self, func: Callable[[], Awaitable[T]]) -> T:
        return await with_retries(func, self._retry_policy)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_job_detail(self, job_id: int) -> JobDetail:
        body = await self._read(lambda: self._request("GET", f"/jobs/{job_id}"))
        if isinstance(body, dict) and isinstance(body.get("job"), dict):
            body = body["job"]
        if not isinstance(body, dict):
            raise NetworkError("Job details are unavailable.")
        try:
            return JobDetail.model_validate(body)
        except ValidationError as e:
            logger.warning(
                "Platform returned malformed job", job_id=job_id, errors=e.error_count()
            )
            raise NetworkError("Job details are unavailable.") from e

    async def get_question_template(self, job_id: int) -> QuestionTemplate:
        try:
            body = await self._read(
                lambda: self._request(
                    "GET", f"/jobs/{job_id}/questions", error_cls=TemplateLoadError
                )
            )
        except TemplateLoadError as e:
            # No template attached to the posting
            if e.upstream_status == 404:
                return QuestionTemplate.empty()
            raise

        # Older postings store a flat question array instead of grouped steps
        if isinstance(body, list):
            raw_steps: Any = [{"questions": body}]
        elif isinstance(body, dict):
            raw_steps = body.get("steps")
        else:
            return QuestionTemplate.empty()
        if raw_steps is None:
            return QuestionTemplate.empty()
        if not isinstance(raw_steps, list):
            raise TemplateLoadError()

        steps = []
        for raw_step in raw_steps:
            if not isinstance(raw_step, dict):
                raise TemplateLoadError()
            title = raw_step.get("title")
            steps.append(
                TemplateStep(
                    title=title if isinstance(title, str) else None,
                    questions=_decode_valid(
                        Question, raw_step.get("questions"), "template question"
                    ),
                )
            )
        return QuestionTemplate(steps=steps)

    async def _list_documents(self, path: str, key: str) -> list[DocumentSummary]:
        body = await self._read(
            lambda: self._request("GET", path, error_cls=DocumentListError)
        )
        return _decode_valid(DocumentSummary, _extract_list(body, key), key)

    async def list_resumes(self) -> list[DocumentSummary]:
        return await self._list_documents("/resumes", "resumes")

    async def list_covers(self) -> list[DocumentSummary]:
        return await self._list_documents("/covers", "covers")

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create_draft(self, request: CreateDraftRequest) -> ApplicationDraft:
        body = await self._request("POST", _DRAFT_PATH, json=request.to_wire())
        if not isinstance(body, dict) or body.get("id") is None:
            raise NetworkError("The application draft could not be created.")
        try:
            draft_id = int(body["id"])
        except (TypeError, ValueError) as e:
            logger.warning("Platform returned malformed draft id")
            raise NetworkError("The application draft could not be created.") from e
        return ApplicationDraft(
            id=draft_id,
            job_id=request.job_id,
            resume_id=request.resume_id,
            cover_id=request.cover_id,
        )

    async def update_draft(self, request: UpdateDraftRequest) -> None:
        await self._request("PATCH", _DRAFT_PATH, json=request.to_wire())

    async def save_consent(self, record: ConsentRecord) -> None:
        await self._request("POST", "/apply/consent", json=record.to_wire())

    async def save_self_identification(self, record: SelfIdentification) -> None:
        await self._request("POST", "/apply/selfid", json=record.to_wire())

    async def save_answers(self, answer_set: AnswerSet) -> None:
        await self._request("POST", "/apply/answers", json=answer_set.to_wire())

    async def submit_application(self, application_id: int) -> None:
        body = SubmitRequest(application_id=application_id).to_wire()
        await self._request("POST", "/apply/submit", json=body)

    async def aclose(self) -> None:
        await self._client.aclose()
