"""Application wizard API router.

Server-side application wizard sessions. Every endpoint returns the session's
current view in the ``{"data": ...}`` envelope so the front end can render
the step, the Continue state, field cues and any error banner.

    POST   /sessions                   open a session for a job
    GET    /sessions/{id}              current view
    PATCH  /sessions/{id}/fields       change one field (no I/O)
    POST   /sessions/{id}/next         Continue / Submit
    POST   /sessions/{id}/back         previous step (no I/O)
    DELETE /sessions/{id}/error        dismiss the error banner
    DELETE /sessions/{id}              abandon the session
"""

from typing import Any

from fastapi import APIRouter, Response, status
from pydantic import BaseModel, ConfigDict, Field

from app.api.deps import Authorization, PlatformClientFactory, SessionStore
from app.core.config import settings
from app.core.responses import DataResponse
from app.services.wizard_controller import WizardController
from app.services.wizard_sessions import owner_fingerprint
from app.services.wizard_state import Back, DismissError, FieldChanged, Next

router = APIRouter()


# =============================================================================
# Request Schemas
# =============================================================================


class CreateSessionRequest(BaseModel):
    """Request body for opening a wizard session."""

    model_config = ConfigDict(extra="forbid")

    job_id: int = Field(..., gt=0)


class FieldChangeRequest(BaseModel):
    """Request body for a single field change.

    ``field`` uses the wizard field names (``resume_id``, ``signature_name``,
    ``answers.<question_key>``, ...). ``value`` is the raw JSON value.
    """

    model_config = ConfigDict(extra="forbid")

    field: str = Field(..., min_length=1, max_length=200)
    value: Any = None


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/sessions", status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    authorization: Authorization,
    store: SessionStore,
    client_factory: PlatformClientFactory,
) -> DataResponse[dict]:
    """Open a wizard session for a job.

    Fetches the job, its question template and the caller's documents, and
    plans the steps.

    Raises:
        ForbiddenError: The job is not an internally posted job.
        NetworkError: The job could not be fetched.
    """
    controller = WizardController(
        client_factory(authorization),
        request.job_id,
        redirect_url=settings.submitted_redirect_url,
        consent_text_version=settings.consent_text_version,
    )
    try:
        view = await controller.load()
        await store.add(controller, owner_fingerprint(authorization))
    except Exception:
        await controller.close()
        raise
    return DataResponse(data=view.model_dump(mode="json"))


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    authorization: Authorization,
    store: SessionStore,
) -> DataResponse[dict]:
    """Return the session's current view."""
    controller = await store.get(session_id, owner_fingerprint(authorization))
    return DataResponse(data=controller.view().model_dump(mode="json"))


@router.patch("/sessions/{session_id}/fields")
async def change_field(
    session_id: str,
    request: FieldChangeRequest,
    authorization: Authorization,
    store: SessionStore,
) -> DataResponse[dict]:
    """Change one field in memory and return the re-validated view.

    Raises:
        ValidationError: The value does not fit the field.
        InvalidStateError: The application was already submitted.
    """
    controller = await store.get(session_id, owner_fingerprint(authorization))
    view = await controller.dispatch(FieldChanged(field=request.field, value=request.value))
    return DataResponse(data=view.model_dump(mode="json"))


@router.post("/sessions/{session_id}/next")
async def next_step(
    session_id: str,
    authorization: Authorization,
    store: SessionStore,
) -> DataResponse[dict]:
    """Continue (or Submit on the review step).

    Platform failures are reported in the view's ``error`` field with a 200;
    the step index is unchanged and the call can be retried.
    """
    controller = await store.get(session_id, owner_fingerprint(authorization))
    view = await controller.dispatch(Next())
    return DataResponse(data=view.model_dump(mode="json"))


@router.post("/sessions/{session_id}/back")
async def previous_step(
    session_id: str,
    authorization: Authorization,
    store: SessionStore,
) -> DataResponse[dict]:
    """Go back one step. Never validates or saves."""
    controller = await store.get(session_id, owner_fingerprint(authorization))
    view = await controller.dispatch(Back())
    return DataResponse(data=view.model_dump(mode="json"))


@router.delete("/sessions/{session_id}/error")
async def dismiss_error(
    session_id: str,
    authorization: Authorization,
    store: SessionStore,
) -> DataResponse[dict]:
    """Dismiss the error banner."""
    controller = await store.get(session_id, owner_fingerprint(authorization))
    view = await controller.dispatch(DismissError())
    return DataResponse(data=view.model_dump(mode="json"))


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def abandon_session(
    session_id: str,
    authorization: Authorization,
    store: SessionStore,
) -> Response:
    """Abandon the session; any draft stays on the platform as a draft."""
    await store.remove(session_id, owner_fingerprint(authorization))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
