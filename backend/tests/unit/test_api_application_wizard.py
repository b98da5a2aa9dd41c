"""Tests for the application wizard API endpoints.

The platform client factory is overridden with MockPlatformClient, so the
full request → controller → platform path runs in-process.
"""

from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from app.api.deps import get_platform_client_factory
from app.core.config import settings
from app.core.errors import NetworkError
from app.main import create_app
from tests.conftest import ALTERNATE_RESUME_ID, PRIMARY_RESUME_ID, TEST_JOB_ID

AUTH = {"Authorization": "Bearer alice-token"}
OTHER_AUTH = {"Authorization": "Bearer mallory-token"}
SESSIONS_URL = "/api/v1/apply/sessions"


@pytest.fixture
def factory_calls() -> list[str | None]:
    """Authorization values the platform factory was called with."""
    return []


@pytest.fixture
def app(screening_platform, factory_calls):
    """App whose platform client factory returns the screening mock."""
    application = create_app()

    def _factory(authorization: str | None):
        factory_calls.append(authorization)
        return screening_platform

    application.dependency_overrides[get_platform_client_factory] = lambda: _factory
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _open_session(client: AsyncClient) -> dict:
    response = await client.post(SESSIONS_URL, json={"job_id": TEST_JOB_ID}, headers=AUTH)
    assert response.status_code == 201
    return response.json()["data"]


async def _change(client: AsyncClient, session_id: str, field: str, value) -> dict:
    response = await client.patch(
        f"{SESSIONS_URL}/{session_id}/fields",
        json={"field": field, "value": value},
        headers=AUTH,
    )
    assert response.status_code == 200
    return response.json()["data"]


async def _next(client: AsyncClient, session_id: str) -> dict:
    response = await client.post(f"{SESSIONS_URL}/{session_id}/next", headers=AUTH)
    assert response.status_code == 200
    return response.json()["data"]


# =============================================================================
# POST /sessions
# =============================================================================


class TestCreateSession:
    """Tests for POST /apply/sessions."""

    @pytest.mark.asyncio
    async def test_returns_initial_view(self, client, factory_calls):
        """A new session should start on documents with the primary resume."""
        view = await _open_session(client)

        assert view["current_step"] == "documents"
        assert view["step_index"] == 0
        assert [s["key"] for s in view["steps"]] == [
            "documents",
            "selfid",
            "consent",
            "additional",
            "review",
        ]
        assert view["values"]["resume_id"] == PRIMARY_RESUME_ID
        assert view["can_continue"] is True
        assert [f["key"] for f in view["question_fields"]] == [
            "years_experience",
            "relocate",
        ]
        assert factory_calls == [AUTH["Authorization"]]

    @pytest.mark.asyncio
    async def test_requires_authorization(self, client):
        """Requests without Authorization should get 401."""
        response = await client.post(SESSIONS_URL, json={"job_id": TEST_JOB_ID})

        assert response.status_code == 401
        assert response.json()["error"]["code"] == "UNAUTHORIZED"

    @pytest.mark.asyncio
    async def test_rejects_non_positive_job_id(self, client):
        """job_id must be a positive integer."""
        response = await client.post(SESSIONS_URL, json={"job_id": 0}, headers=AUTH)

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_external_job_is_forbidden_and_not_kept(
        self, app, client, screening_platform
    ):
        """External jobs should 403 and leave no session behind."""
        screening_platform.job = screening_platform.job.model_copy(
            update={"origin": "EXTERNAL"}
        )

        response = await client.post(
            SESSIONS_URL, json={"job_id": TEST_JOB_ID}, headers=AUTH
        )

        assert response.status_code == 403
        assert len(app.state.wizard_sessions) == 0
        assert screening_platform.closed is True

    @pytest.mark.asyncio
    async def test_job_fetch_failure_returns_502(self, client, screening_platform):
        """A failed job fetch should surface as a 502 with the platform message."""
        screening_platform.fail_next("get_job_detail", NetworkError("Job not found", 404))

        response = await client.post(
            SESSIONS_URL, json={"job_id": TEST_JOB_ID}, headers=AUTH
        )

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "Job not found"


# =============================================================================
# Session access
# =============================================================================


class TestSessionAccess:
    """Tests for GET /apply/sessions/{id} and ownership."""

    @pytest.mark.asyncio
    async def test_owner_can_read_session(self, client):
        """The opener should get the current view."""
        view = await _open_session(client)

        response = await client.get(f"{SESSIONS_URL}/{view['session_id']}", headers=AUTH)

        assert response.status_code == 200
        assert response.json()["data"]["session_id"] == view["session_id"]

    @pytest.mark.asyncio
    async def test_other_caller_gets_404(self, client):
        """Another caller should not see the session."""
        view = await _open_session(client)

        response = await client.get(
            f"{SESSIONS_URL}/{view['session_id']}", headers=OTHER_AUTH
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_abandon_closes_session(self, client, screening_platform):
        """DELETE should close the session; later reads 404."""
        view = await _open_session(client)
        url = f"{SESSIONS_URL}/{view['session_id']}"

        response = await client.delete(url, headers=AUTH)

        assert response.status_code == 204
        assert screening_platform.closed is True
        assert (await client.get(url, headers=AUTH)).status_code == 404

    @pytest.mark.asyncio
    async def test_idle_session_expires(self, app, client, screening_platform):
        """A session left idle past its deadline should 404 and be closed."""
        view = await _open_session(client)
        store = app.state.wizard_sessions
        entry = store._entries[view["session_id"]]
        entry.expires_at = datetime.now(UTC) - timedelta(minutes=1)

        response = await client.get(
            f"{SESSIONS_URL}/{view['session_id']}", headers=AUTH
        )

        assert response.status_code == 404
        assert len(store) == 0
        assert screening_platform.closed is True


# =============================================================================
# Wizard flow
# =============================================================================


class TestWizardFlow:
    """Tests for field changes, navigation and submission over HTTP."""

    @pytest.mark.asyncio
    async def test_full_flow_submits_and_redirects(self, client, screening_platform):
        """Walking every step should submit the draft and return the redirect."""
        session_id = (await _open_session(client))["session_id"]

        await _change(client, session_id, "resume_id", ALTERNATE_RESUME_ID)
        assert (await _next(client, session_id))["current_step"] == "selfid"
        await _change(client, session_id, "veteran_status", "Prefer not to say")
        assert (await _next(client, session_id))["current_step"] == "consent"
        await _change(client, session_id, "terms_accepted", True)
        await _change(client, session_id, "signature_name", "Jane Doe")
        assert (await _next(client, session_id))["current_step"] == "additional"
        await _change(client, session_id, "answers.years_experience", 5)
        await _change(client, session_id, "answers.relocate", True)
        assert (await _next(client, session_id))["current_step"] == "review"

        view = await _next(client, session_id)

        assert view["submitted"] is True
        assert view["draft_id"] == 500
        assert view["redirect_url"] == f"{settings.submitted_redirect_url}?submitted=500"
        assert screening_platform.drafts[500].status == "submitted"

    @pytest.mark.asyncio
    async def test_invalid_step_next_is_no_op(self, client, screening_platform):
        """Continue with a missing resume should stay put and call nothing."""
        session_id = (await _open_session(client))["session_id"]
        view = await _change(client, session_id, "resume_id", None)
        assert view["can_continue"] is False
        assert view["missing_fields"] == ["resume_id"]
        calls_before = len(screening_platform.calls)

        view = await _next(client, session_id)

        assert view["step_index"] == 0
        assert len(screening_platform.calls) == calls_before

    @pytest.mark.asyncio
    async def test_bad_field_value_returns_400(self, client):
        """Values that do not fit the field should be rejected with details."""
        session_id = (await _open_session(client))["session_id"]

        response = await client.patch(
            f"{SESSIONS_URL}/{session_id}/fields",
            json={"field": "answers.relocate", "value": "perhaps"},
            headers=AUTH,
        )

        assert response.status_code == 400
        assert response.json()["error"]["details"][0]["field"] == "answers.relocate"

    @pytest.mark.asyncio
    async def test_save_failure_is_reported_in_view(self, client, screening_platform):
        """A failed save should return 200 with the error and the same step."""
        session_id = (await _open_session(client))["session_id"]
        screening_platform.fail_next(
            "create_draft", NetworkError("Resume is archived", 409)
        )

        view = await _next(client, session_id)

        assert view["step_index"] == 0
        assert view["error"] == "Resume is archived"

        response = await client.delete(
            f"{SESSIONS_URL}/{session_id}/error", headers=AUTH
        )
        assert response.json()["data"]["error"] is None

    @pytest.mark.asyncio
    async def test_back_moves_to_previous_step(self, client, screening_platform):
        """Back should decrement the index without platform calls."""
        session_id = (await _open_session(client))["session_id"]
        await _next(client, session_id)
        calls_before = len(screening_platform.calls)

        response = await client.post(f"{SESSIONS_URL}/{session_id}/back", headers=AUTH)

        assert response.json()["data"]["step_index"] == 0
        assert len(screening_platform.calls) == calls_before

    @pytest.mark.asyncio
    async def test_changes_after_submit_return_422(self, client):
        """A submitted application should refuse further edits."""
        session_id = (await _open_session(client))["session_id"]
        await _next(client, session_id)
        await _next(client, session_id)
        await _change(client, session_id, "terms_accepted", True)
        await _change(client, session_id, "signature_name", "Jane Doe")
        await _next(client, session_id)
        await _change(client, session_id, "answers.years_experience", 3)
        await _change(client, session_id, "answers.relocate", False)
        await _next(client, session_id)
        await _next(client, session_id)

        response = await client.patch(
            f"{SESSIONS_URL}/{session_id}/fields",
            json={"field": "signature_name", "value": "Someone Else"},
            headers=AUTH,
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "INVALID_STATE_TRANSITION"
