"""Tests for the submission finalizer."""

import pytest

from app.adapters.platform.mock_client import MockPlatformClient
from app.core.errors import InvalidStateError, NetworkError
from app.schemas.application_wizard import CreateDraftRequest
from app.services.submission_finalizer import SubmissionFinalizer

REDIRECT = "http://frontend.test/seeker/applications"


@pytest.fixture
async def client() -> MockPlatformClient:
    """Mock platform with draft 500 already created."""
    platform = MockPlatformClient(first_draft_id=500)
    await platform.create_draft(CreateDraftRequest(job_id=101, resume_id=42))
    return platform


@pytest.fixture
def finalizer(client) -> SubmissionFinalizer:
    return SubmissionFinalizer(client, REDIRECT)


class TestSubmit:
    """Tests for SubmissionFinalizer.submit()."""

    @pytest.mark.asyncio
    async def test_success_flips_draft_and_returns_redirect(self, finalizer, client):
        """Success should submit the draft and build the redirect target."""
        result = await finalizer.submit(500)

        assert client.drafts[500].status == "submitted"
        assert result.application_id == 500
        assert result.redirect_url == f"{REDIRECT}?submitted=500"
        assert finalizer.is_finalized is True
        assert finalizer.result is result

    @pytest.mark.asyncio
    async def test_second_submit_is_rejected_locally(self, finalizer, client):
        """A repeat submit should never reach the platform."""
        await finalizer.submit(500)

        with pytest.raises(InvalidStateError):
            await finalizer.submit(500)

        assert client.call_names().count("submit_application") == 1

    @pytest.mark.asyncio
    async def test_failure_leaves_finalizer_open_for_retry(self, finalizer, client):
        """A rejected submit should keep the draft a draft and allow a retry."""
        client.fail_next("submit_application", NetworkError("Job closed"))

        with pytest.raises(NetworkError, match="Job closed"):
            await finalizer.submit(500)

        assert finalizer.is_finalized is False
        assert client.drafts[500].status == "draft"

        await finalizer.submit(500)
        assert finalizer.is_finalized is True
