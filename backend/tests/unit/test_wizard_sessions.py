"""Tests for the in-memory wizard session store."""

from datetime import UTC, datetime, timedelta

import pytest

from app.adapters.platform.mock_client import MockPlatformClient
from app.core.errors import NotFoundError, ServiceUnavailableError
from app.services.wizard_sessions import WizardSessionStore, owner_fingerprint

OWNER = owner_fingerprint("Bearer alice")
OTHER_OWNER = owner_fingerprint("Bearer mallory")


class TestOwnerFingerprint:
    """Tests for owner_fingerprint()."""

    def test_is_stable_and_not_the_raw_header(self):
        """Same header should map to the same opaque key."""
        assert owner_fingerprint("Bearer alice") == OWNER
        assert "alice" not in OWNER

    def test_differs_per_caller(self):
        """Different headers should map to different keys."""
        assert OWNER != OTHER_OWNER


class TestWizardSessionStore:
    """Tests for WizardSessionStore."""

    @pytest.mark.asyncio
    async def test_get_returns_owned_session(self, controller):
        """A registered session should be found by its owner."""
        store = WizardSessionStore()
        await store.add(controller, OWNER)

        assert await store.get(controller.session_id, OWNER) is controller

    @pytest.mark.asyncio
    async def test_other_owner_gets_not_found(self, controller):
        """Another caller should not learn the session exists."""
        store = WizardSessionStore()
        await store.add(controller, OWNER)

        with pytest.raises(NotFoundError):
            await store.get(controller.session_id, OTHER_OWNER)

    @pytest.mark.asyncio
    async def test_unknown_session_gets_not_found(self):
        """Unknown ids should raise NotFoundError."""
        with pytest.raises(NotFoundError):
            await WizardSessionStore().get("missing", OWNER)

    @pytest.mark.asyncio
    async def test_remove_closes_controller(self, controller, platform):
        """Removing should close the controller and forget it."""
        store = WizardSessionStore()
        await store.add(controller, OWNER)

        await store.remove(controller.session_id, OWNER)

        assert len(store) == 0
        assert controller.is_closed is True
        assert platform.closed is True

    @pytest.mark.asyncio
    async def test_full_store_evicts_finished_sessions(
        self, controller, platform, make_controller
    ):
        """A closed session should make room for a new one."""
        store = WizardSessionStore(limit=1)
        await store.add(controller, OWNER)
        await controller.close()
        newcomer = make_controller(platform)

        await store.add(newcomer, OWNER)

        assert len(store) == 1
        assert await store.get(newcomer.session_id, OWNER) is newcomer

    @pytest.mark.asyncio
    async def test_full_store_of_active_sessions_is_unavailable(
        self, controller, platform, make_controller
    ):
        """A store full of active sessions should refuse new ones."""
        store = WizardSessionStore(limit=1)
        await store.add(controller, OWNER)

        with pytest.raises(ServiceUnavailableError):
            await store.add(make_controller(platform), OWNER)

    @pytest.mark.asyncio
    async def test_close_all_closes_every_session(self, controller):
        """Shutdown should close all sessions."""
        store = WizardSessionStore()
        await store.add(controller, OWNER)

        await store.close_all()

        assert len(store) == 0
        assert controller.is_closed is True


class TestSessionExpiry:
    """Tests for idle expiry of abandoned sessions."""

    @pytest.mark.asyncio
    async def test_get_refreshes_deadline(self, controller):
        """Reading a session should push its deadline forward."""
        store = WizardSessionStore(ttl_minutes=30)
        await store.add(controller, OWNER)
        soon = datetime.now(UTC) + timedelta(minutes=1)
        store._entries[controller.session_id].expires_at = soon

        await store.get(controller.session_id, OWNER)

        assert store._entries[controller.session_id].expires_at > soon

    @pytest.mark.asyncio
    async def test_expired_session_is_not_found_and_closed(self, controller, platform):
        """An idle session past its deadline should 404 and release its client."""
        store = WizardSessionStore()
        await store.add(controller, OWNER)
        past = datetime.now(UTC) - timedelta(minutes=1)
        store._entries[controller.session_id].expires_at = past

        with pytest.raises(NotFoundError):
            await store.get(controller.session_id, OWNER)

        assert len(store) == 0
        assert controller.is_closed is True
        assert platform.closed is True

    @pytest.mark.asyncio
    async def test_abandoned_sessions_free_their_slots(
        self, job, resumes, make_controller
    ):
        """A full store of idle, never-deleted sessions should accept new ones."""
        store = WizardSessionStore(limit=2)
        abandoned = []
        for _ in range(2):
            wizard = make_controller(MockPlatformClient(job=job, resumes=resumes))
            await wizard.load()
            await store.add(wizard, OWNER)
            abandoned.append(wizard)
        for wizard in abandoned:
            past = datetime.now(UTC) - timedelta(minutes=1)
            store._entries[wizard.session_id].expires_at = past
        newcomer = make_controller(MockPlatformClient(job=job, resumes=resumes))

        await store.add(newcomer, OWNER)

        assert len(store) == 1
        assert all(wizard.is_closed for wizard in abandoned)
        assert await store.get(newcomer.session_id, OWNER) is newcomer

    @pytest.mark.asyncio
    async def test_cleanup_expired_keeps_live_sessions(
        self, controller, platform, make_controller
    ):
        """Only sessions past their deadline should be removed."""
        store = WizardSessionStore()
        live = make_controller(platform)
        await store.add(controller, OWNER)
        await store.add(live, OWNER)
        past = datetime.now(UTC) - timedelta(minutes=1)
        store._entries[controller.session_id].expires_at = past

        removed = await store.cleanup_expired()

        assert removed == 1
        assert await store.get(live.session_id, OWNER) is live
