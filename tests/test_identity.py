"""Tests for the session context and identity provider."""

import asyncio
import time

import pytest

from cashledger.errors import OfflineError, UnauthenticatedError
from cashledger.identity import IdentityProvider, SessionContext, create_demo_identity
from cashledger.models.audit import AuditEventType
from cashledger.models.ledger import ConnectivityMode, Profile
from cashledger.services.storage import (
    GoogleSheetsClient,
    InMemoryProfileStorage,
    StorageConnectionError,
)


def _probe(result=True, delay=0.0, error=None):
    async def probe():
        if delay:
            await asyncio.sleep(delay)
        if error is not None:
            raise error
        return result

    return probe


class FailingProfileStorage(InMemoryProfileStorage):
    async def get_profile(self, user_id):
        raise StorageConnectionError("profiles unavailable")


@pytest.fixture
def profiles():
    return InMemoryProfileStorage()


@pytest.fixture
def make_provider(context, profiles, ledger_settings, audit_logger):
    def _make_provider(probe=_probe(True), profile_storage=profiles):
        return IdentityProvider(
            context,
            profile_storage=profile_storage,
            probe=probe,
            settings=ledger_settings,
            audit_logger=audit_logger,
        )

    return _make_provider


class TestSessionContext:
    """Tests for the context lifecycle."""

    def test_initial_state(self):
        context = SessionContext()
        assert context.mode == ConnectivityMode.CHECKING
        assert context.identity is None
        assert context.is_premium is False
        assert context.generation == 0

    def test_require_identity(self, context):
        with pytest.raises(UnauthenticatedError) as exc_info:
            context.require_identity("add a transaction")
        assert exc_info.value.operation == "add a transaction"

    def test_demo_identity_must_be_offline(self, context):
        with pytest.raises(ValueError):
            context.initialize(create_demo_identity(), ConnectivityMode.ONLINE)

    def test_real_identity_must_be_online(self, context, alice):
        with pytest.raises(ValueError):
            context.initialize(alice, ConnectivityMode.OFFLINE)

    def test_generation_bumps_and_listeners_fire(self, context, alice):
        seen = []
        unsubscribe = context.subscribe(lambda ctx: seen.append(ctx.generation))

        context.initialize(alice, ConnectivityMode.ONLINE)
        context.teardown()
        unsubscribe()
        context.initialize(alice, ConnectivityMode.ONLINE)

        assert seen == [1, 2]
        assert context.generation == 3

    def test_teardown_resets_premium(self, context, alice):
        context.initialize(alice, ConnectivityMode.ONLINE, is_premium=True)
        context.teardown()

        assert context.is_premium is False
        assert context.is_authenticated is False

    def test_mode_kept_while_session_active(self, context, alice):
        context.initialize(alice, ConnectivityMode.ONLINE)
        context.set_mode(ConnectivityMode.OFFLINE)
        assert context.mode == ConnectivityMode.ONLINE

    def test_set_premium_reports_change(self, context, alice):
        context.initialize(alice, ConnectivityMode.ONLINE)
        assert context.set_premium(True) is True
        assert context.set_premium(True) is False


class TestConnectivity:
    """Tests for resolving checking → online/offline."""

    @pytest.mark.asyncio
    async def test_probe_success_goes_online(self, make_provider, context):
        provider = make_provider(_probe(True))
        assert await provider.resolve_connectivity() == ConnectivityMode.ONLINE
        assert context.mode == ConnectivityMode.ONLINE

    @pytest.mark.asyncio
    async def test_probe_timeout_goes_offline(self, make_provider, context):
        provider = make_provider(_probe(True, delay=5))

        assert await provider.resolve_connectivity() == ConnectivityMode.OFFLINE
        assert context.mode == ConnectivityMode.OFFLINE

    @pytest.mark.asyncio
    async def test_probe_error_goes_offline(self, make_provider):
        provider = make_provider(_probe(error=ConnectionError("dns")))
        assert await provider.resolve_connectivity() == ConnectivityMode.OFFLINE

    @pytest.mark.asyncio
    async def test_unreachable_goes_offline(self, make_provider):
        provider = make_provider(_probe(False))
        assert await provider.resolve_connectivity() == ConnectivityMode.OFFLINE

    @pytest.mark.asyncio
    async def test_blocking_sheets_client_still_times_out(
        self, make_provider, context, monkeypatch, tmp_path
    ):
        credentials = tmp_path / "credentials.json"
        credentials.write_text("{}")
        monkeypatch.setenv("GOOGLE_SHEETS_CREDENTIALS_PATH", str(credentials))
        monkeypatch.setenv("GOOGLE_SHEETS_SPREADSHEET_ID", "sheet-1")
        client = GoogleSheetsClient()
        monkeypatch.setattr(client, "get_spreadsheet", lambda: time.sleep(0.5))
        provider = make_provider(client.ping)

        started = time.monotonic()
        assert await provider.resolve_connectivity() == ConnectivityMode.OFFLINE

        assert time.monotonic() - started < 0.4
        assert context.mode == ConnectivityMode.OFFLINE

    @pytest.mark.asyncio
    async def test_no_remote_is_offline(self, make_provider, audit_storage):
        provider = make_provider(probe=None)

        assert await provider.resolve_connectivity() == ConnectivityMode.OFFLINE
        events = await audit_storage.get_recent_events()
        assert events[0].event_type == AuditEventType.CONNECTIVITY_RESOLVED


class TestSignIn:
    """Tests for real sessions."""

    @pytest.mark.asyncio
    async def test_missing_profile_is_free_tier(self, make_provider, context, alice):
        provider = make_provider()
        await provider.resolve_connectivity()

        await provider.sign_in(alice)

        assert context.identity == alice
        assert context.mode == ConnectivityMode.ONLINE
        assert context.is_premium is False

    @pytest.mark.asyncio
    async def test_premium_profile(self, make_provider, profiles, context, alice):
        profiles.set_profile(Profile(user_id=alice.id, is_premium=True))
        provider = make_provider()

        await provider.sign_in(alice)

        assert context.is_premium is True

    @pytest.mark.asyncio
    async def test_sign_in_offline_fails(self, make_provider, context, alice):
        provider = make_provider(_probe(False))

        with pytest.raises(OfflineError):
            await provider.sign_in(alice)
        assert context.identity is None

    @pytest.mark.asyncio
    async def test_profile_failure_propagates(self, make_provider, context, alice):
        provider = make_provider(profile_storage=FailingProfileStorage())

        with pytest.raises(StorageConnectionError):
            await provider.sign_in(alice)
        assert context.identity is None

    @pytest.mark.asyncio
    async def test_demo_identity_rejected(self, make_provider):
        with pytest.raises(ValueError):
            await make_provider().sign_in(create_demo_identity())

    @pytest.mark.asyncio
    async def test_refresh_entitlement_after_upgrade(
        self, make_provider, profiles, context, alice, audit_storage
    ):
        provider = make_provider()
        await provider.sign_in(alice)
        assert context.is_premium is False

        profiles.set_profile(Profile(user_id=alice.id, is_premium=True, subscription_status="active"))
        assert await provider.refresh_entitlement() is True
        assert context.is_premium is True

        types = [e.event_type for e in await audit_storage.get_events_by_user(alice.id)]
        assert AuditEventType.ENTITLEMENT_CHANGED in types

    @pytest.mark.asyncio
    async def test_sign_out(self, make_provider, context, alice):
        provider = make_provider()
        await provider.sign_in(alice)

        await provider.sign_out()

        assert context.identity is None
        assert context.mode == ConnectivityMode.ONLINE


class TestDemoMode:
    """Tests for the opt-in demo session."""

    @pytest.mark.asyncio
    async def test_enter_demo_mode(self, make_provider, context):
        provider = make_provider(_probe(False))
        await provider.resolve_connectivity()

        identity = await provider.enter_demo_mode()

        assert identity.is_demo is True
        assert identity.id.startswith("demo-")
        assert context.mode == ConnectivityMode.OFFLINE
        assert context.is_premium is False

    @pytest.mark.asyncio
    async def test_demo_never_premium(self, make_provider, profiles):
        provider = make_provider()
        identity = await provider.enter_demo_mode()
        profiles.set_profile(Profile(user_id=identity.id, is_premium=True))

        assert await provider.refresh_entitlement() is False

    @pytest.mark.asyncio
    async def test_demo_to_online(self, make_provider, context, alice):
        provider = make_provider()
        await provider.enter_demo_mode()

        await provider.sign_in(alice)

        assert context.is_demo is False
        assert context.mode == ConnectivityMode.ONLINE

    def test_demo_ids_are_unique(self):
        assert create_demo_identity().id != create_demo_identity().id
