"""
Flow tests through the app facade.

Everything is wired with in-memory collaborators; the probe is a stub.
"""

import asyncio

import pytest

from cashledger.errors import (
    LimitReachedError,
    OperationInProgressError,
    PremiumFeatureRequiredError,
    UnauthenticatedError,
)
from cashledger.identity import IdentityProvider
from cashledger.models.audit import AuditEventType
from cashledger.models.ledger import ConnectivityMode, Profile, TransactionType
from cashledger.orchestrator import CashLedgerApp, create_app_components
from cashledger.services.storage import InMemoryKeyValueStorage, InMemoryProfileStorage


@pytest.fixture
def profiles():
    return InMemoryProfileStorage()


@pytest.fixture
def probe_result():
    return {"reachable": True}


@pytest.fixture
def app(context, profiles, probe_result, taxonomy, ledger, gate, ledger_settings, audit_logger):
    async def probe():
        return probe_result["reachable"]

    provider = IdentityProvider(
        context,
        profile_storage=profiles,
        probe=probe,
        settings=ledger_settings,
        audit_logger=audit_logger,
    )
    return CashLedgerApp(
        context=context,
        provider=provider,
        taxonomy=taxonomy,
        ledger=ledger,
        gate=gate,
        audit_logger=audit_logger,
    )


class TestSessionFlow:
    """Tests for start, sign-in, demo and sign-out."""

    @pytest.mark.asyncio
    async def test_start_resolves_connectivity(self, app):
        assert app.context.mode == ConnectivityMode.CHECKING
        await app.start()
        assert app.context.mode == ConnectivityMode.ONLINE
        assert len(app.categories) > 0

    @pytest.mark.asyncio
    async def test_sign_in_loads_ledger(self, app, remote, alice, make_transactions):
        remote.seed(alice.id, make_transactions(4))
        await app.start()

        loaded = await app.sign_in(alice)

        assert len(loaded) == 4
        assert app.transactions == loaded

    @pytest.mark.asyncio
    async def test_offline_start_then_demo(self, app, probe_result, remote):
        probe_result["reachable"] = False
        await app.start()
        assert app.context.mode == ConnectivityMode.OFFLINE

        loaded = await app.enter_demo_mode()

        assert len(loaded) == 5
        assert app.summary.balance > 0
        assert remote.calls["list"] == 0

    @pytest.mark.asyncio
    async def test_sign_out_clears_everything(
        self, app, remote, alice, make_draft, make_transactions
    ):
        remote.seed(alice.id, make_transactions(4))
        await app.start()
        await app.sign_in(alice)

        await app.sign_out()

        assert app.transactions == ()
        with pytest.raises(UnauthenticatedError):
            await app.add_transaction(make_draft())


class TestLedgerFlow:
    """Tests for guarded mutations and the upgrade path."""

    @pytest.mark.asyncio
    async def test_limit_then_checkout_upgrade(
        self, app, remote, profiles, alice, make_draft, make_transactions
    ):
        remote.seed(alice.id, make_transactions(49))
        await app.start()
        await app.sign_in(alice)

        await app.add_transaction(make_draft())
        assert app.has_reached_limit is True
        assert app.entitlement.remaining == 0

        with pytest.raises(LimitReachedError):
            await app.add_transaction(make_draft())

        profiles.set_profile(Profile(user_id=alice.id, is_premium=True))
        assert await app.refresh_entitlement() is True

        await app.add_transaction(make_draft())
        assert len(app.transactions) == 51
        assert app.has_reached_limit is False

    @pytest.mark.asyncio
    async def test_double_save_is_rejected(self, app, remote, alice, make_draft):
        await app.start()
        await app.sign_in(alice)
        release = asyncio.Event()
        original_insert = remote.insert_transaction

        async def slow_insert(user_id, draft):
            await release.wait()
            return await original_insert(user_id, draft)

        remote.insert_transaction = slow_insert

        first = asyncio.create_task(app.add_transaction(make_draft()))
        await asyncio.sleep(0)
        assert app.is_saving is True

        with pytest.raises(OperationInProgressError):
            await app.add_transaction(make_draft())

        release.set()
        await first
        assert app.is_saving is False
        assert len(app.transactions) == 1
        assert remote.calls["insert"] == 1

    @pytest.mark.asyncio
    async def test_update_and_delete(self, app, remote, alice, make_transactions):
        remote.seed(alice.id, make_transactions(2))
        await app.start()
        await app.sign_in(alice)
        target = app.transactions[0]

        await app.update_transaction(target.model_copy(update={"description": "Corrected entry"}))
        assert app.transactions[0].description == "Corrected entry"

        await app.delete_transaction(target.id)
        assert len(app.transactions) == 1

    @pytest.mark.asyncio
    async def test_new_category_usable_immediately(self, app, alice, make_draft):
        await app.start()
        await app.sign_in(alice)

        await app.add_category("Consulting", TransactionType.INCOME)
        created = await app.add_transaction(
            make_draft("900", "Advisory retainer", "Consulting", TransactionType.INCOME)
        )

        assert created.category == "Consulting"
        assert app.summary.total_income == created.amount


class TestExport:
    """Tests for the premium JSON export."""

    @pytest.mark.asyncio
    async def test_export_requires_premium(self, app, alice):
        await app.start()
        await app.sign_in(alice)

        with pytest.raises(PremiumFeatureRequiredError):
            await app.export_json()

    @pytest.mark.asyncio
    async def test_export_for_premium(
        self, app, remote, profiles, alice, make_transactions, audit_storage
    ):
        remote.seed(alice.id, make_transactions(3))
        profiles.set_profile(Profile(user_id=alice.id, is_premium=True))
        await app.start()
        await app.sign_in(alice)

        document = await app.export_json("Corner Shop")

        assert document["exportInfo"]["enterpriseName"] == "Corner Shop"
        assert document["exportInfo"]["totalTransactions"] == 3
        types = [e.event_type for e in await audit_storage.get_events_by_user(alice.id)]
        assert AuditEventType.EXPORT_GENERATED in types

    @pytest.mark.asyncio
    async def test_export_requires_identity(self, app):
        with pytest.raises(UnauthenticatedError):
            await app.export_json()


class TestFactory:
    """Tests for create_app_components."""

    @pytest.mark.asyncio
    async def test_without_remote_storage(self):
        app = create_app_components(use_storage=False, taxonomy_storage=InMemoryKeyValueStorage())

        await app.start()
        assert app.context.mode == ConnectivityMode.OFFLINE

        loaded = await app.enter_demo_mode()
        assert len(loaded) == 5
