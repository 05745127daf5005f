"""
Test suite for the lending service host

Covers authentication ahead of every mutation, transactional persistence,
audit recording and post-commit event publication.
"""

import pytest
from decimal import Decimal
from unittest.mock import Mock

from lending_pool.auth import JWTAuthenticator
from lending_pool.config import LendingPoolConfig
from lending_pool.errors import (
    AuthenticationError, AuthorizationError, InvalidAmount, NoActiveLoan,
    PoolAlreadyInitialized, PoolNotInitialized
)
from lending_pool.events import DomainEvent, EventDispatcher
from lending_pool.audit import AuditEventType
from lending_pool.policy import LendingPolicy
from lending_pool.queries import PoolStats
from lending_pool.service import LendingService
from lending_pool.storage import InMemoryStorage, SQLiteStorage


SECRET = "test-secret-key-that-is-long-enough-for-hs256"


@pytest.fixture
def authenticator():
    return JWTAuthenticator(SECRET)


@pytest.fixture
def events():
    return EventDispatcher()


@pytest.fixture
def service(authenticator, events):
    return LendingService(InMemoryStorage(), authenticator, events=events)


@pytest.fixture
def pool(service, authenticator):
    service.initialize_pool(authenticator.issue_token("GOWNER"), "GOWNER", 10_000_000_000, Decimal('5.0'))
    return service


def token_for(authenticator, identity):
    return authenticator.issue_token(identity)


class TestInitializePool:

    def test_initialize(self, service, authenticator):
        ledger = service.initialize_pool(token_for(authenticator, "GOWNER"), "GOWNER", 10_000_000_000, "5.0")

        assert ledger.id == "default"
        assert ledger.insurance_fund == 1_000_000_000
        assert service.get_pool_stats() == PoolStats(10_000_000_000, 0, 0)

    def test_initialize_twice(self, pool, authenticator):
        with pytest.raises(PoolAlreadyInitialized):
            pool.initialize_pool(token_for(authenticator, "GOWNER"), "GOWNER", 1, "1.0")

    def test_initialize_requires_owner_token(self, service, authenticator):
        with pytest.raises(AuthorizationError):
            service.initialize_pool(token_for(authenticator, "GALICE"), "GOWNER", 10_000_000_000, "5.0")
        with pytest.raises(PoolNotInitialized):
            service.get_pool_stats()

    def test_operations_before_initialize(self, service, authenticator):
        with pytest.raises(PoolNotInitialized):
            service.request_loan(token_for(authenticator, "GALICE"), "GALICE", 500_000_000)
        with pytest.raises(PoolNotInitialized):
            service.get_loan_status("GALICE")


class TestLoanLifecycle:

    def test_request_and_repay(self, pool, authenticator):
        token = token_for(authenticator, "GALICE")

        loan = pool.request_loan(token, "GALICE", 500_000_000)
        assert loan.interest_rate == Decimal('5.0')

        result = pool.repay_loan(token, "GALICE", 100_000_000)
        assert result.savings_cut == 5_000_000
        assert not result.closed

        status = pool.get_loan_status("GALICE")
        assert status.repaid_amount == 100_000_000
        assert pool.get_pool_stats() == PoolStats(9_595_000_000, 1, 5_000_000)
        assert pool.get_pool_summary()['insurance_fund'] == 1_002_500_000

    def test_state_survives_reload(self, authenticator, events, tmp_path):
        """A second service over the same database sees the same pool"""
        path = tmp_path / "pool.db"
        first = LendingService(SQLiteStorage(path), authenticator, events=events)
        first.initialize_pool(token_for(authenticator, "GOWNER"), "GOWNER", 10_000_000_000, "5.0")
        first.request_loan(token_for(authenticator, "GALICE"), "GALICE", 500_000_000)
        first.storage.close()

        second = LendingService(SQLiteStorage(path), authenticator, events=events)
        assert second.get_loan_status("GALICE").principal == 500_000_000
        assert second.verify_audit_trail()['valid']
        second.storage.close()

    def test_history(self, pool, authenticator):
        token = token_for(authenticator, "GALICE")
        pool.request_loan(token, "GALICE", 100_000_000)
        pool.repay_loan(token, "GALICE", 100_000_000)
        pool.request_loan(token, "GALICE", 200_000_000)

        history = pool.get_loan_history("GALICE")
        assert [loan.principal for loan in history] == [100_000_000, 200_000_000]
        assert [loan.is_active for loan in history] == [False, True]


class TestAuthentication:

    def test_missing_token_changes_nothing(self, pool):
        before = pool.get_pool_summary()
        audit_count = pool.audit_trail.count_events()

        with pytest.raises(AuthenticationError):
            pool.request_loan(None, "GALICE", 500_000_000)

        assert pool.get_pool_summary() == before
        assert pool.audit_trail.count_events() == audit_count

    def test_cannot_borrow_for_someone_else(self, pool, authenticator):
        with pytest.raises(AuthorizationError):
            pool.request_loan(token_for(authenticator, "GMALLORY"), "GALICE", 500_000_000)
        assert pool.get_loan_status("GALICE") is None

    def test_cannot_repay_for_someone_else(self, pool, authenticator):
        pool.request_loan(token_for(authenticator, "GALICE"), "GALICE", 500_000_000)

        with pytest.raises(AuthorizationError):
            pool.repay_loan(token_for(authenticator, "GMALLORY"), "GALICE", 100_000_000)
        assert pool.get_loan_status("GALICE").repaid_amount == 0


class TestTransactions:

    def test_failed_operation_is_not_persisted(self, pool, authenticator):
        before = pool.get_pool_summary()
        audit_count = pool.audit_trail.count_events()

        pool.request_loan(token_for(authenticator, "GALICE"), "GALICE", 1_000_000_000)

        with pytest.raises(InvalidAmount):
            pool.request_loan(token_for(authenticator, "GBOB"), "GBOB", 5_000_000)

        with pytest.raises(NoActiveLoan):
            pool.repay_loan(token_for(authenticator, "GBOB"), "GBOB", 100_000_000)

        assert pool.get_pool_summary()['total_funds'] == before['total_funds'] - 1_000_000_000
        assert pool.audit_trail.count_events() == audit_count + 1

    def test_events_published_after_commit(self, pool, authenticator, events):
        received = []
        events.subscribe_all(lambda event: received.append((event.event_type, pool.storage._snapshot)))

        pool.request_loan(token_for(authenticator, "GALICE"), "GALICE", 500_000_000)

        # No open transaction snapshot when the handler ran
        assert received == [(DomainEvent.LOAN_ORIGINATED, None)]

    def test_failed_operation_publishes_nothing(self, pool, authenticator, events):
        handler = Mock()
        events.subscribe_all(handler)

        with pytest.raises(NoActiveLoan):
            pool.repay_loan(token_for(authenticator, "GALICE"), "GALICE", 100_000_000)

        handler.assert_not_called()

    def test_event_order_for_closing_repayment(self, pool, authenticator, events):
        token = token_for(authenticator, "GALICE")
        pool.request_loan(token, "GALICE", 100_000_000)

        received = []
        events.subscribe_all(lambda event: received.append(event.event_type))
        pool.repay_loan(token, "GALICE", 100_000_000)

        assert received == [DomainEvent.LOAN_REPAYMENT, DomainEvent.LOAN_PAID_OFF]


class TestAuditRecording:

    def test_every_change_is_audited(self, pool, authenticator):
        token = token_for(authenticator, "GALICE")
        pool.request_loan(token, "GALICE", 100_000_000)
        pool.repay_loan(token, "GALICE", 100_000_000)

        events = pool.audit_trail.get_all_events()
        assert [event.event_type for event in events] == [
            AuditEventType.POOL_INITIALIZED,
            AuditEventType.LOAN_ORIGINATED,
            AuditEventType.LOAN_PAYMENT_MADE,
            AuditEventType.LOAN_PAID_OFF,
        ]
        assert events[1].user_id == "GALICE"
        assert pool.verify_audit_trail()['valid']

    def test_audit_disabled(self, authenticator, events):
        service = LendingService(InMemoryStorage(), authenticator, events=events, audit_enabled=False)
        service.initialize_pool(token_for(authenticator, "GOWNER"), "GOWNER", 10_000_000_000, "5.0")

        assert service.audit_trail is None
        assert service.verify_audit_trail()['total_events'] == 0


class TestFromConfig:

    def test_from_config(self):
        config = LendingPoolConfig(
            database_url="memory://",
            auth_enabled=False,
            pool_id="test-pool",
            allow_multiple_active_loans=False
        )
        service = LendingService.from_config(config, events=EventDispatcher())

        assert service.pool_id == "test-pool"
        assert isinstance(service.storage, InMemoryStorage)
        assert service.policy == LendingPolicy(allow_multiple_active_loans=False)

        ledger = service.initialize_pool(None, "GOWNER", 10_000_000_000, "5.0")
        assert ledger.policy.allow_multiple_active_loans is False
