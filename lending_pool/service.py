"""
Lending Service Module

Host for the pool ledger. Each call authenticates the caller, loads the
ledger, applies one core operation, then saves the ledger and its audit
records in a single storage transaction. Domain events raised by the core are
held back and only published once that transaction has committed.
"""

import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from .amounts import RateLike
from .audit import AuditTrail, AuditEventType
from .auth import Authenticator, create_authenticator
from .config import LendingPoolConfig, get_config
from .errors import PoolAlreadyInitialized, PoolNotInitialized
from .events import DomainEvent, EventDispatcher, EventPayload, get_global_dispatcher
from .loans import LoanSnapshot
from .logging_config import get_logger, log_action
from .policy import LendingPolicy
from .pool import LiquiditySource, PoolLedger, RepaymentResult, initialize
from .queries import PoolStats, QueryService
from .repository import LedgerRepository
from .storage import StorageInterface, create_storage


AUDIT_EVENT_TYPES = {
    DomainEvent.POOL_INITIALIZED: AuditEventType.POOL_INITIALIZED,
    DomainEvent.LOAN_ORIGINATED: AuditEventType.LOAN_ORIGINATED,
    DomainEvent.LOAN_REPAYMENT: AuditEventType.LOAN_PAYMENT_MADE,
    DomainEvent.LOAN_REWARD_APPLIED: AuditEventType.LOAN_REWARD_APPLIED,
    DomainEvent.LOAN_PAID_OFF: AuditEventType.LOAN_PAID_OFF,
}


class LendingService:
    """Authenticated, persistent, serialized access to one lending pool"""

    def __init__(
        self,
        storage: StorageInterface,
        authenticator: Authenticator,
        pool_id: str = "default",
        policy: Optional[LendingPolicy] = None,
        liquidity: Optional[LiquiditySource] = None,
        events: Optional[EventDispatcher] = None,
        audit_enabled: bool = True
    ):
        self.storage = storage
        self.authenticator = authenticator
        self.pool_id = pool_id
        self.policy = policy or LendingPolicy()
        self.liquidity = liquidity
        self.events = events or get_global_dispatcher()
        self.repository = LedgerRepository(storage)
        self.audit_trail = AuditTrail(storage) if audit_enabled else None
        self.logger = get_logger("lending_pool.service")
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config: Optional[LendingPoolConfig] = None, **kwargs) -> 'LendingService':
        """Build a service with storage, auth and policy taken from configuration"""
        config = config or get_config()
        return cls(
            storage=create_storage(config.database_url),
            authenticator=create_authenticator(config),
            pool_id=config.pool_id,
            policy=LendingPolicy.from_config(config),
            audit_enabled=config.enable_audit_logging,
            **kwargs
        )

    # Mutating operations

    def initialize_pool(
        self,
        token: Optional[str],
        owner: str,
        initial_funds: int,
        base_rate: RateLike
    ) -> PoolLedger:
        """Create the pool; the caller must authenticate as ``owner``"""
        self.authenticator.require_auth(token, owner)
        with self._transaction() as pending:
            if self.repository.exists(self.pool_id):
                raise PoolAlreadyInitialized(f"Pool {self.pool_id} is already initialized")
            ledger = initialize(
                owner, initial_funds, base_rate,
                policy=self.policy, pool_id=self.pool_id, events=pending
            )
            self.repository.save(ledger)
            self._record(pending, owner)
        log_action(self.logger, "info", f"Pool {ledger.id} initialized",
                   user_id=owner, action="initialize_pool", resource=f"pool:{ledger.id}")
        return ledger

    def request_loan(self, token: Optional[str], borrower: str, amount: int) -> LoanSnapshot:
        """Originate a loan for an authenticated borrower"""
        self.authenticator.require_auth(token, borrower)
        with self._transaction() as pending:
            ledger = self._load()
            loan = ledger.request_loan(borrower, amount, liquidity=self.liquidity, events=pending)
            self.repository.save(ledger)
            self._record(pending, borrower)
        log_action(self.logger, "info", f"Loan {loan.id} originated for {amount}",
                   user_id=borrower, action="request_loan", resource=f"loan:{loan.id}")
        return loan.snapshot()

    def repay_loan(self, token: Optional[str], borrower: str, amount: int) -> RepaymentResult:
        """Apply a repayment for an authenticated borrower"""
        self.authenticator.require_auth(token, borrower)
        with self._transaction() as pending:
            ledger = self._load()
            result = ledger.repay_loan(borrower, amount, events=pending)
            self.repository.save(ledger)
            self._record(pending, borrower)
        log_action(self.logger, "info", f"Repayment of {amount} applied to loan {result.loan_id}",
                   user_id=borrower, action="repay_loan", resource=f"loan:{result.loan_id}",
                   extra={"closed": result.closed, "reward_applied": result.reward_applied})
        return result

    # Queries

    def get_loan_status(self, borrower: str) -> Optional[LoanSnapshot]:
        return self._queries().get_loan_status(borrower)

    def get_loan_history(self, borrower: str) -> List[LoanSnapshot]:
        return self._queries().get_loan_history(borrower)

    def get_pool_stats(self) -> PoolStats:
        return self._queries().get_pool_stats()

    def get_pool_summary(self) -> Dict[str, Any]:
        return self._queries().get_pool_summary()

    def verify_audit_trail(self) -> Dict[str, Any]:
        if self.audit_trail is None:
            return {'valid': True, 'total_events': 0, 'hash_errors': [], 'chain_breaks': []}
        return self.audit_trail.verify_integrity()

    # Internals

    def _load(self) -> PoolLedger:
        ledger = self.repository.load(self.pool_id)
        if ledger is None:
            raise PoolNotInitialized(f"Pool {self.pool_id} has not been initialized")
        return ledger

    def _queries(self) -> QueryService:
        with self._lock:
            return QueryService(self._load())

    @contextmanager
    def _transaction(self) -> Iterator['_PendingEvents']:
        """
        Serialize the call and make its writes atomic

        Yields a dispatcher that buffers domain events; they are forwarded to
        the service dispatcher only after commit.
        """
        pending = _PendingEvents()
        with self._lock:
            with self.storage.atomic():
                yield pending
        for event in pending.buffered:
            self.events.publish(event)

    def _record(self, pending: '_PendingEvents', user_id: str) -> None:
        """Write audit records for buffered events (inside the transaction)"""
        if self.audit_trail is None:
            return
        for event in pending.buffered:
            self.audit_trail.log_event(
                event_type=AUDIT_EVENT_TYPES[event.event_type],
                entity_type=event.entity_type,
                entity_id=event.entity_id,
                metadata=event.data,
                user_id=user_id
            )


class _PendingEvents(EventDispatcher):
    """Dispatcher that only collects events"""

    def __init__(self):
        super().__init__()
        self.buffered: List[EventPayload] = []

    def publish(self, event: EventPayload) -> None:
        self.buffered.append(event)
