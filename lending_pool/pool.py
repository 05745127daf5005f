"""
Pool Ledger Module

The lending pool aggregate: lendable capital, the insurance reserve and the
append-only loan book. Handles loan origination and repayment processing.

Every operation validates and computes all new values before touching any
field, so a raised error always leaves the ledger exactly as it was.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional
import logging
import uuid

from .amounts import (
    RateLike, validate_minor_units, checked_add, checked_sub, checked_sum, quantize_rate
)
from .errors import (
    InvalidAmount, InsufficientFunds, PoolUnavailable, NoActiveLoan, ActiveLoanExists
)
from .events import (
    DomainEvent, EventDispatcher, EventPayload, create_loan_event, get_global_dispatcher
)
from .loans import Loan
from .policy import LendingPolicy, OverpaymentPolicy
from .rates import InterestRateModel
from .storage import StorageRecord


logger = logging.getLogger("lending_pool.pool")


class LiquiditySource(ABC):
    """Capital availability check consulted before a loan is originated"""

    @abstractmethod
    def is_available(self, ledger: 'PoolLedger', amount: int) -> bool:
        """Return True if ``amount`` can be lent out right now"""
        pass


class PoolFundsLiquidity(LiquiditySource):
    """Default source: the pool's own lendable capital"""

    def is_available(self, ledger: 'PoolLedger', amount: int) -> bool:
        return ledger.total_funds >= amount


@dataclass(frozen=True)
class RepaymentResult:
    """Outcome of a successful repayment"""
    loan_id: str
    borrower: str
    amount: int
    savings_cut: int          # Credited to the loan's savings
    pool_credit: int          # Returned to lendable capital
    insurance_credit: int     # Added to the insurance reserve
    reward_applied: bool
    interest_rate: Decimal    # Rate after this repayment
    closed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'loan_id': self.loan_id,
            'borrower': self.borrower,
            'amount': self.amount,
            'savings_cut': self.savings_cut,
            'pool_credit': self.pool_credit,
            'insurance_credit': self.insurance_credit,
            'reward_applied': self.reward_applied,
            'interest_rate': str(self.interest_rate),
            'closed': self.closed
        }


@dataclass
class PoolLedger(StorageRecord):
    """Shared capital pool and its loan book"""
    owner: str
    total_funds: int
    insurance_fund: int
    base_interest_rate: Decimal
    policy: LendingPolicy = field(default_factory=LendingPolicy)
    loans: List[Loan] = field(default_factory=list)

    @property
    def rate_model(self) -> InterestRateModel:
        return InterestRateModel.from_policy(self.policy)

    # Lookups

    def active_loans(self) -> Iterator[Loan]:
        return (loan for loan in self.loans if loan.is_active)

    def find_active_loan(self, borrower: str) -> Optional[Loan]:
        """First active loan for the borrower in insertion order"""
        for loan in self.loans:
            if loan.borrower == borrower and loan.is_active:
                return loan
        return None

    def loans_for(self, borrower: str) -> List[Loan]:
        return [loan for loan in self.loans if loan.borrower == borrower]

    def outstanding_principal(self) -> int:
        """Sum of principal over active loans"""
        return checked_sum((loan.principal for loan in self.active_loans()), "outstanding principal")

    def quote_rate(self, requested: int = 0) -> Decimal:
        """
        Origination rate for the current pool state

        Args:
            requested: Amount added to the outstanding sum before pricing

        Raises:
            ZeroDivisionError: If the pool has no capital
        """
        outstanding = checked_add(self.outstanding_principal(), requested, "outstanding principal")
        return self.rate_model.rate_for_pool(self.base_interest_rate, outstanding, self.total_funds)

    # Operations

    def request_loan(
        self,
        borrower: str,
        amount: int,
        liquidity: Optional[LiquiditySource] = None,
        events: Optional[EventDispatcher] = None
    ) -> Loan:
        """
        Originate a loan from pool capital

        Args:
            borrower: Authenticated borrower identity
            amount: Principal in minor units
            liquidity: Capital availability check (defaults to the pool's own funds)
            events: Dispatcher for domain events (defaults to the global one)

        Returns:
            The created Loan

        Raises:
            InvalidAmount: Amount outside [min_loan_amount, max_loan_amount]
            ActiveLoanExists: Borrower already has an active loan and the
                policy forbids more than one
            InsufficientFunds: Pool capital below the amount
            PoolUnavailable: Liquidity source refused the amount
        """
        validate_minor_units(amount)
        policy = self.policy

        if amount < policy.min_loan_amount or amount > policy.max_loan_amount:
            raise InvalidAmount(
                f"Loan amount must be between {policy.min_loan_amount} and "
                f"{policy.max_loan_amount} minor units, got {amount}"
            )

        if not policy.allow_multiple_active_loans and self.find_active_loan(borrower):
            raise ActiveLoanExists(f"Borrower {borrower} already has an active loan")

        if self.total_funds < amount:
            raise InsufficientFunds(
                f"Insufficient funds in pool: {self.total_funds} available, {amount} requested"
            )

        liquidity = liquidity or PoolFundsLiquidity()
        if not liquidity.is_available(self, amount):
            raise PoolUnavailable(f"Liquidity source cannot provide {amount}")

        # Priced on pre-debit capital, excluding the new loan unless configured otherwise
        interest_rate = self.quote_rate(amount if policy.utilization_includes_request else 0)
        new_total = checked_sub(self.total_funds, amount, "total_funds")

        loan = Loan.open(borrower, amount, interest_rate)
        self.total_funds = new_total
        self.loans.append(loan)
        self.updated_at = loan.created_at

        logger.info(f"Loan requested: {amount} by {borrower} at {interest_rate}")
        self._publish(events, create_loan_event(DomainEvent.LOAN_ORIGINATED, loan, amount=amount, pool_id=self.id))

        return loan

    def repay_loan(
        self,
        borrower: str,
        amount: int,
        events: Optional[EventDispatcher] = None
    ) -> RepaymentResult:
        """
        Apply a repayment to the borrower's first active loan

        A fixed share of the payment goes to the loan's savings, half of that
        share to the insurance reserve, and the rest back to lendable capital.
        Once savings cross the reward threshold each repayment lowers the rate
        by one step while the rate is above the policy minimum.

        Raises:
            NoActiveLoan: Borrower has no active loan
            InvalidAmount: Non-positive amount, or an overpayment under the
                REJECT overpayment policy
        """
        loan = self.find_active_loan(borrower)
        if loan is None:
            raise NoActiveLoan(f"No active loan found for {borrower}")

        validate_minor_units(amount)
        if amount <= 0:
            raise InvalidAmount(f"Repayment amount must be positive, got {amount}")

        policy = self.policy
        if policy.overpayment_policy == OverpaymentPolicy.REJECT and amount > loan.outstanding:
            raise InvalidAmount(
                f"Repayment of {amount} exceeds outstanding balance {loan.outstanding}"
            )

        savings_cut = amount // policy.savings_divisor
        insurance_credit = savings_cut // 2
        pool_credit = amount - savings_cut

        repaid_amount = checked_add(loan.repaid_amount, amount, "repaid_amount")
        savings = checked_add(loan.savings, savings_cut, "savings")
        total_funds = checked_add(self.total_funds, pool_credit, "total_funds")
        insurance_fund = checked_add(self.insurance_fund, insurance_credit, "insurance_fund")

        reward_applied = (
            savings >= policy.reward_savings_threshold
            and loan.interest_rate > policy.reward_min_rate
            and (policy.max_rewards_per_loan is None
                 or loan.rewards_applied < policy.max_rewards_per_loan)
        )
        closed = repaid_amount >= loan.principal

        now = datetime.now(timezone.utc)
        loan.repaid_amount = repaid_amount
        loan.savings = savings
        if reward_applied:
            loan.interest_rate = loan.interest_rate - policy.reward_rate_step
            loan.rewards_applied += 1
        if closed:
            loan.is_active = False
            loan.closed_at = now
        loan.updated_at = now
        self.total_funds = total_funds
        self.insurance_fund = insurance_fund
        self.updated_at = now

        result = RepaymentResult(
            loan_id=loan.id,
            borrower=borrower,
            amount=amount,
            savings_cut=savings_cut,
            pool_credit=pool_credit,
            insurance_credit=insurance_credit,
            reward_applied=reward_applied,
            interest_rate=loan.interest_rate,
            closed=closed
        )

        logger.info(f"Repayment: {amount} by {borrower} (savings {savings_cut}, insurance {insurance_credit})")
        self._publish(events, create_loan_event(DomainEvent.LOAN_REPAYMENT, loan, **result.to_dict()))

        if reward_applied:
            logger.info(f"Reward: interest rate reduced to {loan.interest_rate} for {borrower}")
            self._publish(events, create_loan_event(
                DomainEvent.LOAN_REWARD_APPLIED, loan, rewards_applied=loan.rewards_applied
            ))

        if closed:
            logger.info(f"Loan fully repaid by {borrower}")
            self._publish(events, create_loan_event(DomainEvent.LOAN_PAID_OFF, loan))

        return result

    def _publish(self, events: Optional[EventDispatcher], event: EventPayload) -> None:
        (events or get_global_dispatcher()).publish(event)

    # Serialization

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'owner': self.owner,
            'total_funds': self.total_funds,
            'insurance_fund': self.insurance_fund,
            'base_interest_rate': str(self.base_interest_rate),
            'policy': self.policy.to_dict(),
            'loans': [loan.to_dict() for loan in self.loans]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PoolLedger':
        data = dict(data)
        data['base_interest_rate'] = Decimal(data['base_interest_rate'])
        data['policy'] = LendingPolicy.from_dict(data['policy'])
        data['loans'] = [Loan.from_dict(loan) for loan in data['loans']]
        return super().from_dict(data)


def initialize(
    owner: str,
    initial_funds: int,
    base_rate: RateLike,
    policy: Optional[LendingPolicy] = None,
    pool_id: Optional[str] = None,
    events: Optional[EventDispatcher] = None
) -> PoolLedger:
    """
    Create a new lending pool

    Args:
        owner: Identity recorded as pool owner
        initial_funds: Lendable capital in minor units
        base_rate: Base interest rate, percent per period
        policy: Limits and switches (defaults to LendingPolicy())
        pool_id: Pool identifier (random uuid4 if omitted)
        events: Dispatcher for the pool.initialized event

    Returns:
        The new PoolLedger; the insurance reserve is seeded from the capital
    """
    validate_minor_units(initial_funds, "initial_funds")
    policy = policy or LendingPolicy()
    now = datetime.now(timezone.utc)

    ledger = PoolLedger(
        id=pool_id or str(uuid.uuid4()),
        created_at=now,
        updated_at=now,
        owner=owner,
        total_funds=initial_funds,
        insurance_fund=initial_funds // policy.insurance_seed_divisor,
        base_interest_rate=quantize_rate(base_rate, policy.rate_precision),
        policy=policy
    )

    logger.info(f"Pool {ledger.id} initialized by {owner} with {initial_funds} at base rate {ledger.base_interest_rate}")
    (events or get_global_dispatcher()).publish(EventPayload(
        event_type=DomainEvent.POOL_INITIALIZED,
        entity_type="pool",
        entity_id=ledger.id,
        data={
            "owner": owner,
            "initial_funds": initial_funds,
            "insurance_fund": ledger.insurance_fund,
            "base_interest_rate": str(ledger.base_interest_rate)
        }
    ))

    return ledger
