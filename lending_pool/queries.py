"""
Query Module

Read-only projections over a PoolLedger. Nothing here mutates the ledger and
nothing here raises for a missing borrower.
"""

from typing import Any, Dict, List, NamedTuple, Optional

from .amounts import quantize_rate
from .loans import LoanSnapshot
from .pool import PoolLedger
from .rates import utilization


class PoolStats(NamedTuple):
    """Headline pool figures"""
    total_funds: int
    active_loan_count: int
    total_savings: int


class QueryService:
    """Read-only views of a pool"""

    def __init__(self, ledger: PoolLedger):
        self.ledger = ledger

    def get_loan_status(self, borrower: str) -> Optional[LoanSnapshot]:
        """Snapshot of the borrower's active loan, or None"""
        loan = self.ledger.find_active_loan(borrower)
        return loan.snapshot() if loan else None

    def get_loan_history(self, borrower: str) -> List[LoanSnapshot]:
        """All loans for the borrower, closed ones included, oldest first"""
        return [loan.snapshot() for loan in self.ledger.loans_for(borrower)]

    def get_pool_stats(self) -> PoolStats:
        """(total_funds, active loan count, savings summed over every loan)"""
        active = sum(1 for _ in self.ledger.active_loans())
        total_savings = sum(loan.savings for loan in self.ledger.loans)
        return PoolStats(self.ledger.total_funds, active, total_savings)

    def get_pool_summary(self) -> Dict[str, Any]:
        ledger = self.ledger
        stats = self.get_pool_stats()
        outstanding = sum(loan.principal for loan in ledger.active_loans())

        if ledger.total_funds > 0:
            ratio = quantize_rate(utilization(outstanding, ledger.total_funds), ledger.policy.rate_precision)
        else:
            ratio = None

        return {
            'pool_id': ledger.id,
            'owner': ledger.owner,
            'total_funds': ledger.total_funds,
            'insurance_fund': ledger.insurance_fund,
            'base_interest_rate': str(ledger.base_interest_rate),
            'outstanding_principal': outstanding,
            'utilization': str(ratio) if ratio is not None else None,
            'active_loans': stats.active_loan_count,
            'closed_loans': len(ledger.loans) - stats.active_loan_count,
            'total_savings': stats.total_savings
        }
