"""
Loan Module

A single borrower's credit record: principal, the rate fixed at origination,
repayment progress and accrued savings. Loans are closed, never deleted.
"""

from decimal import Decimal
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Dict, Optional
import uuid

from .storage import StorageRecord


@dataclass
class Loan(StorageRecord):
    """Loan record with repayment state"""
    borrower: str
    principal: int                      # Minor currency units
    interest_rate: Decimal              # Percent per period
    repaid_amount: int = 0
    savings: int = 0
    is_active: bool = True
    rewards_applied: int = 0            # Number of reward discounts applied
    closed_at: Optional[datetime] = None

    @classmethod
    def open(cls, borrower: str, principal: int, interest_rate: Decimal) -> 'Loan':
        """Create a fresh active loan"""
        now = datetime.now(timezone.utc)
        return cls(
            id=str(uuid.uuid4()),
            created_at=now,
            updated_at=now,
            borrower=borrower,
            principal=principal,
            interest_rate=interest_rate
        )

    @property
    def outstanding(self) -> int:
        """Principal not yet repaid (never negative)"""
        return max(self.principal - self.repaid_amount, 0)

    def snapshot(self) -> 'LoanSnapshot':
        return LoanSnapshot.from_loan(self)

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['interest_rate'] = str(self.interest_rate)
        result['closed_at'] = self.closed_at.isoformat() if self.closed_at else None
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Loan':
        data = dict(data)
        data['interest_rate'] = Decimal(data['interest_rate'])
        if data.get('closed_at'):
            data['closed_at'] = datetime.fromisoformat(data['closed_at'])
        return super().from_dict(data)


@dataclass(frozen=True)
class LoanSnapshot:
    """Read-only copy of a loan, detached from the ledger"""
    id: str
    borrower: str
    principal: int
    interest_rate: Decimal
    repaid_amount: int
    savings: int
    is_active: bool
    rewards_applied: int
    created_at: datetime
    updated_at: datetime
    closed_at: Optional[datetime] = None

    @classmethod
    def from_loan(cls, loan: Loan) -> 'LoanSnapshot':
        return cls(
            id=loan.id,
            borrower=loan.borrower,
            principal=loan.principal,
            interest_rate=loan.interest_rate,
            repaid_amount=loan.repaid_amount,
            savings=loan.savings,
            is_active=loan.is_active,
            rewards_applied=loan.rewards_applied,
            created_at=loan.created_at,
            updated_at=loan.updated_at,
            closed_at=loan.closed_at
        )

    @property
    def outstanding(self) -> int:
        return max(self.principal - self.repaid_amount, 0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'borrower': self.borrower,
            'principal': self.principal,
            'interest_rate': str(self.interest_rate),
            'repaid_amount': self.repaid_amount,
            'outstanding': self.outstanding,
            'savings': self.savings,
            'is_active': self.is_active,
            'rewards_applied': self.rewards_applied,
            'created_at': self.created_at.isoformat(),
            'updated_at': self.updated_at.isoformat(),
            'closed_at': self.closed_at.isoformat() if self.closed_at else None
        }

