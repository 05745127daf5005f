"""
Lending Pool Ledger

Collateral-free micro-loans funded from a shared capital pool, with
utilization-priced origination, repayment rewards and an insurance reserve.
All money is integer minor units; all rates are Decimal.
"""

from .errors import (
    LendingPoolError, LoanRequestError, InvalidAmount, InsufficientFunds,
    PoolUnavailable, NoActiveLoan, ActiveLoanExists, InvalidRate, LedgerOverflowError
)
from .policy import LendingPolicy, OverpaymentPolicy
from .rates import InterestRateModel
from .loans import Loan, LoanSnapshot
from .pool import PoolLedger, RepaymentResult, initialize
from .queries import QueryService, PoolStats

__version__ = "1.0.0"

__all__ = [
    "LendingPoolError", "LoanRequestError", "InvalidAmount", "InsufficientFunds",
    "PoolUnavailable", "NoActiveLoan", "ActiveLoanExists", "InvalidRate", "LedgerOverflowError",
    "LendingPolicy", "OverpaymentPolicy", "InterestRateModel",
    "Loan", "LoanSnapshot", "PoolLedger", "RepaymentResult", "initialize",
    "QueryService", "PoolStats",
]
