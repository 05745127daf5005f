"""
Error Types

Recoverable loan errors carry a stable ``code`` so the HTTP layer and callers
can branch on them without parsing messages. Overflow is kept outside that
family: it signals a broken invariant, not a bad request.
"""

from typing import Optional


class LendingPoolError(Exception):
    """Base class for all lending pool errors"""
    code = "lending_pool_error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.__class__.__doc__)
        self.message = message or self.__class__.__doc__


class LoanRequestError(LendingPoolError, ValueError):
    """Loan request rejected"""
    code = "loan_request_error"


class InvalidAmount(LoanRequestError):
    """Amount outside the allowed range"""
    code = "invalid_amount"


class InsufficientFunds(LoanRequestError):
    """Insufficient funds in pool"""
    code = "insufficient_funds"


class PoolUnavailable(LoanRequestError):
    """Liquidity source unavailable"""
    code = "pool_unavailable"


class NoActiveLoan(LoanRequestError):
    """No active loan found"""
    code = "no_active_loan"


class ActiveLoanExists(LoanRequestError):
    """Borrower already has an active loan"""
    code = "active_loan_exists"


class InvalidRate(LendingPoolError, ValueError):
    """Rate is not a finite decimal that fits the configured precision"""
    code = "invalid_rate"


class AuthenticationError(LendingPoolError):
    """Caller could not be authenticated"""
    code = "not_authenticated"


class AuthorizationError(LendingPoolError):
    """Caller is not authorized for this borrower"""
    code = "not_authorized"


class PoolNotInitialized(LendingPoolError):
    """Lending pool has not been initialized"""
    code = "pool_not_initialized"


class PoolAlreadyInitialized(LendingPoolError):
    """Lending pool is already initialized"""
    code = "pool_already_initialized"


class LedgerOverflowError(LendingPoolError, ArithmeticError):
    """Amount arithmetic left the signed 64-bit range"""
    code = "ledger_overflow"
