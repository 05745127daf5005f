"""
Pydantic schemas for API requests
"""

from decimal import Decimal
from pydantic import BaseModel, Field

from ..amounts import INT64_MIN, INT64_MAX, to_decimal


class InitializePoolRequest(BaseModel):
    owner: str = Field(..., min_length=1, description="Owner identity")
    initial_funds: int = Field(..., ge=INT64_MIN, le=INT64_MAX, description="Capital in minor units")
    base_rate: str = Field(..., description="Base interest rate as decimal string, percent per period")

    def base_rate_decimal(self) -> Decimal:
        return to_decimal(self.base_rate)


class LoanRequest(BaseModel):
    borrower: str = Field(..., min_length=1, description="Borrower identity")
    amount: int = Field(..., ge=INT64_MIN, le=INT64_MAX, description="Principal in minor units")


class RepaymentRequest(BaseModel):
    borrower: str = Field(..., min_length=1, description="Borrower identity")
    amount: int = Field(..., ge=INT64_MIN, le=INT64_MAX, description="Payment in minor units")
