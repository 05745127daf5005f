"""
Loan endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from .deps import get_bearer_token, get_lending_service
from .schemas import LoanRequest, RepaymentRequest
from ..service import LendingService


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def request_loan(
    request: LoanRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: LendingService = Depends(get_lending_service)
):
    """Originate a loan from the pool"""
    loan = service.request_loan(token, request.borrower, request.amount)
    return {
        "loan": loan.to_dict(),
        "message": "Loan originated successfully"
    }


@router.post("/repay")
async def repay_loan(
    request: RepaymentRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: LendingService = Depends(get_lending_service)
):
    """Repay the borrower's active loan"""
    result = service.repay_loan(token, request.borrower, request.amount)
    return {
        "repayment": result.to_dict(),
        "message": "Loan fully repaid" if result.closed else "Repayment applied"
    }


@router.get("/{borrower}")
async def get_loan_status(
    borrower: str,
    service: LendingService = Depends(get_lending_service)
):
    """Get the borrower's active loan (null if there is none)"""
    loan = service.get_loan_status(borrower)
    return {
        "borrower": borrower,
        "loan": loan.to_dict() if loan else None
    }


@router.get("/{borrower}/history")
async def get_loan_history(
    borrower: str,
    service: LendingService = Depends(get_lending_service)
):
    """Get every loan for the borrower, closed ones included"""
    return {"loans": [loan.to_dict() for loan in service.get_loan_history(borrower)]}
