"""
Pool endpoints
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from .deps import get_bearer_token, get_lending_service
from .schemas import InitializePoolRequest
from ..service import LendingService


router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def initialize_pool(
    request: InitializePoolRequest,
    token: Optional[str] = Depends(get_bearer_token),
    service: LendingService = Depends(get_lending_service)
):
    """Initialize the lending pool"""
    ledger = service.initialize_pool(
        token, request.owner, request.initial_funds, request.base_rate_decimal()
    )

    return {
        "pool_id": ledger.id,
        "owner": ledger.owner,
        "total_funds": ledger.total_funds,
        "insurance_fund": ledger.insurance_fund,
        "base_interest_rate": str(ledger.base_interest_rate),
        "message": "Pool initialized successfully"
    }


@router.get("/stats")
async def get_pool_stats(service: LendingService = Depends(get_lending_service)):
    """Get headline pool statistics"""
    stats = service.get_pool_stats()
    return {
        "total_funds": stats.total_funds,
        "active_loan_count": stats.active_loan_count,
        "total_savings": stats.total_savings
    }


@router.get("/summary")
async def get_pool_summary(service: LendingService = Depends(get_lending_service)):
    """Get full pool summary"""
    return service.get_pool_summary()
