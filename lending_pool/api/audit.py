"""
Audit endpoints
"""

from fastapi import APIRouter, Depends

from .deps import get_lending_service
from ..service import LendingService


router = APIRouter()


@router.get("/verify")
async def verify_audit_trail(service: LendingService = Depends(get_lending_service)):
    """Verify the audit hash chain"""
    return service.verify_audit_trail()
