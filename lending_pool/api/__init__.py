"""
Lending Pool API Application Factory
"""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .pool import router as pool_router
from .loans import router as loans_router
from .audit import router as audit_router
from ..errors import (
    LendingPoolError, InvalidAmount, InvalidRate, InsufficientFunds, PoolUnavailable, NoActiveLoan,
    ActiveLoanExists, AuthenticationError, AuthorizationError, PoolNotInitialized,
    PoolAlreadyInitialized, LedgerOverflowError
)
from ..service import LendingService


ERROR_STATUS = {
    InvalidAmount: 400,
    InvalidRate: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NoActiveLoan: 404,
    PoolNotInitialized: 404,
    InsufficientFunds: 409,
    ActiveLoanExists: 409,
    PoolAlreadyInitialized: 409,
    PoolUnavailable: 503,
    LedgerOverflowError: 500,
}

logger = logging.getLogger("lending_pool.api")


def status_for(error: LendingPoolError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(error, error_type):
            return status_code
    return 400


def create_app(service: Optional[LendingService] = None) -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Lending Pool API",
        description="Collateral-free micro-loans funded from a shared capital pool",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )
    app.state.lending_service = service or LendingService.from_config()

    @app.exception_handler(LendingPoolError)
    async def handle_lending_pool_error(request: Request, exc: LendingPoolError):
        status_code = status_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "code": exc.code},
            headers=headers
        )

    app.include_router(pool_router, prefix="/pool", tags=["Pool"])
    app.include_router(loans_router, prefix="/loans", tags=["Loans"])
    app.include_router(audit_router, prefix="/audit", tags=["Audit"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "lending_pool_api",
            "version": "1.0.0"
        }

    return app
