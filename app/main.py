"""Affiliate Ledger Service - FastAPI Application."""
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.database import init_db
from app.ledger.errors import AuthenticationError, InsufficientBalanceError, NotFoundError, ValidationError
from app.scheduler import start_scheduler, stop_scheduler
from app.api import webhooks_router, balance_router, withdrawals_router, commissions_router, admin_router

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting Affiliate Ledger Service")
    await init_db()
    start_scheduler()

    yield

    # Shutdown
    logger.info("Shutting down Affiliate Ledger Service")
    stop_scheduler()


# Create application
app = FastAPI(
    title="Affiliate Ledger Service",
    description="Commission ledger, provider webhooks and withdrawals for partner shops",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Health check (no auth required)
@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat(), "service": "affiliate-ledger"}


# Root info
@app.get("/")
async def root():
    """API information."""
    return {
        "service": "Affiliate Ledger Service",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


# Include routers
app.include_router(webhooks_router, prefix="/api/v1")
app.include_router(balance_router, prefix="/api/v1")
app.include_router(withdrawals_router, prefix="/api/v1")
app.include_router(commissions_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


# Error handlers
@app.exception_handler(AuthenticationError)
async def authentication_error_handler(request: Request, exc: AuthenticationError):
    """Reject without telling the caller which check failed."""
    logger.warning(f"Authentication failed on {request.url.path}: {exc.reason}")
    return JSONResponse(status_code=401, content={"detail": "Unauthorized"})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    """Handle ledger validation failures."""
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "field": exc.field},
    )


@app.exception_handler(InsufficientBalanceError)
async def insufficient_balance_handler(request: Request, exc: InsufficientBalanceError):
    """Handle withdrawals above the available balance."""
    return JSONResponse(
        status_code=400,
        content={
            "detail": "Insufficient available balance",
            "code": "insufficient_balance",
            "availableBalance": float(exc.available),
        },
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    """Handle references to missing records."""
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are validation failures (400)."""
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body") or None
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"detail": f"{field}: {message}" if field else message, "field": field},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle uncaught exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
