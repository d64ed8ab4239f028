"""
FastAPI application entry point.

Configures the application with routes, middleware, and settings.
"""
import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from passbook.api.routes import monitoring, statements
from passbook.config import get_settings
from passbook.engine import __version__
from passbook.exceptions import PassbookError
from passbook.middleware.logging import (
    CorrelationIdMiddleware,
    RequestLoggingMiddleware,
    configure_logging,
)

configure_logging()

logger = structlog.get_logger(__name__)

settings = get_settings()

app = FastAPI(
    title="Passbook API",
    description="""
## Bank Statement Interpretation API

Turns bank statement text into structured, confidence-scored records.

- **Bank detection**: State Bank of India, HDFC Bank, ICICI Bank, Axis Bank
- **Account metadata**: account number, holder and statement period
- **Transactions**: date, description, amount, credit/debit, balance, reference
- **Export**: Summary and Transactions sheets in one Excel workbook
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_tags=[
        {"name": "Statements", "description": "Statement interpretation and export"},
        {"name": "Monitoring", "description": "Health checks"},
    ],
)

# Order matters: correlation ID first
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(statements.router, prefix="/api/v1", tags=["Statements"])
app.include_router(monitoring.router, tags=["Monitoring"])


@app.exception_handler(PassbookError)
async def passbook_exception_handler(request: Request, exc: PassbookError):
    """Handle all Passbook custom exceptions."""
    logger.error(
        "passbook_error",
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details,
        path=str(request.url.path),
    )
    return JSONResponse(status_code=exc.http_status, content=exc.to_dict())


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with consistent format."""
    logger.error(
        "unhandled_error",
        error_type=type(exc).__name__,
        message=str(exc),
        path=str(request.url.path),
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": True,
            "error_code": "PBK-999",
            "message": "An unexpected error occurred. Please try again.",
            "details": {},
        },
    )


@app.on_event("startup")
async def startup_event() -> None:
    """Initialize application on startup."""
    logger.info("Starting Passbook API", version=__version__)

    settings.export_dir.mkdir(parents=True, exist_ok=True)

    logger.info("Passbook API started successfully")
