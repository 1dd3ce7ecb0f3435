import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from credit_ledger.core.config import settings
from credit_ledger.core.exceptions import InvariantViolationError, LedgerError
from credit_ledger.routers import audit_logs, clients, credits, payment_records

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

OPENAPI_TAGS = [
    {"name": "Credits", "description": "Record credit sales, apply and list payments, cancel credits."},
    {"name": "Payment Records", "description": "Cancel individual payments."},
    {"name": "Clients", "description": "Consolidated per-client credit views and payment score."},
    {"name": "Audit Logs", "description": "Query the activity trail of credit operations."},
]

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description=(
        "Credit and payment ledger for sales made on credit. "
        "Tracks each credit's paid and pending balance, payments, "
        "cancellations, and per-client summaries."
    ),
    openapi_tags=OPENAPI_TAGS,
    debug=settings.DEBUG,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Total-Count"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    if isinstance(exc, InvariantViolationError):
        logger.critical(
            "Invariant violation on %s %s: %s %s",
            request.method,
            request.url.path,
            exc.message,
            exc.context,
        )
    return JSONResponse(
        status_code=exc.http_status,
        content={"detail": exc.public_message, "code": exc.code},
    )


app.include_router(credits.router, prefix="/v1/credits", tags=["Credits"])
app.include_router(
    payment_records.router,
    prefix="/v1/payment_records",
    tags=["Payment Records"],
)
app.include_router(clients.router, prefix="/v1/clients", tags=["Clients"])
app.include_router(audit_logs.router, prefix="/v1/audit_logs", tags=["Audit Logs"])


@app.get("/")
async def root() -> dict[str, str]:
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running",
    }
