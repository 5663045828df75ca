# backend/stockdb/main.py
import logging
import os
from typing import Any, Dict, List

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .log_context import setup_logging
from .middleware import RequestIDMiddleware

from .apps.accounts.router import router as accounts_router
from .apps.inventory.router import router as inventory_router
from .apps.audit.router import router as audit_router

setup_logging(os.getenv("LOG_LEVEL", "info"))
logger = logging.getLogger(__name__)


def _allowed_origins() -> List[str]:
    """
    Parse CORS_ALLOWED_ORIGINS from env.

    Accepts comma-separated origins. If unset, defaults to local dev ports.
    """
    raw = os.getenv("CORS_ALLOWED_ORIGINS", "")
    if raw:
        origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
        if origins:
            return origins
    return [
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://localhost:4173",
    ]


def _field_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    fields: List[Dict[str, Any]] = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        fields.append({"field": ".".join(loc) or "body", "reason": error.get("msg", "invalid")})
    return fields


app = FastAPI(title="StockDB Inventory API", version="1.0.0")
cors_origins = _allowed_origins()
allow_credentials = "*" not in cors_origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Request-ID"],
)
app.add_middleware(RequestIDMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    fields = _field_errors(exc)
    logger.info("Request rejected by validation", extra={"path": request.url.path, "fields": fields})
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "kind": "ValidationFailed",
                "message": "Request validation failed.",
                "fields": fields,
            }
        },
    )


@app.get("/", tags=["health"])
def read_root():
    return {"status": "ok", "message": "StockDB backend is running"}


@app.get("/health", tags=["health"])
def health():
    return {"status": "ok"}


app.include_router(accounts_router)
app.include_router(inventory_router)
app.include_router(audit_router)
