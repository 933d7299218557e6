from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from costledger.core.errors import LedgerError
from costledger.core.logging import configure_logging
from costledger.models import account, bom, item, journal, production  # noqa: F401
from costledger.routers.auth import router as auth_router
from costledger.routers.boms import router as boms_router
from costledger.routers.journal import router as journal_router
from costledger.routers.ledger import router as ledger_router
from costledger.routers.production import router as production_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(
    title="Cost Ledger",
    lifespan=lifespan,
)


@app.middleware("http")
async def catch_unhandled_exceptions(request: Request, call_next):
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled exception")
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error(
            "Ledger integrity failure",
            extra={"path": request.url.path, "reason": exc.message},
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


app.include_router(auth_router)
app.include_router(journal_router)
app.include_router(ledger_router)
app.include_router(boms_router)
app.include_router(production_router)


@app.get("/")
def root():
    return {"status": "Cost Ledger running"}


@app.get("/health")
def health():
    return {
        "status": "ok",
        "version": "1.0.0",
    }
