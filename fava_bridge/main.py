# fava_bridge/main.py
import logging
import sys
from contextlib import asynccontextmanager
from typing import List, Optional

import httpx
from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import TypeAdapter, ValidationError

from . import __version__
from .config import GENERIC_ERROR, Settings, load_settings
from .errors import ConfigurationError, FavaBridgeError, UpstreamLogicalError
from .extract import extract_table_records
from .fetch import UpstreamFetcher
from .logic import DEFAULT_SELECTORS, LedgerSelectors, extract_ledger
from .schema import ErrorEnvelope, SuccessEnvelope

# Console logger
logger = logging.getLogger("fava-bridge")
if not logger.handlers:
    logger.setLevel(logging.INFO)
    _h = logging.StreamHandler(sys.stdout)
    _h.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s: %(message)s"))
    logger.addHandler(_h)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # A missing upstream URL must stop the process here, not fail per request.
    settings = load_settings()
    logger.setLevel(settings.log_level.upper())
    logger.info("Upstream: %s", settings.url)
    async with httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True) as client:
        app.state.settings = settings
        app.state.fetcher = UpstreamFetcher(settings, client)
        app.state.selectors = DEFAULT_SELECTORS.with_currency(settings.ledger_currency)
        yield
    logger.info("Shutting down")

app = FastAPI(
    title="Fava Bridge",
    description="Scrapes query tables and account journals from a Fava instance and serves them as JSON.",
    version=__version__,
    lifespan=lifespan,
)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_fetcher(request: Request) -> UpstreamFetcher:
    return request.app.state.fetcher

def get_selectors(request: Request) -> LedgerSelectors:
    return getattr(request.app.state, "selectors", DEFAULT_SELECTORS)

def _success(data: List) -> JSONResponse:
    return JSONResponse(SuccessEnvelope(data=data).model_dump())

def _error(message: str) -> JSONResponse:
    # Failures are reported in the body; the status is always 200.
    return JSONResponse(ErrorEnvelope(error=message).model_dump())

def _describe(e: Exception) -> str:
    return str(e) or type(e).__name__

_FLAG = TypeAdapter(bool)

def parse_flag(value: Optional[str]) -> bool:
    """Empty or missing means unset; otherwise pydantic's boolean spellings."""
    if value is None or value.strip() == "":
        return False
    try:
        return _FLAG.validate_python(value.strip())
    except ValidationError:
        raise ValueError(f"Invalid boolean value: {value!r}")

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else err.get("msg", "invalid"))
    message = "; ".join(parts) or "Invalid request"
    logger.warning("Rejected %s: %s", request.url.path, message)
    return _error(message)

@app.get("/health", summary="Liveness check")
def health(settings: Settings = Depends(get_settings)):
    return {"status": "healthy", "upstream": settings.url}

@app.get("/api/query_result", summary="Run a query and return its table rows")
async def query_result(
    query_string: str = Query(..., description="BQL query passed to the upstream"),
    account: Optional[str] = Query(default=None, description="Upstream account filter"),
    filter_: Optional[str] = Query(default=None, alias="filter", description="Upstream advanced filter"),
    time: Optional[str] = Query(default=None, description="Upstream time filter"),
    fetcher: UpstreamFetcher = Depends(get_fetcher),
):
    try:
        envelope = await fetcher.query_result(query_string, account=account, filter=filter_, time=time)
        if not envelope.success:
            raise UpstreamLogicalError(envelope.error or GENERIC_ERROR)
        # success without data is how the upstream reports an empty result
        records = extract_table_records(envelope.data.table) if envelope.data else []
    except FavaBridgeError as e:
        logger.warning("query_result failed: %s", e)
        return _error(_describe(e))
    except Exception as e:
        logger.exception("Unhandled error in /api/query_result")
        return _error(_describe(e))

    logger.info("query_result: %d row(s)", len(records))
    return _success(records)

@app.get("/api/account/{account}", summary="Return an account's journal as transactions")
async def account_ledger(
    account: str,
    negate: Optional[str] = Query(default=None, description="Flip the sign of amounts and balances"),
    filter_: Optional[str] = Query(default=None, alias="filter", description="Upstream advanced filter"),
    time: Optional[str] = Query(default=None, description="Upstream time filter"),
    fetcher: UpstreamFetcher = Depends(get_fetcher),
    selectors: LedgerSelectors = Depends(get_selectors),
):
    try:
        flip = parse_flag(negate)
        html = await fetcher.account_journal(account, filter=filter_, time=time)
        ledger = extract_ledger(html, negate=flip, selectors=selectors)
    except (FavaBridgeError, ValueError) as e:
        logger.warning("account %s failed: %s", account, e)
        return _error(_describe(e))
    except Exception as e:
        logger.exception("Unhandled error in /api/account/%s", account)
        return _error(_describe(e))

    logger.info("account %s: %d transaction(s)", account, len(ledger))
    return _success([t.model_dump() for t in ledger])

def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    try:
        settings = load_settings()
    except ConfigurationError as e:
        raise SystemExit(str(e))
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
