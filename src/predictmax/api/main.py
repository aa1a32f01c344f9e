"""FastAPI surface over search, recommendation and scanning."""

from __future__ import annotations

from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from predictmax.api.schemas import (
    ErrorResponse,
    HealthResponse,
    MarketsResponse,
    RecommendationResponse,
    ScanRequest,
    ScanResponse,
    SearchRequest,
)
from predictmax.config import get_settings
from predictmax.config.settings import configure_logging
from predictmax.models import ParsedQuery, Platform
from predictmax.services import Services, build_services

log = structlog.get_logger(__name__)

# Set by run_api() so the app picks up the CLI profile.
_config_profile: str | None = None
_services: Services | None = None


def get_services() -> Services:
    """Lazily built component graph; tests override this dependency."""
    global _services
    if _services is None:
        _services = build_services(get_settings(_config_profile))
    return _services


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(get_settings(_config_profile))
    log.info("api_started", profile=_config_profile)
    yield


app = FastAPI(title="PredictMax API", version="0.1.0", lifespan=lifespan)
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])


def _error_json(code: str, message: str, status_code: int = 404) -> JSONResponse:
    """Return consistent error JSON: { detail, code }."""
    return JSONResponse(
        status_code=status_code,
        content={"detail": message, "code": code},
    )


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/markets/trending", response_model=MarketsResponse)
async def markets_trending(
    limit: int = Query(20, ge=1, le=200),
    platform: Platform | None = None,
    services: Services = Depends(get_services),
) -> MarketsResponse:
    markets = await services.search.trending(limit, platform)
    return MarketsResponse(markets=markets, total=len(markets))


@app.post("/markets/search", response_model=MarketsResponse)
async def markets_search(body: SearchRequest, services: Services = Depends(get_services)) -> MarketsResponse:
    markets = await services.search.search(body.parsed_query(), body.filters())
    return MarketsResponse(markets=markets, total=len(markets))


@app.get(
    "/markets/{platform}/{market_id}/recommendation",
    response_model=RecommendationResponse,
    responses={404: {"model": ErrorResponse}},
)
async def market_recommendation(
    platform: Platform,
    market_id: str,
    bankroll: float | None = Query(None, gt=0),
    services: Services = Depends(get_services),
):
    market = await services.search.get_market(platform, market_id)
    if market is None:
        return _error_json("market_not_found", f"No {platform.value} market {market_id}")
    rec = await services.engine.recommend(market, bankroll)
    return RecommendationResponse(market=market, recommendation=rec)


@app.post("/scan", response_model=ScanResponse, responses={404: {"model": ErrorResponse}})
async def scan(body: ScanRequest, services: Services = Depends(get_services)):
    """Best opportunity among searched (or, with no query, trending) markets."""
    query: ParsedQuery = body.parsed_query()
    if query.entities or query.terms():
        filters = body.filters().model_copy(update={"limit": body.candidates})
        candidates = await services.search.search(query, filters)
    else:
        candidates = await services.search.trending(body.candidates, body.platform)
    if not candidates:
        return _error_json("no_markets", "No candidate markets matched")
    result = await services.scanner.find_best(candidates, body.bankroll)
    return ScanResponse(result=result)


def run_api(host: str = "127.0.0.1", port: int = 8000, profile: str | None = None) -> None:
    global _config_profile
    _config_profile = profile
    import uvicorn

    uvicorn.run("predictmax.api.main:app", host=host, port=port, reload=False)
