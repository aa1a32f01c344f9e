"""Wire the component graph from Settings (shared by the CLI and the API)."""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from predictmax.cache import TTLCache
from predictmax.config import Settings
from predictmax.ingestion.kalshi.client import KalshiClient
from predictmax.ingestion.manager import IngestionManager
from predictmax.ingestion.polymarket.gamma import GammaClient
from predictmax.intelligence.ensemble import ProbabilityEnsemble
from predictmax.intelligence.estimators import ContextEstimators
from predictmax.intelligence.recommendation import RecommendationEngine
from predictmax.intelligence.risk import RiskAssessor
from predictmax.intelligence.scanner import OpportunityScanner
from predictmax.reasoning import LLMReasoningGenerator
from predictmax.reference import StaticReferenceData
from predictmax.search.ranker import SearchRanker
from predictmax.search.service import MarketSearchService
from predictmax.storage.markets import DuckDBMarketStore

log = structlog.get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    search: MarketSearchService
    engine: RecommendationEngine
    scanner: OpportunityScanner


def build_services(settings: Settings, persist: bool = True) -> Services:
    reference = StaticReferenceData()
    ingestion = IngestionManager(
        [
            KalshiClient(settings.kalshi_api_base, timeout=settings.kalshi_timeout_sec),
            GammaClient(settings.gamma_api_base, timeout=settings.polymarket_timeout_sec),
        ]
    )
    search = MarketSearchService(
        ingestion,
        ranker=SearchRanker(reference),
        cache=TTLCache(),
        persistence=DuckDBMarketStore(settings.db_path) if persist else None,
        default_limit=settings.search_default_limit,
        trending_ttl_sec=settings.trending_ttl_sec,
    )

    reasoner = None
    if settings.reasoning_enabled:
        api_key = settings.reasoning_api_key
        if api_key:
            reasoner = LLMReasoningGenerator(
                api_key=api_key,
                model=settings.reasoning_model,
                api_base=settings.reasoning_api_base,
                max_tokens=settings.reasoning_max_tokens,
            )
        else:
            log.warning("reasoning_key_missing", env=settings.reasoning.get("api_key_env", "ANTHROPIC_API_KEY"))

    engine = RecommendationEngine(
        ensemble=ProbabilityEnsemble(),
        assessor=RiskAssessor(settings.position_ceiling),
        estimators=ContextEstimators(reference),
        reasoner=reasoner,
        default_bankroll=settings.default_bankroll,
    )
    scanner = OpportunityScanner(engine, top_k=settings.scanner_top_k, alternatives=settings.scanner_alternatives)
    return Services(settings=settings, search=search, engine=engine, scanner=scanner)
