"""
Advisor — the end-to-end recommendation pipeline for one or many symbols.

    symbol
      → AcquisitionService.get_quote   (cache → fallback chain → synthetic)
      → AnalyticsStore.get             (snapshot, VWAP signal re-priced)
      → ScoringEngine.score            (ScoreFactors)
      → DecisionProjector.project      (Recommendation)

Provider failures never surface here (the quote may be synthetic, which the
recommendation reports as LOW confidence). Missing analytics data does:
``SnapshotNotFoundError`` and ``SnapshotFieldError`` propagate.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Iterable, Optional

from market_pulse.acquisition.service import AcquisitionService
from market_pulse.analytics.store import AnalyticsStore
from market_pulse.models.recommendation import Recommendation
from market_pulse.recommendations.projector import DecisionProjector
from market_pulse.recommendations.scorer import ScoringEngine

if TYPE_CHECKING:
    import httpx

    from market_pulse.config import AppConfig

logger = logging.getLogger(__name__)


class Advisor:
    """Convenience wrapper tying acquisition, analytics and scoring together.

    Args:
        service: Quote source.
        store: Analytics snapshots.
        engine: Rule scorer.
        projector: Score → recommendation mapper.
        max_workers: Thread-pool size for ``recommend_many``.
    """

    def __init__(
        self,
        service: AcquisitionService,
        store: AnalyticsStore,
        engine: Optional[ScoringEngine] = None,
        projector: Optional[DecisionProjector] = None,
        max_workers: int = 8,
    ) -> None:
        self.service = service
        self.store = store
        self.engine = engine or ScoringEngine()
        self.projector = projector or DecisionProjector()
        self.max_workers = max_workers

    @classmethod
    def from_config(
        cls,
        config: "AppConfig",
        client: Optional["httpx.Client"] = None,
    ) -> "Advisor":
        return cls(
            service=AcquisitionService.from_config(config, client=client),
            store=AnalyticsStore.from_config(config.analytics),
            engine=ScoringEngine(weight_overrides=config.scoring.weights),
            projector=DecisionProjector(config.projection),
            max_workers=config.acquisition.max_workers,
        )

    def recommend(self, symbol: str, deadline: Optional[float] = None) -> Recommendation:
        """Produce a recommendation for one symbol.

        Raises:
            SnapshotNotFoundError: If no analytics exist for ``symbol``.
        """
        quote = self.service.get_quote(symbol, deadline=deadline)
        snapshot = self.store.get(quote.symbol).priced_at(quote.current_price)
        factors = self.engine.score(quote, snapshot)
        recommendation = self.projector.project(factors.net_score, quote, snapshot, factors)
        logger.info(
            "%s: %s (%s confidence, net %d, quote from %s)",
            recommendation.symbol,
            recommendation.action.value,
            recommendation.confidence.value,
            recommendation.net_score,
            recommendation.quote_source,
        )
        return recommendation

    def recommend_many(
        self,
        symbols: Iterable[str],
        deadline: Optional[float] = None,
    ) -> list[Recommendation]:
        """Recommend each symbol on a bounded thread pool; input order kept."""
        keys = list(dict.fromkeys(s.strip().upper() for s in symbols if s.strip()))
        if not keys:
            return []
        workers = min(self.max_workers, len(keys))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="advisor") as pool:
            return list(pool.map(lambda s: self.recommend(s, deadline=deadline), keys))
