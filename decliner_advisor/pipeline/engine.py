"""Pipeline engine: orchestrates the decliner list across all providers.

Flow per run:
  1. Market: fetch_top_decliners (once). Failure aborts the run.
  2. Per symbol, strictly in feed order, with a limiter wait before each call:
       News:    fetch_sentiment  (failure: no headlines, 0.0 sentiment)
       History: fetch_volume_profile (failure: avg_volume=None)
  3. Classify: rule table → AdvisoryRecord appended in feed order.

Symbol-level failures are traced and logged; the engine always continues to the
next symbol. Any other exception aborts the run like a market failure. Records are published once, as a tuple, when the run ends.
"""

import threading
from dataclasses import dataclass
from typing import Callable, List, Optional

import requests

from decliner_advisor.core.config import PipelineSettings
from decliner_advisor.core.errors import AdvisorError, MissingCredential, RunInProgress, UpstreamUnavailable
from decliner_advisor.core.logger import logger
from decliner_advisor.core.rate_limit import FixedDelayLimiter, RateLimiter
from decliner_advisor.models.datatypes import (
    AdvisoryRecord, DeclinerQuote, PipelineResult, RunState, SentimentProfile, Stage,
)
from decliner_advisor.pipeline.classifier import classify
from decliner_advisor.providers.base import HistoryProvider, MarketDataProvider, NewsProvider
from decliner_advisor.providers.client import AlphaVantageClient
from decliner_advisor.providers.history import AlphaVantageHistoryProvider
from decliner_advisor.providers.market import AlphaVantageMarketProvider
from decliner_advisor.providers.news import AlphaVantageNewsProvider

Listener = Callable[[RunState, str], None]


@dataclass
class Providers:
    """The three feeds a run needs, bound to one credential."""
    market: MarketDataProvider
    history: HistoryProvider
    news: NewsProvider


ProviderFactory = Callable[[str], Providers]


def alphavantage_providers(
    settings: PipelineSettings,
    session: Optional[requests.Session] = None,
) -> ProviderFactory:
    """Return a factory building Alpha Vantage providers for a given API key."""

    def build(api_key: str) -> Providers:
        client = AlphaVantageClient(
            api_key, session=session,
            base_url=settings.base_url, timeout=settings.timeout_seconds,
        )
        return Providers(
            market=AlphaVantageMarketProvider(client, max_decliners=settings.max_decliners),
            history=AlphaVantageHistoryProvider(client),
            news=AlphaVantageNewsProvider(
                client,
                lookback_days=settings.news_lookback_days,
                article_limit=settings.news_article_limit,
                headline_sample=settings.headline_sample,
            ),
        )

    return build


class PipelineEngine:
    """Runs the enrichment-and-classification pipeline.

    Args:
        settings: Typed settings (defaults when omitted).
        provider_factory: ``api_key -> Providers``. Defaults to Alpha Vantage.
        limiter: Waited on before every per-symbol call. Defaults to a
            :class:`FixedDelayLimiter` of ``settings.call_delay_seconds``.
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        provider_factory: Optional[ProviderFactory] = None,
        limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.settings = settings or PipelineSettings()
        self.provider_factory = provider_factory or alphavantage_providers(self.settings)
        self.limiter = limiter or FixedDelayLimiter(self.settings.call_delay_seconds)
        self.state = RunState()
        self._listeners: List[Listener] = []
        self._lock = threading.Lock()

    # ── public ────────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(state, message)`` for trace entries and stage changes.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def run(self, api_key: Optional[str], fast_preview: Optional[bool] = None) -> PipelineResult:
        """Run the pipeline once.

        Args:
            api_key: Alpha Vantage key. Blank or None aborts before any call.
            fast_preview: Limit enrichment to the first ``fast_preview_size``
                decliners. Defaults to ``settings.fast_preview``.

        Returns:
            PipelineResult. ``error`` is set and ``records`` empty on abort.

        Raises:
            RunInProgress: If another run on this engine has not finished.
        """
        if not self._lock.acquire(blocking=False):
            raise RunInProgress("A pipeline run is already in progress.")
        try:
            if fast_preview is None:
                fast_preview = self.settings.fast_preview
            return self._run(api_key, fast_preview)
        finally:
            self._lock.release()

    # ── internal ──────────────────────────────────────────────────────────────

    def _run(self, api_key: Optional[str], fast_preview: bool) -> PipelineResult:
        self.state = RunState(loading=True)
        requested = 0
        try:
            if not api_key or not api_key.strip():
                raise MissingCredential("Enter an Alpha Vantage API key.")
            providers = self.provider_factory(api_key.strip())

            self._transition(Stage.FETCHING_QUOTES, "Fetching top decliners...")
            quotes, as_of_date = providers.market.fetch_top_decliners()
            self.state.as_of_date = as_of_date

            working = quotes[: self.settings.fast_preview_size] if fast_preview else quotes
            requested = len(working)
            logger.info(
                f"PipelineEngine: {len(quotes)} decliners as of {as_of_date}, "
                f"processing {requested} (fast_preview={fast_preview})"
            )

            records: List[AdvisoryRecord] = []
            for index, quote in enumerate(working, start=1):
                records.append(self._process_symbol(providers, quote, index, requested))
        except AdvisorError as exc:
            return self._abort(exc, requested)
        except Exception as exc:
            logger.error(f"PipelineEngine: unexpected failure during {self.state.stage.value}", exc_info=True)
            return self._abort(exc, requested)

        self.state.current_symbol = None
        self._transition(Stage.DONE, f"Done: {len(records)} symbols classified.")
        self.state.loading = False
        return PipelineResult(
            as_of_date=self.state.as_of_date,
            records=tuple(records),
            trace=self.state.snapshot_trace(),
            error=None,
            requested=requested,
        )

    def _process_symbol(
        self,
        providers: Providers,
        quote: DeclinerQuote,
        index: int,
        total: int,
    ) -> AdvisoryRecord:
        """Build one AdvisoryRecord. News/history failures degrade, never raise."""
        symbol = quote.symbol
        self.state.current_symbol = symbol
        self._push(f"({index}/{total}) {symbol}: fetching news and volume...")

        # ── News + Sentiment ──────────────────────────────────────────────────
        self._transition(Stage.FETCHING_NEWS)
        self.limiter.wait()
        try:
            news = providers.news.fetch_sentiment(symbol)
        except UpstreamUnavailable as exc:
            logger.error(f"PipelineEngine: fetch_sentiment failed for {symbol}: {exc}")
            self._push(f"{symbol}: NEWS_SENTIMENT error - {exc}")
            news = SentimentProfile(symbol=symbol)

        # ── Trailing volume ───────────────────────────────────────────────────
        self._transition(Stage.FETCHING_HISTORY)
        self.limiter.wait()
        avg_volume: Optional[int] = None
        try:
            profile = providers.history.fetch_volume_profile(symbol, self.settings.history_window_days)
            avg_volume = profile.avg_volume
        except UpstreamUnavailable as exc:
            logger.error(f"PipelineEngine: fetch_volume_profile failed for {symbol}: {exc}")
            self._push(f"{symbol}: TIME_SERIES error - {exc}")

        # ── Classification ────────────────────────────────────────────────────
        self._transition(Stage.CLASSIFYING)
        decision = classify(quote.change_pct, news.sentiment_score, news.headlines)
        logger.info(f"PipelineEngine: {symbol} → {decision.category.value} {list(decision.signals)}")

        return AdvisoryRecord(
            symbol=symbol,
            price=quote.price,
            change_pct=quote.change_pct,
            change_amount=quote.change_amount,
            volume=quote.volume,
            avg_volume=avg_volume,
            headlines=news.headlines,
            sentiment_score=news.sentiment_score,
            category=decision.category,
            rationale=decision.rationale,
            signals=decision.signals,
        )

    def _abort(self, exc: Exception, requested: int) -> PipelineResult:
        message = str(exc) or exc.__class__.__name__
        logger.error(f"PipelineEngine: run aborted ({exc.__class__.__name__}): {message}")
        self.state.error = message
        self.state.current_symbol = None
        self._transition(Stage.ABORTED, f"Error: {message}")
        self.state.loading = False
        return PipelineResult(
            as_of_date=self.state.as_of_date,
            records=(),
            trace=self.state.snapshot_trace(),
            error=message,
            requested=requested,
        )

    def _transition(self, stage: Stage, message: Optional[str] = None) -> None:
        self.state.stage = stage
        if message:
            self._push(message)
        else:
            self._notify(f"stage={stage.value}")

    def _push(self, message: str) -> None:
        self.state.push(message)
        self._notify(message)

    def _notify(self, message: str) -> None:
        for listener in list(self._listeners):
            listener(self.state, message)


# ── helpers ───────────────────────────────────────────────────────────────────

def run_pipeline(
    api_key: Optional[str],
    fast_preview: bool = True,
    settings: Optional[PipelineSettings] = None,
    limiter: Optional[RateLimiter] = None,
) -> PipelineResult:
    """One-shot convenience wrapper around :class:`PipelineEngine`."""
    return PipelineEngine(settings=settings, limiter=limiter).run(api_key, fast_preview)
