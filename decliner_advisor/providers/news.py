"""Headlines and averaged sentiment via Alpha Vantage NEWS_SENTIMENT.

Per symbol:
  1. One NEWS_SENTIMENT call over the trailing window (default 7 days), newest first.
  2. Headline sample: titles of the first N feed entries (default 5).
  3. Sentiment: mean of numeric ``overall_sentiment_score`` values, 0.0 if none.

A missing or empty ``feed`` is a normal outcome (no coverage, or a quota notice
in the body) and yields an empty profile.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Sequence, Tuple

import pandas as pd

from decliner_advisor.core.logger import logger
from decliner_advisor.models.datatypes import SentimentProfile
from decliner_advisor.providers.base import NewsProvider
from decliner_advisor.providers.client import AlphaVantageClient

_FUNCTION = "NEWS_SENTIMENT"
_AV_TIME_FMT = "%Y%m%dT%H%M"

DEFAULT_LOOKBACK_DAYS = 7
DEFAULT_ARTICLE_LIMIT = 50
DEFAULT_HEADLINE_SAMPLE = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlphaVantageNewsProvider(NewsProvider):
    """NEWS_SENTIMENT provider.

    Args:
        client: Shared :class:`AlphaVantageClient`.
        lookback_days: Width of the ``time_from``/``time_to`` window ending now.
        article_limit: ``limit`` query parameter (Alpha Vantage max is 50 on free keys).
        headline_sample: How many titles to keep.
        now: Clock used for the window (injected in tests).
    """

    def __init__(
        self,
        client: AlphaVantageClient,
        lookback_days: int = DEFAULT_LOOKBACK_DAYS,
        article_limit: int = DEFAULT_ARTICLE_LIMIT,
        headline_sample: int = DEFAULT_HEADLINE_SAMPLE,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.client = client
        self.lookback_days = lookback_days
        self.article_limit = article_limit
        self.headline_sample = headline_sample
        self._now = now

    def fetch_sentiment(self, symbol: str) -> SentimentProfile:
        """Return the headline sample and averaged sentiment for ``symbol``."""
        time_from, time_to = self._window()
        data = self.client.get_json(
            _FUNCTION,
            params={
                "tickers": symbol,
                "time_from": time_from,
                "time_to": time_to,
                "sort": "LATEST",
                "limit": self.article_limit,
            },
            symbol=symbol,
        )
        feed = data.get("feed") or []
        if not isinstance(feed, list):
            logger.warning(f"NEWS [{symbol}] 'feed' is {type(feed).__name__}, treating as empty")
            feed = []
        articles = [item for item in feed if isinstance(item, dict)]

        headlines = sample_headlines(articles, self.headline_sample)
        score, scored = average_sentiment(articles)
        logger.info(
            f"NEWS [{symbol}] {len(articles)} articles, {scored} scored, "
            f"sentiment={score:+.3f}"
        )
        return SentimentProfile(
            symbol=symbol,
            headlines=headlines,
            sentiment_score=score,
            article_count=len(articles),
        )

    def _window(self) -> Tuple[str, str]:
        now = self._now()
        start = now - timedelta(days=self.lookback_days)
        return start.strftime(_AV_TIME_FMT), now.strftime(_AV_TIME_FMT)


# ── helpers ───────────────────────────────────────────────────────────────────

def sample_headlines(articles: Sequence[dict], limit: int = DEFAULT_HEADLINE_SAMPLE) -> Tuple[str, ...]:
    """Titles of the first ``limit`` articles in feed order; blank titles are dropped."""
    titles: List[str] = []
    for article in articles[:limit]:
        title = str(article.get("title") or "").strip()
        if title:
            titles.append(title)
    return tuple(titles)


def average_sentiment(articles: Sequence[dict]) -> Tuple[float, int]:
    """Mean ``overall_sentiment_score`` over articles exposing a finite number.

    Returns:
        ``(score, count)``. Score is exactly 0.0 when count is 0.
    """
    if not articles:
        return 0.0, 0
    raw: List[Optional[Any]] = [article.get("overall_sentiment_score") for article in articles]
    scores = pd.to_numeric(pd.Series(raw, dtype=object), errors="coerce")
    scores = scores[scores.notna() & (scores.abs() != math.inf)]
    if scores.empty:
        return 0.0, 0
    return float(scores.mean()), int(scores.size)
