"""Pytest configuration and fixtures."""

import json
from typing import Any, Callable, Dict, List, Optional

import pytest
import requests

from decliner_advisor.core.config import PipelineSettings
from decliner_advisor.core.errors import UpstreamUnavailable
from decliner_advisor.core.rate_limit import NullRateLimiter
from decliner_advisor.models.datatypes import DeclinerQuote, SentimentProfile, VolumeProfile
from decliner_advisor.pipeline.engine import PipelineEngine, Providers
from decliner_advisor.providers.base import HistoryProvider, MarketDataProvider, NewsProvider
from decliner_advisor.providers.client import AlphaVantageClient


class FakeResponse:
    """Minimal stand-in for ``requests.Response``."""

    def __init__(self, payload: Any = None, status_code: int = 200, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload


class FakeSession:
    """Routes GETs by the ``function`` query parameter to canned responses.

    A route value may be a FakeResponse, an exception instance (raised), or a
    callable ``params -> FakeResponse``.
    """

    def __init__(self, routes: Dict[str, Any]) -> None:
        self.routes = routes
        self.calls: List[Dict[str, Any]] = []

    def get(self, url: str, params: Optional[Dict[str, Any]] = None, timeout: Optional[float] = None):
        params = dict(params or {})
        self.calls.append(params)
        route = self.routes[params["function"]]
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(params)
        return route


def losers_payload(n: int = 20, as_of: str = "2024-05-17 16:15:59 US/Eastern") -> Dict[str, Any]:
    """TOP_GAINERS_LOSERS body with ``n`` losers LOSS00..LOSSnn, drops 30%, 29%, ..."""
    return {
        "metadata": "Top gainers, losers, and most actively traded US tickers",
        "last_updated": as_of,
        "top_gainers": [],
        "top_losers": [
            {
                "ticker": f"LOSS{i:02d}",
                "price": f"{10 + i}.50",
                "change_amount": f"-{i + 1}.25",
                "change_percentage": f"-{30 - i}.0%",
                "volume": str(100000 * (i + 1)),
            }
            for i in range(n)
        ],
        "most_actively_traded": [],
    }


def series_payload(volumes: Dict[str, Any], key: str = "6. volume") -> Dict[str, Any]:
    return {
        "Meta Data": {"2. Symbol": "TEST"},
        "Time Series (Daily)": {
            date: {"1. open": "1.0", "4. close": "1.0", key: volume}
            for date, volume in volumes.items()
        },
    }


def news_payload(articles: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"items": str(len(articles)), "feed": articles}


@pytest.fixture
def make_client() -> Callable[[Dict[str, Any]], AlphaVantageClient]:
    def build(routes: Dict[str, Any]) -> AlphaVantageClient:
        return AlphaVantageClient("demo", session=FakeSession(routes))
    return build


# ── fake providers for engine tests ───────────────────────────────────────────

def make_quotes(n: int) -> List[DeclinerQuote]:
    return [
        DeclinerQuote(
            symbol=f"SYM{i}", price=5.0 + i, change_amount=-1.0,
            change_pct=-(5.0 + i), volume=1000 * (i + 1),
        )
        for i in range(n)
    ]


class FakeMarket(MarketDataProvider):
    def __init__(self, quotes: List[DeclinerQuote], as_of: str = "2024-05-17", error: Exception = None) -> None:
        self.quotes = quotes
        self.as_of = as_of
        self.error = error
        self.calls = 0

    def fetch_top_decliners(self):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.quotes), self.as_of


class FakeHistory(HistoryProvider):
    def __init__(self, volumes: Dict[str, Optional[int]] = None, failing: set = frozenset()) -> None:
        self.volumes = volumes or {}
        self.failing = set(failing)
        self.calls: List[str] = []

    def fetch_volume_profile(self, symbol: str, window: int = 30) -> VolumeProfile:
        self.calls.append(symbol)
        if symbol in self.failing:
            raise UpstreamUnavailable("HTTP 503", "TIME_SERIES_DAILY_ADJUSTED", symbol)
        return VolumeProfile(symbol=symbol, avg_volume=self.volumes.get(symbol, 12345), window=window, samples=30)


class FakeNews(NewsProvider):
    def __init__(self, profiles: Dict[str, SentimentProfile] = None, failing: set = frozenset()) -> None:
        self.profiles = profiles or {}
        self.failing = set(failing)
        self.calls: List[str] = []

    def fetch_sentiment(self, symbol: str) -> SentimentProfile:
        self.calls.append(symbol)
        if symbol in self.failing:
            raise UpstreamUnavailable("request failed: timeout", "NEWS_SENTIMENT", symbol)
        return self.profiles.get(symbol, SentimentProfile(symbol=symbol, headlines=("Quiet day",), sentiment_score=0.1, article_count=1))


@pytest.fixture
def fake_providers():
    """Factory returning (providers, engine, limiter) wired with fakes."""

    def build(
        quotes: List[DeclinerQuote] = None,
        market: FakeMarket = None,
        history: FakeHistory = None,
        news: FakeNews = None,
        settings: PipelineSettings = None,
    ):
        providers = Providers(
            market=market or FakeMarket(quotes if quotes is not None else make_quotes(20)),
            history=history or FakeHistory(),
            news=news or FakeNews(),
        )
        limiter = NullRateLimiter()
        engine = PipelineEngine(
            settings=settings or PipelineSettings(),
            provider_factory=lambda api_key: providers,
            limiter=limiter,
        )
        return providers, engine, limiter

    return build


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("Connection refused")
