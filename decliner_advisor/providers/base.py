"""Abstract base classes for data providers."""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from decliner_advisor.models.datatypes import DeclinerQuote, SentimentProfile, VolumeProfile


class MarketDataProvider(ABC):
    """Abstract interface for fetching the daily top-decliners list."""

    @abstractmethod
    def fetch_top_decliners(self) -> Tuple[List[DeclinerQuote], Optional[str]]:
        """
        Fetch the most recent trading day's largest decliners.

        Returns:
            Tuple[List[DeclinerQuote], Optional[str]]: Quotes in feed ranking order
                (at most 20) and the feed's as-of date.

        Raises:
            UpstreamUnavailable: If the feed is unreachable or lacks the losers list.
        """
        pass


class HistoryProvider(ABC):
    """Abstract interface for reducing a daily series to a trailing volume average."""

    @abstractmethod
    def fetch_volume_profile(self, symbol: str, window: int = 30) -> VolumeProfile:
        """
        Fetch the daily series for a symbol and average its most recent volumes.

        Args:
            symbol (str): The ticker symbol.
            window (int): Number of most recent trading days to average.

        Returns:
            VolumeProfile: ``avg_volume`` is None when no usable entries exist.

        Raises:
            UpstreamUnavailable: On transport/HTTP failure only.
        """
        pass


class NewsProvider(ABC):
    """Abstract interface for fetching headlines and sentiment for a symbol."""

    @abstractmethod
    def fetch_sentiment(self, symbol: str) -> SentimentProfile:
        """
        Fetch recent articles for a symbol and reduce them to a profile.

        Args:
            symbol (str): The ticker symbol.

        Returns:
            SentimentProfile: Headline sample and averaged sentiment (0.0 if none).

        Raises:
            UpstreamUnavailable: On transport/HTTP failure only.
        """
        pass
