"""Trailing average volume via Alpha Vantage TIME_SERIES_DAILY_ADJUSTED."""

import math
from typing import Any, Dict, Optional, Tuple

import pandas as pd

from decliner_advisor.core.logger import logger
from decliner_advisor.models.datatypes import VolumeProfile
from decliner_advisor.providers.base import HistoryProvider
from decliner_advisor.providers.client import AlphaVantageClient

_FUNCTION = "TIME_SERIES_DAILY_ADJUSTED"
_SERIES_KEY = "Time Series (Daily)"
# Adjusted endpoint first, plain TIME_SERIES_DAILY key second
_VOLUME_KEYS = ("6. volume", "5. volume")

DEFAULT_WINDOW = 30


class AlphaVantageHistoryProvider(HistoryProvider):
    """Reduces the compact (~100 day) daily series to a trailing volume average."""

    def __init__(self, client: AlphaVantageClient) -> None:
        self.client = client

    def fetch_volume_profile(self, symbol: str, window: int = DEFAULT_WINDOW) -> VolumeProfile:
        """
        Fetch the daily series for ``symbol`` and average the latest ``window`` volumes.

        An empty or missing series is not an error: it yields ``avg_volume=None``.

        Args:
            symbol (str): The ticker symbol.
            window (int): Trading days to average.

        Returns:
            VolumeProfile: Average (None if no usable entries) and the sample count.
        """
        data = self.client.get_json(
            _FUNCTION, params={"symbol": symbol, "outputsize": "compact"}, symbol=symbol
        )
        series = data.get(_SERIES_KEY)
        if not isinstance(series, dict) or not series:
            logger.warning(f"HISTORY [{symbol}] no '{_SERIES_KEY}' in response")
            return VolumeProfile(symbol=symbol, avg_volume=None, window=window)

        avg, samples = average_volume(series, window)
        if avg is None:
            logger.warning(f"HISTORY [{symbol}] no usable volume entries in {len(series)} days")
        else:
            logger.info(f"HISTORY [{symbol}] avg_volume={avg} over {samples} days")
        return VolumeProfile(symbol=symbol, avg_volume=avg, window=window, samples=samples)


# ── helpers ───────────────────────────────────────────────────────────────────

def average_volume(series: Dict[str, Any], window: int = DEFAULT_WINDOW) -> Tuple[Optional[int], int]:
    """Average the volume of the ``window`` most recent dates in a daily series.

    The window is taken over dates first, then non-numeric volumes are dropped,
    so a bad entry shrinks the sample instead of pulling in an older day.
    A day without a volume field counts as 0.

    Args:
        series: ``{"YYYY-MM-DD": {"6. volume": "123", ...}, ...}``.
        window: Number of most recent dates to consider.

    Returns:
        ``(average rounded half up, samples)``; average is None when samples is 0.
    """
    if window <= 0 or not series:
        return None, 0

    volumes = pd.Series({date: _raw_volume(day) for date, day in series.items()}, dtype=object)
    recent = volumes.sort_index(ascending=False).head(window)
    numeric = pd.to_numeric(recent, errors="coerce")
    numeric = numeric[numeric.notna() & (numeric.abs() != math.inf)]

    if numeric.empty:
        return None, 0
    return int(math.floor(float(numeric.mean()) + 0.5)), int(numeric.size)


def _raw_volume(day: Any) -> Any:
    if not isinstance(day, dict):
        return None  # unusable entry: skipped
    for key in _VOLUME_KEYS:
        if key in day:
            return day[key] or 0
    return 0
