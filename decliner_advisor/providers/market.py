"""Top-decliners list via Alpha Vantage TOP_GAINERS_LOSERS."""

import math
from typing import List, Optional, Tuple

import pandas as pd

from decliner_advisor.core.errors import MalformedResponse
from decliner_advisor.core.logger import logger
from decliner_advisor.models.datatypes import DeclinerQuote
from decliner_advisor.providers.base import MarketDataProvider
from decliner_advisor.providers.client import AlphaVantageClient

_FUNCTION = "TOP_GAINERS_LOSERS"
_LOSERS_KEY = "top_losers"
_COLUMNS = ["ticker", "price", "change_amount", "change_percentage", "volume"]

MAX_DECLINERS = 20


class AlphaVantageMarketProvider(MarketDataProvider):
    """US market decliners for the last trading day covered by the feed."""

    def __init__(self, client: AlphaVantageClient, max_decliners: int = MAX_DECLINERS) -> None:
        self.client = client
        self.max_decliners = max_decliners

    def fetch_top_decliners(self) -> Tuple[List[DeclinerQuote], Optional[str]]:
        """
        Fetch the losers list and normalise it into quotes.

        The feed reports every number as a string, with a trailing ``%`` on
        ``change_percentage``. Unparsable prices become NaN. A missing or
        blank percentage reads as 0. Unparsable or non-finite volumes become
        0. Anything past ``max_decliners`` is dropped.

        Returns:
            Tuple[List[DeclinerQuote], Optional[str]]: Quotes in feed order and ``last_updated``.

        Raises:
            UpstreamUnavailable: Transport failure, or ``top_losers`` missing
                (quota notices look the same as malformed bodies here).
            MalformedResponse: Rows that pandas cannot coerce at all.
        """
        data = self.client.get_json(_FUNCTION)
        losers = data.get(_LOSERS_KEY)
        if not isinstance(losers, list):
            logger.error(f"AlphaVantageMarketProvider: '{_LOSERS_KEY}' missing; keys={sorted(data)[:5]}")
            raise MalformedResponse(
                "Could not fetch the decliners list; the API quota may be exhausted.",
                function=_FUNCTION,
            )

        as_of_date = data.get("last_updated")
        rows = [row for row in losers[: self.max_decliners] if isinstance(row, dict)]
        if not rows:
            logger.warning("AlphaVantageMarketProvider: feed returned an empty losers list")
            return [], as_of_date

        try:
            df = _normalise(pd.DataFrame(rows))
        except (TypeError, ValueError) as exc:
            logger.error(f"AlphaVantageMarketProvider: could not normalise losers list: {exc}")
            raise MalformedResponse(f"Malformed decliners list: {exc}", function=_FUNCTION) from exc

        quotes = [
            DeclinerQuote(
                symbol=row.ticker,
                price=float(row.price),
                change_amount=float(row.change_amount),
                change_pct=float(row.change_percentage),
                volume=int(row.volume),
            )
            for row in df.itertuples(index=False)
        ]
        logger.info(f"AlphaVantageMarketProvider: {len(quotes)} decliners as of {as_of_date}")
        return quotes, as_of_date


def _normalise(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce the feed's string columns into typed ones."""
    df = df.reindex(columns=_COLUMNS)
    df["ticker"] = df["ticker"].fillna("").astype(str).str.strip()
    df["price"] = pd.to_numeric(df["price"], errors="coerce")
    df["change_amount"] = pd.to_numeric(df["change_amount"], errors="coerce")

    # missing or blank percentages read as 0, garbage text stays NaN
    pct = df["change_percentage"].fillna("").astype(str).str.strip().str.rstrip("%").str.strip()
    df["change_percentage"] = pd.to_numeric(pct.mask(pct == "", "0"), errors="coerce")

    volume = pd.to_numeric(df["volume"], errors="coerce")
    volume = volume.where(volume.abs() != math.inf)
    df["volume"] = volume.fillna(0).clip(lower=0).astype(int)
    return df
