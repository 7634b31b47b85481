"""Thin Alpha Vantage HTTP client shared by the market, history and news providers."""

from typing import Any, Dict, Optional

import requests

from decliner_advisor.core.errors import MalformedResponse, QuotaExhausted, UpstreamUnavailable
from decliner_advisor.core.logger import logger

AV_BASE_URL = "https://www.alphavantage.co/query"

# Keys Alpha Vantage uses for quota/usage notices in an otherwise 200 response
_NOTICE_KEYS = ("Note", "Information", "Error Message")


class AlphaVantageClient:
    """GET ``/query?function=...`` and return the decoded JSON body.

    Every transport or HTTP failure is raised as :class:`UpstreamUnavailable`;
    callers decide whether that is fatal. There is no retry at this layer.

    Args:
        api_key: Alpha Vantage API key.
        session: Optional ``requests.Session`` (tests inject a fake).
        base_url: Query endpoint.
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        base_url: str = AV_BASE_URL,
        timeout: float = 15.0,
    ) -> None:
        self.api_key = api_key
        self.session = session or requests.Session()
        self.base_url = base_url
        self.timeout = timeout
        self.requests_made = 0

    def get_json(
        self,
        function: str,
        params: Optional[Dict[str, Any]] = None,
        symbol: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Issue one GET and return the JSON object.

        Args:
            function: Alpha Vantage ``function`` parameter.
            params: Additional query parameters.
            symbol: Ticker the call concerns, for logging and error context.

        Raises:
            QuotaExhausted: HTTP 429.
            UpstreamUnavailable: Network error or any other non-200 status.
            MalformedResponse: Body is not a JSON object.
        """
        query = {"function": function, **(params or {}), "apikey": self.api_key}
        tag = f"{function} [{symbol}]" if symbol else function
        logger.info(f"AlphaVantageClient: GET {tag}")

        self.requests_made += 1
        try:
            resp = self.session.get(self.base_url, params=query, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error(f"AlphaVantageClient: INFRA_FAILURE {tag}: {exc}")
            raise UpstreamUnavailable(f"request failed: {exc}", function, symbol) from exc

        if resp.status_code == 429:
            logger.error(f"AlphaVantageClient: QUOTA {tag} HTTP 429")
            raise QuotaExhausted("HTTP 429 (request quota exhausted)", function, symbol)
        if resp.status_code != 200:
            logger.error(f"AlphaVantageClient: INFRA_FAILURE {tag} HTTP {resp.status_code}: {resp.text[:200]}")
            raise UpstreamUnavailable(f"HTTP {resp.status_code}", function, symbol)

        try:
            data = resp.json()
        except ValueError as exc:
            logger.error(f"AlphaVantageClient: non-JSON body for {tag}: {resp.text[:200]!r}")
            raise MalformedResponse("response is not valid JSON", function, symbol) from exc

        if not isinstance(data, dict):
            raise MalformedResponse(
                f"expected a JSON object, got {type(data).__name__}", function, symbol
            )

        for key in _NOTICE_KEYS:
            if key in data:
                logger.warning(f"AlphaVantageClient: {tag} notice [{key}]: {str(data[key])[:200]}")

        return data
