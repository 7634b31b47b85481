"""Error taxonomy for the decliner advisory pipeline.

Run-level errors (``MissingCredential``, ``UpstreamUnavailable`` from the market
feed) abort a run. ``UpstreamUnavailable`` raised by the news or history feed is
recovered per symbol by the engine.
"""

from typing import Optional


class AdvisorError(Exception):
    """Base class for every error raised by this package."""


class MissingCredential(AdvisorError):
    """No Alpha Vantage API key was supplied. Raised before any network call."""

    def __init__(self, message: str = "Alpha Vantage API key is required.") -> None:
        super().__init__(message)


class UpstreamUnavailable(AdvisorError):
    """An upstream feed could not be reached or returned an unusable response.

    Attributes:
        function: Alpha Vantage ``function`` parameter of the failing call.
        symbol: Ticker the call was made for, if any.
    """

    def __init__(
        self,
        message: str,
        function: Optional[str] = None,
        symbol: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.function = function
        self.symbol = symbol


class MalformedResponse(UpstreamUnavailable):
    """Body was not JSON or lacked the expected top-level field."""


class QuotaExhausted(UpstreamUnavailable):
    """Upstream answered HTTP 429."""


class RunInProgress(AdvisorError):
    """A run was started while another run on the same engine is still active."""
