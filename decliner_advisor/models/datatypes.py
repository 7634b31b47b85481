"""Data structures for the decliner advisory pipeline."""

from collections import deque
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Deque, Dict, List, Optional, Tuple

import pandas as pd

TRACE_CAPACITY = 100


class Category(str, Enum):
    """Advisory category, ordered from most to least risky."""
    AVOID = "Avoid"
    WAIT = "Wait"
    SPECULATIVE_BUY = "SpeculativeBuy"


class Stage(str, Enum):
    """Orchestrator state. ``DONE`` and ``ABORTED`` are terminal."""
    IDLE = "Idle"
    FETCHING_QUOTES = "FetchingQuotes"
    FETCHING_NEWS = "FetchingNews"
    FETCHING_HISTORY = "FetchingHistory"
    CLASSIFYING = "Classifying"
    DONE = "Done"
    ABORTED = "Aborted"


@dataclass(frozen=True)
class DeclinerQuote:
    """
    One row of the TOP_GAINERS_LOSERS ``top_losers`` list.
    """
    symbol: str
    price: float
    change_amount: float
    change_pct: float  # signed, e.g. -23.5 for a 23.5% drop
    volume: int


@dataclass(frozen=True)
class VolumeProfile:
    symbol: str
    avg_volume: Optional[int]  # None = no usable series
    window: int
    samples: int = 0


@dataclass(frozen=True)
class SentimentProfile:
    symbol: str
    headlines: Tuple[str, ...] = ()
    sentiment_score: float = 0.0
    article_count: int = 0


@dataclass(frozen=True)
class AdvisoryDecision:
    """
    Classifier output.

    Attributes:
        category: The first rule tier that matched.
        rationale: Fixed human-readable text for that tier.
        signals: Inputs that fired within the matching tier (empty for SpeculativeBuy).
    """
    category: Category
    rationale: str
    signals: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AdvisoryRecord:
    """
    Final output unit of the pipeline, one per processed decliner.
    """
    symbol: str
    price: float
    change_pct: float
    change_amount: float
    volume: int
    avg_volume: Optional[int]
    headlines: Tuple[str, ...]
    sentiment_score: float
    category: Category
    rationale: str
    signals: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["category"] = self.category.value
        data["headlines"] = list(self.headlines)
        data["signals"] = list(self.signals)
        return data


@dataclass
class RunState:
    """
    Mutable state of one run, owned by the engine and streamed to subscribers.
    """
    as_of_date: Optional[str] = None
    trace: Deque[str] = field(default_factory=lambda: deque(maxlen=TRACE_CAPACITY))
    error: Optional[str] = None
    loading: bool = False
    stage: Stage = Stage.IDLE
    current_symbol: Optional[str] = None

    def push(self, message: str) -> None:
        """Prepend a trace entry; the oldest entry is dropped past capacity."""
        self.trace.appendleft(message)

    def snapshot_trace(self) -> List[str]:
        return list(self.trace)


_FRAME_COLUMNS = [
    "symbol", "price", "change_pct", "volume", "avg_volume",
    "sentiment_score", "category", "rationale",
]


@dataclass(frozen=True)
class PipelineResult:
    """
    What a run hands back to the presentation layer.

    ``records`` is empty whenever ``error`` is set.
    """
    as_of_date: Optional[str]
    records: Tuple[AdvisoryRecord, ...]
    trace: List[str]
    error: Optional[str] = None
    requested: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_frame(self) -> pd.DataFrame:
        """Records as a DataFrame in feed order (headlines and signals omitted)."""
        rows = [record.to_dict() for record in self.records]
        if not rows:
            return pd.DataFrame(columns=_FRAME_COLUMNS)
        df = pd.DataFrame(rows)[_FRAME_COLUMNS]
        df["avg_volume"] = df["avg_volume"].astype("Int64")
        return df

    def to_dict(self) -> Dict[str, Any]:
        return {
            "as_of_date": self.as_of_date,
            "records": [record.to_dict() for record in self.records],
            "trace": list(self.trace),
            "error": self.error,
            "requested": self.requested,
        }
