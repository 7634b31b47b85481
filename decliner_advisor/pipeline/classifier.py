"""Rule-based advisory classifier.

Maps (drop magnitude, averaged sentiment, headline sample) to one of three
categories. Rules are tiers evaluated top to bottom and the first tier with any
firing signal wins, so a headline keyword overrides a mild numeric picture.

    Tier            headline patterns      sentiment      drop %
    Avoid           severe set             <= -0.35       >= 20
    Wait            caution set            <  0           >= 10
    SpeculativeBuy  (fallback)
"""

import math
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Sequence, Tuple

from decliner_advisor.models.datatypes import AdvisoryDecision, Category

SEVERE_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"guidance cut",
        r"sec (investigation|probe|charges)",
        r"fraud|accounting",
        r"bankrupt|bankruptcy",
        r"going concern",
        r"delist",
    )
)

CAUTION_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, re.IGNORECASE)
    for p in (
        r"earnings miss|revenue miss|profit warning",
        r"secondary offering|share offering|dilution|convertible",
        r"downgrade",
        r"recall",
    )
)


@dataclass(frozen=True)
class AdvisoryRule:
    """One tier of the decision table.

    Attributes:
        category: Category returned when the tier fires.
        rationale: Fixed text attached to that category.
        patterns: Headline regexes; any match fires the tier.
        sentiment_ceiling: Sentiment threshold, or None to ignore sentiment.
        ceiling_inclusive: ``score <= ceiling`` when True, ``score < ceiling`` otherwise.
        min_drop: Drop magnitude (percent) at or above which the tier fires, or None.
    """
    category: Category
    rationale: str
    patterns: Tuple[Pattern[str], ...] = ()
    sentiment_ceiling: Optional[float] = None
    ceiling_inclusive: bool = True
    min_drop: Optional[float] = None

    def signals(self, drop: float, sentiment: float, text: str) -> Tuple[str, ...]:
        """Return the inputs that fire this tier (empty tuple if none)."""
        fired: List[str] = []
        for pattern in self.patterns:
            if pattern.search(text):
                fired.append(f"headline:{pattern.pattern}")
        if self.sentiment_ceiling is not None:
            if self.ceiling_inclusive and sentiment <= self.sentiment_ceiling:
                fired.append(f"sentiment<={self.sentiment_ceiling:g}")
            elif not self.ceiling_inclusive and sentiment < self.sentiment_ceiling:
                fired.append(f"sentiment<{self.sentiment_ceiling:g}")
        if self.min_drop is not None and drop >= self.min_drop:
            fired.append(f"drop>={self.min_drop:g}")
        return tuple(fired)


RULES: Tuple[AdvisoryRule, ...] = (
    AdvisoryRule(
        category=Category.AVOID,
        rationale="Strongly negative news, severe risk signal or extreme drop.",
        patterns=SEVERE_PATTERNS,
        sentiment_ceiling=-0.35,
        ceiling_inclusive=True,
        min_drop=20.0,
    ),
    AdvisoryRule(
        category=Category.WAIT,
        rationale="Mixed or negative sentiment or a significant drop; wait for confirmation.",
        patterns=CAUTION_PATTERNS,
        sentiment_ceiling=0.0,
        ceiling_inclusive=False,
        min_drop=10.0,
    ),
)

FALLBACK = AdvisoryDecision(
    category=Category.SPECULATIVE_BUY,
    rationale="Moderate drop and no strongly negative news.",
)


def classify(
    change_pct: float,
    sentiment_score: float,
    headlines: Sequence[str] = (),
    rules: Sequence[AdvisoryRule] = RULES,
) -> AdvisoryDecision:
    """Classify one decliner.

    Args:
        change_pct: Signed or unsigned percentage change; only its magnitude is used.
        sentiment_score: Averaged sentiment in roughly [-1, 1].
        headlines: Headline sample (joined with newlines before matching).
        rules: Decision table, highest priority first.

    Returns:
        AdvisoryDecision for the first tier that fires, else SpeculativeBuy.
    """
    drop = abs(change_pct)
    # NaN compares False against every threshold, so an unparsable change is no signal
    if not math.isfinite(sentiment_score):
        sentiment_score = 0.0
    text = " \n".join(h for h in (headlines or ()) if h)

    for rule in rules:
        fired = rule.signals(drop, sentiment_score, text)
        if fired:
            return AdvisoryDecision(category=rule.category, rationale=rule.rationale, signals=fired)
    return FALLBACK
