"""Output validator: checks a PipelineResult against the run invariants.

Checks:
  1. Record count within the requested cap (20 full, 5 fast preview)
  2. Category is one of Avoid / Wait / SpeculativeBuy
  3. Sentiment_Score finite (outside [-1.0, 1.0] only warns)
  4. At most 5 headlines per record
  5. Symbols unique within the run
  6. No records at all when the run reports an error
"""

import math
from typing import List, Tuple

from decliner_advisor.core.logger import logger
from decliner_advisor.models.datatypes import Category, PipelineResult

MAX_HEADLINES = 5


def validate(result: PipelineResult, cap: int) -> Tuple[bool, List[str]]:
    """Run all validation checks against ``result``.

    Args:
        result: Output of ``PipelineEngine.run``.
        cap: Maximum number of records the run was allowed to produce.

    Returns:
        Tuple of ``(passed: bool, messages: list[str])``.
        ``messages`` contains PASS/FAIL lines for each check, plus WARN lines.
    """
    messages: List[str] = []
    passed = True
    records = result.records

    # ── check 6: aborted runs carry no records ───────────────────────────────
    if result.error is not None:
        if records:
            return False, [f"FAIL  run errored ({result.error}) but produced {len(records)} records"]
        return True, [f"PASS  run aborted cleanly: {result.error}"]

    # ── check 1: record count ────────────────────────────────────────────────
    n = len(records)
    if n <= cap:
        messages.append(f"PASS  record count = {n} (cap {cap})")
    else:
        messages.append(f"FAIL  record count = {n} exceeds cap {cap}")
        passed = False

    # ── check 2: category enum ───────────────────────────────────────────────
    bad_categories = [r.symbol for r in records if not isinstance(r.category, Category)]
    if not bad_categories:
        messages.append("PASS  category ∈ {Avoid, Wait, SpeculativeBuy} for all records")
    else:
        messages.append(f"FAIL  unknown category for {bad_categories}")
        passed = False

    # ── check 3: Sentiment_Score finite ──────────────────────────────────────
    bad_scores = [
        (r.symbol, r.sentiment_score) for r in records
        if not isinstance(r.sentiment_score, (int, float))
        or not math.isfinite(r.sentiment_score)
    ]
    if not bad_scores:
        messages.append("PASS  Sentiment_Score finite for all records")
    else:
        messages.append(
            f"FAIL  Sentiment_Score invalid in {len(bad_scores)} records: {bad_scores[:3]}"
        )
        passed = False

    # range is advisory only
    bad_symbols = {symbol for symbol, _ in bad_scores}
    out_of_range = [
        (r.symbol, r.sentiment_score) for r in records
        if r.symbol not in bad_symbols and not (-1.0 <= r.sentiment_score <= 1.0)
    ]
    if out_of_range:
        logger.warning(f"validate: Sentiment_Score outside [-1.0, 1.0] for {out_of_range[:3]}")
        messages.append(f"WARN  Sentiment_Score outside [-1.0, 1.0] in {len(out_of_range)} records")

    # ── check 4: headline sample size ────────────────────────────────────────
    long_samples = [r.symbol for r in records if len(r.headlines) > MAX_HEADLINES]
    if not long_samples:
        messages.append(f"PASS  headlines ≤ {MAX_HEADLINES} per record")
    else:
        messages.append(f"FAIL  more than {MAX_HEADLINES} headlines for {long_samples}")
        passed = False

    # ── check 5: unique symbols ──────────────────────────────────────────────
    symbols = [r.symbol for r in records]
    duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
    if not duplicates:
        messages.append("PASS  symbols unique")
    else:
        messages.append(f"FAIL  duplicate symbols: {duplicates}")
        passed = False

    return passed, messages
