"""Decliner advisory pipeline entry point.

Usage:
    python run_pipeline.py [--api-key KEY] [--fast-preview | --full]

Loads config.yaml, runs PipelineEngine for the latest top decliners, prints
the advisory table and headlines to stdout, then validates the result.
The API key defaults to ALPHA_VANTAGE_API_KEY (read from .env).
"""

import argparse
import sys

from dotenv import load_dotenv

load_dotenv()  # must precede package imports so env vars are available at module load

import pandas as pd  # noqa: E402

from decliner_advisor.core.config import PipelineSettings, get_api_key, load_config  # noqa: E402
from decliner_advisor.core.logger import attach_log_file, logger  # noqa: E402
from decliner_advisor.models.datatypes import PipelineResult  # noqa: E402
from decliner_advisor.pipeline.engine import PipelineEngine  # noqa: E402
from decliner_advisor.pipeline.validator import validate  # noqa: E402

DIVIDER = "=" * 70


def _parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Top decliners: news, volume and advisory.")
    parser.add_argument("--api-key", default=None, help="Alpha Vantage API key")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--fast-preview", dest="fast_preview", action="store_true", default=None,
                      help="enrich only the first 5 decliners")
    mode.add_argument("--full", dest="fast_preview", action="store_false",
                      help="enrich the full list (up to 20)")
    return parser.parse_args(argv)


def _print_result(result: PipelineResult) -> None:
    print(f"\n{DIVIDER}")
    print(f"  Top decliners  |  last trading day: {result.as_of_date or '-'}")
    print(DIVIDER)

    with pd.option_context("display.max_colwidth", 60, "display.width", 200):
        print(result.to_frame().to_string(index=False, float_format=lambda v: f"{v:.2f}"))

    for record in result.records:
        print(f"\n  {record.symbol}  sentiment={record.sentiment_score:+.2f}  [{record.category.value}]")
        if record.headlines:
            for headline in record.headlines:
                print(f"    • {headline}")
        else:
            print("    • No recent news or quota limit reached.")
    print()


def main(argv=None) -> int:
    """Run the pipeline. Returns 0 on success, 1 on failure."""
    args = _parse_args(argv)
    try:
        config = load_config()
    except (FileNotFoundError, ValueError) as exc:
        logger.error(f"run_pipeline: failed to load config: {exc}")
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    settings = PipelineSettings.from_config(config)
    if settings.log_file:
        attach_log_file(settings.log_file)

    fast_preview = settings.fast_preview if args.fast_preview is None else args.fast_preview
    try:
        engine = PipelineEngine(settings=settings)
        result = engine.run(args.api_key or get_api_key(), fast_preview=fast_preview)
    except Exception as exc:
        logger.error(f"run_pipeline: PipelineEngine raised: {exc}", exc_info=True)
        print(f"ERROR: pipeline failed - {exc}", file=sys.stderr)
        return 1

    if not result.ok:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return 1

    _print_result(result)

    cap = settings.fast_preview_size if fast_preview else settings.max_decliners
    passed, messages = validate(result, cap)
    for msg in messages:
        print(msg)
    logger.info(f"run_pipeline: completed, {len(result.records)} records, validation={'ok' if passed else 'failed'}")
    return 0 if passed else 1


if __name__ == "__main__":
    sys.exit(main())
