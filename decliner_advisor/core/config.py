"""Configuration module for loading project settings and environment variables."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

API_KEY_ENV = "ALPHA_VANTAGE_API_KEY"


def load_config(config_path: str | Path = "config.yaml") -> Dict[str, Any]:
    """
    Load configuration from the specified YAML file.

    Args:
        config_path (str | Path): Path to the configuration file. Defaults to "config.yaml".

    Returns:
        Dict[str, Any]: A dictionary containing the configuration settings.
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    with open(config_file, "r", encoding="utf-8") as file:
        config_data = yaml.safe_load(file)

    if not config_data:
        raise ValueError(f"Configuration file {config_path} is empty or invalid.")

    return config_data


def get_api_key() -> Optional[str]:
    """Return the Alpha Vantage key from the environment, or None if unset/blank."""
    value = os.getenv(API_KEY_ENV, "").strip()
    return value or None


@dataclass(frozen=True)
class PipelineSettings:
    """Typed view over ``config.yaml``. Missing keys fall back to the defaults below."""
    base_url: str = "https://www.alphavantage.co/query"
    timeout_seconds: float = 15.0
    max_decliners: int = 20
    history_window_days: int = 30
    news_lookback_days: int = 7
    news_article_limit: int = 50
    headline_sample: int = 5
    fast_preview: bool = True
    fast_preview_size: int = 5
    call_delay_seconds: float = 1.5
    log_file: Optional[str] = None

    @classmethod
    def from_config(cls, config: Optional[Dict[str, Any]]) -> "PipelineSettings":
        config = config or {}
        av = config.get("alphavantage", {}) or {}
        market = config.get("market", {}) or {}
        history = config.get("history", {}) or {}
        news = config.get("news", {}) or {}
        pipeline = config.get("pipeline", {}) or {}
        logging_cfg = config.get("logging", {}) or {}
        return cls(
            base_url=av.get("base_url", cls.base_url),
            timeout_seconds=float(av.get("timeout_seconds", cls.timeout_seconds)),
            max_decliners=int(market.get("max_decliners", cls.max_decliners)),
            history_window_days=int(history.get("window_days", cls.history_window_days)),
            news_lookback_days=int(news.get("lookback_days", cls.news_lookback_days)),
            news_article_limit=int(news.get("article_limit", cls.news_article_limit)),
            headline_sample=int(news.get("headline_sample", cls.headline_sample)),
            fast_preview=bool(pipeline.get("fast_preview", cls.fast_preview)),
            fast_preview_size=int(pipeline.get("fast_preview_size", cls.fast_preview_size)),
            call_delay_seconds=float(pipeline.get("call_delay_seconds", cls.call_delay_seconds)),
            log_file=logging_cfg.get("log_file", cls.log_file),
        )
