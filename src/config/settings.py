# src/config/settings.py

"""Central configuration for the protein_match engine."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the protein_match engine."""

    # --- Marketplace credentials (from .env) ---
    RAKUTEN_APP_ID: str = os.getenv("RAKUTEN_APP_ID", "")
    RAKUTEN_AFFILIATE_ID: str = os.getenv("RAKUTEN_AFFILIATE_ID", "")
    YAHOO_APP_ID: str = os.getenv("YAHOO_APP_ID", "")
    YAHOO_AFFILIATE_ID: str = os.getenv("YAHOO_AFFILIATE_ID", "")

    # --- Fetching ---
    REQUEST_DELAY: float = 1.2          # Seconds between retries (API rate limit)
    REQUEST_TIMEOUT: int = 10           # Seconds before a request times out
    SOURCE_TIMEOUT: float = 15.0        # Hard cap per source in the fan-out
    MAX_RETRIES: int = 3                # Retry count on transient failures
    HITS_PER_SOURCE: int = 30           # Items requested per marketplace

    # --- Resilience ---
    CIRCUIT_BREAKER_THRESHOLD: int = 3  # Consecutive failures to trip
    CIRCUIT_BREAKER_COOLDOWN: float = 60.0
    MAX_DELAY_MULTIPLIER: int = 8       # Cap for adaptive backoff

    # --- Ranking ---
    PAGE_SIZE: int = 10
    PREFERRED_TYPE_QUOTA: int = 6
    OTHER_TYPE_QUOTA: int = 4

    # --- Cache ---
    CACHE_MAX_AGE_MS: int = 24 * 60 * 60 * 1000

    # --- Featured catalog (refreshed on a schedule, served from cache) ---
    FEATURED_CACHE_KEY: str = "featured-products"
    FEATURED_PER_CATEGORY: int = 3
    FEATURED_SEARCHES: list[dict[str, str]] = [
        {"category": "whey", "name": "人気ホエイプロテイン", "query": "プロテイン ホエイ 人気"},
        {"category": "soy", "name": "売れ筋ソイプロテイン", "query": "プロテイン ソイ 女性"},
        {"category": "budget", "name": "コスパ最強", "query": "プロテイン 安い コスパ"},
        {"category": "premium", "name": "高評価商品", "query": "プロテイン 高評価 おすすめ"},
    ]

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": "application/json",
        "Accept-Language": "ja-JP,ja;q=0.9,en-US;q=0.8",
        "User-Agent": "ProteinMatch/2.0",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    CACHE_DIR: Path = BASE_DIR / "cache"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Sources (registry for future extensibility) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "rakuten",
            "label": "楽天市場",
            "source": "src.sources.rakuten_source.RakutenSource",
        },
        {
            "id": "yahoo",
            "label": "Yahoo!ショッピング",
            "source": "src.sources.yahoo_source.YahooSource",
        },
    ]
