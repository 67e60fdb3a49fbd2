# src/services/search_orchestrator.py

"""Orchestrates multi-marketplace protein searches with ranking and caching."""

import asyncio
import importlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from src.config.logging_config import bind_request_id
from src.config.pipeline_config import DEFAULT_CONFIG, PipelineConfig
from src.config.settings import Settings
from src.filters.query_builder import QueryBuilder
from src.models.errors import AllSourcesFailedError, SourceUnavailableError
from src.models.preferences import UserPreferenceProfile
from src.models.product import Product, ScoredProduct, SourcePlatform
from src.models.raw_listing import SourceBatch
from src.pipeline.ranker import rank_candidates, rank_products
from src.storage.cache_store import CacheStore, MemoryCacheStore
from src.storage.fallback_catalog import fallback_batches

logger = logging.getLogger("protein_match.orchestrator")


@dataclass
class SearchResult:
    """Container for a completed search across multiple marketplaces."""

    query: str
    products: list[ScoredProduct] = field(
        default_factory=lambda: list[ScoredProduct]()
    )
    total_found: int = 0
    sources_succeeded: list[str] = field(
        default_factory=lambda: list[str]()
    )
    sources_failed: list[str] = field(
        default_factory=lambda: list[str]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    from_cache: bool = False
    stale: bool = False
    fallback: bool = False
    last_updated: str | None = None
    request_id: str = ""

    @property
    def partial(self) -> bool:
        """Some but not all sources answered."""
        return bool(self.sources_succeeded) and bool(self.sources_failed)

    @property
    def success(self) -> bool:
        """Fresh or cached marketplace data was served."""
        return not self.fallback

    def to_dict(self) -> dict[str, Any]:
        """JSON payload for the UI."""
        return {
            "success": self.success,
            "products": [p.to_dict() for p in self.products],
            "total_found": self.total_found,
            "search_query": self.query,
            "sources": {
                "succeeded": list(self.sources_succeeded),
                "failed": list(self.sources_failed),
                "partial": self.partial,
            },
            "errors": list(self.errors),
            "from_cache": self.from_cache,
            "stale": self.stale,
            "fallback": self.fallback,
            "last_updated": self.last_updated,
            "request_id": self.request_id,
        }


@dataclass
class FeaturedCategory:
    """One shelf of the featured catalog (e.g. popular whey)."""

    category: str
    name: str
    products: list[Product] = field(
        default_factory=lambda: list[Product]()
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "category": self.category,
            "name": self.name,
            "products": [p.to_dict() for p in self.products],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FeaturedCategory":
        return cls(
            category=str(data["category"]),
            name=str(data["name"]),
            products=[Product.from_dict(p) for p in data["products"]],
        )


@dataclass
class FeaturedResult:
    """The categorised featured catalog plus where it came from."""

    categories: list[FeaturedCategory] = field(
        default_factory=lambda: list[FeaturedCategory]()
    )
    sources_failed: list[str] = field(
        default_factory=lambda: list[str]()
    )
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )
    from_cache: bool = False
    stale: bool = False
    fallback: bool = False
    last_updated: str | None = None

    @property
    def success(self) -> bool:
        return not self.fallback

    @property
    def total_products(self) -> int:
        return sum(len(c.products) for c in self.categories)

    def to_dict(self) -> dict[str, Any]:
        """JSON payload for the featured-products shelf."""
        return {
            "success": self.success,
            "categories": [c.to_dict() for c in self.categories],
            "total_products": self.total_products,
            "errors": list(self.errors),
            "from_cache": self.from_cache,
            "stale": self.stale,
            "fallback": self.fallback,
            "last_updated": self.last_updated,
        }


# Neutral answers used to order the featured shelves
FEATURED_PROFILE = UserPreferenceProfile(
    goal="health", exercise="light", budget="any", flavor="any",
)
FALLBACK_CATEGORY = ("fallback", "おすすめ")


def _load_source_class(dotted_path: str) -> type[Any]:
    """Dynamically import a source class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def _iso(timestamp: float | None) -> str | None:
    if timestamp is None:
        return None
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class ProductSearchService:
    """Coordinates fetching, ranking, caching and fallbacks per request."""

    def __init__(
        self,
        cache: CacheStore | None = None,
        config: PipelineConfig = DEFAULT_CONFIG,
    ) -> None:
        self.settings = Settings()
        self.cache: CacheStore = cache if cache is not None else MemoryCacheStore()
        self.config = config
        # One instance per source for the service lifetime, so circuit
        # breakers count consecutive failures across requests
        self._sources: dict[tuple[str, str], Any] = {}

    # ── Private helpers ──────────────────────────────────

    def _source_for(self, src: dict[str, str]) -> Any:
        key = (src["id"], src["source"])
        source = self._sources.get(key)
        if source is None:
            source = _load_source_class(src["source"])()
            self._sources[key] = source
        return source

    @staticmethod
    def _cache_key(query: str, sources: list[dict[str, str]]) -> str:
        source_ids = ",".join(sorted(s["id"] for s in sources))
        return f"search:{query}:{source_ids}"

    async def _fetch_sources(
        self,
        query: str,
        sources: list[dict[str, str]],
    ) -> tuple[list[SourceBatch], list[str], list[str]]:
        """Query every source concurrently, tolerating individual failures.

        Returns the batches of the sources that answered, the ids of the
        sources that failed, and their error messages.
        """
        async def run_one(src: dict[str, str]) -> SourceBatch:
            source = self._source_for(src)
            try:
                listings = await asyncio.wait_for(
                    asyncio.to_thread(source.search, query),
                    timeout=self.settings.SOURCE_TIMEOUT,
                )
            except asyncio.TimeoutError as exc:
                raise SourceUnavailableError(
                    src["id"],
                    f"timed out after {self.settings.SOURCE_TIMEOUT}s",
                ) from exc
            return SourceBatch(
                platform=SourcePlatform(src["id"]), listings=listings
            )

        outcomes = await asyncio.gather(
            *(run_one(src) for src in sources),
            return_exceptions=True,
        )

        batches: list[SourceBatch] = []
        failed: list[str] = []
        errors: list[str] = []
        for src, outcome in zip(sources, outcomes):
            if isinstance(outcome, SourceBatch):
                batches.append(outcome)
            elif isinstance(outcome, Exception):
                failed.append(src["id"])
                errors.append(str(outcome))
                logger.error(
                    "Source %s failed for query '%s': %s",
                    src["id"],
                    query,
                    outcome,
                    exc_info=outcome,
                )
            else:
                # CancelledError, KeyboardInterrupt
                raise outcome

        return batches, failed, errors

    def _store(
        self,
        key: str,
        query: str,
        products: list[Product],
        source_ids: list[str],
    ) -> None:
        """Fire-and-forget cache write; failures are logged, never raised."""
        blob = {
            "query": query,
            "sources": source_ids,
            "products": [p.to_dict() for p in products],
        }
        try:
            self.cache.set(key, blob)
        except Exception as exc:
            logger.warning("Cache write failed for '%s': %s", key, exc, exc_info=True)

    def _load_cached(self, key: str) -> tuple[list[Product], list[str]] | None:
        """Rehydrate cached products, or ``None`` if the blob is unusable."""
        blob = self.cache.get(key)
        if not blob or not isinstance(blob.get("products"), list):
            return None
        try:
            products = [Product.from_dict(d) for d in blob["products"]]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding corrupt cache blob '%s': %s", key, exc)
            return None
        return products, list(blob.get("sources") or [])

    def _serve_cached(
        self,
        result: SearchResult,
        key: str,
        prefs: UserPreferenceProfile,
        *,
        stale: bool,
    ) -> bool:
        cached = self._load_cached(key)
        if cached is None:
            return False
        products, source_ids = cached
        result.products = rank_candidates(products, prefs, self.config)
        result.total_found = len(products)
        result.from_cache = True
        result.stale = stale
        result.last_updated = _iso(self.cache.timestamp(key))
        if not stale:
            result.sources_succeeded = source_ids
        return True

    def _serve_fallback(
        self, result: SearchResult, prefs: UserPreferenceProfile,
    ) -> None:
        ranking = rank_products(fallback_batches(), prefs, self.config)
        result.products = ranking.products
        result.total_found = ranking.total_found
        result.fallback = True
        logger.warning(
            "Serving %d curated fallback products for '%s'",
            len(result.products),
            result.query,
        )

    def _serve_featured_cache(self, result: FeaturedResult) -> bool:
        key = self.settings.FEATURED_CACHE_KEY
        blob = self.cache.get(key)
        if not blob or not isinstance(blob.get("categories"), list):
            return False
        try:
            categories = [FeaturedCategory.from_dict(c) for c in blob["categories"]]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding corrupt featured blob: %s", exc)
            return False
        result.categories = categories
        result.from_cache = True
        result.stale = not self.cache.is_fresh(key, self.settings.CACHE_MAX_AGE_MS)
        result.last_updated = _iso(self.cache.timestamp(key))
        return True

    def _serve_featured_fallback(self, result: FeaturedResult) -> None:
        ranking = rank_products(fallback_batches(), FEATURED_PROFILE, self.config)
        category, name = FALLBACK_CATEGORY
        result.categories = [
            FeaturedCategory(category=category, name=name, products=ranking.candidates)
        ]
        result.fallback = True
        logger.warning("Featured catalog unavailable, serving curated picks")

    # ── Public entry points ──────────────────────────────

    async def search(
        self,
        answers: Mapping[str, Any] | UserPreferenceProfile,
        sources: list[dict[str, str]] | None = None,
        use_cache: bool = True,
    ) -> SearchResult:
        """Rank marketplace products for one user's diagnosis answers.

        Raises:
            PreferenceValidationError: required answers are missing.
        """
        prefs = (
            answers
            if isinstance(answers, UserPreferenceProfile)
            else UserPreferenceProfile.from_answers(answers)
        )
        selected = sources if sources is not None else self.settings.AVAILABLE_SOURCES
        query = QueryBuilder.build_query(prefs)
        result = SearchResult(query=query, request_id=bind_request_id())
        logger.info("Search started for '%s'", query)
        key = self._cache_key(query, selected)

        # ── Cache lookup ─────────────────────────────────
        if use_cache and self.cache.is_fresh(key, self.settings.CACHE_MAX_AGE_MS):
            if self._serve_cached(result, key, prefs, stale=False):
                logger.info("Cache hit for '%s'", key)
                return result

        batches, result.sources_failed, result.errors = (
            await self._fetch_sources(query, selected)
        )
        result.sources_succeeded = [b.platform.value for b in batches]

        if not batches:
            logger.error("%s", AllSourcesFailedError(result.errors))
            if not (use_cache and self._serve_cached(result, key, prefs, stale=True)):
                self._serve_fallback(result, prefs)
            return result

        ranking = rank_products(batches, prefs, self.config)
        result.total_found = ranking.total_found
        result.products = ranking.products
        result.last_updated = datetime.now(tz=timezone.utc).isoformat()

        if use_cache:
            self._store(key, query, ranking.candidates, result.sources_succeeded)

        logger.info(
            "Search '%s': %d ranked of %d found (sources ok=%s failed=%s)",
            query,
            len(result.products),
            result.total_found,
            result.sources_succeeded,
            result.sources_failed,
        )
        return result

    async def refresh_featured(
        self,
        sources: list[dict[str, str]] | None = None,
    ) -> FeaturedResult:
        """Re-run every featured category search and cache the shelves.

        Categories whose sources all fail are skipped.  When none
        succeed the previous catalog (or the curated picks) is served
        and the cache is left untouched.
        """
        selected = sources if sources is not None else self.settings.AVAILABLE_SOURCES
        result = FeaturedResult()

        for search in self.settings.FEATURED_SEARCHES:
            bind_request_id()
            logger.info("Featured category '%s' started", search["category"])
            batches, failed, errors = await self._fetch_sources(
                search["query"], selected
            )
            result.sources_failed += [s for s in failed if s not in result.sources_failed]
            result.errors += errors
            if not batches:
                logger.warning("Featured category '%s' skipped", search["category"])
                continue
            ranking = rank_products(batches, FEATURED_PROFILE, self.config)
            picks = ranking.products[: self.settings.FEATURED_PER_CATEGORY]
            if picks:
                result.categories.append(
                    FeaturedCategory(
                        category=search["category"],
                        name=search["name"],
                        products=[sp.product for sp in picks],
                    )
                )

        if not result.categories:
            logger.error("%s", AllSourcesFailedError(result.errors))
            if not self._serve_featured_cache(result):
                self._serve_featured_fallback(result)
            return result

        result.last_updated = datetime.now(tz=timezone.utc).isoformat()
        try:
            self.cache.set(
                self.settings.FEATURED_CACHE_KEY,
                {"categories": [c.to_dict() for c in result.categories]},
            )
        except Exception as exc:
            logger.warning("Featured cache write failed: %s", exc, exc_info=True)

        logger.info(
            "Featured catalog refreshed: %d categories, %d products",
            len(result.categories),
            result.total_products,
        )
        return result

    def featured(self) -> FeaturedResult:
        """Serve the cached featured catalog, stale if need be, else curated picks."""
        result = FeaturedResult()
        if not self._serve_featured_cache(result):
            self._serve_featured_fallback(result)
        return result
