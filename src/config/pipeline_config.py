# src/config/pipeline_config.py

"""Thresholds shared by the normaliser, validity filter and ranker."""

from dataclasses import dataclass

from src.config.settings import Settings


@dataclass(frozen=True)
class PipelineConfig:
    """Every numeric knob of the product pipeline in one place.

    Override per test or per call site with ``dataclasses.replace``.
    """

    # Serving estimation
    serving_size_grams: float = 30.0
    default_servings: int = 30
    min_serving_size_grams: float = 5.0
    max_serving_size_grams: float = 100.0

    # Validity filter
    min_protein_grams: float = 8.0
    min_price_per_serving: int = 20
    max_price_per_serving: int = 500
    require_reviews: bool = False
    require_weight_token: bool = True

    # Normaliser
    description_length: int = 150
    hires_image_size: str = "500x500"
    rakuten_affiliate_id: str = ""

    # Ranking
    page_size: int = Settings.PAGE_SIZE
    preferred_type_quota: int = Settings.PREFERRED_TYPE_QUOTA
    other_type_quota: int = Settings.OTHER_TYPE_QUOTA


DEFAULT_CONFIG = PipelineConfig()
