# src/models/product.py

"""Canonical product model shared by every pipeline stage."""

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any


class ProteinType(str, Enum):
    """Coarse protein classification derived from listing text."""

    WHEY = "whey"
    SOY = "soy"
    CASEIN = "casein"
    WPI = "wpi"
    PLANT = "plant"
    OTHER = "other"


class SourcePlatform(str, Enum):
    """Marketplace a listing was fetched from."""

    RAKUTEN = "rakuten"
    YAHOO = "yahoo"
    AMAZON = "amazon"


@dataclass(frozen=True)
class NutritionFacts:
    """Per-serving nutrition, estimated when the text does not state it."""

    protein_grams: float
    calories: float
    servings: int
    serving_size_grams: float = 30.0
    sugar_grams: float | None = None


@dataclass(frozen=True)
class Product:
    """A single protein product normalised from one marketplace listing."""

    id: str
    name: str
    brand: str
    protein_type: ProteinType
    flavor: str
    nutrition: NutritionFacts
    price: int
    price_per_serving: int
    review_average: float
    review_count: int
    source: SourcePlatform
    shop_name: str = ""
    purchase_url: str = ""
    image_url: str = ""
    description: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-friendly dict."""
        data = asdict(self)
        data["protein_type"] = self.protein_type.value
        data["source"] = self.source.value
        data["tags"] = list(self.tags)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Product":
        """Rebuild a Product from :meth:`to_dict` output (e.g. a cache blob)."""
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            brand=str(data.get("brand", "")),
            protein_type=ProteinType(data.get("protein_type", "whey")),
            flavor=str(data.get("flavor", "")),
            nutrition=NutritionFacts(**data["nutrition"]),
            price=int(data["price"]),
            price_per_serving=int(data["price_per_serving"]),
            review_average=float(data.get("review_average", 0.0)),
            review_count=int(data.get("review_count", 0)),
            source=SourcePlatform(data["source"]),
            shop_name=str(data.get("shop_name", "")),
            purchase_url=str(data.get("purchase_url", "")),
            image_url=str(data.get("image_url", "")),
            description=str(data.get("description", "")),
            tags=tuple(data.get("tags", ())),
        )


@dataclass
class ScoredProduct:
    """A product with its request-scoped match score attached."""

    product: Product
    score: float
    rank: int = 0
    match_reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Flatten product fields and score metadata for the UI."""
        data = self.product.to_dict()
        data["score"] = round(self.score, 2)
        data["rank"] = self.rank
        data["match_reason"] = self.match_reason
        return data
