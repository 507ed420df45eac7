# src/models/product.py

"""Canonical catalog records shared by the loader, cache, ranker and facets."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class ProductImages:
    """A primary image reference plus an ordered gallery."""

    primary: str
    gallery: tuple[str, ...] = ()


@dataclass(frozen=True)
class Product:
    """A single normalised catalog product.

    Instances are produced only by the catalog loader and are treated
    as read-only snapshots by every consumer.
    """

    id: str
    name: str
    price: float
    description: str = ""
    old_price: float | None = None
    categories: tuple[str, ...] = ()
    images: ProductImages = field(
        default_factory=lambda: ProductImages(primary="")
    )
    in_stock: bool = True
    quantity: int = 0
    trending: bool = False
    best_seller: bool = False
    new_arrival: bool = False
    rating: float = 0.0
    review_count: int = 0

    @property
    def on_sale(self) -> bool:
        """True when the product carries a usable previous price."""
        return bool(self.old_price)

    @property
    def discount_percent(self) -> int:
        """Whole-percent discount against ``old_price`` (0 if none)."""
        if not self.old_price or self.old_price <= 0:
            return 0
        return round((1 - self.price / self.old_price) * 100)


@dataclass
class Category:
    """A category facet option."""

    id: str
    name: str
    count: int = 0
    slug: str = ""
    description: str = ""


def format_category_name(slug: str) -> str:
    """Derive a display name from a slug: ``home-garden`` → ``Home Garden``."""
    return " ".join(
        word[:1].upper() + word[1:]
        for word in slug.split("-")
        if word
    )
