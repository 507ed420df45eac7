# src/filters/search_ranker.py

"""Weighted multi-term relevance search over the in-memory catalog.

Scoring, per query term:

    name contains term                      +10
    name == term or starts with "term "     +15 (on top of the +10)
    description contains term               +5
    any category name contains term         +7

With more than one term a product qualifies only when *every* term
matched at least one field; otherwise its score is forced to zero.
Results keep score > 0 and are stably sorted by descending score, so
ties preserve catalog order.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass

from src.config.settings import Settings
from src.models.product import Product
from src.models.query import SearchSort

logger = logging.getLogger("storefront.search")


@dataclass(frozen=True)
class ScoredProduct:
    """A product paired with its relevance score."""

    product: Product
    score: int


def tokenize_query(raw_query: str) -> list[str]:
    """Lowercase, trim and split a raw query on whitespace."""
    return raw_query.lower().split()


def _category_names(
    product: Product, category_names: Mapping[str, str] | None,
) -> list[str]:
    names = category_names or {}
    return [names.get(cat, cat).lower() for cat in product.categories]


class SearchRanker:
    """Score, filter and order products against a free-text query."""

    @staticmethod
    def score(
        product: Product,
        terms: list[str],
        category_names: Mapping[str, str] | None = None,
    ) -> int:
        """Return the accumulated relevance score of *product*."""
        name = product.name.lower()
        description = product.description.lower()
        categories = _category_names(product, category_names)

        total = 0
        all_terms_match = True
        for term in terms:
            term_matches = False
            if term in name:
                total += Settings.NAME_WEIGHT
                term_matches = True
                if name == term or name.startswith(term + " "):
                    total += Settings.NAME_PREFIX_BONUS
            if term in description:
                total += Settings.DESCRIPTION_WEIGHT
                term_matches = True
            if any(term in cat for cat in categories):
                total += Settings.CATEGORY_WEIGHT
                term_matches = True
            if not term_matches:
                all_terms_match = False

        if len(terms) > 1 and not all_terms_match:
            return 0
        return total

    @staticmethod
    def search(
        products: list[Product],
        raw_query: str,
        category_names: Mapping[str, str] | None = None,
    ) -> list[ScoredProduct]:
        """Rank *products* against *raw_query*.

        An empty or whitespace-only query returns no results.
        """
        terms = tokenize_query(raw_query)
        if not terms:
            return []

        scored = [
            ScoredProduct(p, SearchRanker.score(p, terms, category_names))
            for p in products
        ]
        matches = [s for s in scored if s.score > 0]
        # Stable sort: equal scores keep catalog order
        matches.sort(key=lambda s: s.score, reverse=True)
        logger.debug(
            "Search '%s' matched %d of %d products",
            raw_query,
            len(matches),
            len(products),
        )
        return matches

    @staticmethod
    def suggest(
        products: list[Product],
        raw_query: str,
        category_names: Mapping[str, str] | None = None,
        limit: int = Settings.MAX_SUGGESTIONS,
    ) -> list[ScoredProduct]:
        """Top results for the type-ahead dropdown.

        Queries shorter than SEARCH_MIN_LENGTH are not evaluated.
        """
        if len(raw_query.strip()) < Settings.SEARCH_MIN_LENGTH:
            return []
        return SearchRanker.search(products, raw_query, category_names)[:limit]

    @staticmethod
    def sort_results(
        results: list[ScoredProduct],
        order: SearchSort | str = SearchSort.RELEVANCE,
    ) -> list[ScoredProduct]:
        """Re-order ranked results for the search page's sort control."""
        order = SearchSort(order)
        if order is SearchSort.PRICE_LOW:
            return sorted(results, key=lambda s: s.product.price)
        if order is SearchSort.PRICE_HIGH:
            return sorted(results, key=lambda s: s.product.price, reverse=True)
        if order is SearchSort.NEWEST:
            return sorted(results, key=lambda s: not s.product.new_arrival)
        return sorted(results, key=lambda s: s.score, reverse=True)

    @staticmethod
    def highlight_spans(text: str, raw_query: str) -> list[tuple[int, int]]:
        """Return ``(start, end)`` spans of query terms inside *text*.

        Display-only; plays no part in ranking.
        """
        terms = sorted(set(tokenize_query(raw_query)), key=len, reverse=True)
        if not text or not terms:
            return []
        pattern = re.compile(
            "|".join(re.escape(t) for t in terms), re.IGNORECASE
        )
        return [m.span() for m in pattern.finditer(text)]

    @staticmethod
    def related_searches(
        results: list[ScoredProduct],
        raw_query: str,
        category_names: Mapping[str, str] | None = None,
        limit: int = Settings.MAX_RELATED_SEARCHES,
    ) -> list[str]:
        """Suggest follow-up queries from the current results.

        ``"<query> in <Category>"`` for each category seen, then
        ``"<query> <Keyword>"`` for name words longer than three
        characters that are not already in the query.
        """
        query = raw_query.strip()
        if not results or len(query) < 3:
            return []

        names = category_names or {}
        query_words = set(tokenize_query(query))
        categories: list[str] = []
        keywords: list[str] = []
        for scored in results:
            for cat in scored.product.categories:
                label = names.get(cat)
                if label and label not in categories:
                    categories.append(label)
            for word in scored.product.name.lower().split():
                keyword = word[:1].upper() + word[1:]
                if (
                    len(word) > 3
                    and word not in query_words
                    and keyword not in keywords
                ):
                    keywords.append(keyword)

        related = [f"{query} in {c}" for c in categories]
        related.extend(f"{query} {k}" for k in keywords)
        return related[:limit]
