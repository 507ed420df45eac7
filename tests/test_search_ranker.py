# tests/test_search_ranker.py

"""Tests for the weighted, conjunctive search ranker."""

import unittest

from src.filters.search_ranker import SearchRanker, tokenize_query
from src.models.product import Product
from src.models.query import SearchSort


def _p(
    pid: str,
    name: str,
    description: str = "",
    categories: tuple[str, ...] = (),
    price: float = 10.0,
    new_arrival: bool = False,
) -> Product:
    return Product(
        id=pid,
        name=name,
        price=price,
        description=description,
        categories=categories,
        new_arrival=new_arrival,
    )


_CATALOG = [
    _p("1", "Wireless Headphones", "Noise cancelling", ("electronics",)),
    _p("2", "Wireless Mouse", "Ergonomic", ("electronics",)),
    _p("3", "Leather Backpack", "Travel", ("accessories",)),
]
_NAMES = {"electronics": "Electronics", "accessories": "Accessories"}


class TestScoring(unittest.TestCase):
    """SearchRanker.score weights."""

    def test_tokenize(self) -> None:
        self.assertEqual(tokenize_query("  Wireless  HEADphones "),
                         ["wireless", "headphones"])

    def test_name_prefix_bonus(self) -> None:
        """Name contains (+10) plus starts-with-term-and-space (+15)."""
        product = _p("1", "Wireless Headphones")
        self.assertEqual(SearchRanker.score(product, ["wireless"]), 25)

    def test_name_exact_match_bonus(self) -> None:
        self.assertEqual(SearchRanker.score(_p("1", "Mouse"), ["mouse"]), 25)

    def test_name_contains_without_prefix(self) -> None:
        product = _p("1", "Wireless Headphones")
        self.assertEqual(SearchRanker.score(product, ["headphones"]), 10)

    def test_description_and_category(self) -> None:
        product = _p("1", "Speaker", "Portable audio", ("audio",))
        self.assertEqual(
            SearchRanker.score(product, ["audio"], {"audio": "Audio"}), 12
        )

    def test_unknown_category_id_matches_itself(self) -> None:
        product = _p("1", "Lamp", categories=("lighting",))
        self.assertEqual(SearchRanker.score(product, ["light"]), 7)

    def test_multi_term_requires_every_term(self) -> None:
        product = _p("2", "Wireless Mouse", "Ergonomic")
        self.assertEqual(
            SearchRanker.score(product, ["wireless", "headphones"]), 0
        )


class TestSearch(unittest.TestCase):
    """SearchRanker.search ranking and filtering."""

    def test_conjunctive_search_returns_only_full_match(self) -> None:
        results = SearchRanker.search(_CATALOG, "wireless headphones", _NAMES)
        self.assertEqual([s.product.id for s in results], ["1"])
        self.assertGreater(results[0].score, 0)

    def test_single_term_ranks_by_score(self) -> None:
        results = SearchRanker.search(_CATALOG, "wireless", _NAMES)
        self.assertEqual([s.product.id for s in results], ["1", "2"])

    def test_ties_keep_catalog_order(self) -> None:
        catalog = [_p("b", "Red Mug"), _p("a", "Blue Mug"), _p("c", "Mug")]
        results = SearchRanker.search(catalog, "mug")
        self.assertEqual([s.product.id for s in results], ["c", "b", "a"])

    def test_category_name_match(self) -> None:
        results = SearchRanker.search(_CATALOG, "accessories", _NAMES)
        self.assertEqual([s.product.id for s in results], ["3"])

    def test_empty_query_returns_nothing(self) -> None:
        self.assertEqual(SearchRanker.search(_CATALOG, "   "), [])

    def test_no_match(self) -> None:
        self.assertEqual(SearchRanker.search(_CATALOG, "zebra"), [])

    def test_scores_non_increasing(self) -> None:
        results = SearchRanker.search(_CATALOG, "e", _NAMES)
        scores = [s.score for s in results]
        self.assertEqual(scores, sorted(scores, reverse=True))
        self.assertTrue(all(score > 0 for score in scores))


class TestSuggestAndExtras(unittest.TestCase):
    """Suggestions, result sorting, highlighting and related searches."""

    def test_suggest_below_min_length(self) -> None:
        self.assertEqual(SearchRanker.suggest(_CATALOG, "w"), [])

    def test_suggest_limit(self) -> None:
        catalog = [_p(str(i), f"Mug {i}") for i in range(10)]
        self.assertEqual(len(SearchRanker.suggest(catalog, "mug")), 6)

    def test_sort_results_by_price(self) -> None:
        catalog = [
            _p("1", "Mug Large", price=30.0),
            _p("2", "Mug Small", price=10.0),
        ]
        ranked = SearchRanker.search(catalog, "mug")
        ordered = SearchRanker.sort_results(ranked, SearchSort.PRICE_LOW)
        self.assertEqual([s.product.id for s in ordered], ["2", "1"])
        ordered = SearchRanker.sort_results(ranked, "price-high")
        self.assertEqual([s.product.id for s in ordered], ["1", "2"])

    def test_sort_results_newest_first(self) -> None:
        catalog = [_p("1", "Mug"), _p("2", "Mug", new_arrival=True)]
        ranked = SearchRanker.search(catalog, "mug")
        ordered = SearchRanker.sort_results(ranked, SearchSort.NEWEST)
        self.assertEqual([s.product.id for s in ordered], ["2", "1"])

    def test_highlight_spans(self) -> None:
        spans = SearchRanker.highlight_spans(
            "Wireless Headphones", "headphones wire"
        )
        self.assertEqual(spans, [(0, 4), (9, 19)])

    def test_highlight_no_query(self) -> None:
        self.assertEqual(SearchRanker.highlight_spans("Mug", ""), [])

    def test_related_searches(self) -> None:
        results = SearchRanker.search(_CATALOG, "wireless", _NAMES)
        related = SearchRanker.related_searches(results, "wireless", _NAMES)
        self.assertEqual(related[0], "wireless in Electronics")
        self.assertIn("wireless Headphones", related)
        self.assertIn("wireless Mouse", related)
        self.assertNotIn("wireless Wireless", related)

    def test_related_searches_short_query(self) -> None:
        results = SearchRanker.search(_CATALOG, "wi", _NAMES)
        self.assertEqual(
            SearchRanker.related_searches(results, "wi", _NAMES), []
        )


if __name__ == "__main__":
    unittest.main()
