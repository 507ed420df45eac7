# tests/test_product_model.py

"""Tests for the Product and Category records."""

import dataclasses
import unittest

from src.models.product import (
    Category,
    Product,
    ProductImages,
    format_category_name,
)


class TestProductModel(unittest.TestCase):
    """Product dataclass unit tests."""

    def test_defaults(self) -> None:
        """Optional fields default to expected values."""
        product = Product(id="1", name="X", price=1.0)
        self.assertEqual(product.description, "")
        self.assertIsNone(product.old_price)
        self.assertEqual(product.categories, ())
        self.assertEqual(product.images, ProductImages(primary=""))
        self.assertTrue(product.in_stock)
        self.assertFalse(product.new_arrival)

    def test_frozen(self) -> None:
        """Products are read-only snapshots."""
        product = Product(id="1", name="X", price=1.0)
        with self.assertRaises(dataclasses.FrozenInstanceError):
            product.price = 2.0  # type: ignore[misc]

    def test_hashable(self) -> None:
        a = Product(id="1", name="A", price=10.0, categories=("x",))
        b = Product(id="1", name="A", price=10.0, categories=("x",))
        self.assertEqual(len({a, b}), 1)

    def test_on_sale_requires_old_price(self) -> None:
        self.assertFalse(Product(id="1", name="A", price=10.0).on_sale)
        self.assertTrue(
            Product(id="1", name="A", price=10.0, old_price=20.0).on_sale
        )

    def test_discount_percent(self) -> None:
        product = Product(id="1", name="A", price=75.0, old_price=100.0)
        self.assertEqual(product.discount_percent, 25)

    def test_discount_percent_without_old_price(self) -> None:
        self.assertEqual(
            Product(id="1", name="A", price=75.0).discount_percent, 0
        )


class TestCategory(unittest.TestCase):
    """Category record and display-name helper."""

    def test_count_is_mutable(self) -> None:
        cat = Category(id="electronics", name="Electronics")
        cat.count += 2
        self.assertEqual(cat.count, 2)

    def test_format_category_name(self) -> None:
        self.assertEqual(format_category_name("home-garden"), "Home Garden")
        self.assertEqual(format_category_name("electronics"), "Electronics")

    def test_format_category_name_skips_empty_words(self) -> None:
        self.assertEqual(format_category_name("-a--b-"), "A B")


if __name__ == "__main__":
    unittest.main()
