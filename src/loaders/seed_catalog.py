# src/loaders/seed_catalog.py

"""Bundled seed catalog served when the backend is unreachable.

Records are stored in the legacy backend shape and go through the
same normaliser as live payloads.
"""

from typing import Any

SEED_PRODUCTS: list[dict[str, Any]] = [
    {
        "id": 1,
        "name": "Premium Wireless Headphones",
        "price": 199.99,
        "image": "images/product-1.jpg",
        "hoverImage": "images/product-1-hover.jpg",
        "category": "electronics",
        "description": "High-quality wireless headphones with noise cancellation.",
        "trending": True,
        "bestseller": False,
        "newArrival": False,
        "stock": 25,
    },
    {
        "id": 2,
        "name": "Stylish Backpack",
        "price": 79.99,
        "image": "images/product-2.jpg",
        "hoverImage": "images/product-2-hover.jpg",
        "category": "accessories",
        "description": "Durable and stylish backpack for everyday use.",
        "trending": True,
        "bestseller": False,
        "newArrival": False,
        "stock": 15,
    },
    {
        "id": 3,
        "name": "Smart Fitness Tracker",
        "price": 149.99,
        "image": "images/product-3.jpg",
        "hoverImage": "images/product-3-hover.jpg",
        "category": "electronics",
        "description": "Track your fitness goals with this smart device.",
        "trending": False,
        "bestseller": True,
        "newArrival": False,
        "stock": 30,
    },
    {
        "id": 5,
        "name": "Premium Coffee Maker",
        "price": 249.99,
        "image": "images/product-1.jpg",
        "hoverImage": "images/product-1-hover.jpg",
        "category": "appliances",
        "description": "Premium coffee maker for the perfect brew.",
        "trending": False,
        "bestseller": True,
        "newArrival": False,
        "stock": 20,
    },
    {
        "id": 4,
        "name": "Organic Cotton T-Shirt",
        "price": 29.99,
        "image": "images/product-2.jpg",
        "hoverImage": "images/product-2-hover.jpg",
        "category": "clothing",
        "description": "Comfortable organic cotton t-shirt.",
        "trending": False,
        "bestseller": False,
        "newArrival": True,
        "stock": 50,
    },
    {
        "id": 6,
        "name": "Eco-Friendly Water Bottle",
        "price": 24.99,
        "image": "images/product-3.jpg",
        "hoverImage": "images/product-3-hover.jpg",
        "category": "accessories",
        "description": "Sustainable water bottle made from recycled materials.",
        "trending": False,
        "bestseller": False,
        "newArrival": True,
        "stock": 100,
    },
]

SEED_CATEGORIES: list[dict[str, Any]] = [
    {"id": "electronics", "name": "Electronics", "slug": "electronics",
     "description": "Latest tech gadgets"},
    {"id": "clothing", "name": "Clothing", "slug": "clothing",
     "description": "Fashion and apparel"},
    {"id": "accessories", "name": "Accessories", "slug": "accessories",
     "description": "Bags, watches, and more"},
    {"id": "home-garden", "name": "Home & Garden", "slug": "home-garden",
     "description": "Home essentials"},
]
