"""Command-line interface adapters.

Provides CLI commands for reading the catalog:
- wishlist: Latest wishlist with products
- newest: Newest products
- archived / archived-count: Products no longer on the wishlist
- categories / category: Category listing and per-category products
"""
