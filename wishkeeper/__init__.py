"""Wishkeeper: read-only aggregate views over a wishlist document store."""
