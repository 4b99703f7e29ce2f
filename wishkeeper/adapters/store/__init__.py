"""Document store adapters for the wishlist collections.

Implementations support multiple backends:
- MongoDB (the production document store)
- SQLite (zero-config, single-file)
"""
