"""HTTP adapters.

Serves the catalog read views as JSON over GET endpoints.
"""
