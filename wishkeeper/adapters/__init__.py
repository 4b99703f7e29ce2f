"""External adapters for the Wishkeeper catalog.

This package contains all external dependencies (MongoDB, SQLite, HTTP
serving, the interactive CLI) and provides implementations of the core
port interfaces.

Adapter Organization:

- store/: Document store adapters (MongoDB, SQLite)
- cli/: Command-line interface over the catalog read views
- api/: JSON HTTP endpoints over the catalog read views
"""
