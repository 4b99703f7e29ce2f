"""Test suite for the Wishkeeper catalog service.

Organized into three categories:

1. core/: Unit tests for core read/denormalization logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - SQLite against a real temporary database file
   - MongoDB against a mocked driver client
   - CLI and HTTP adapters against a fake catalog

3. fakes/: Port implementations for testing
   - In-memory implementations of DocumentStorePort and CatalogPort
"""
