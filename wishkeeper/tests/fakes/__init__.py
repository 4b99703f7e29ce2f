"""Fake/mock implementations of core ports for testing.

These in-memory implementations allow core domain logic to be tested
without external dependencies:

- FakeDocumentStore: In-memory collections with call recording
- FakeCatalogPort: Canned catalog responses for adapter tests
"""

from .catalog import FakeCatalogPort
from .store import FakeDocumentStore

__all__ = [
    "FakeCatalogPort",
    "FakeDocumentStore",
]
