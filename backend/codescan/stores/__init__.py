"""Record stores."""

from codescan.stores.document_store import DocumentStore, InMemoryDocumentStore, SqlDocumentStore

__all__ = ["DocumentStore", "InMemoryDocumentStore", "SqlDocumentStore"]
