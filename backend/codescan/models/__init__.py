"""SQLAlchemy models."""

from codescan.models.document import Document

__all__ = ["Document"]
