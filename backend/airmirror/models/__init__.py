"""Database models."""

from airmirror.models.table_metadata import TableMetadata

__all__ = ["TableMetadata"]
