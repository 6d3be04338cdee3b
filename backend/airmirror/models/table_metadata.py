"""TableMetadata model describing each mirrored Airtable table."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from airmirror.database import Base


class TableMetadata(Base):
    """
    One row per synced Airtable table.

    The mirrored tables themselves are not ORM models: their columns follow
    the Airtable schema and are created by operators from generated DDL.
    """

    __tablename__ = "_table_metadata"

    # Sanitized destination table name
    table_name: Mapped[str] = mapped_column(Text, primary_key=True)
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    airtable_table_id: Mapped[str | None] = mapped_column(Text)
    last_synced_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_table_metadata_display_name", "display_name"),
    )

    def __repr__(self) -> str:
        return f"<TableMetadata {self.table_name}: {self.last_synced_at}>"
