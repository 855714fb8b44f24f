from sqlalchemy import Column, DateTime
from sqlalchemy.sql import func


class TimestampMixin:
    created_at = Column(DateTime, default=func.now(), nullable=False)
    updated_at = Column(DateTime, default=func.now(),
                        onupdate=func.now(), nullable=False)


class SoftDeleteMixin:
    """Rows are hidden from queries once ``deleted_at`` is set."""
    deleted_at = Column(DateTime, nullable=True, index=True)
