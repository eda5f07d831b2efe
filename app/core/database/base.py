"""
SQLAlchemy declarative base and common model utilities.

Every table the store adapter can address as a collection must inherit from
Base so it is registered on ``Base.metadata``.
"""
from datetime import datetime
from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
import ulid


def generate_ulid() -> str:
    """Generate a new ULID string."""
    return ulid.ulid()


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.
    
    Usage:
        from app.core.database.base import Base
        
        class PermissionRecord(Base):
            __tablename__ = "permissions"
            
            id: Mapped[str] = mapped_column(String(26), primary_key=True)
    """
    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.

    updated_at is only bumped by the ORM's onupdate; core statements that
    modify rows (the upsert) must set it themselves.
    """
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
