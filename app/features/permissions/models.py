"""
Permission record model.

One row per (email, feature_name). The unique constraint on the pair is the
conflict target of the store's upsert, which keeps the key unique without a
read-before-write.
"""
from sqlalchemy import Boolean, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.core import config
from app.core.database.base import Base, TimestampMixin, generate_ulid


class PermissionRecord(Base, TimestampMixin):
    """
    Access flag for a single user and feature.

    Examples:
    - email="a@x.com", feature_name="add", enabled=True
    - email="a@x.com", feature_name="export2", enabled=False
    """
    __tablename__ = config.PERMISSIONS_COLLECTION
    __table_args__ = (
        UniqueConstraint("email", "feature_name", name="uq_permissions_email_feature"),
    )
    
    # Primary key using ULID
    id: Mapped[str] = mapped_column(String(26), primary_key=True, default=generate_ulid)
    
    email: Mapped[str] = mapped_column(String(320), nullable=False, index=True)
    feature_name: Mapped[str] = mapped_column(String(100), nullable=False)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False)
    
    def __repr__(self) -> str:
        return f"<PermissionRecord(id={self.id}, email={self.email!r}, feature={self.feature_name!r}, enabled={self.enabled})>"
