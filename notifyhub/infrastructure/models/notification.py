"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)

from notifyhub.infrastructure.database import Base


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_user_read_created", "user_id", "read", "created_at"),
        Index("ix_notification_user_type_created", "user_id", "type", "created_at"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id"), nullable=False, index=True)
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    priority = Column(String(20), nullable=False, default="medium", index=True)
    read = Column(Boolean, nullable=False, default=False, index=True)
    actionable = Column(Boolean, nullable=False, default=False)
    action = Column(String(100), nullable=True)
    link = Column(String(500), nullable=True)
    payload = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False)
    updated_at = Column(DateTime(), nullable=True)
    expires_at = Column(DateTime(), nullable=True, index=True)


__all__ = ["NotificationModel"]
