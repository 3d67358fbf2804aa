import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import UUID, ForeignKey, DateTime, Text
from app.db.base import Base, JSONType


class UserProfile(Base):
    """Atemporal attributes of a user: values, motto, influences."""
    __tablename__ = "user_profile"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", onupdate="CASCADE", ondelete="CASCADE"),
        nullable=False, unique=True
    )
    values: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    motto: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    influences: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    role_models: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    favorite_authors: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now)
