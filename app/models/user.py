import uuid
from datetime import date, datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import UUID, String, Boolean, Date, DateTime
from app.db.base import Base, JSONType


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    first_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Filled by extraction (identity/origins topics) and by finalize.
    full_name: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    form_of_address: Mapped[Optional[str]] = mapped_column(String(8), nullable=True)
    language_style: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    birth_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    birth_place: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    onboarding_complete: Mapped[bool] = mapped_column(Boolean, default=False)
    onboarding_completed_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True)

    # Raw onboarding answers. Never part of a public projection, so it is
    # deferred and only loaded when explicitly requested.
    alt_onboarding_private: Mapped[Optional[dict]] = mapped_column(
        JSONType, nullable=True, deferred=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.now, onupdate=datetime.now)
