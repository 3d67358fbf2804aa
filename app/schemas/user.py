from typing import Optional
from datetime import date, datetime
import uuid
from pydantic import BaseModel, ConfigDict, EmailStr


class UserBase(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: EmailStr
    is_active: bool = True


class User(UserBase):
    """Public projection of a user. The private onboarding payload is never part of it."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: Optional[str] = None
    form_of_address: Optional[str] = None
    language_style: Optional[str] = None
    birth_date: Optional[date] = None
    birth_place: Optional[str] = None
    onboarding_complete: bool = False
    onboarding_completed_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
