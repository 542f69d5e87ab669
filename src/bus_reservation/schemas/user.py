"""Pydantic schemas for User summaries"""
from typing import Optional

from pydantic import BaseModel, ConfigDict


class UserSummary(BaseModel):
    """User fields shown alongside a booking"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    full_name: str
    email: str
    phone: Optional[str] = None
