"""User Pydantic schemas — profile output."""

from typing import Optional

from pydantic import BaseModel


class UserOut(BaseModel):
    """Public user representation returned by the API."""
    id: int
    email: str
    full_name: str
    avatar_url: Optional[str] = None

    model_config = {"from_attributes": True}
