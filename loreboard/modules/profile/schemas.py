from pydantic import BaseModel
from typing import Optional


class ProfileUpdate(BaseModel):
    display_name: str
    bio: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: str = ""
    bio: str = ""
