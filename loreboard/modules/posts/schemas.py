from pydantic import BaseModel
from typing import Optional, Union
from datetime import datetime


class PostCreate(BaseModel):
    content: str


class PostResponse(BaseModel):
    id: Union[str, int]
    user_id: Optional[str] = None
    content: str = ""
    # Kept loose: legacy rows may carry a missing or malformed timestamp
    created_at: Optional[Union[datetime, str]] = None

    class Config:
        from_attributes = True
