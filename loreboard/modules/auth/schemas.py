from pydantic import BaseModel, EmailStr, Field
from typing import Any, Dict, Optional


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    display_name: Optional[str] = None


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
    access_token: Optional[str] = None  # Absent when the project requires email confirmation


class SessionUser(BaseModel):
    id: str
    email: Optional[str] = None
    user_metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        metadata = self.user_metadata or {}
        return metadata.get("displayName") or metadata.get("full_name") or metadata.get("name") or ""

    @property
    def bio(self) -> str:
        return (self.user_metadata or {}).get("bio") or ""


class SessionInfo(BaseModel):
    """Read-only copy of an auth session as the client caches it."""
    user: SessionUser
    access_token: str = ""
