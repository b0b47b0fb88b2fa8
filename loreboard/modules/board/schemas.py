from pydantic import BaseModel, Field
from typing import Any, Dict

AUTHOR_MAX = 120
SCHOOL_MAX = 80
TEXT_MAX = 1200


class BoardPostCreate(BaseModel):
    author: str
    school: str
    text: str

    @classmethod
    def sanitize(cls, payload: Any) -> "BoardPostCreate":
        """Trim, check minimums, then clip each field to its cap. Raises ValueError with a user-facing message."""
        if not isinstance(payload, dict):
            payload = {}
        author = str(payload.get("author") or "").strip()
        school = str(payload.get("school") or "").strip()
        text = str(payload.get("text") or "").strip()

        if len(author) < 2:
            raise ValueError("Author must be at least 2 characters.")
        if not school:
            raise ValueError("School is required.")
        if len(text) < 12:
            raise ValueError("Post must be at least 12 characters.")

        return cls(author=author[:AUTHOR_MAX], school=school[:SCHOOL_MAX], text=text[:TEXT_MAX])


class BoardPost(BoardPostCreate):
    id: str
    created_at: str = Field(alias="createdAt")

    model_config = {"populate_by_name": True}

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)
