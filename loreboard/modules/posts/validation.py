from typing import Optional

from loreboard.core.exceptions import ValidationError

EMPTY_POST_MESSAGE = "Please write something before posting."


def too_long_message(max_length: int) -> str:
    return f"Posts are limited to {max_length} characters."


def validate_post_body(body: Optional[str], max_length: int) -> str:
    """Return the trimmed body or raise ValidationError. Checks run in a fixed order: empty, then length."""
    content = (body or "").strip()
    if not content:
        raise ValidationError(EMPTY_POST_MESSAGE)
    if len(content) > max_length:
        raise ValidationError(too_long_message(max_length))
    return content
