from datetime import datetime
from typing import Optional

MAX_TITLE_LENGTH = 200
MAX_AUTHOR_LENGTH = 100
MAX_READER_NAME_LENGTH = 50


class BookValidator:
    """Field checks for client-supplied book data.

    ``clean_*`` helpers return the normalized value, or ``None`` when the field
    is blank. ``*_error`` helpers return a message or ``None`` when valid.
    """

    @staticmethod
    def clean_text(text: Optional[str]) -> Optional[str]:
        if text is None:
            return None
        t = text.strip()
        return t or None

    @staticmethod
    def length_error(field: str, value: Optional[str], max_length: int) -> Optional[str]:
        if value is not None and len(value) > max_length:
            return f"{field} must be at most {max_length} characters"
        return None

    @staticmethod
    def is_valid_timestamp(value: str) -> bool:
        # fromisoformat only learned the "Z" suffix in 3.11
        candidate = value.strip()
        if candidate.endswith(("Z", "z")):
            candidate = candidate[:-1] + "+00:00"
        try:
            datetime.fromisoformat(candidate)
        except ValueError:
            return False
        return True

    @staticmethod
    def return_date_time_error(value: Optional[str]) -> Optional[str]:
        if value is not None and not BookValidator.is_valid_timestamp(value):
            return "Invalid return date/time format"
        return None
