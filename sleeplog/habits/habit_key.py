import re
import unicodedata

_WHITESPACE = re.compile(r"\s+")
# Latin and Cyrillic letters, digits and dashes survive
_DISALLOWED = re.compile(r"[^a-zа-яё0-9-]", re.IGNORECASE)


def generate_habit_key(label: str) -> str:
    """
    Slug used as a habit's key: 'Read 20 pages' -> 'read-20-pages'.
    """
    key = label.lower().strip()
    key = _WHITESPACE.sub("-", key)
    key = _DISALLOWED.sub("", key)
    key = unicodedata.normalize("NFKD", key)
    return "".join(ch for ch in key if not unicodedata.combining(ch))
