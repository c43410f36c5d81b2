"""Small shared helpers."""
import re
import unicodedata
from datetime import datetime, timezone

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


def slugify(text: str) -> str:
    """Normalize text into a lowercase, URL-safe slug.

    Accents are folded to ASCII, every run of other characters becomes a
    single hyphen, and leading/trailing hyphens are trimmed. The result may
    be empty when the input has no alphanumeric characters.
    """
    normalized = unicodedata.normalize("NFKD", text or "")
    ascii_text = normalized.encode("ascii", "ignore").decode("ascii").lower()
    return _NON_ALNUM.sub("-", ascii_text).strip("-")
