import re

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """Collapse line breaks and whitespace runs into single spaces."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", text).strip()


def normalized_offset(raw: str, position: int) -> int:
    """Map a character position in ``raw`` to its position in ``normalize_text(raw)``."""
    return len(_WHITESPACE_RE.sub(" ", raw[:position]).lstrip())
