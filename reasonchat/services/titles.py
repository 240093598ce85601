"""Session title derivation."""

import re

MAX_TITLE_LENGTH = 50
ELLIPSIS = "..."

_WHITESPACE_RUN = re.compile(r"\s+")


def derive_title(first_user_message: str) -> str:
    """
    Derive a short session title from the first user utterance.

    Whitespace runs collapse to single spaces; titles longer than 50
    characters are cut to 47 characters (re-trimmed) plus an ellipsis.
    """
    cleaned = _WHITESPACE_RUN.sub(" ", first_user_message).strip()
    if len(cleaned) <= MAX_TITLE_LENGTH:
        return cleaned
    return cleaned[: MAX_TITLE_LENGTH - len(ELLIPSIS)].strip() + ELLIPSIS


def placeholder_title(text: str) -> str:
    """Provisional title for a session created implicitly by its first message."""
    if len(text) > MAX_TITLE_LENGTH:
        return text[:MAX_TITLE_LENGTH] + ELLIPSIS
    return text
