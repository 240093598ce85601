"""Tests for session title derivation."""

from reasonchat.services import derive_title, placeholder_title


def test_long_title_truncated_to_fifty_characters() -> None:
    title = derive_title("a" * 60)
    assert len(title) == 50
    assert title.endswith("...")


def test_short_title_unchanged() -> None:
    assert derive_title("short") == "short"


def test_whitespace_runs_collapsed() -> None:
    assert derive_title("a   b") == "a b"
    assert derive_title("  line one\n\tline two  ") == "line one line two"


def test_exactly_fifty_characters_kept() -> None:
    text = "x" * 50
    assert derive_title(text) == text


def test_truncated_prefix_is_trimmed() -> None:
    text = "word " * 20
    title = derive_title(text)
    assert title.endswith("...")
    assert not title[:-3].endswith(" ")


def test_placeholder_title_keeps_raw_prefix() -> None:
    assert placeholder_title("Hello") == "Hello"
    assert placeholder_title("b" * 51) == "b" * 50 + "..."
