"""Text helpers for normalizing converted documentation."""

from __future__ import annotations


def collapse_blank_lines(text: str, *, max_blank: int = 2) -> str:
    """Keep at most ``max_blank`` consecutive blank lines and trim the result.

    A line counts as blank when it holds only whitespace.
    """
    kept: list[str] = []
    blank_run = 0
    for line in text.split("\n"):
        if line.strip():
            blank_run = 0
            kept.append(line)
            continue
        blank_run += 1
        if blank_run <= max_blank:
            kept.append(line)
    return "\n".join(kept).strip()


def squash_spaces(text: str) -> str:
    """Collapse runs of whitespace inside a line of prose into single spaces."""
    return " ".join(text.split())
