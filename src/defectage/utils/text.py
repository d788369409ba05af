"""Text helpers for flattening free-text values into single report cells."""

from __future__ import annotations


def first_line(text: str | None) -> str:
    """Return the first non-blank line of *text* (stripped), or ``""``."""
    if not text:
        return ""
    for line in text.splitlines():
        stripped = line.strip()
        if stripped:
            return stripped
    return ""


def collapse_line_breaks(text: str | None) -> str:
    """Join the non-blank lines of *text* with single spaces.

    Lines split as in ``first_line``, so every ``str.splitlines`` boundary
    (form feeds, ``\\u2028`` and the like included) collapses.
    """
    if not text:
        return ""
    lines = (line.strip() for line in text.splitlines())
    return " ".join(line for line in lines if line)


def sanitize_field(value: object, delimiter: str, substitute: str) -> str:
    """Make *value* safe to write as one unquoted delimited cell.

    Line breaks collapse to spaces and every *delimiter* becomes *substitute*.
    """
    text = collapse_line_breaks(str(value)) if value is not None else ""
    return text.replace(delimiter, substitute)
