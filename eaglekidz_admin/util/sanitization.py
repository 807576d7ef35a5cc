"""Plain-text helpers for rich-text review summaries.

Review summaries are stored as HTML fragments (``<p>``, ``<strong>``,
lists) written by the editor or by the AI summary call. List views show
a short plain-text preview instead of the markup.
"""
import html
import re

TAG_RE = re.compile(r"<[^>]+>")
SPACE_RE = re.compile(r"\s+")


def strip_tags(text: str) -> str:
    """Remove HTML tags and entities, collapsing whitespace.

    Parameters
    ----------
    text: str
        The input string that may contain HTML tags.

    Returns
    -------
    str
        The plain text, trimmed.
    """
    if not text:
        return ""
    no_tags = TAG_RE.sub(" ", text)
    return SPACE_RE.sub(" ", html.unescape(no_tags)).strip()


def preview(text: str, limit: int = 120) -> str:
    """Plain-text preview cut to ``limit`` characters with an ellipsis."""
    plain = strip_tags(text)
    if len(plain) <= limit:
        return plain
    return plain[:limit].rstrip() + "..."
