import html
import re
from typing import List, Tuple

MENTION_REGEX = re.compile(r"@([a-zA-Z0-9][a-zA-Z0-9_-]*)")


def split_mentions(content: str) -> List[Tuple[str, str]]:
    """
    Split free text into ordered ("text", value) / ("mention", handle) parts.

    >>> split_mentions("hi @ana!")
    [('text', 'hi '), ('mention', 'ana'), ('text', '!')]
    """
    parts: List[Tuple[str, str]] = []
    last_index = 0
    for match in MENTION_REGEX.finditer(content):
        if match.start() > last_index:
            parts.append(("text", content[last_index:match.start()]))
        parts.append(("mention", match.group(1)))
        last_index = match.end()
    if last_index < len(content):
        parts.append(("text", content[last_index:]))
    return parts


def extract_handles(content: str) -> List[str]:
    """Distinct mentioned handles in order of first appearance."""
    seen: List[str] = []
    for kind, value in split_mentions(content):
        if kind == "mention" and value not in seen:
            seen.append(value)
    return seen


def render_mentions(content: str, base_url: str = "") -> str:
    """Escape ``content`` as HTML and turn each @handle into a profile link."""
    out = []
    for kind, value in split_mentions(content):
        if kind == "mention":
            href = html.escape(f"{base_url.rstrip('/')}/{value}", quote=True)
            out.append(f'<a class="mention" href="{href}">@{html.escape(value)}</a>')
        else:
            out.append(html.escape(value))
    return "".join(out)
