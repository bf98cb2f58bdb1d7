"""Markdown to Slack mrkdwn conversion."""

import re
from collections.abc import Sequence

from topicrelay.domain.entities.assistant_reply import Source

# Stands in for a bold delimiter until the italic pass has run, so that
# converted bold is not mistaken for single-asterisk emphasis.
_BOLD = "\x01"

_FENCED_CODE = re.compile(r"```(.*?)```", re.DOTALL)
_LANGUAGE_TAG = re.compile(r"[\w+#.-]+")
_INLINE_CODE = re.compile(r"`[^`\n]+`")
_PLACEHOLDER = re.compile(r"\x00(\d+)\x00")

_BOLD_ASTERISK = re.compile(r"\*\*(.+?)\*\*")
_BOLD_UNDERSCORE = re.compile(r"__(.+?)__")
_HEADING = re.compile(r"^#{1,3} (.+)$", re.MULTILINE)
_UNORDERED_ITEM = re.compile(r"^([ \t]*)[*-] (.+)$", re.MULTILINE)
_ORDERED_ITEM = re.compile(r"^([ \t]*)\d+\. (.+)$", re.MULTILINE)
_STRIKETHROUGH = re.compile(r"~~(.+?)~~")
_LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
# Never at line start: a leading asterisk there was a list marker
_ITALIC = re.compile(r"(?<=[^\n\w*])\*(?![\s*])([^*\n]+?)(?<!\s)\*(?![\w*])")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class _Stash:
    """Holds finished fragments out of reach of later rewrite passes."""

    def __init__(self) -> None:
        self._fragments: list[str] = []

    def put(self, fragment: str) -> str:
        self._fragments.append(fragment)
        return f"\x00{len(self._fragments) - 1}\x00"

    def restore(self, text: str) -> str:
        # Fragments may contain earlier placeholders, so resolve until stable
        while _PLACEHOLDER.search(text):
            text = _PLACEHOLDER.sub(lambda m: self._fragments[int(m.group(1))], text)
        return text


def _strip_language_tag(match: re.Match[str]) -> str:
    body = match.group(1)
    first_line, newline, rest = body.partition("\n")
    if newline and _LANGUAGE_TAG.fullmatch(first_line.strip()):
        body = newline + rest
    return f"```{body}```"


def markdown_to_mrkdwn(markdown: str) -> str:
    """Convert standard Markdown into Slack's mrkdwn dialect.

    The conversion is best-effort and never fails. Passes run in a fixed
    order; fenced code blocks and inline code spans are kept verbatim,
    except that the language tag after an opening fence is dropped.

    Args:
        markdown: Markdown text.

    Returns:
        Text using mrkdwn syntax.
    """
    stash = _Stash()

    # Control characters are reserved for placeholders
    text = markdown.replace("\x00", "").replace(_BOLD, "")

    text = _FENCED_CODE.sub(lambda m: stash.put(_strip_language_tag(m)), text)
    text = _INLINE_CODE.sub(lambda m: stash.put(m.group(0)), text)
    # URLs are kept verbatim; only the link label gets inline formatting
    text = _LINK.sub(lambda m: f"[{m.group(1)}]({stash.put(m.group(2))})", text)

    # Bold first, before anything that looks at single delimiters
    text = _BOLD_ASTERISK.sub(rf"{_BOLD}\1{_BOLD}", text)
    text = _BOLD_UNDERSCORE.sub(rf"{_BOLD}\1{_BOLD}", text)

    text = _HEADING.sub(rf"{_BOLD}\1{_BOLD}", text)

    text = _UNORDERED_ITEM.sub(r"\1• \2", text)
    text = _ORDERED_ITEM.sub(r"\1• \2", text)

    text = _STRIKETHROUGH.sub(r"~\1~", text)

    text = _LINK.sub(lambda m: stash.put(f"<{m.group(2)}|{m.group(1)}>"), text)

    text = _ITALIC.sub(r"_\1_", text)

    text = _EXCESS_NEWLINES.sub("\n\n", text)

    return stash.restore(text).replace(_BOLD, "*")


def absolute_link(link: str, base_url: str) -> str:
    """Resolve a source link against the documentation base URL."""
    if link.startswith("http"):
        return link
    return f"{base_url.rstrip('/')}/{link.lstrip('/')}"


def format_citations(sources: Sequence[Source], base_url: str) -> str:
    """Render sources as numbered mrkdwn links joined by spaces.

    Example: ``<https://docs.example.com/a/b|[1]> <http://y|[2]>``.
    """
    return " ".join(
        f"<{absolute_link(source.link, base_url)}|[{index}]>"
        for index, source in enumerate(sources, start=1)
    )
