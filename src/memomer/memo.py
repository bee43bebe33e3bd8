"""
Memo domain model and Markdown front-matter handling.

A memo is stored as Markdown. Tags live in an optional YAML-style front
matter block::

    ---
    tags:
      - work
      - meeting
    ---
    Body text.

``parse_memo`` keeps the full Markdown as ``content`` and only lifts the tags
out of the front matter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .errors import ValidationError


_FRONT_MATTER_RE = re.compile(r"^---\n([\s\S]*?)\n?---\n?([\s\S]*)$")
_TAGS_BLOCK_RE = re.compile(r"tags:\n((?:[ \t]+-[ \t]+.+\n?)*)")
_TAG_LINE_RE = re.compile(r"^[ \t]+-[ \t]+(.+)$")


@dataclass(frozen=True)
class Memo:
    """A named Markdown note with exact-match tags."""

    name: str
    content: str
    tags: tuple[str, ...] = field(default=())


def create_memo(name: str, content: str, tags: list[str] | tuple[str, ...] = ()) -> Memo:
    if not name or not name.strip():
        raise ValidationError("Memo name must not be empty.")
    return Memo(name=name, content=content, tags=tuple(tags))


def parse_memo(name: str, markdown: str) -> Memo:
    """Build a memo from Markdown, extracting tags from front matter if present."""
    match = _FRONT_MATTER_RE.match(markdown)
    if not match:
        return create_memo(name, markdown)
    return create_memo(name, markdown, _parse_tags(match.group(1)))


def _parse_tags(front_matter: str) -> tuple[str, ...]:
    block = _TAGS_BLOCK_RE.search(front_matter + "\n")
    if not block:
        return ()
    tags: list[str] = []
    for line in block.group(1).split("\n"):
        line_match = _TAG_LINE_RE.match(line)
        if line_match:
            tags.append(line_match.group(1).strip())
    return tuple(tags)


def serialize_memo(memo: Memo) -> str:
    """Render a memo as Markdown.

    Content that already carries front matter is written as-is; otherwise a
    front matter block is generated from ``memo.tags`` when there are any.
    """
    if memo.content.startswith("---\n"):
        return memo.content
    if not memo.tags:
        return memo.content
    tags_yaml = "\n".join(f"  - {tag}" for tag in memo.tags)
    return f"---\ntags:\n{tags_yaml}\n---\n{memo.content}"
