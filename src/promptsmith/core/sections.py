"""Heading recognition and section-level editing of prompt text.

Headings are lines like ``### Constraints`` or inline ``Goal: ship it``.
Known headings resolve to a `SectionKey` through its alias table; any other
``#`` line is kept as an unknown section and preserved verbatim.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from promptsmith.core.models.enums import SectionKey
from promptsmith.core.text import dedupe_preserving_order

_HEADING_PREFIX_RE = re.compile(r"^#{1,6}\s*")
_NORMALIZE_HEADING_RE = re.compile(r"^#+\s*")
LEADING_BULLET_RE = re.compile(r"^\s*(?:\d+\.|[-*])\s+")


@dataclass(frozen=True, slots=True)
class ParsedHeading:
    title: str
    key: SectionKey | None
    inline_value: str = ""


@dataclass(slots=True)
class HeadingBlock:
    title: str
    key: SectionKey | None
    body: list[str] = field(default_factory=list)


def strip_heading_hashes(text: str) -> str:
    return _HEADING_PREFIX_RE.sub("", text, count=1)


def normalize_heading(value: str) -> str:
    return _NORMALIZE_HEADING_RE.sub("", value.strip().lower(), count=1)


def parse_heading(line: str) -> ParsedHeading | None:
    """Recognize a heading line, known (aliased) or unknown (``#``-prefixed)."""
    trimmed = line.strip()
    if not trimmed:
        return None

    without_hashes = strip_heading_hashes(trimmed)
    normalized = without_hashes.lower()

    for key in SectionKey:
        for alias in key.aliases:
            if normalized == alias:
                return ParsedHeading(key.heading_title, key)
            prefix = f"{alias}:"
            if normalized.startswith(prefix):
                inline = without_hashes[len(prefix) :].strip()
                return ParsedHeading(key.heading_title, key, inline)

    if trimmed.startswith("#"):
        return ParsedHeading(without_hashes, None)
    return None


def section_key_for(title: str) -> SectionKey | None:
    parsed = parse_heading(f"### {title}")
    return parsed.key if parsed else None


def parse_blocks(text: str) -> tuple[list[str], list[HeadingBlock]]:
    """Split text into unheaded preamble lines and heading blocks."""
    preamble: list[str] = []
    blocks: list[HeadingBlock] = []
    current: HeadingBlock | None = None

    for line in text.split("\n"):
        heading = parse_heading(line)
        if heading is not None:
            if current is not None:
                blocks.append(current)
            current = HeadingBlock(heading.title, heading.key)
            if heading.inline_value:
                current.body.append(heading.inline_value)
            continue

        if current is not None:
            current.body.append(line)
        else:
            preamble.append(line)

    if current is not None:
        blocks.append(current)
    return preamble, blocks


def known_sections(text: str) -> list[SectionKey]:
    """Known section keys in order of appearance (repeats included)."""
    _, blocks = parse_blocks(text)
    return [block.key for block in blocks if block.key is not None]


def known_section_count(text: str) -> int:
    return len(known_sections(text))


def find_block(text: str, key: SectionKey) -> HeadingBlock | None:
    _, blocks = parse_blocks(text)
    return next((block for block in blocks if block.key is key), None)


def contains_heading(heading: str, text: str) -> bool:
    target = normalize_heading(heading)
    for line in text.split("\n"):
        parsed = parse_heading(line)
        if parsed is not None and normalize_heading(parsed.title) == target:
            return True
    return False


def is_likely_canonical_order(text: str) -> bool:
    order = [int(key) for key in known_sections(text)]
    if len(order) <= 1:
        return True
    return order == sorted(order)


def clean_body_lines(body: list[str]) -> list[str]:
    joined = "\n".join(body).strip()
    if not joined:
        return []
    return joined.split("\n")


def render_section(title: str, body: list[str]) -> str:
    return f"### {title}\n" + "\n".join(body)


def _matches_target(block: HeadingBlock, title: str) -> bool:
    target_key = section_key_for(title)
    if target_key is not None and block.key is target_key:
        return True
    return normalize_heading(block.title) == normalize_heading(title)


def _render_document(preamble: list[str], rendered_blocks: list[str]) -> str:
    parts: list[str] = []
    intro = "\n".join(preamble).strip()
    if intro:
        parts.append(intro)
    parts.extend(block for block in rendered_blocks if block.strip())
    return "\n\n".join(parts).strip()


def merge_into_existing_section(text: str, title: str, lines: list[str]) -> str:
    """Append lines to the section matching title, skipping lines it already has."""
    if not lines:
        return text

    preamble, blocks = parse_blocks(text)
    rendered: list[str] = []
    merged_any = False

    for block in blocks:
        if _matches_target(block, title):
            body = dedupe_preserving_order(clean_body_lines(block.body) + lines)
            rendered.append(render_section(block.title, body))
            merged_any = True
            continue
        body = clean_body_lines(block.body)
        if body:
            rendered.append(render_section(block.title, body))

    if not merged_any:
        rendered.append(render_section(title, lines))

    return _render_document(preamble, rendered)


def replace_section_body(text: str, title: str, body: list[str]) -> str:
    """Replace the body of every section matching title (appending one if none)."""
    cleaned = clean_body_lines(body)
    if not cleaned:
        return text

    preamble, blocks = parse_blocks(text)
    rendered: list[str] = []
    replaced = False

    for block in blocks:
        if _matches_target(block, title):
            rendered.append(render_section(block.title, cleaned))
            replaced = True
            continue
        existing = clean_body_lines(block.body)
        if existing:
            rendered.append(render_section(block.title, existing))

    if not replaced:
        rendered.append(render_section(title, cleaned))

    return _render_document(preamble, rendered)


def append_section(text: str, title: str, body: list[str]) -> str:
    """Add a section, merging into an existing one with the same canonical key."""
    cleaned = clean_body_lines(body)
    if not cleaned:
        return text

    trimmed = text.strip()
    section = render_section(title, cleaned)
    if not trimmed:
        return section
    if contains_heading(title, trimmed):
        return merge_into_existing_section(trimmed, title, cleaned)
    return f"{trimmed}\n\n{section}"


def append_missing_sections(text: str, sections: list[tuple[str, list[str]]]) -> str:
    for title, body in sections:
        if not contains_heading(title, text):
            text = append_section(text, title, body)
    return text


def canonicalize_sections(text: str) -> str:
    """Re-render known sections in canonical order, unknown ones after.

    Leading unheaded text becomes the Goal, else the Context, else an extra
    "Context" block placed ahead of the unknown sections.
    """
    preamble, blocks = parse_blocks(text)
    known: dict[SectionKey, list[str]] = {}
    unknown: list[HeadingBlock] = []

    for block in blocks:
        if block.key is not None:
            known.setdefault(block.key, []).extend(block.body)
        else:
            unknown.append(block)

    intro = "\n".join(preamble).strip()
    if intro:
        if not known.get(SectionKey.GOAL):
            known[SectionKey.GOAL] = [intro]
        elif not known.get(SectionKey.CONTEXT):
            known[SectionKey.CONTEXT] = [intro]
        else:
            unknown.insert(0, HeadingBlock("Context", None, [intro]))

    rendered: list[str] = []
    for key in SectionKey:
        body = clean_body_lines(known.get(key, []))
        if body:
            rendered.append(render_section(key.heading_title, body))
    for block in unknown:
        body = clean_body_lines(block.body)
        if body:
            rendered.append(render_section(block.title, body))

    candidate = "\n\n".join(rendered).strip()
    return candidate or text
