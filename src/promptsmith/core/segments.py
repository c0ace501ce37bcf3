"""Split prompt text into prose and fenced-code segments.

Every rewrite runs through `transform_preserving_code_fences`, so fenced code
is re-emitted byte for byte while only prose segments are edited.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from promptsmith.core.models.enums import SegmentKind

if TYPE_CHECKING:
    from collections.abc import Callable

FENCE_MARKER = "```"

_LINE_RE = re.compile(r"[^\n]*\n|[^\n]+")


@dataclass(frozen=True, slots=True)
class Segment:
    """A contiguous run of prose or of one fenced code block."""

    kind: SegmentKind
    content: str

    @property
    def is_code(self) -> bool:
        return self.kind is SegmentKind.CODE_FENCE


def split_by_code_fences(text: str) -> list[Segment]:
    """Split text into alternating prose and code-fence segments.

    An opening fence without a closing one swallows the rest of the input as
    a single code segment, so an unmatched marker is never dropped.
    """
    if not text:
        return [Segment(SegmentKind.TEXT, "")]

    segments: list[Segment] = []
    text_buffer = ""
    code_buffer = ""
    inside_fence = False

    for line in _LINE_RE.findall(text):
        starts_fence = line.strip().startswith(FENCE_MARKER)

        if inside_fence:
            code_buffer += line
            if starts_fence:
                segments.append(Segment(SegmentKind.CODE_FENCE, code_buffer))
                code_buffer = ""
                inside_fence = False
            continue

        if starts_fence:
            if text_buffer:
                segments.append(Segment(SegmentKind.TEXT, text_buffer))
                text_buffer = ""
            code_buffer = line
            inside_fence = True
        else:
            text_buffer += line

    if inside_fence:
        segments.append(Segment(SegmentKind.CODE_FENCE, code_buffer))

    if text_buffer:
        segments.append(Segment(SegmentKind.TEXT, text_buffer))

    return segments or [Segment(SegmentKind.TEXT, text)]


def prose_text(text: str, separator: str = "") -> str:
    """Return only the prose segments of text, joined by separator."""
    return separator.join(s.content for s in split_by_code_fences(text) if not s.is_code)


def code_fences(text: str) -> list[str]:
    """Return the fenced code blocks of text, in order."""
    return [s.content for s in split_by_code_fences(text) if s.is_code]


def count_code_fences(text: str) -> int:
    return len(code_fences(text))


def transform_prose_segments(text: str, transform: Callable[[str, bool], str]) -> str:
    """Apply transform(prose, is_last_prose) to each prose segment.

    Code fences are re-emitted verbatim. A newline is inserted before a fence
    whose preceding prose no longer ends with one, so the fence marker stays
    at the start of its line.
    """
    segments = split_by_code_fences(text)
    last_prose = max((i for i, s in enumerate(segments) if not s.is_code), default=-1)
    rebuilt = ""
    for index, segment in enumerate(segments):
        if not segment.is_code:
            rebuilt += transform(segment.content, index == last_prose)
            continue
        if rebuilt and not rebuilt.endswith("\n"):
            rebuilt += "\n"
        rebuilt += segment.content
    return rebuilt


def transform_preserving_code_fences(text: str, transform: Callable[[str], str]) -> str:
    """Apply transform to each prose segment and re-emit code fences verbatim."""
    return transform_prose_segments(text, lambda prose, _is_last: transform(prose))
