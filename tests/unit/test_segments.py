"""Tests for prose/code-fence segmentation."""

from __future__ import annotations

import pytest
from hypothesis import given

from promptsmith.core.models.enums import SegmentKind
from promptsmith.core.segments import (
    Segment,
    code_fences,
    count_code_fences,
    prose_text,
    split_by_code_fences,
    transform_preserving_code_fences,
)
from tests.strategies import prompts_with_fences

pytestmark = pytest.mark.unit

SAMPLE = "intro\n```py\nx = 1\n```\noutro"


class TestSplitByCodeFences:
    """Tests for split_by_code_fences."""

    def test_alternates_prose_and_code(self) -> None:
        assert split_by_code_fences(SAMPLE) == [
            Segment(SegmentKind.TEXT, "intro\n"),
            Segment(SegmentKind.CODE_FENCE, "```py\nx = 1\n```\n"),
            Segment(SegmentKind.TEXT, "outro"),
        ]

    def test_unclosed_fence_swallows_rest_of_input(self) -> None:
        segments = split_by_code_fences("a\n```\nb")
        assert segments[-1] == Segment(SegmentKind.CODE_FENCE, "```\nb")
        assert len(segments) == 2

    def test_empty_text_is_one_empty_prose_segment(self) -> None:
        assert split_by_code_fences("") == [Segment(SegmentKind.TEXT, "")]

    def test_indented_fence_marker_counts(self) -> None:
        assert count_code_fences("text\n  ```\ncode\n  ```\n") == 1

    @given(prompts_with_fences())
    def test_segments_concatenate_back_to_input(self, text: str) -> None:
        assert "".join(s.content for s in split_by_code_fences(text)) == text


class TestSegmentHelpers:
    """Tests for prose_text and code_fences."""

    def test_prose_text_drops_code(self) -> None:
        assert prose_text(SAMPLE) == "intro\noutro"

    def test_prose_text_uses_separator(self) -> None:
        assert prose_text(SAMPLE, "|") == "intro\n|outro"

    def test_code_fences_in_order(self) -> None:
        text = "a\n```\none\n```\nb\n```\ntwo\n```\n"
        assert code_fences(text) == ["```\none\n```\n", "```\ntwo\n```\n"]


class TestTransformPreservingCodeFences:
    """Tests for prose-only transformation."""

    def test_only_prose_is_transformed(self) -> None:
        result = transform_preserving_code_fences(SAMPLE, str.upper)
        assert result == "INTRO\n```py\nx = 1\n```\nOUTRO"

    def test_identity_transform_is_lossless(self) -> None:
        assert transform_preserving_code_fences(SAMPLE, lambda s: s) == SAMPLE

    def test_newline_inserted_before_fence_when_prose_loses_it(self) -> None:
        result = transform_preserving_code_fences(SAMPLE, str.strip)
        assert result == "intro\n```py\nx = 1\n```\noutro"

    @given(prompts_with_fences())
    def test_fences_survive_any_prose_rewrite(self, text: str) -> None:
        result = transform_preserving_code_fences(text, lambda s: s.strip() + " rewritten")
        assert code_fences(result) == code_fences(text)
