"""Candidate planning and generation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from promptsmith.core.models.entities import Candidate
from promptsmith.core.models.enums import TransformKey
from promptsmith.core.text import fingerprint
from promptsmith.debug_log import log
from promptsmith.limits import MAX_CANDIDATES

if TYPE_CHECKING:
    from collections.abc import Sequence

    from promptsmith.core.models.entities import GapProfile
    from promptsmith.core.transforms import TransformInterpreter

_log = log.for_stage("planner")

BASELINE_TITLE = "0 Baseline"

type TransformPlan = tuple[TransformKey, ...]

# Priority order of single-transform plans, paired with the gap that enables each.
_PRIORITY: tuple[tuple[str, TransformKey], ...] = (
    ("needs_contradiction_repair", TransformKey.CONTRADICTION_REPAIR),
    ("needs_sentence_rewrite", TransformKey.SENTENCE_REWRITE),
    ("needs_semantic_expansion", TransformKey.SEMANTIC_EXPANSION),
    ("needs_canonicalization", TransformKey.CANONICALIZE),
    ("needs_requirements", TransformKey.REQUIREMENTS_INFERENCE),
    ("needs_deliverables", TransformKey.DELIVERABLES_INFERENCE),
    ("needs_output_format", TransformKey.OUTPUT_FORMAT),
    ("needs_success_criteria", TransformKey.SUCCESS_CRITERIA),
    ("needs_scope_bounds", TransformKey.SCOPE_BOUNDS),
    ("needs_questions", TransformKey.QUESTIONS),
    ("needs_domain_pack", TransformKey.DOMAIN_PACK),
    ("needs_quality_gate", TransformKey.QUALITY_GATE),
    ("needs_dedupe", TransformKey.DEDUPE),
)

_FORMAT_BUNDLE = frozenset(
    {
        TransformKey.REQUIREMENTS_INFERENCE,
        TransformKey.DELIVERABLES_INFERENCE,
        TransformKey.OUTPUT_FORMAT,
        TransformKey.SUCCESS_CRITERIA,
        TransformKey.QUESTIONS,
        TransformKey.QUALITY_GATE,
    }
)

_DOMAIN_BUNDLE_FOLLOWERS = (
    TransformKey.QUALITY_GATE,
    TransformKey.REQUIREMENTS_INFERENCE,
    TransformKey.DELIVERABLES_INFERENCE,
    TransformKey.OUTPUT_FORMAT,
)


def active_transforms(gaps: GapProfile) -> list[TransformKey]:
    """Transforms for every active gap, in priority order."""
    return [key for gap_name, key in _PRIORITY if getattr(gaps, gap_name)]


def build_transform_plans(
    gaps: GapProfile, max_plans: int = MAX_CANDIDATES - 1
) -> list[TransformPlan]:
    """One plan per active gap, then the structural, format and domain bundles."""
    ordered = active_transforms(gaps)
    plans: list[TransformPlan] = [(key,) for key in ordered]

    structural = tuple(key for key in ordered if key is not TransformKey.CANONICALIZE)
    if structural:
        plans.append(structural)

    formatting = tuple(key for key in ordered if key in _FORMAT_BUNDLE)
    if len(formatting) >= 2:
        plans.append(formatting)

    if TransformKey.DOMAIN_PACK in ordered:
        domain = (TransformKey.DOMAIN_PACK,) + tuple(
            key for key in _DOMAIN_BUNDLE_FOLLOWERS if key in ordered
        )
        plans.append(domain)

    return plans[:max_plans]


def candidate_title(index: int, plan: TransformPlan) -> str:
    return f"{index} " + " + ".join(key.value for key in plan)


def generate_candidates(
    baseline: str,
    plans: Sequence[TransformPlan],
    interpreter: TransformInterpreter,
    max_candidates: int = MAX_CANDIDATES,
) -> list[Candidate]:
    """Apply each plan to baseline and keep the distinct, non-empty results.

    The baseline is always candidate 0. Results whose fingerprint matches an
    earlier candidate (baseline included) are dropped.
    """
    candidates = [Candidate(BASELINE_TITLE, baseline)]
    seen = {fingerprint(baseline)}
    duplicates = 0

    for plan in plans:
        if len(candidates) >= max_candidates:
            break
        text = interpreter.run(plan, baseline).strip()
        if not text:
            continue
        key = fingerprint(text)
        if key in seen:
            duplicates += 1
            continue
        seen.add(key)
        candidates.append(Candidate(candidate_title(len(candidates), plan), text, plan))

    _log.debug(
        "Candidates generated", plans=len(plans), kept=len(candidates), duplicates=duplicates
    )
    return candidates
