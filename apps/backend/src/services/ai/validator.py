"""Sanity checks on economy-tier results.

Neither check raises. Each returns a ``ValidationVerdict`` and the escalation
controller decides what to do with it.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass

from core.config import Settings, get_settings
from schemas.ai import InferenceResponse, QueryDetectionResult
from schemas.tasks import TaskRecord


_QUESTION_CUES = re.compile(r"what|show|list|find|get|tell me|any|have", re.IGNORECASE)
_NARROWING_CUES = re.compile(
    r"urgent|high|work|personal|today|tomorrow|this week", re.IGNORECASE
)


@dataclass(slots=True, frozen=True)
class ValidationVerdict:
    is_valid: bool
    reason: str | None = None
    confidence: float | None = None

    @classmethod
    def ok(cls, confidence: float | None = None) -> ValidationVerdict:
        return cls(is_valid=True, confidence=confidence)


def check_confidence(
    response: InferenceResponse, threshold: float | None = None
) -> ValidationVerdict:
    """Flag a self-reported confidence below ``threshold``.

    A response without a confidence value is never flagged.
    """
    if threshold is None:
        threshold = get_settings().LOW_CONFIDENCE_THRESHOLD
    confidence = response.confidence
    if confidence is None or confidence >= threshold:
        return ValidationVerdict.ok(confidence)
    reason = response.confidence_reason or (
        f"Model confidence {confidence:.2f} below threshold {threshold}"
    )
    return ValidationVerdict(is_valid=False, reason=reason, confidence=confidence)


def validate_query_result(
    response: QueryDetectionResult,
    text: str,
    corpus: Sequence[TaskRecord],
    settings: Settings | None = None,
) -> ValidationVerdict:
    """Look for statistically suspicious query results.

    Checks, in order, each sufficient on its own:

    1. The input reads like a question about existing tasks, the corpus is
       non-empty, the model agreed it is a query, yet nothing matched.
    2. More than ``MAX_MATCHING_IDS`` ids came back.
    3. The input carries a narrowing cue (priority, tag or date term) yet the
       matches cover more than ``SUSPICIOUS_MATCH_RATIO`` of a corpus larger
       than ``SUSPICIOUS_MIN_CORPUS_SIZE``.
    """
    settings = settings or get_settings()
    matched = len(response.matching_todo_ids)
    corpus_size = len(corpus)

    if (
        response.is_query
        and corpus_size > 0
        and matched == 0
        and _QUESTION_CUES.search(text)
    ):
        return ValidationVerdict(
            is_valid=False,
            reason="Query about todos returned zero matches despite having todos available",
        )

    if matched > settings.MAX_MATCHING_IDS:
        return ValidationVerdict(
            is_valid=False,
            reason=(
                f"Query returned too many matches (>{settings.MAX_MATCHING_IDS}), "
                "likely needs refinement"
            ),
        )

    ratio = matched / corpus_size if corpus_size else 0.0
    if (
        _NARROWING_CUES.search(text)
        and ratio > settings.SUSPICIOUS_MATCH_RATIO
        and corpus_size > settings.SUSPICIOUS_MIN_CORPUS_SIZE
    ):
        return ValidationVerdict(
            is_valid=False,
            reason=(
                f"Specific query matched >{settings.SUSPICIOUS_MATCH_RATIO:.0%} "
                "of todos, likely too broad"
            ),
        )

    return ValidationVerdict.ok(response.confidence)
