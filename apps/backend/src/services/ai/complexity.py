"""Heuristic complexity analysis for free-text inputs.

Every signal is an independent boolean trigger. There is no weighted score:
the analyzer reports which signals fired, in a fixed priority order, and the
tier selector escalates on the first one. The functions here are pure and
deterministic so they can be called on the request path without any I/O.

Token counts are estimated at roughly four characters per token.
"""

from __future__ import annotations

import json
import math
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from enum import StrEnum

from schemas.tasks import TaskRecord


CHARS_PER_TOKEN = 4
DEFAULT_TOKEN_THRESHOLD = 1000
DEFAULT_PARAGRAPH_THRESHOLD = 2


class ComplexitySignal(StrEnum):
    LONG_INPUT = "long_input"
    LARGE_CONTEXT = "large_context"
    MULTI_PARAGRAPH = "multi_paragraph"
    COMPLEX_DATES = "complex_dates"
    MULTIPLE_CONSTRAINTS = "multiple_constraints"
    AMBIGUOUS = "ambiguous"
    MULTIPLE_FILTERS = "multiple_filters"
    SUMMARIZATION = "summarization"
    COMPLEX_DATE_MATH = "complex_date_math"


# Evaluation order is also the justification priority order
EXTRACTION_SIGNAL_ORDER: tuple[ComplexitySignal, ...] = (
    ComplexitySignal.LONG_INPUT,
    ComplexitySignal.MULTI_PARAGRAPH,
    ComplexitySignal.COMPLEX_DATES,
    ComplexitySignal.MULTIPLE_CONSTRAINTS,
)
QUERY_SIGNAL_ORDER: tuple[ComplexitySignal, ...] = (
    ComplexitySignal.LARGE_CONTEXT,
    ComplexitySignal.AMBIGUOUS,
    ComplexitySignal.MULTIPLE_FILTERS,
    ComplexitySignal.SUMMARIZATION,
    ComplexitySignal.COMPLEX_DATE_MATH,
)

_EXTRACTION_DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"every\s+(other\s+)?\w+", re.IGNORECASE),
    re.compile(r"until\s+[\w\s]+end", re.IGNORECASE),
    re.compile(r"after\s+my\s+\w+", re.IGNORECASE),
    re.compile(r"weekday|weekend|business\s+day", re.IGNORECASE),
    re.compile(r"timezone|time\s+zone|PST|EST|GMT", re.IGNORECASE),
    re.compile(r"quarter|fiscal|semester", re.IGNORECASE),
)
_QUERY_DATE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"every\s+(other\s+)?\w+", re.IGNORECASE),
    re.compile(r"until\s+[\w\s]+end", re.IGNORECASE),
    re.compile(r"after\s+[\w\s]+", re.IGNORECASE),
    re.compile(r"quarter|fiscal|semester", re.IGNORECASE),
    re.compile(r"within\s+\d+\s+(days|weeks|months)", re.IGNORECASE),
)
_AMBIGUITY_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"\?.*\?", re.DOTALL),
    re.compile(r"maybe|perhaps|might|could be", re.IGNORECASE),
    re.compile(r"\bor\s+", re.IGNORECASE),
)
_PARAGRAPH_SPLIT = re.compile(r"\n\s*\n+")

CONSTRAINT_KEYWORDS: tuple[str, ...] = (
    "and",
    "but",
    "except",
    "exclude",
    "also",
    "plus",
    "along with",
)
FILTER_KEYWORDS: tuple[str, ...] = ("and", "but", "except", "exclude", "not", "without")
SUMMARY_KEYWORDS: tuple[str, ...] = (
    "summarize",
    "overview",
    "plan",
    "focus areas",
    "what should i",
    "suggest",
    "prioritize",
    "week ahead",
    "coming up",
)


@dataclass(slots=True)
class ComplexityVerdict:
    """Raw signal flags for one input. Ephemeral, never persisted."""

    kind: str  # "extraction" | "query"
    text_length: int
    estimated_tokens: int
    paragraph_count: int
    corpus_size: int = 0
    flags: dict[ComplexitySignal, bool] = field(default_factory=dict)
    order: tuple[ComplexitySignal, ...] = ()

    @property
    def triggered(self) -> list[ComplexitySignal]:
        """Signals that fired, in priority order."""
        return [signal for signal in self.order if self.flags.get(signal)]

    @property
    def first_triggered(self) -> ComplexitySignal | None:
        triggered = self.triggered
        return triggered[0] if triggered else None

    @property
    def is_complex(self) -> bool:
        return any(self.flags.get(signal) for signal in self.order)


def estimate_tokens(char_count: int) -> int:
    return math.ceil(char_count / CHARS_PER_TOKEN)


def count_paragraphs(text: str) -> int:
    return len([p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()])


def _count_keywords(text: str, keywords: Iterable[str]) -> int:
    # Substring match: "and" also fires inside "hand".
    lowered = text.lower()
    return sum(1 for kw in keywords if kw in lowered)


def _any_pattern(text: str, patterns: Iterable[re.Pattern[str]]) -> bool:
    return any(p.search(text) for p in patterns)


def _corpus_chars(corpus: Sequence[TaskRecord]) -> int:
    payload = [
        task.model_dump(mode="json", by_alias=True, exclude_none=True)
        for task in corpus
    ]
    return len(json.dumps(payload, separators=(",", ":")))


def analyze_extraction_complexity(
    text: str,
    *,
    token_threshold: int = DEFAULT_TOKEN_THRESHOLD,
    paragraph_threshold: int = DEFAULT_PARAGRAPH_THRESHOLD,
) -> ComplexityVerdict:
    """Score free text that is about to be turned into tasks."""
    estimated_tokens = estimate_tokens(len(text))
    paragraph_count = count_paragraphs(text)
    flags = {
        ComplexitySignal.LONG_INPUT: estimated_tokens > token_threshold,
        ComplexitySignal.MULTI_PARAGRAPH: paragraph_count > paragraph_threshold,
        ComplexitySignal.COMPLEX_DATES: _any_pattern(text, _EXTRACTION_DATE_PATTERNS),
        ComplexitySignal.MULTIPLE_CONSTRAINTS: (
            _count_keywords(text, CONSTRAINT_KEYWORDS) >= 2
        ),
    }
    return ComplexityVerdict(
        kind="extraction",
        text_length=len(text),
        estimated_tokens=estimated_tokens,
        paragraph_count=paragraph_count,
        flags=flags,
        order=EXTRACTION_SIGNAL_ORDER,
    )


def analyze_query_complexity(
    text: str,
    corpus: Sequence[TaskRecord],
    *,
    token_threshold: int = DEFAULT_TOKEN_THRESHOLD,
) -> ComplexityVerdict:
    """Score a possible question, counting the corpus toward the token budget."""
    estimated_tokens = estimate_tokens(len(text) + _corpus_chars(corpus))
    flags = {
        ComplexitySignal.LARGE_CONTEXT: estimated_tokens > token_threshold,
        ComplexitySignal.AMBIGUOUS: _any_pattern(text, _AMBIGUITY_PATTERNS),
        ComplexitySignal.MULTIPLE_FILTERS: _count_keywords(text, FILTER_KEYWORDS) >= 2,
        ComplexitySignal.SUMMARIZATION: _count_keywords(text, SUMMARY_KEYWORDS) >= 1,
        ComplexitySignal.COMPLEX_DATE_MATH: _any_pattern(text, _QUERY_DATE_PATTERNS),
    }
    return ComplexityVerdict(
        kind="query",
        text_length=len(text),
        estimated_tokens=estimated_tokens,
        paragraph_count=count_paragraphs(text),
        corpus_size=len(corpus),
        flags=flags,
        order=QUERY_SIGNAL_ORDER,
    )
