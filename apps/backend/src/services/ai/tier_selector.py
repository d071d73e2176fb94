"""Map a complexity verdict to an inference tier.

Any triggered signal selects the advanced tier with that signal's fixed
justification; no signal selects the economy tier. The decision carries one
capability identifier per provider so the invoker can use whichever provider
is available.
"""

from __future__ import annotations

from core.config import Settings, get_settings
from services.ai.complexity import ComplexitySignal, ComplexityVerdict
from services.ai.models import ModelTier, Provider, TierDecision


SIGNAL_REASONS: dict[ComplexitySignal, str] = {
    ComplexitySignal.LONG_INPUT: "Long input (>1k tokens) requires deeper processing",
    ComplexitySignal.LARGE_CONTEXT: (
        "Large context (>1k tokens) requires advanced processing"
    ),
    ComplexitySignal.MULTI_PARAGRAPH: (
        "Multi-paragraph input (>2) needs context understanding"
    ),
    ComplexitySignal.COMPLEX_DATES: (
        "Complex date/time references require advanced reasoning"
    ),
    ComplexitySignal.MULTIPLE_CONSTRAINTS: "Multiple constraints require careful parsing",
    ComplexitySignal.AMBIGUOUS: "Ambiguous input requires careful interpretation",
    ComplexitySignal.MULTIPLE_FILTERS: "Multi-constraint query needs complex reasoning",
    ComplexitySignal.SUMMARIZATION: (
        "Summarization/planning requires high-quality prose"
    ),
    ComplexitySignal.COMPLEX_DATE_MATH: (
        "Complex date calculations require advanced reasoning"
    ),
}

ECONOMY_REASONS: dict[str, str] = {
    "extraction": "Simple, short input - economy model sufficient",
    "query": "Simple, single-intent query - economy model sufficient",
}


def tier_models(tier: ModelTier, settings: Settings | None = None) -> dict[Provider, str]:
    """Capability identifiers for every supported provider at ``tier``."""
    settings = settings or get_settings()
    if tier is ModelTier.ADVANCED:
        return {
            Provider.ANTHROPIC: settings.ADVANCED_ANTHROPIC_MODEL,
            Provider.OPENAI: settings.ADVANCED_OPENAI_MODEL,
        }
    return {
        Provider.ANTHROPIC: settings.ECONOMY_ANTHROPIC_MODEL,
        Provider.OPENAI: settings.ECONOMY_OPENAI_MODEL,
    }


def select_tier(
    verdict: ComplexityVerdict, settings: Settings | None = None
) -> TierDecision:
    """Return the tier decision for ``verdict``.

    Pure mapping: the first triggered signal (in the verdict's priority order)
    decides the justification.
    """
    signal = verdict.first_triggered
    if signal is not None:
        return TierDecision(
            tier=ModelTier.ADVANCED,
            reason=SIGNAL_REASONS[signal],
            models=tier_models(ModelTier.ADVANCED, settings),
        )
    return TierDecision(
        tier=ModelTier.ECONOMY,
        reason=ECONOMY_REASONS.get(verdict.kind, ECONOMY_REASONS["query"]),
        models=tier_models(ModelTier.ECONOMY, settings),
    )
