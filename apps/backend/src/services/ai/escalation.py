"""Escalation controller: economy first, advanced at most once.

Per logical request::

    analyze -> select tier -> invoke (with same-tier failover)
        -> [economy result judged unreliable and escalations left]
        -> invoke advanced (with failover) -> done

Failover and escalation are separate concerns. ``ProviderUnavailable`` moves
the call to the next configured provider at the same tier; a low-confidence
or suspicious result moves the request to the advanced tier while the
request still has escalations left (``MAX_ESCALATIONS_PER_REQUEST``). The
counter is local to ``run_with_escalation``, so it can never leak between
requests.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from core.config import Settings, get_settings
from core.error_handler import StructuredLogger
from schemas.ai import InferenceResponse, QueryDetectionResult
from services.ai.complexity import (
    ComplexityVerdict,
    analyze_extraction_complexity,
    analyze_query_complexity,
)
from services.ai.exceptions import NoProviderAvailable, ProviderUnavailable
from services.ai.interfaces import InferenceInvokerProtocol, UsageTrackerProtocol
from services.ai.model_factory import configured_providers
from services.ai.models import (
    EscalationResult,
    InvocationKind,
    InvocationPayload,
    ModelTier,
    Provider,
    TierDecision,
)
from services.ai.tier_selector import select_tier, tier_models
from services.ai.validator import check_confidence, validate_query_result


logger = StructuredLogger(__name__)

ProviderSource = Callable[[], Sequence[Provider]]


class EscalationController:
    """Runs one logical request through the two-tier strategy."""

    def __init__(
        self,
        invoker: InferenceInvokerProtocol,
        usage_tracker: UsageTrackerProtocol | None = None,
        settings: Settings | None = None,
        provider_source: ProviderSource | None = None,
    ) -> None:
        self.invoker = invoker
        self.usage_tracker = usage_tracker
        self._settings = settings
        self._provider_source = provider_source

    @property
    def settings(self) -> Settings:
        return self._settings or get_settings()

    def _providers(self) -> list[Provider]:
        if self._provider_source is not None:
            return list(self._provider_source())
        return configured_providers(self.settings)

    def analyze(self, kind: InvocationKind, payload: InvocationPayload) -> ComplexityVerdict:
        settings = self.settings
        if kind is InvocationKind.QUERY:
            return analyze_query_complexity(
                payload.text,
                payload.corpus,
                token_threshold=settings.COMPLEXITY_TOKEN_THRESHOLD,
            )
        return analyze_extraction_complexity(
            payload.text,
            token_threshold=settings.COMPLEXITY_TOKEN_THRESHOLD,
            paragraph_threshold=settings.COMPLEXITY_PARAGRAPH_THRESHOLD,
        )

    def escalation_reason(
        self,
        kind: InvocationKind,
        response: InferenceResponse,
        payload: InvocationPayload,
    ) -> str | None:
        """Why an economy result should be redone at the advanced tier, if at all.

        Low confidence wins over a suspicious query result when both fire.
        """
        settings = self.settings
        confidence = check_confidence(response, settings.LOW_CONFIDENCE_THRESHOLD)
        if not confidence.is_valid:
            return confidence.reason
        if kind is InvocationKind.QUERY and isinstance(response, QueryDetectionResult):
            verdict = validate_query_result(
                response, payload.text, payload.corpus, settings
            )
            if not verdict.is_valid:
                return verdict.reason
        return None

    async def _invoke_with_failover(
        self,
        kind: InvocationKind,
        payload: InvocationPayload,
        decision: TierDecision,
        providers: Sequence[Provider],
    ) -> tuple[InferenceResponse, Provider, list[ProviderUnavailable]]:
        """Try each provider at ``decision.tier`` in order until one answers.

        ``MalformedResponse`` propagates immediately. Raises
        ``NoProviderAvailable`` once every provider failed.
        """
        failures: list[ProviderUnavailable] = []
        for provider in providers:
            model_name = decision.model_for(provider)
            try:
                response = await self.invoker.invoke(kind, payload, provider, model_name)
            except ProviderUnavailable as exc:
                failures.append(exc)
                logger.warning(
                    "Provider failed, failing over",
                    tier=decision.tier.value,
                    provider=provider.value,
                    model=model_name,
                    reason_code=exc.reason_code,
                )
                continue
            return response, provider, failures

        raise NoProviderAvailable(
            f"All providers failed at the {decision.tier.value} tier: "
            + ", ".join(f"{f.provider}={f.reason_code}" for f in failures),
            failures=failures,
        )

    def _record_usage(
        self,
        kind: InvocationKind,
        payload: InvocationPayload,
        provider: Provider,
        model_name: str,
        tier: ModelTier,
        escalated: bool = False,
    ) -> None:
        if self.usage_tracker is None:
            return
        self.usage_tracker.record(
            user_id=payload.user_id,
            kind=kind,
            provider=provider,
            model_name=model_name,
            tier=tier,
            escalated=escalated,
        )

    async def run_with_escalation(
        self, kind: InvocationKind, payload: InvocationPayload
    ) -> EscalationResult[Any]:
        settings = self.settings
        decision = select_tier(self.analyze(kind, payload), settings)
        logger.info(
            "Tier selected",
            kind=kind.value,
            tier=decision.tier.value,
            reason=decision.reason,
        )

        providers = self._providers()
        if not providers:
            raise NoProviderAvailable("No inference provider configured")

        response, provider, failures = await self._invoke_with_failover(
            kind, payload, decision, providers
        )
        model_name = decision.model_for(provider)
        self._record_usage(kind, payload, provider, model_name, decision.tier)
        result: EscalationResult[Any] = EscalationResult(
            response=response,
            tier_used=decision.tier,
            provider=provider,
            model_name=model_name,
            initial_decision=decision,
            failovers=[f.reason_code for f in failures],
        )

        escalations_left = settings.MAX_ESCALATIONS_PER_REQUEST
        while result.tier_used is ModelTier.ECONOMY and escalations_left > 0:
            reason = self.escalation_reason(kind, result.response, payload)
            if reason is None:
                logger.info(
                    "Economy result accepted",
                    kind=kind.value,
                    provider=result.provider.value,
                    model=result.model_name,
                )
                break

            escalations_left -= 1
            logger.info(
                "Escalating to advanced tier",
                kind=kind.value,
                reason=reason,
                confidence=result.response.confidence,
                escalations_left=escalations_left,
            )
            advanced = TierDecision(
                tier=ModelTier.ADVANCED,
                reason=reason,
                models=tier_models(ModelTier.ADVANCED, settings),
            )
            # Stay on the provider that just answered before trying the others
            current = result.provider
            ordered = [current, *(p for p in providers if p is not current)]
            try:
                adv_response, adv_provider, adv_failures = (
                    await self._invoke_with_failover(kind, payload, advanced, ordered)
                )
            except NoProviderAvailable as exc:
                logger.warning(
                    "Escalation failed on every provider; keeping economy result",
                    kind=kind.value,
                    error_code=exc.error_code,
                )
                result.failovers.extend(f.reason_code for f in exc.failures)
                return result

            adv_model = advanced.model_for(adv_provider)
            self._record_usage(
                kind,
                payload,
                adv_provider,
                adv_model,
                ModelTier.ADVANCED,
                escalated=True,
            )
            logger.info(
                "Escalation complete",
                kind=kind.value,
                provider=adv_provider.value,
                model=adv_model,
            )
            result = EscalationResult(
                response=adv_response,
                tier_used=ModelTier.ADVANCED,
                provider=adv_provider,
                model_name=adv_model,
                initial_decision=decision,
                escalated=True,
                escalation_reason=reason,
                failovers=result.failovers + [f.reason_code for f in adv_failures],
            )

        return result
