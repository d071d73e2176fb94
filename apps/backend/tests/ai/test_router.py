"""Tests for the intent router."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

import pytest

from services.ai.escalation import EscalationController
from services.ai.exceptions import MalformedResponse
from services.ai.models import InvocationKind, ModelTier
from services.ai.router import IntentRouter

from pipeline_fakes import FakeInvoker, extraction_result, make_corpus, query_result


ControllerFactory = Callable[..., EscalationController]


@pytest.mark.asyncio
class TestIntentRouter:
    async def test_creation_input_is_not_a_query(
        self, make_controller: ControllerFactory
    ) -> None:
        invoker = FakeInvoker(
            lambda *_: query_result(is_query=False, intent="todo_creation")
        )
        router = IntentRouter(make_controller(invoker))

        result = await router.classify("Buy milk and call mom", make_corpus(5))

        assert result.response.is_query is False
        assert result.tier_used is ModelTier.ECONOMY
        assert invoker.calls[0][0] is InvocationKind.QUERY

    async def test_payload_carries_snapshot_user_and_date(
        self, make_controller: ControllerFactory
    ) -> None:
        seen = []

        def handler(kind, payload, provider, model):
            seen.append(payload)
            return query_result([101])

        corpus = make_corpus(3)
        router = IntentRouter(make_controller(handler))

        await router.classify(
            "what's on my list?", corpus, user_id="u-1", today=date(2026, 1, 5)
        )
        corpus.clear()

        payload = seen[0]
        assert isinstance(payload.corpus, tuple)
        assert [t.id for t in payload.corpus] == [101, 102, 103]
        assert payload.user_id == "u-1"
        assert payload.today == date(2026, 1, 5)

    async def test_extraction_payload_is_malformed(
        self, make_controller: ControllerFactory
    ) -> None:
        router = IntentRouter(make_controller(lambda *_: extraction_result("x")))

        with pytest.raises(MalformedResponse, match="extraction payload"):
            await router.classify("what's due?", make_corpus(2))
