"""Tests for the capability invoker using pydantic-ai test models."""

from __future__ import annotations

from datetime import date

import httpx
import pytest
from pydantic_ai.exceptions import ModelHTTPError
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    ToolCallPart,
    UserPromptPart,
)
from pydantic_ai.models.function import AgentInfo, FunctionModel
from pydantic_ai.models.test import TestModel as StubModel

from schemas.ai import QueryDetectionResult, TaskExtractionResult
from services.ai.exceptions import MalformedResponse, ProviderUnavailable
from services.ai.invoker import CapabilityInvoker, restrict_to_corpus
from services.ai.models import InvocationKind, InvocationPayload, Provider

from pipeline_fakes import make_corpus, make_task, query_result


def _raising(exc: Exception) -> FunctionModel:
    def fn(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise exc

    return FunctionModel(fn)


def _invoker_for(model) -> CapabilityInvoker:
    return CapabilityInvoker(model_resolver=lambda provider, name: model)


@pytest.mark.asyncio
class TestInvokeQuery:
    async def test_parses_structured_query_output(self) -> None:
        model = StubModel(
            custom_output_args={
                "isQuery": True,
                "intent": "filter_by_tag",
                "keywords": ["work"],
                "response": "Here are your work todos",
                "matchingTodoIds": [101, 102],
                "confidence": 0.9,
            }
        )
        invoker = _invoker_for(model)

        result = await invoker.invoke(
            InvocationKind.QUERY,
            InvocationPayload(text="show me work stuff", corpus=make_corpus(5)),
            Provider.ANTHROPIC,
            "claude-haiku-4-5-20251001",
        )

        assert isinstance(result, QueryDetectionResult)
        assert result.is_query is True
        assert result.intent == "filter_by_tag"
        assert result.matching_todo_ids == [101, 102]

    async def test_unknown_and_duplicate_ids_are_dropped(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        model = StubModel(
            custom_output_args={
                "isQuery": True,
                "intent": "search",
                "matchingTodoIds": [101, 999, 101, 102],
                "confidence": 0.9,
            }
        )
        invoker = _invoker_for(model)

        result = await invoker.invoke(
            InvocationKind.QUERY,
            InvocationPayload(text="find stuff", corpus=make_corpus(3)),
            Provider.OPENAI,
            "o4-mini",
        )

        assert result.matching_todo_ids == [101, 102]
        assert "not present in the corpus snapshot" in caplog.text

    async def test_prompt_lists_real_ids(self) -> None:
        seen: list[str] = []

        def fn(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            for message in messages:
                if isinstance(message, ModelRequest):
                    for part in message.parts:
                        if isinstance(part, UserPromptPart):
                            seen.append(str(part.content))
            return ModelResponse(
                parts=[
                    ToolCallPart(
                        tool_name=info.output_tools[0].name,
                        args={"isQuery": False, "intent": "todo_creation"},
                    )
                ]
            )

        invoker = _invoker_for(FunctionModel(fn))
        corpus = [make_task(42, "Pay rent", tags=["finance"]), make_task(7, "Walk dog")]

        await invoker.invoke(
            InvocationKind.QUERY,
            InvocationPayload(text="buy bread", corpus=corpus, today=date(2026, 3, 2)),
            Provider.ANTHROPIC,
            "claude-haiku-4-5-20251001",
        )

        prompt = seen[0]
        assert "Current date: 2026-03-02" in prompt
        assert "ID 42: Pay rent [tags: finance]" in prompt
        assert "ID 7: Walk dog" in prompt
        assert "NOT list positions" in prompt

    async def test_schema_violation_is_malformed(self) -> None:
        invoker = _invoker_for(StubModel(custom_output_args={"isQuery": "definitely"}))

        with pytest.raises(MalformedResponse) as exc_info:
            await invoker.invoke(
                InvocationKind.QUERY,
                InvocationPayload(text="what's due", corpus=make_corpus(2)),
                Provider.ANTHROPIC,
                "claude-haiku-4-5-20251001",
            )

        assert exc_info.value.error_code == "malformed_response"
        assert exc_info.value.provider == "anthropic"

    async def test_invalid_output_is_not_retried(self) -> None:
        calls = 0

        def fn(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            nonlocal calls
            calls += 1
            return ModelResponse(
                parts=[
                    ToolCallPart(
                        tool_name=info.output_tools[0].name,
                        args={"isQuery": "definitely"},
                    )
                ]
            )

        invoker = _invoker_for(FunctionModel(fn))

        with pytest.raises(MalformedResponse):
            await invoker.invoke(
                InvocationKind.QUERY,
                InvocationPayload(text="what's due", corpus=make_corpus(2)),
                Provider.OPENAI,
                "gpt-4o-mini",
            )

        assert calls == 1


@pytest.mark.asyncio
class TestInvokeExtraction:
    async def test_parses_and_normalizes_candidates(self) -> None:
        model = StubModel(
            custom_output_args={
                "todos": [
                    {
                        "text": "Buy milk",
                        "tags": "Errands, Home",
                        "priority": "urgent",
                        "dueDate": "2026-10-20",
                        "context": "need to buy milk",
                    }
                ],
                "confidence": 0.8,
            }
        )
        invoker = _invoker_for(model)

        result = await invoker.invoke(
            InvocationKind.EXTRACTION,
            InvocationPayload(text="need to buy milk tomorrow"),
            Provider.OPENAI,
            "o4-mini",
        )

        assert isinstance(result, TaskExtractionResult)
        todo = result.todos[0]
        assert todo.tags == ["errands", "home"]
        assert todo.priority == "high"
        assert todo.due_date == date(2026, 10, 20)


@pytest.mark.asyncio
class TestProviderFailures:
    @pytest.mark.parametrize(
        ("exc", "reason"),
        [
            (ModelHTTPError(status_code=503, model_name="m"), "server_error"),
            (ModelHTTPError(status_code=429, model_name="m"), "rate_limit"),
            (ModelHTTPError(status_code=401, model_name="m"), "auth"),
            (httpx.ConnectTimeout("timed out"), "timeout"),
            (httpx.ConnectError("refused"), "network"),
        ],
    )
    async def test_provider_errors_become_unavailable(
        self, exc: Exception, reason: str
    ) -> None:
        invoker = _invoker_for(_raising(exc))

        with pytest.raises(ProviderUnavailable) as exc_info:
            await invoker.invoke(
                InvocationKind.EXTRACTION,
                InvocationPayload(text="buy milk"),
                Provider.ANTHROPIC,
                "claude-haiku-4-5-20251001",
            )

        assert exc_info.value.reason_code == reason
        assert exc_info.value.provider == "anthropic"
        assert exc_info.value.model_name == "claude-haiku-4-5-20251001"

    async def test_unconfigured_provider_is_unavailable(self) -> None:
        def resolver(provider, name):
            raise ValueError("Provider 'openai' is not configured")

        invoker = CapabilityInvoker(model_resolver=resolver)

        with pytest.raises(ProviderUnavailable) as exc_info:
            await invoker.invoke(
                InvocationKind.EXTRACTION,
                InvocationPayload(text="buy milk"),
                Provider.OPENAI,
                "o4-mini",
            )
        assert exc_info.value.reason_code == "not_configured"

    async def test_programming_errors_propagate(self) -> None:
        invoker = _invoker_for(_raising(RuntimeError("bug")))

        with pytest.raises(RuntimeError, match="bug"):
            await invoker.invoke(
                InvocationKind.EXTRACTION,
                InvocationPayload(text="buy milk"),
                Provider.ANTHROPIC,
                "claude-haiku-4-5-20251001",
            )


class TestRestrictToCorpus:
    def test_returns_same_object_when_clean(self) -> None:
        result = query_result([101, 102])
        assert restrict_to_corpus(result, make_corpus(3)) is result

    def test_empty_corpus_drops_everything(self) -> None:
        assert restrict_to_corpus(query_result([1, 2]), []).matching_todo_ids == []
