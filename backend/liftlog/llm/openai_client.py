"""OpenAI chat-completions backend with function calling."""
from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import openai
from openai import AsyncOpenAI

from liftlog.llm.client import ModelClient, ModelResponse, Role, ToolCall, ToolSpec, Turn
from liftlog.llm.errors import (
    MalformedResponseError,
    ModelConfigurationError,
    ModelError,
    ModelTimeoutError,
    RateLimitedError,
)
from liftlog.llm.prompts import SYSTEM_PROMPT
from liftlog.settings import Settings, get_settings

log = logging.getLogger(__name__)


def _retry_after(exc: openai.APIStatusError) -> float | None:
    value = exc.response.headers.get("retry-after") if exc.response is not None else None
    try:
        return float(value) if value is not None else None
    except ValueError:
        return None


class OpenAIModelClient(ModelClient):
    def __init__(self, settings: Settings | None = None, *, client: AsyncOpenAI | None = None):
        s = settings or get_settings()
        if client is None:
            if not s.OPENAI_API_KEY:
                raise ModelConfigurationError("OPENAI_API_KEY is not set")
            client = AsyncOpenAI(api_key=s.OPENAI_API_KEY, timeout=s.MODEL_TIMEOUT_SECONDS, max_retries=0)
        self.client = client
        self.model = s.MODEL_NAME
        self.temperature = s.MODEL_TEMPERATURE
        self.max_tokens = s.MODEL_MAX_OUTPUT_TOKENS
        self.system_prompt = SYSTEM_PROMPT
        self._tools: list[dict[str, Any]] = []

    def declare_tools(self, tools: Sequence[ToolSpec]) -> None:
        self._tools = [
            {
                "type": "function",
                "function": {"name": t.name, "description": t.description, "parameters": t.parameters},
            }
            for t in tools
        ]

    def to_messages(self, transcript: Sequence[Turn]) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = [{"role": "system", "content": self.system_prompt}]
        for turn in transcript:
            if turn.role is Role.user:
                messages.append({"role": "user", "content": turn.text})
            elif turn.role is Role.assistant and turn.tool_calls:
                messages.append({
                    "role": "assistant",
                    "content": turn.text or None,
                    "tool_calls": [
                        {
                            "id": call.id,
                            "type": "function",
                            "function": {"name": call.name, "arguments": json.dumps(call.arguments)},
                        }
                        for call in turn.tool_calls
                    ],
                })
            elif turn.role is Role.assistant:
                messages.append({"role": "assistant", "content": turn.text})
            else:
                for result in turn.tool_results:
                    messages.append({"role": "tool", "tool_call_id": result.call_id, "content": result.content})
        return messages

    async def generate(self, transcript: Sequence[Turn]) -> ModelResponse:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": self.to_messages(transcript),
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        if self._tools:
            kwargs["tools"] = self._tools

        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except openai.RateLimitError as e:
            raise RateLimitedError(str(e), retry_after=_retry_after(e)) from e
        except openai.APITimeoutError as e:
            raise ModelTimeoutError(str(e)) from e
        except openai.AuthenticationError as e:
            raise ModelConfigurationError(str(e)) from e
        except openai.APIError as e:
            raise ModelError(str(e)) from e

        return self.parse(completion)

    @staticmethod
    def parse(completion) -> ModelResponse:
        if not completion.choices:
            raise MalformedResponseError("completion has no choices")
        choice = completion.choices[0]
        if choice.finish_reason == "content_filter":
            return ModelResponse(blocked=True)

        message = choice.message
        calls = []
        for tc in message.tool_calls or []:
            try:
                args = json.loads(tc.function.arguments or "{}")
            except json.JSONDecodeError as e:
                raise MalformedResponseError(f"undecodable arguments for {tc.function.name}") from e
            if not isinstance(args, dict):
                raise MalformedResponseError(f"arguments for {tc.function.name} are not an object")
            calls.append(ToolCall(name=tc.function.name, arguments=args, id=tc.id))

        log.debug("model returned %d tool call(s), text=%r", len(calls), (message.content or "")[:80])
        return ModelResponse(text=message.content, tool_calls=calls)
