"""Backend-agnostic contract for the conversational model.

A client is told the fixed tool set once (``declare_tools``) and is then asked
to continue a transcript (``generate``). The same call covers the first send
(transcript ends with a user turn) and the resume after tools ran (transcript
ends with a tool turn carrying the results).
"""
from __future__ import annotations

import abc
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Sequence


class Role(str, Enum):
    user = "user"
    assistant = "assistant"
    tool = "tool"


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    parameters: dict[str, Any]


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: dict[str, Any] = field(default_factory=dict)
    id: str = ""


@dataclass(frozen=True)
class ToolResult:
    call_id: str
    name: str
    content: str


@dataclass(frozen=True)
class Turn:
    role: Role
    text: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_results: tuple[ToolResult, ...] = ()

    @classmethod
    def user(cls, text: str) -> "Turn":
        return cls(Role.user, text)

    @classmethod
    def assistant(cls, text: str = "", tool_calls: Sequence[ToolCall] = ()) -> "Turn":
        return cls(Role.assistant, text, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(cls, results: Sequence[ToolResult]) -> "Turn":
        return cls(Role.tool, tool_results=tuple(results))


@dataclass
class ModelResponse:
    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    # The backend refused on content-safety grounds
    blocked: bool = False


class ModelClient(abc.ABC):
    @abc.abstractmethod
    def declare_tools(self, tools: Sequence[ToolSpec]) -> None:
        ...

    @abc.abstractmethod
    async def generate(self, transcript: Sequence[Turn]) -> ModelResponse:
        """Continue the transcript.

        Raises RateLimitedError / ModelTimeoutError for retryable failures and
        MalformedResponseError when the backend reply cannot be decoded.
        """
