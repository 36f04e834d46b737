"""Conversation loop: send, run tool calls, ask for a follow-up, finalize.

One turn is ``SEND -> AWAIT_MODEL -> (TOOL_CALLS -> EXECUTE_TOOLS ->
SEND_FOLLOWUP -> AWAIT_MODEL)* -> FINALIZE``, bounded by ``max_rounds``.
Only the initial send is retried; tool side effects are never replayed.
"""
from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Sequence

from liftlog.llm.client import ModelClient, ModelResponse, Role, ToolCall, ToolResult, Turn
from liftlog.llm.errors import (
    MalformedResponseError,
    RateLimitedError,
    RetryableModelError,
    ServiceUnavailableError,
    classify_error,
)
from liftlog.settings import get_settings
from liftlog.tools.registry import ToolName, ToolRegistry

log = logging.getLogger(__name__)

BLOCKED_REPLY = "I can't respond to that. Could you try rephrasing?"
UNPARSEABLE_REPLY = "I couldn't process that request. Could you try rephrasing?"
TOO_MANY_ROUNDS_REPLY = "I'm having trouble processing that. Could you try again?"
DEFAULT_REPLY = "I'm ready to help! What would you like to do?"
SESSION_LEAK_REPLY = "Got it! What are we hitting today?"


def fallback_message(calls: Sequence[ToolCall]) -> str:
    """Deterministic confirmation keyed by the first tool of the round."""
    if not calls:
        return "Done!"
    call = calls[0]
    try:
        name = ToolName(call.name)
    except ValueError:
        return "Done!"
    if name is ToolName.log_workout_session:
        focus = str(call.arguments.get("focusArea") or "").strip()
        return f"Started {focus}! What's your first exercise?" if focus else "Got it! What exercises are we doing?"
    return {
        ToolName.log_sets: "Logged! ✓",
        ToolName.edit_set: "Updated! ✓",
        ToolName.delete_set: "Deleted! ✓",
        ToolName.get_recent_history: "Here's your recent workout history.",
        ToolName.get_exercise_history: "Here's your history for that exercise.",
        ToolName.get_last_exercise_stats: "Here are your stats for that exercise.",
        ToolName.get_personal_record: "Here are your PRs.",
        ToolName.get_all_personal_records: "Here are your PRs.",
        ToolName.calculate_plate_math: "Here's the plate breakdown.",
    }.get(name, "Done!")


def _looks_like_tool_call(text: str) -> bool:
    return text.startswith("{") and ('"name"' in text or '"function"' in text or '"tool' in text)


def usable_text(text: str | None) -> bool:
    cleaned = (text or "").strip()
    return bool(cleaned) and cleaned != "null" and not _looks_like_tool_call(cleaned)


def sanitize(text: str | None) -> str:
    """Plain model text, or a friendly default when the model leaked a tool call."""
    cleaned = (text or "").strip()
    if usable_text(cleaned):
        return cleaned
    if cleaned.startswith("{") and ToolName.log_workout_session.value in cleaned:
        return SESSION_LEAK_REPLY
    return DEFAULT_REPLY


@dataclass
class ChatReply:
    text: str
    tool_calls: list[str] = field(default_factory=list)
    # log_sets payloads collected during the turn
    logged: dict[str, Any] | None = None


class ConversationOrchestrator:
    def __init__(
        self,
        client: ModelClient,
        registry: ToolRegistry,
        *,
        max_rounds: int | None = None,
        transcript_window: int | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        s = get_settings()
        self.client = client
        self.registry = registry
        self.max_rounds = s.MAX_TOOL_ROUNDS if max_rounds is None else max_rounds
        self.transcript_window = s.TRANSCRIPT_WINDOW if transcript_window is None else transcript_window
        self.max_retries = s.MAX_RETRIES if max_retries is None else max_retries
        self.retry_base_delay = s.RETRY_BASE_DELAY_SECONDS if retry_base_delay is None else retry_base_delay
        self.sleep = sleep
        self.transcript: list[Turn] = []
        self._lock = asyncio.Lock()
        self._call_seq = 0
        client.declare_tools(registry.specs())

    def reset_session(self) -> None:
        self.transcript.clear()
        log.info("conversation transcript cleared")

    async def send(self, text: str) -> ChatReply:
        async with self._lock:
            user_turn = Turn.user(text)
            self.transcript.append(user_turn)
            self._trim()
            try:
                response = await self._send_with_retry()
            except MalformedResponseError:
                log.warning("undecodable model response; dropping the user turn")
                self._rollback(user_turn)
                return ChatReply(UNPARSEABLE_REPLY)
            except Exception:
                self._rollback(user_turn)
                raise
            return await self._run_rounds(response)

    async def _send_with_retry(self) -> ModelResponse:
        attempt = 0
        while True:
            try:
                return await self.client.generate(self.transcript)
            except Exception as exc:
                err = classify_error(exc)
                if not isinstance(err, RetryableModelError):
                    if err is exc:
                        raise
                    raise err from exc
                if attempt >= self.max_retries:
                    log.error("model still failing after %d retries: %s", self.max_retries, err)
                    raise ServiceUnavailableError() from exc
                delay = self.retry_base_delay * 2 ** attempt
                if isinstance(err, RateLimitedError) and err.retry_after:
                    delay = max(delay, err.retry_after)
                attempt += 1
                log.warning("model call failed (%s); retry %d/%d in %.1fs", err, attempt, self.max_retries, delay)
                await self.sleep(delay)

    async def _run_rounds(self, response: ModelResponse) -> ChatReply:
        called: list[str] = []
        logged: dict[str, Any] | None = None

        if response.blocked:
            return self._finish(BLOCKED_REPLY, called, logged)
        if not response.tool_calls:
            return self._finish(sanitize(response.text), called, logged)

        for _ in range(self.max_rounds):
            calls = [self._with_id(c) for c in response.tool_calls]
            results = []
            for call in calls:
                outcome = self.registry.execute(call)
                called.append(call.name)
                if outcome.payload:
                    logged = _merge_logged(logged, outcome.payload)
                results.append(ToolResult(call_id=call.id, name=call.name, content=outcome.text))
            self.transcript.append(Turn.assistant(response.text or "", calls))
            self.transcript.append(Turn.tool(results))

            try:
                response = await self.client.generate(self.transcript)
            except Exception as exc:
                log.warning("follow-up after %s failed: %s", [c.name for c in calls], exc)
                return self._finish(fallback_message(calls), called, logged)

            if response.blocked:
                return self._finish(BLOCKED_REPLY, called, logged)
            if not response.tool_calls:
                text = sanitize(response.text) if usable_text(response.text) else fallback_message(calls)
                return self._finish(text, called, logged)

        # The reply after the last allowed round still wants tools
        log.warning("gave up after %d tool rounds", self.max_rounds)
        return self._finish(TOO_MANY_ROUNDS_REPLY, called, logged)

    def _finish(self, text: str, called: list[str], logged: dict[str, Any] | None) -> ChatReply:
        self.transcript.append(Turn.assistant(text))
        self._trim()
        return ChatReply(text=text, tool_calls=called, logged=logged)

    def _with_id(self, call: ToolCall) -> ToolCall:
        if call.id:
            return call
        self._call_seq += 1
        return dataclasses.replace(call, id=f"call_{self._call_seq}")

    def _rollback(self, turn: Turn) -> None:
        if self.transcript and self.transcript[-1] is turn:
            self.transcript.pop()

    def _trim(self) -> None:
        if len(self.transcript) > self.transcript_window:
            del self.transcript[: len(self.transcript) - self.transcript_window]
        # A window must open on a user turn, not on orphaned tool traffic
        while self.transcript and self.transcript[0].role is not Role.user:
            self.transcript.pop(0)


def _merge_logged(current: dict[str, Any] | None, payload: dict[str, Any]) -> dict[str, Any]:
    merged = {"exercises": list((current or {}).get("exercises", []))}
    for entry in payload.get("exercises", []):
        existing = next((e for e in merged["exercises"] if e["exerciseName"] == entry["exerciseName"]), None)
        if existing is None:
            merged["exercises"].append(dict(entry, sets=list(entry["sets"])))
        else:
            existing["sets"].extend(entry["sets"])
            existing["isPR"] = existing["isPR"] or entry["isPR"]
    return merged
