"""Conversation loop: tool rounds, fallbacks, sanitizing and retry policy."""
import pytest

from liftlog.llm.client import ModelResponse, Role, ToolCall
from liftlog.llm.errors import (
    MalformedResponseError,
    ModelError,
    ModelTimeoutError,
    RateLimitedError,
    ServiceUnavailableError,
    classify_error,
)
from liftlog.llm.orchestrator import (
    BLOCKED_REPLY,
    DEFAULT_REPLY,
    SESSION_LEAK_REPLY,
    TOO_MANY_ROUNDS_REPLY,
    UNPARSEABLE_REPLY,
    ConversationOrchestrator,
    fallback_message,
    sanitize,
)
from fakes import ScriptedClient, calls, reply


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def make_orchestrator(registry, sleeper):
    def _make(*steps, **kwargs):
        client = ScriptedClient(*steps)
        return ConversationOrchestrator(client, registry, sleep=sleeper, **kwargs), client
    return _make


@pytest.mark.asyncio
async def test_plain_reply(make_orchestrator):
    orch, client = make_orchestrator(reply("Bench works chest, shoulders and triceps."))
    out = await orch.send("what does bench work?")
    assert out.text == "Bench works chest, shoulders and triceps."
    assert out.tool_calls == []
    assert [t.role for t in orch.transcript] == [Role.user, Role.assistant]
    assert len(client.tools) == 10

@pytest.mark.asyncio
async def test_tool_round_then_followup(make_orchestrator):
    orch, client = make_orchestrator(
        calls(("log_workout_session", {"focusArea": "Push Day"})),
        reply("Push day! What are you starting with?"),
    )
    out = await orch.send("starting push day")
    assert out.text == "Push day! What are you starting with?"
    assert out.tool_calls == ["log_workout_session"]
    roles = [t.role for t in orch.transcript]
    assert roles == [Role.user, Role.assistant, Role.tool, Role.assistant]
    tool_turn = orch.transcript[2]
    assert tool_turn.tool_results[0].content == "Started Push Day session. Ready to log exercises!"
    assert tool_turn.tool_results[0].call_id == orch.transcript[1].tool_calls[0].id != ""
    # the follow-up saw the tool results
    assert client.transcripts[1][-1].role is Role.tool

@pytest.mark.asyncio
async def test_empty_followup_uses_tool_fallback(make_orchestrator):
    orch, _ = make_orchestrator(
        calls(("log_workout_session", {"focusArea": "Leg Day"})),
        reply(""),
        calls(("log_sets", {"exerciseName": "Squat", "weightLbs": 225, "reps": 5})),
        reply(None),
    )
    assert (await orch.send("leg day")).text == "Started Leg Day! What's your first exercise?"
    out = await orch.send("squat 225x5")
    assert out.text == "Logged! ✓"
    assert out.logged["exercises"][0]["exerciseName"] == "Squat"

@pytest.mark.asyncio
async def test_failed_followup_uses_tool_fallback(make_orchestrator):
    orch, _ = make_orchestrator(
        calls(("calculate_plate_math", {"inputString": "2 plates"})),
        ModelError("backend exploded"),
    )
    assert (await orch.send("2 plates?")).text == "Here's the plate breakdown."

@pytest.mark.asyncio
async def test_multiple_tool_calls_merge_logged_payload(make_orchestrator):
    orch, _ = make_orchestrator(
        calls(("log_workout_session", {"focusArea": "Push"})),
        calls(
            ("log_sets", {"exerciseName": "Bench Press", "weightLbs": 135, "reps": 10, "numberOfSets": 2}),
            ("log_sets", {"exerciseName": "Dips", "reps": 12, "isBodyweight": True}),
        ),
        reply("Nice work!"),
    )
    out = await orch.send("push day, bench 2x10 at 135 and some dips")
    assert out.text == "Nice work!"
    assert out.tool_calls == ["log_workout_session", "log_sets", "log_sets"]
    names = [e["exerciseName"] for e in out.logged["exercises"]]
    assert names == ["Bench Press", "Dips"]
    assert len(out.logged["exercises"][0]["sets"]) == 2

@pytest.mark.asyncio
async def test_blocked_response(make_orchestrator):
    orch, _ = make_orchestrator(ModelResponse(blocked=True))
    assert (await orch.send("something nasty")).text == BLOCKED_REPLY

@pytest.mark.asyncio
async def test_leaked_tool_json_is_replaced(make_orchestrator):
    orch, _ = make_orchestrator(
        reply('{"name": "log_workout_session", "args": {"focusArea": "Push"}}'),
        reply("null"),
    )
    assert (await orch.send("push day")).text == SESSION_LEAK_REPLY
    assert (await orch.send("hey")).text == DEFAULT_REPLY

@pytest.mark.asyncio
async def test_tool_loop_is_bounded(make_orchestrator):
    loop = calls(("get_recent_history", {}))
    orch, client = make_orchestrator(*([loop] * 4), max_rounds=3)
    out = await orch.send("history?")
    assert out.text == TOO_MANY_ROUNDS_REPLY
    assert out.tool_calls == ["get_recent_history"] * 3
    assert len(client.transcripts) == 4

@pytest.mark.asyncio
async def test_reply_after_last_allowed_round_is_kept(make_orchestrator):
    loop = calls(("get_recent_history", {}))
    orch, client = make_orchestrator(loop, loop, reply("Here is your history."), max_rounds=2)
    out = await orch.send("history?")
    assert out.text == "Here is your history."
    assert out.tool_calls == ["get_recent_history"] * 2
    assert len(client.transcripts) == 3

@pytest.mark.asyncio
async def test_blocked_followup_after_tools(make_orchestrator):
    orch, _ = make_orchestrator(
        calls(("get_recent_history", {})),
        ModelResponse(blocked=True),
        max_rounds=1,
    )
    assert (await orch.send("history?")).text == BLOCKED_REPLY

@pytest.mark.asyncio
async def test_three_rate_limits_then_success(make_orchestrator, sleeper):
    orch, _ = make_orchestrator(
        RateLimitedError(), RateLimitedError(), RateLimitedError(),
        reply("Let's go!"),
        retry_base_delay=1.0,
    )
    out = await orch.send("hi")
    assert out.text == "Let's go!"
    assert sleeper.delays == [1.0, 2.0, 4.0]

@pytest.mark.asyncio
async def test_retry_ceiling_raises_and_rolls_back(make_orchestrator):
    orch, _ = make_orchestrator(*[RateLimitedError() for _ in range(4)])
    with pytest.raises(ServiceUnavailableError):
        await orch.send("hi")
    assert orch.transcript == []

@pytest.mark.asyncio
async def test_timeouts_are_retried(make_orchestrator, sleeper):
    orch, _ = make_orchestrator(TimeoutError(), reply("Back online."))
    assert (await orch.send("hi")).text == "Back online."
    assert sleeper.delays == [1.0]

@pytest.mark.asyncio
async def test_retry_after_hint_is_honoured(make_orchestrator, sleeper):
    orch, _ = make_orchestrator(RateLimitedError(retry_after=7), reply("ok"))
    await orch.send("hi")
    assert sleeper.delays == [7]

@pytest.mark.asyncio
async def test_non_retryable_error_rolls_back_user_turn(make_orchestrator, sleeper):
    orch, _ = make_orchestrator(reply("first"), ModelError("bad request"))
    await orch.send("one")
    with pytest.raises(ModelError):
        await orch.send("two")
    assert [t.text for t in orch.transcript] == ["one", "first"]
    assert sleeper.delays == []

@pytest.mark.asyncio
async def test_unknown_exception_is_classified(make_orchestrator):
    orch, _ = make_orchestrator(RuntimeError("socket closed"))
    with pytest.raises(ModelError):
        await orch.send("hi")
    assert orch.transcript == []

@pytest.mark.asyncio
async def test_generic_error_mentioning_generate_is_not_retried(make_orchestrator, sleeper):
    orch, _ = make_orchestrator(RuntimeError("failed to generate response"))
    with pytest.raises(ModelError):
        await orch.send("hi")
    assert sleeper.delays == []

def test_classify_error():
    assert isinstance(classify_error(RuntimeError("HTTP 429 Too Many Requests")), RateLimitedError)
    assert isinstance(classify_error(RuntimeError("Rate limit exceeded")), RateLimitedError)
    assert isinstance(classify_error(RuntimeError("quota exhausted for project")), RateLimitedError)
    assert isinstance(classify_error(RuntimeError("read timed out")), ModelTimeoutError)
    for message in ("failed to generate response", "moderate content", "accurate=false"):
        err = classify_error(RuntimeError(message))
        assert type(err) is ModelError

@pytest.mark.asyncio
async def test_malformed_response_gets_friendly_reply(make_orchestrator):
    orch, _ = make_orchestrator(MalformedResponseError("garbage"))
    out = await orch.send("hi")
    assert out.text == UNPARSEABLE_REPLY
    assert orch.transcript == []

@pytest.mark.asyncio
async def test_transcript_window_and_reset(make_orchestrator):
    orch, _ = make_orchestrator(*[reply(f"r{i}") for i in range(5)], transcript_window=4)
    for i in range(5):
        await orch.send(f"m{i}")
    assert len(orch.transcript) == 4
    assert orch.transcript[0].role is Role.user
    assert [t.text for t in orch.transcript] == ["m3", "r3", "m4", "r4"]
    orch.reset_session()
    assert orch.transcript == []


def test_fallback_messages():
    assert fallback_message([ToolCall("log_workout_session", {})]) == "Got it! What exercises are we doing?"
    assert fallback_message([ToolCall("edit_set", {})]) == "Updated! ✓"
    assert fallback_message([ToolCall("delete_set", {})]) == "Deleted! ✓"
    assert fallback_message([ToolCall("get_last_exercise_stats", {})]) == "Here are your stats for that exercise."
    assert fallback_message([ToolCall("get_all_personal_records", {})]) == "Here are your PRs."
    assert fallback_message([ToolCall("nope", {})]) == "Done!"
    assert fallback_message([]) == "Done!"

def test_sanitize():
    assert sanitize("  Nice set!  ") == "Nice set!"
    assert sanitize("") == DEFAULT_REPLY
    assert sanitize(None) == DEFAULT_REPLY
    assert sanitize('{"function": "log_sets"}') == DEFAULT_REPLY
    # braces alone are not a tool call
    assert sanitize("{not json} but fine") == "{not json} but fine"

