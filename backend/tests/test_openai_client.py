import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from liftlog.llm.client import ToolCall, ToolResult, ToolSpec, Turn
from liftlog.llm.errors import (
    MalformedResponseError,
    ModelConfigurationError,
    ModelError,
    ModelTimeoutError,
    RateLimitedError,
)
from liftlog.llm.openai_client import OpenAIModelClient
from liftlog.settings import Settings

REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def completion(content=None, tool_calls=None, finish_reason="stop"):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(choices=[SimpleNamespace(message=message, finish_reason=finish_reason)])


def fn_call(name, arguments, call_id="call_a"):
    return SimpleNamespace(id=call_id, function=SimpleNamespace(name=name, arguments=arguments))


@pytest.fixture
def sdk():
    fake = MagicMock()
    fake.chat.completions.create = AsyncMock()
    return fake


@pytest.fixture
def model(sdk):
    return OpenAIModelClient(Settings(OPENAI_API_KEY="sk-test"), client=sdk)


def test_missing_key_is_a_configuration_error():
    with pytest.raises(ModelConfigurationError):
        OpenAIModelClient(Settings(OPENAI_API_KEY=None))

def test_transcript_to_messages(model):
    call = ToolCall("log_sets", {"exerciseName": "Squat", "reps": 5}, id="call_1")
    transcript = [
        Turn.user("squat 5 reps"),
        Turn.assistant("", [call]),
        Turn.tool([ToolResult("call_1", "log_sets", "Logged: Squat - 0 lbs x 5")]),
        Turn.assistant("Logged!"),
    ]
    messages = model.to_messages(transcript)
    assert messages[0]["role"] == "system"
    assert messages[1] == {"role": "user", "content": "squat 5 reps"}
    assert messages[2]["tool_calls"][0]["function"] == {
        "name": "log_sets",
        "arguments": json.dumps({"exerciseName": "Squat", "reps": 5}),
    }
    assert messages[2]["content"] is None
    assert messages[3] == {"role": "tool", "tool_call_id": "call_1", "content": "Logged: Squat - 0 lbs x 5"}
    assert messages[4] == {"role": "assistant", "content": "Logged!"}

@pytest.mark.asyncio
async def test_generate_sends_tools_and_parses_calls(model, sdk):
    model.declare_tools([ToolSpec("calculate_plate_math", "plates", {"type": "object", "properties": {}})])
    sdk.chat.completions.create.return_value = completion(
        tool_calls=[fn_call("calculate_plate_math", '{"inputString": "2 plates"}')],
        finish_reason="tool_calls",
    )
    response = await model.generate([Turn.user("2 plates")])
    kwargs = sdk.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == "gpt-4o-mini"
    assert kwargs["tools"][0]["function"]["name"] == "calculate_plate_math"
    assert response.tool_calls == [ToolCall("calculate_plate_math", {"inputString": "2 plates"}, id="call_a")]

@pytest.mark.asyncio
async def test_content_filter_is_blocked(model, sdk):
    sdk.chat.completions.create.return_value = completion(finish_reason="content_filter")
    assert (await model.generate([Turn.user("x")])).blocked is True

@pytest.mark.asyncio
@pytest.mark.parametrize("result", [
    completion(tool_calls=[fn_call("log_sets", "{not json")]),
    completion(tool_calls=[fn_call("log_sets", "[1, 2]")]),
    SimpleNamespace(choices=[]),
])
async def test_undecodable_responses(model, sdk, result):
    sdk.chat.completions.create.return_value = result
    with pytest.raises(MalformedResponseError):
        await model.generate([Turn.user("x")])

@pytest.mark.asyncio
@pytest.mark.parametrize("exc,expected", [
    (openai.RateLimitError("slow down", response=httpx.Response(429, request=REQUEST), body=None), RateLimitedError),
    (openai.APITimeoutError(request=REQUEST), ModelTimeoutError),
    (openai.AuthenticationError("bad key", response=httpx.Response(401, request=REQUEST), body=None),
     ModelConfigurationError),
    (openai.BadRequestError("nope", response=httpx.Response(400, request=REQUEST), body=None), ModelError),
])
async def test_sdk_errors_are_mapped(model, sdk, exc, expected):
    sdk.chat.completions.create.side_effect = exc
    with pytest.raises(expected):
        await model.generate([Turn.user("x")])

@pytest.mark.asyncio
async def test_retry_after_header_is_kept(model, sdk):
    response = httpx.Response(429, request=REQUEST, headers={"retry-after": "12"})
    sdk.chat.completions.create.side_effect = openai.RateLimitError("slow", response=response, body=None)
    with pytest.raises(RateLimitedError) as info:
        await model.generate([Turn.user("x")])
    assert info.value.retry_after == 12.0
