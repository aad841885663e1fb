import pytest

from oneapigw.adapters import claude


@pytest.mark.parametrize(
    "reason, expected",
    [
        ("end_turn", "stop"),
        ("max_tokens", "length"),
        ("stop_sequence", "stop"),
        ("tool_use", "tool_calls"),
        ("something", "unknown"),
    ],
)
def test_stop_reason_mapping(reason, expected):
    assert claude.stop_reason_to_finish_reason(reason) == expected


def test_text_request_keeps_content_and_user():
    request = {
        "model": "claude-x",
        "messages": [{"role": "user", "content": "hi"}],
        "user": "u1",
        "stream": True,
        "stop": ["END"],
    }
    result = claude.request_to_claude(request)
    assert result["model"] == "claude-x"
    assert result["messages"] == [{"role": "user", "content": "hi"}]
    assert result["metadata"] == {"user_id": "u1"}
    assert result["stream"] is True
    assert result["stop_sequences"] == ["END"]
    assert result["max_tokens"] == 0


def test_negative_max_tokens_uses_default():
    result = claude.request_to_claude({"messages": [], "max_tokens": -1})
    assert result["max_tokens"] == 4096
    assert "metadata" not in result


def test_image_part_uses_loader():
    seen = []

    def loader(url):
        seen.append(url)
        return "BASE", "image/png"

    request = {
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "look"},
                    {"type": "image_url", "image_url": {"url": "http://example.com/a.png"}},
                ],
            }
        ]
    }
    blocks = claude.request_to_claude(request, loader)["messages"][0]["content"]
    assert seen == ["http://example.com/a.png"]
    assert blocks[0] == {"type": "text", "text": "look"}
    assert blocks[1]["image"]["source"] == {"type": "base64", "media_type": "image/png", "data": "BASE"}


def test_failing_loader_leaves_empty_image():
    def loader(url):
        raise OSError("boom")

    request = {"messages": [{"role": "user", "content": [{"type": "image_url", "image_url": {"url": "x"}}]}]}
    block = claude.request_to_claude(request, loader)["messages"][0]["content"][0]
    assert block["image"]["source"]["data"] == ""


def test_convert_tool_choice():
    assert claude.convert_tool_choice(None) is None
    assert claude.convert_tool_choice(3) is None
    assert claude.convert_tool_choice("f") == {"type": "tool", "name": "f"}
    assert claude.convert_tool_choice({"type": "function", "function": {"name": "g"}}) == {
        "type": "function",
        "name": "g",
    }


def test_convert_tools_wraps_parameters():
    params = {"type": "object"}
    tools = claude.convert_tools([{"function": {"name": "f", "description": "d", "parameters": params}}])
    assert tools == [
        {
            "name": "f",
            "description": "d",
            "input_schema": {"type": "object", "properties": {"parameters": params}, "required": ["parameters"]},
        }
    ]


def test_response_to_openai():
    assert claude.response_to_openai(None) is None
    response = {
        "id": "msg1",
        "type": "message",
        "role": "assistant",
        "model": "m",
        "content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}],
        "stop_reason": "max_tokens",
        "usage": {"input_tokens": 2, "output_tokens": 5},
    }
    result = claude.response_to_openai(response)
    assert [c["message"]["content"] for c in result["choices"]] == ["a", "b"]
    assert [c["index"] for c in result["choices"]] == [0, 1]
    assert all(c["finish_reason"] == "length" for c in result["choices"])
    usage = result["usage"]
    assert usage["total_tokens"] == usage["prompt_tokens"] + usage["completion_tokens"]
    assert result["object"] == "message"


def test_stream_events():
    start = claude.message_start_to_stream(
        {"message": {"id": "i", "model": "m", "role": "assistant", "usage": {"input_tokens": 1, "output_tokens": 0}}}
    )
    assert start["id"] == "i"
    assert start["choices"][0]["delta"] == {"role": "assistant", "content": ""}
    delta = claude.content_block_delta_to_stream({"index": 2, "delta": {"text": "xy"}})
    assert delta["choices"][0] == {"index": 2, "delta": {"role": "assistant", "content": "xy"}}