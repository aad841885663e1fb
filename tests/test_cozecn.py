import json

import pytest

from oneapigw.adapters import cozecn


def test_request_splits_query_and_history():
    request = {
        "model": "bot",
        "messages": [
            {"role": "user", "content": "q1"},
            {"role": "assistant", "content": "a1"},
            {"role": "user", "content": "q2"},
        ],
    }
    result = cozecn.request_to_coze(request)
    assert result["query"] == "q2"
    assert result["bot_id"] == "bot"
    assert result["user"] == "12345678"
    assert [m["type"] for m in result["chat_history"]] == ["", "answer"]
    assert [m["content"] for m in result["chat_history"]] == ["q1", "a1"]


def test_request_keeps_given_user():
    result = cozecn.request_to_coze({"messages": [{"role": "user", "content": "x"}], "user": "me"})
    assert result["user"] == "me"
    assert result["chat_history"] == []


def test_request_without_messages_raises():
    with pytest.raises(ValueError):
        cozecn.request_to_coze({"messages": []})


def test_system_message_is_folded_into_query():
    result = cozecn.request_to_coze(
        {"messages": [{"role": "system", "content": "be nice"}, {"role": "user", "content": "hi"}]}
    )
    assert "be nice" in result["query"]
    assert "hi" in result["query"]
    assert all(m["role"] != "system" for m in result["chat_history"])


def test_response_error_code():
    result = cozecn.response_to_openai({"code": 7, "msg": "bad", "conversation_id": "c"})
    assert result == {"id": "c", "error": {"message": "bad", "code": 7}}


def test_response_skips_verbose():
    result = cozecn.response_to_openai(
        {
            "code": 0,
            "msg": "ok",
            "conversation_id": "c",
            "messages": [
                {"type": "verbose", "role": "assistant", "content": "v"},
                {"type": "answer", "role": "assistant", "content": "hello"},
            ],
        }
    )
    assert [c["message"]["content"] for c in result["choices"]] == ["hello"]
    assert result["choices"][0]["index"] == 1
    assert result["choices"][0]["finish_reason"] == "stop"


def test_stream_message_and_error():
    chunk = cozecn.stream_response_to_openai(
        {"event": "message", "index": 3, "conversation_id": "c", "message": {"role": "assistant", "content": "x"}}
    )
    assert chunk["choices"] == [{"index": 3, "delta": {"role": "assistant", "content": "x"}}]
    assert "error" not in chunk
    err = cozecn.stream_response_to_openai({"event": "error", "error_information": {"msg": "m", "code": 5}})
    assert err["choices"] == []
    assert err["error"] == {"message": "m", "code": 5}


def test_v3_request_and_multi_content():
    request = {
        "model": "bot",
        "stream": True,
        "messages": [
            {
                "role": "user",
                "content": [
                    {"type": "text", "text": "see"},
                    {"type": "image_url", "image_url": {"url": "http://example.com/i.png"}},
                ],
            }
        ],
    }
    result = cozecn.request_to_coze_v3(request)
    assert result["auto_save_history"] is True
    assert result["user_id"] == "12345678"
    message = result["additional_messages"][0]
    assert message["content_type"] == "object_string"
    assert json.loads(message["content"]) == [
        {"type": "text", "text": "see"},
        {"type": "image_url", "file_url": "http://example.com/i.png"},
    ]


def test_build_multi_content_drops_unknown():
    assert cozecn.build_multi_content_messages([{"type": "audio"}]) == []


def test_v3_response_marks_last_answer():
    result = cozecn.v3_response_to_openai(
        {
            "data": [
                {"id": "m1", "type": "verbose", "role": "assistant", "content": "x"},
                {"id": "m2", "type": "answer", "role": "assistant", "content": "a"},
                {"id": "m3", "type": "answer", "role": "assistant", "content": "b"},
            ]
        }
    )
    assert result["id"] == "m1"
    assert [c["finish_reason"] for c in result["choices"]] == ["", "stop"]
    assert [c["index"] for c in result["choices"]] == [1, 2]


def test_v3_stream_usage():
    chunk = cozecn.v3_stream_response_to_openai(
        {"id": "e", "role": "assistant", "content": "z", "usage": {"input_count": 1, "output_count": 2, "token_count": 3}}
    )
    assert chunk["usage"] == {"prompt_tokens": 1, "completion_tokens": 2, "total_tokens": 3}
    assert chunk["choices"][0]["delta"]["content"] == "z"