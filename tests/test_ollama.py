import uuid

from oneapigw.adapters.ollama import (
    determine_finish_reason,
    request_to_ollama,
    response_to_openai,
    stream_response_to_openai,
)


def test_request_to_ollama():
    body = request_to_ollama(
        {
            "model": "llama3",
            "messages": [{"role": "user", "content": "hi"}],
            "stream": True,
            "temperature": 0.5,
            "max_tokens": 64,
            "response_format": {"type": "json_object"},
        }
    )
    assert body["model"] == "llama3"
    assert body["messages"] == [{"role": "user", "content": "hi"}]
    assert body["stream"] is True
    assert body["options"] == {"temperature": 0.5, "num_predict": 64}
    assert body["format"] == "json"


def test_request_text_format_and_no_format():
    assert request_to_ollama({"response_format": {"type": "text"}})["format"] == "text"
    assert "format" not in request_to_ollama({"messages": []})


def test_response_to_openai():
    result = response_to_openai(
        {
            "model": "llama3",
            "created_at": "1970-01-01T00:00:10.123456789Z",
            "message": {"role": "assistant", "content": "hello"},
            "prompt_eval_count": 4,
            "eval_count": 6,
        }
    )
    assert result["created"] == 10
    assert result["model"] == "llama3"
    assert result["choices"][0]["message"] == {"role": "assistant", "content": "hello"}
    usage = result["usage"]
    assert usage["total_tokens"] == usage["prompt_tokens"] + usage["completion_tokens"]
    assert str(uuid.UUID(result["id"])) == result["id"]


def test_bad_timestamp_gives_zero():
    assert response_to_openai({"created_at": "yesterday"})["created"] == 0


def test_stream_response_to_openai():
    result = stream_response_to_openai(
        {"created_at": "1970-01-01T01:00:00+01:00", "message": {"role": "assistant", "content": "x"}}
    )
    assert result["created"] == 0
    assert result["choices"] == [{"index": 0, "delta": {"role": "assistant", "content": "x"}}]


def test_none_inputs():
    assert response_to_openai(None) is None
    assert stream_response_to_openai(None) is None


def test_determine_finish_reason():
    assert determine_finish_reason(True) == "stop"
    assert determine_finish_reason(False) == "length"