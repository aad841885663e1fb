import pytest

from oneapigw.adapters import qianfan


@pytest.mark.parametrize(
    "value, expected",
    [(0, 50), (1, 2), (2, 2), (30, 30), (51, 50), (500, 50)],
)
def test_validate_max_tokens(value, expected):
    assert qianfan.validate_max_tokens(value, 2, 50, 50) == expected


def test_check_max_tokens_known_prefixes():
    assert qianfan.check_max_tokens("ERNIE-4.0-8K", 0) == 2048
    assert qianfan.check_max_tokens("ERNIE-Lite-8K-0922", 5000) == 1024
    assert qianfan.check_max_tokens("ERNIE-Speed-128K", 100000) == 4096
    assert qianfan.check_max_tokens("ERNIE-Tiny-8K", 1) == 2


def test_check_max_tokens_unknown_model():
    assert qianfan.check_max_tokens("yi_34b_chat", 300) == 0


def test_request_clamps_and_splits_system():
    request = {
        "model": "ERNIE-3.5-8K",
        "messages": [
            {"role": "system", "content": "rules"},
            {"role": "user", "content": "q"},
        ],
        "max_tokens": 10000,
        "top_p": 3.0,
        "temperature": 5.0,
        "frequency_penalty": 0.2,
        "stream": True,
        "user": "u1",
    }
    body = qianfan.request_to_qianfan(request)
    assert body["system"] == "rules"
    assert body["messages"] == [{"role": "user", "content": "q"}]
    assert body["max_output_tokens"] == 2048
    assert body["top_p"] == 1.0
    assert body["temperature"] == 1.0
    assert body["penalty_score"] == 1.0
    assert body["stream"] is True
    assert body["user_id"] == "u1"


def test_request_defaults():
    body = qianfan.request_to_qianfan({"messages": [{"role": "user", "content": "q"}], "frequency_penalty": 9})
    assert "max_output_tokens" not in body
    assert "system" not in body
    assert body["temperature"] == 0.1
    assert body["top_p"] == 0.0
    assert body["penalty_score"] == 2.0


def test_response_finish_reasons():
    done = qianfan.response_to_openai({"id": "a", "result": "text", "is_end": True})
    assert done["choices"][0]["finish_reason"] == "stop"
    assert done["choices"][0]["message"] == {"role": "assistant", "content": "text"}
    pending = qianfan.response_to_openai({"id": "a", "result": "text"})
    assert pending["choices"][0]["finish_reason"] == "completed"


def test_response_error():
    result = qianfan.response_to_openai({"id": "e", "error_code": 17, "error_msg": "quota"})
    assert result == {"id": "e", "error": {"message": "quota", "code": 17}}


def test_stream_response_and_error():
    chunk = qianfan.stream_response_to_openai(
        {"id": "s", "result": "part", "usage": {"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7}}
    )
    assert chunk["object"] == "chat.completion.chunk"
    assert chunk["choices"][0]["delta"]["content"] == "part"
    assert chunk["choices"][0]["finish_reason"] is None
    assert chunk["usage"]["total_tokens"] == 7
    error = qianfan.stream_response_to_openai({"error_code": 3, "error_msg": "bad"})
    assert error["error"]["type"] == "invalid_request_error"
    assert error["error"]["code"] == 3