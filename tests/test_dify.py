from oneapigw.adapters import dify


def test_request_uses_latest_message_and_modes():
    request = {"messages": [{"role": "user", "content": "a"}, {"role": "user", "content": "b"}], "stream": True}
    result = dify.request_to_dify(request)
    assert result["query"] == "b"
    assert result["response_mode"] == "streaming"
    assert result["user"] == "abc-123"


def test_request_blocking_with_user():
    result = dify.request_to_dify({"messages": [], "user": "u"})
    assert result == {"query": "", "response_mode": "blocking", "user": "u"}


def test_response_to_openai():
    result = dify.response_to_openai({"message_id": "m", "created_at": 1700000000, "answer": "hi"})
    assert result["id"] == "m"
    assert result["created"] == 1700000000
    assert result["object"] == "chat.completion"
    assert result["choices"][0]["message"] == {"role": "assistant", "content": "hi"}


def test_stream_chunk():
    chunk = dify.stream_response_to_openai({"answer": "part"})
    assert chunk["choices"][0]["delta"] == {"role": "assistant", "content": "part"}


def test_message_end():
    assert dify.message_end_to_openai(None) is None
    usage = {"prompt_tokens": 4, "completion_tokens": 6, "total_tokens": 10}
    chunk = dify.message_end_to_openai({"id": "e", "metadata": {"usage": usage}})
    assert chunk["usage"] == usage
    assert chunk["id"] == "e"
    assert chunk["object"] == "chat.completion.chunk"