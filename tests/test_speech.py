import pytest

from oneapigw.speech import create_speech


def test_create_speech_message():
    reply = create_speech({"model": "tts-1", "input": "hello", "voice": "alloy"})
    assert reply == {
        "message": "模拟响应：使用模型 'tts-1' 和声音 'alloy' 生成音频。文本内容为 'hello'。"
    }


@pytest.mark.parametrize("missing", ["model", "input", "voice"])
def test_missing_required_field(missing):
    body = {"model": "tts-1", "input": "hello", "voice": "alloy"}
    del body[missing]
    with pytest.raises(ValueError):
        create_speech(body)


def test_empty_required_field():
    with pytest.raises(ValueError):
        create_speech({"model": "", "input": "hello", "voice": "alloy"})


def test_bad_speed_type():
    with pytest.raises(ValueError):
        create_speech({"model": "m", "input": "i", "voice": "v", "speed": "fast"})