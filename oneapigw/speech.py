"""A simulated text-to-speech endpoint."""

from __future__ import annotations

from typing import Any, Mapping

_REQUIRED = ("model", "input", "voice")


def create_speech(body: Mapping[str, Any]) -> dict[str, str]:
    """Validate a speech request and return a descriptive simulated reply."""
    if not isinstance(body, Mapping):
        raise ValueError("request body must be an object")
    for name in _REQUIRED:
        value = body.get(name)
        if not isinstance(value, str) or not value:
            raise ValueError(f"field {name!r} is required")
    if "response_format" in body and not isinstance(body["response_format"], str):
        raise ValueError("field 'response_format' must be a string")
    speed = body.get("speed")
    if speed is not None and (isinstance(speed, bool) or not isinstance(speed, (int, float))):
        raise ValueError("field 'speed' must be a number")

    message = "模拟响应：使用模型 '{}' 和声音 '{}' 生成音频。文本内容为 '{}'。".format(
        body["model"], body["voice"], body["input"]
    )
    return {"message": message}