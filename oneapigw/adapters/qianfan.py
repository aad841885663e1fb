"""Conversion between OpenAI chat requests and the Baidu Qianfan chat API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

ASSISTANT = "assistant"


@dataclass(frozen=True)
class _TokenLimits:
    minimum: int
    maximum: int
    default_max: int


_MODEL_PREFIXES = {
    "ERNIE-4.0-8K": _TokenLimits(2, 2048, 2048),
    "ERNIE-3.5-8K": _TokenLimits(2, 2048, 2048),
    "ERNIE-3.5-128K": _TokenLimits(2, 4096, 4096),
    "ERNIE-Speed-8K": _TokenLimits(2, 2048, 2048),
    "ERNIE-Speed-128K": _TokenLimits(2, 4096, 4096),
    "ERNIE-Lite-8K": _TokenLimits(2, 1024, 1024),
    "ERNIE-Lite-128K": _TokenLimits(2, 2048, 2048),
    "ERNIE-Tiny-8K": _TokenLimits(2, 2048, 2048),
}


def validate_max_tokens(max_tokens: int, minimum: int, maximum: int, default_max: int) -> int:
    """Clamp ``max_tokens`` to its range; zero means the default."""
    if max_tokens == 0:
        return default_max
    if max_tokens < minimum:
        return minimum
    if max_tokens > maximum:
        return maximum
    return max_tokens


def check_max_tokens(model: str, max_tokens: int) -> int:
    """Adjust ``max_tokens`` to the limits of the model's prefix; 0 for unknown models."""
    for prefix in sorted(_MODEL_PREFIXES, key=len, reverse=True):
        if model.startswith(prefix):
            limits = _MODEL_PREFIXES[prefix]
            return validate_max_tokens(max_tokens, limits.minimum, limits.maximum, limits.default_max)
    logger.warning("Unknown model prefix: %s", model)
    return 0


def _text(content: Any) -> str:
    return content if isinstance(content, str) else ""


def _clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def request_to_qianfan(request: dict[str, Any]) -> dict[str, Any]:
    """Build a Qianfan chat request; a leading system message becomes ``system``."""
    stream = bool(request.get("stream", False))
    body: dict[str, Any] = {"stream": stream, "stop": request.get("stop") or []}

    max_tokens = int(request.get("max_tokens") or 0)
    if max_tokens > 0:
        body["max_output_tokens"] = check_max_tokens(request.get("model", ""), max_tokens)

    body["top_p"] = _clamp(float(request.get("top_p") or 0), 0.0, 1.0)

    temperature = float(request.get("temperature") or 0)
    if temperature <= 0:
        temperature = 0.1
    body["temperature"] = min(temperature, 1.0)
    body["user_id"] = request.get("user", "")

    messages = list(request.get("messages") or [])
    if messages and str(messages[0].get("role", "")).upper() == "SYSTEM":
        body["system"] = _text(messages[0].get("content"))
        messages = messages[1:]

    body["messages"] = [
        {"role": message.get("role", ""), "content": _text(message.get("content"))}
        for message in messages
    ]
    body["penalty_score"] = _clamp(float(request.get("frequency_penalty") or 0), 1.0, 2.0)
    return body


def _has_error(response: dict[str, Any]) -> bool:
    return response.get("error_code", 0) != 0 and bool(response.get("error_msg"))


def _usage(response: dict[str, Any]) -> dict[str, int]:
    usage = response.get("usage") or {}
    return {
        "prompt_tokens": usage.get("prompt_tokens", 0),
        "completion_tokens": usage.get("completion_tokens", 0),
        "total_tokens": usage.get("total_tokens", 0),
    }


def response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a Qianfan reply into an OpenAI chat completion."""
    if _has_error(response):
        return {
            "id": response.get("id", ""),
            "error": {"message": response["error_msg"], "code": response["error_code"]},
        }
    finish_reason = "stop" if response.get("is_end") else "completed"
    return {
        "id": response.get("id", ""),
        "object": response.get("object", ""),
        "created": response.get("created", 0),
        "model": "",
        "system_fingerprint": "",
        "usage": _usage(response),
        "choices": [
            {
                "index": 0,
                "message": {"role": ASSISTANT, "content": response.get("result", "")},
                "finish_reason": finish_reason,
            }
        ],
    }


def stream_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert one Qianfan stream chunk into an OpenAI stream chunk."""
    if _has_error(response):
        logger.error("qianfan stream error: %s", response["error_msg"])
        return {
            "error": {
                "message": response["error_msg"],
                "type": "invalid_request_error",
                "code": response["error_code"],
            }
        }
    return {
        "id": response.get("id", ""),
        "object": "chat.completion.chunk",
        "created": response.get("created", 0),
        "model": "",
        "system_fingerprint": "",
        "usage": _usage(response),
        "choices": [
            {
                "index": 0,
                "delta": {"role": ASSISTANT, "content": response.get("result", "")},
                "finish_reason": "stop" if response.get("is_end") else None,
            }
        ],
    }