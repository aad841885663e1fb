"""Conversion between OpenAI chat requests and Aliyun DashScope APIs."""

from __future__ import annotations

import time
from typing import Any

ASSISTANT = "assistant"


def _text(content: Any) -> str:
    return content if isinstance(content, str) else ""


def _system_message(messages: list[dict[str, Any]]) -> str:
    for message in messages:
        if str(message.get("role", "")).lower() == "system":
            return _text(message.get("content"))
    return ""


def _latest_message(messages: list[dict[str, Any]]) -> str:
    return _text(messages[-1].get("content")) if messages else ""


def btype_request(request: dict[str, Any]) -> dict[str, Any]:
    """Build a prompt-style DashScope request: system text, then the latest message."""
    messages = request.get("messages") or []
    system = _system_message(messages)
    prompt = system + "\n" if system else ""
    prompt += _latest_message(messages)
    return {"model": request.get("model", ""), "input": {"prompt": prompt}}


def _usage(usage: dict[str, Any]) -> dict[str, int]:
    prompt = usage.get("input_tokens", 0)
    completion = usage.get("output_tokens", 0)
    return {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion}


def btype_response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert a prompt-style DashScope reply into an OpenAI chat completion."""
    if response is None:
        return None
    text = (response.get("output") or {}).get("text", "")
    return {
        "id": response.get("request_id", ""),
        "created": int(time.time()),
        "model": "",
        "choices": [{"index": 0, "message": {"role": ASSISTANT, "content": text}, "finish_reason": ""}],
        "usage": _usage(response.get("usage") or {}),
    }


def btype_stream_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert one prompt-style DashScope stream frame into an OpenAI stream chunk."""
    text = (response.get("output") or {}).get("text", "")
    return {
        "id": response.get("request_id", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "choices": [{"index": 0, "delta": {"role": ASSISTANT, "content": text}}],
        "usage": _usage(response.get("usage") or {}),
    }


def common_request(request: dict[str, Any]) -> dict[str, Any]:
    """Build a message-style DashScope request."""
    return {
        "model": request.get("model", ""),
        "input": {
            "messages": [
                {"role": message.get("role", ""), "content": _text(message.get("content"))}
                for message in request.get("messages") or []
            ]
        },
        "parameters": {"result_format": "message"},
    }


def _choices(response: dict[str, Any]) -> list[dict[str, Any]]:
    return (response.get("output") or {}).get("choices") or []


def common_response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert a message-style DashScope reply into an OpenAI chat completion."""
    if response is None:
        return None
    choices = []
    for choice in _choices(response):
        message = choice.get("message") or {}
        choices.append(
            {
                "index": 0,
                "message": {"role": message.get("role", ""), "content": message.get("content", "")},
                "finish_reason": "",
            }
        )
    return {
        "id": response.get("request_id", ""),
        "created": int(time.time()),
        "model": "",
        "choices": choices,
        "usage": _usage(response.get("usage") or {}),
    }


def extract_delta(previous: str, current: str) -> str:
    """Return what ``current`` adds to ``previous``, or all of it when it does not extend it."""
    if previous and current.startswith(previous):
        return current[len(previous):]
    return current


def stream_response_content(response: dict[str, Any] | None) -> str:
    """Return the accumulated content of the first choice of a stream frame."""
    if response is None:
        return ""
    choices = _choices(response)
    if not choices:
        return ""
    return (choices[0].get("message") or {}).get("content", "")


def common_stream_response_to_openai(response: dict[str, Any], previous_content: str) -> dict[str, Any]:
    """Convert a cumulative DashScope stream frame into an incremental OpenAI chunk."""
    choices = []
    for choice in _choices(response):
        message = choice.get("message") or {}
        choices.append(
            {
                "index": 0,
                "delta": {
                    "role": message.get("role", ""),
                    "content": extract_delta(previous_content, message.get("content", "")),
                },
            }
        )
    return {
        "id": response.get("request_id", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "choices": choices,
        "usage": _usage(response.get("usage") or {}),
    }