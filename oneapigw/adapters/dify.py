"""Conversion between OpenAI chat requests and the Dify chat-messages API."""

from __future__ import annotations

import time
from typing import Any

ASSISTANT = "assistant"
DEFAULT_USER = "abc-123"


def _latest_message(messages: list[dict[str, Any]]) -> str:
    if not messages:
        return ""
    content = messages[-1].get("content")
    return content if isinstance(content, str) else ""


def request_to_dify(request: dict[str, Any]) -> dict[str, Any]:
    """Build a Dify chat-messages request from the latest message."""
    return {
        "query": _latest_message(request.get("messages") or []),
        "response_mode": "streaming" if request.get("stream") else "blocking",
        "user": request.get("user") or DEFAULT_USER,
    }


def response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a blocking Dify reply into an OpenAI chat completion."""
    return {
        "id": response.get("message_id", ""),
        "object": "chat.completion",
        "created": int(response.get("created_at") or 0),
        "choices": [
            {
                "index": 0,
                "message": {"role": ASSISTANT, "content": response.get("answer", "")},
                "finish_reason": "",
            }
        ],
    }


def stream_response_to_openai(event: dict[str, Any]) -> dict[str, Any]:
    """Convert a Dify ``message`` stream event into an OpenAI stream chunk."""
    return {"choices": [{"index": 0, "delta": {"role": ASSISTANT, "content": event.get("answer", "")}}]}


def message_end_to_openai(event: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert a Dify ``message_end`` event into a usage-only stream chunk."""
    if event is None:
        return None
    usage = (event.get("metadata") or {}).get("usage") or {}
    return {
        "id": event.get("id", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "usage": {
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        },
    }