"""Conversion of Baidu AgentBuilder replies into OpenAI responses."""

from __future__ import annotations

import time
from typing import Any

ASSISTANT = "assistant"
NULL_DATA_TYPE = "null"


def response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a getAnswer reply; each content item becomes a choice."""
    contents = (response.get("data") or {}).get("content") or []
    return {
        "id": response.get("logid", ""),
        "object": "text_completion",
        "created": int(time.time()),
        "choices": [
            {
                "index": 0,
                "message": {"role": ASSISTANT, "content": item.get("data", "")},
                "finish_reason": "",
            }
            for item in contents
        ],
    }


def stream_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert one conversation stream event; ``null`` content items are skipped."""
    message = (response.get("data") or {}).get("message") or {}
    choices = [
        {
            "index": 0,
            "delta": {"role": ASSISTANT, "content": (item.get("data") or {}).get("text", "")},
        }
        for item in message.get("content") or []
        if item.get("dataType") != NULL_DATA_TYPE
    ]
    return {
        "id": response.get("logid", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "choices": choices,
    }