"""Normalisation of OpenAI-compatible requests and responses."""

from __future__ import annotations

import uuid
from typing import Any

ASSISTANT = "assistant"


def check_stream_response(response: dict[str, Any]) -> dict[str, Any]:
    """Fill in a missing delta role with ``assistant``, in place."""
    for choice in response.get("choices") or []:
        delta = choice.setdefault("delta", {})
        if not delta.get("role"):
            delta["role"] = ASSISTANT
    return response


def response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Rebuild an upstream chat completion as the gateway's response shape."""
    if response is None:
        return None

    choices = []
    for choice in response.get("choices") or []:
        message = choice.get("message") or {}
        content = message.get("content")
        choices.append(
            {
                "index": choice.get("index", 0),
                "message": {
                    "role": message.get("role") or ASSISTANT,
                    "content": content if isinstance(content, str) else "",
                },
                "logprobs": choice.get("logprobs"),
                "finish_reason": choice.get("finish_reason") or "",
            }
        )

    usage = response.get("usage") or {}
    return {
        "id": response.get("id") or str(uuid.uuid4()),
        "object": response.get("object", ""),
        "created": response.get("created", 0),
        "model": response.get("model", ""),
        "system_fingerprint": response.get("system_fingerprint", ""),
        "choices": choices,
        "usage": {
            "prompt_tokens": usage.get("prompt_tokens", 0),
            "completion_tokens": usage.get("completion_tokens", 0),
            "total_tokens": usage.get("total_tokens", 0),
        },
    }


def flatten_multi_content(request: dict[str, Any]) -> dict[str, Any]:
    """Turn multi-part message content into plain text, in place.

    Text parts are concatenated; image parts holding an http(s) URL add the URL
    on a new line, other images are dropped.
    """
    for message in request.get("messages") or []:
        parts = message.get("content")
        if not isinstance(parts, list) or not parts:
            continue
        text = ""
        for part in parts:
            kind = part.get("type")
            if kind == "text":
                text += part.get("text", "")
            elif kind == "image_url":
                url = (part.get("image_url") or {}).get("url", "")
                if url.startswith("http"):
                    text += "\n" + url
        message["content"] = text
    return request