"""Conversion between OpenAI chat requests and the Ollama chat API."""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Any

JSON_FORMAT = "json"
TEXT_FORMAT = "text"
STOP_FINISH = "stop"
LENGTH_FINISH = "length"

_RFC3339 = re.compile(
    r"^(\d{4}-\d{2}-\d{2})[Tt](\d{2}:\d{2}:\d{2})(?:\.\d+)?([Zz]|[+-]\d{2}:\d{2})$"
)


def _parse_rfc3339_unix(text: Any) -> int:
    match = _RFC3339.match(text) if isinstance(text, str) else None
    if match is None:
        return 0
    date, clock, zone = match.groups()
    if zone.upper() == "Z":
        zone = "+00:00"
    return int(datetime.fromisoformat(f"{date}T{clock}{zone}").timestamp())


def _format(response_format: Any) -> str:
    if not isinstance(response_format, dict):
        return ""
    return {"json_object": JSON_FORMAT, "text": TEXT_FORMAT}.get(response_format.get("type"), "")


def request_to_ollama(request: dict[str, Any]) -> dict[str, Any]:
    """Build an Ollama chat request from an OpenAI chat request."""
    messages = []
    for message in request.get("messages") or []:
        content = message.get("content")
        messages.append(
            {"role": message.get("role", ""), "content": content if isinstance(content, str) else ""}
        )

    options = {
        key: request[source]
        for key, source in (("temperature", "temperature"), ("top_p", "top_p"), ("num_predict", "max_tokens"))
        if request.get(source)
    }
    body: dict[str, Any] = {
        "model": request.get("model", ""),
        "messages": messages,
        "stream": bool(request.get("stream", False)),
        "options": options,
    }
    fmt = _format(request.get("response_format"))
    if fmt:
        body["format"] = fmt
    return body


def _usage(response: dict[str, Any]) -> dict[str, int]:
    prompt = response.get("prompt_eval_count", 0)
    completion = response.get("eval_count", 0)
    return {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion}


def _message(response: dict[str, Any]) -> dict[str, str]:
    message = response.get("message") or {}
    return {"role": message.get("role", ""), "content": message.get("content", "")}


def response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert an Ollama chat reply into an OpenAI chat completion."""
    if response is None:
        return None
    return {
        "id": str(uuid.uuid4()),
        "created": _parse_rfc3339_unix(response.get("created_at")),
        "model": response.get("model", ""),
        "choices": [{"index": 0, "message": _message(response), "finish_reason": ""}],
        "usage": _usage(response),
    }


def stream_response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert one Ollama streaming chunk into an OpenAI stream chunk."""
    if response is None:
        return None
    return {
        "id": str(uuid.uuid4()),
        "created": _parse_rfc3339_unix(response.get("created_at")),
        "model": response.get("model", ""),
        "choices": [{"index": 0, "delta": _message(response)}],
        "usage": _usage(response),
    }


def determine_finish_reason(done: bool) -> str:
    """Return ``stop`` when generation is done, ``length`` otherwise."""
    return STOP_FINISH if done else LENGTH_FINISH