"""Conversion between OpenAI chat requests and the Gemini generateContent API."""

from __future__ import annotations

import copy
import logging
import time
from datetime import datetime
from typing import Any, Callable

logger = logging.getLogger(__name__)

ASSISTANT = "assistant"
MODEL = "model"
RESPONSE_ROLE = "assitant"
REDACTED = "..."

ImageLoader = Callable[[str], "tuple[str, str]"]


def _fold_system_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Merge system messages into the user message that follows them."""
    result: list[dict[str, Any]] = []
    pending: list[str] = []
    for message in messages:
        role = str(message.get("role", "")).lower()
        content = message.get("content")
        if role == "system":
            if isinstance(content, str) and content:
                pending.append(content)
            continue
        if pending and role == "user" and isinstance(content, str):
            message = {**message, "content": "\n".join([*pending, content])}
            pending = []
        elif pending:
            result.append({"role": "user", "content": "\n".join(pending)})
            pending = []
        result.append(message)
    if pending:
        result.append({"role": "user", "content": "\n".join(pending)})
    return result


def _part(part: dict[str, Any], image_loader: ImageLoader | None) -> dict[str, Any]:
    kind = part.get("type")
    if kind == "text":
        return {"text": part.get("text", "")}
    if kind == "image_url":
        url = (part.get("image_url") or {}).get("url", "")
        data, mime_type = "", ""
        if image_loader is not None:
            try:
                data, mime_type = image_loader(url)
            except Exception as exc:  # the part is kept with empty data
                logger.error("cannot load image %s: %s", url, exc)
        return {"inlineData": {"mimeType": mime_type, "data": data}}
    raise ValueError(f"unsupported message content type: {kind}")


def _content(message: dict[str, Any], image_loader: ImageLoader | None) -> dict[str, Any] | None:
    role = message.get("role", "")
    if str(role).lower() == ASSISTANT:
        role = MODEL
    content = message.get("content")
    if isinstance(content, str) and content:
        return {"role": role, "parts": [{"text": content}]}
    if not isinstance(content, list) or not content:
        return None
    parts = []
    for item in content:
        try:
            parts.append(_part(item, image_loader))
        except ValueError as exc:
            logger.error("failed to create part from message content: %s", exc)
    return {"role": role, "parts": parts}


def request_to_gemini(request: dict[str, Any], image_loader: ImageLoader | None = None) -> dict[str, Any]:
    """Build a Gemini request from an OpenAI chat request.

    ``image_loader`` turns an image URL into ``(base64 data, mime type)``.
    Unset generation settings are left out.
    """
    messages = _fold_system_messages(request.get("messages") or [])
    contents = [c for c in (_content(m, image_loader) for m in messages) if c is not None]
    settings = {
        "stopSequences": request.get("stop"),
        "temperature": request.get("temperature"),
        "maxOutputTokens": request.get("max_tokens"),
        "topP": request.get("top_p"),
        "topK": request.get("top_logprobs"),
    }
    return {
        "contents": contents,
        "generationConfig": {key: value for key, value in settings.items() if value},
    }


def redacted_copy(request: dict[str, Any]) -> dict[str, Any]:
    """Return a deep copy with inline data replaced, fit for logging."""
    result = copy.deepcopy(request)
    for content in result.get("contents") or []:
        for part in content.get("parts") or []:
            if part.get("inlineData") is not None:
                part["inlineData"]["data"] = REDACTED
    return result


def _candidate(candidate: dict[str, Any]) -> tuple[str, str]:
    content = candidate.get("content") or {}
    role = content.get("role", "")
    if str(role).lower() == MODEL:
        role = RESPONSE_ROLE
    parts = content.get("parts") or []
    text = parts[0].get("text", "") if parts else ""
    return role, text


def _usage(response: dict[str, Any]) -> dict[str, int]:
    metadata = response.get("usageMetadata") or {}
    return {
        "prompt_tokens": metadata.get("promptTokenCount", 0),
        "completion_tokens": metadata.get("candidatesTokenCount", 0),
        "total_tokens": metadata.get("totalTokenCount", 0),
    }


def response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a Gemini response into an OpenAI chat completion."""
    choices = []
    for candidate in response.get("candidates") or []:
        role, text = _candidate(candidate)
        choices.append(
            {
                "index": candidate.get("index", 0),
                "message": {"role": role, "content": text},
                "finish_reason": candidate.get("finishReason", ""),
            }
        )
    return {"object": "chat.completion", "usage": _usage(response), "choices": choices}


def stream_response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert one Gemini streaming response into an OpenAI stream chunk."""
    if response is None:
        return None
    choices = []
    for index, candidate in enumerate(response.get("candidates") or []):
        role, text = _candidate(candidate)
        choices.append({"index": index, "delta": {"role": role, "content": text}})
    return {
        "id": "chatcmpl-" + datetime.now().strftime("%Y%m%d%H%M%S"),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "choices": choices,
        "usage": _usage(response),
    }