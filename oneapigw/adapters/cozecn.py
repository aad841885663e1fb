"""Conversion between OpenAI chat requests and the Coze (v2 and v3) chat APIs."""

from __future__ import annotations

import json
import logging
import time
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_USER = "12345678"
CONVERSATION_ID = "123"


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


def _text(content: Any) -> str:
    return content if isinstance(content, str) else ""


def request_to_coze(request: dict[str, Any]) -> dict[str, Any]:
    """Build a Coze v2 chat request: the last message is the query, the rest history."""
    messages = _fold_system_messages(request.get("messages") or [])
    if not messages:
        raise ValueError("request has no messages")
    *history, last = messages
    chat_history = [
        {
            "role": message.get("role", ""),
            "type": "answer" if str(message.get("role", "")).lower() == "assistant" else "",
            "content": _text(message.get("content")),
            "content_type": "text",
        }
        for message in history
    ]
    return {
        "conversation_id": CONVERSATION_ID,
        "bot_id": request.get("model", ""),
        "user": request.get("user") or DEFAULT_USER,
        "query": _text(last.get("content")),
        "stream": bool(request.get("stream", False)),
        "chat_history": chat_history,
    }


def response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a Coze v2 response into an OpenAI chat completion."""
    code = response.get("code", 0)
    message_text = response.get("msg", "")
    if code != 0:
        return {
            "id": response.get("conversation_id", ""),
            "error": {"message": message_text, "code": code},
        }
    choices = [
        {
            "index": index,
            "message": {"role": message.get("role", ""), "content": message.get("content", "")},
            "finish_reason": "stop",
        }
        for index, message in enumerate(response.get("messages") or [])
        if message.get("type") != "verbose"
    ]
    result: dict[str, Any] = {
        "id": response.get("conversation_id", ""),
        "object": "text_completion",
        "created": int(time.time()),
        "choices": choices,
    }
    if code != 200:
        result["error"] = {"code": str(code), "message": message_text}
    return result


def stream_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert one Coze v2 stream event into an OpenAI stream chunk."""
    event = response.get("event")
    choices = []
    if event == "message":
        message = response.get("message") or {}
        choices.append(
            {
                "index": response.get("index", 0),
                "delta": {"role": message.get("role", ""), "content": message.get("content", "")},
            }
        )
    result: dict[str, Any] = {
        "id": response.get("conversation_id", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "choices": choices,
    }
    if event == "error":
        info = response.get("error_information") or {}
        result["error"] = {"message": info.get("msg", ""), "code": info.get("code", 0)}
    return result


def request_to_coze_v3(request: dict[str, Any]) -> dict[str, Any]:
    """Build a Coze v3 chat request."""
    messages = _fold_system_messages(request.get("messages") or [])
    additional = build_v3_messages(messages)
    logger.debug("coze v3 messages: %d of %d", len(additional), len(messages))
    return {
        "bot_id": request.get("model", ""),
        "user_id": request.get("user") or DEFAULT_USER,
        "stream": bool(request.get("stream", False)),
        "auto_save_history": True,
        "additional_messages": additional,
    }


def build_v3_messages(messages: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Convert messages; multi-part content becomes an ``object_string`` message."""
    result = []
    for message in messages:
        content = message.get("content")
        item = {"role": message.get("role", ""), "content": _text(content), "content_type": "text"}
        if isinstance(content, list) and content:
            parts = build_multi_content_messages(content)
            item["content"] = json.dumps(parts, ensure_ascii=False, separators=(",", ":"))
            item["content_type"] = "object_string"
        result.append(item)
    return result


def build_multi_content_messages(parts: list[dict[str, Any]]) -> list[dict[str, str]]:
    """Convert text and image parts to Coze object-string entries; others are dropped."""
    result = []
    for part in parts:
        kind = part.get("type")
        if kind == "text":
            result.append({"type": "text", "text": part.get("text", "")})
        elif kind == "image_url":
            url = (part.get("image_url") or {}).get("url", "")
            result.append({"type": "image_url", "file_url": url})
    return result


def v3_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a Coze v3 message list into an OpenAI chat completion."""
    messages = response.get("data") or []
    message_id = next((m.get("id") for m in messages if m.get("id")), "")
    choices = [
        {
            "index": index,
            "message": {"role": message.get("role", ""), "content": message.get("content", "")},
            "finish_reason": "",
        }
        for index, message in enumerate(messages)
        if message.get("type") == "answer"
    ]
    if choices:
        choices[-1]["finish_reason"] = "stop"
    return {
        "id": message_id,
        "object": "text_completion",
        "created": int(time.time()),
        "choices": choices,
    }


def v3_stream_response_to_openai(event: dict[str, Any]) -> dict[str, Any]:
    """Convert one Coze v3 stream event into an OpenAI stream chunk."""
    usage = event.get("usage") or {}
    return {
        "id": event.get("id", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "choices": [
            {"index": 0, "delta": {"role": event.get("role", ""), "content": event.get("content", "")}}
        ],
        "usage": {
            "prompt_tokens": usage.get("input_count", 0),
            "completion_tokens": usage.get("output_count", 0),
            "total_tokens": usage.get("token_count", 0),
        },
    }