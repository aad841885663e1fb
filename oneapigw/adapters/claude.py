"""Conversion between OpenAI chat requests and the Claude messages API."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)

ASSISTANT = "assistant"
DEFAULT_MAX_TOKENS = 4096

ImageLoader = Callable[[str], "tuple[str, str]"]

_FINISH_REASONS = {
    "end_turn": "stop",
    "max_tokens": "length",
    "stop_sequence": "stop",
    "tool_use": "tool_calls",
}


def _load_image(url: str, image_loader: ImageLoader | None) -> tuple[str, str]:
    if image_loader is None:
        return "", ""
    try:
        return image_loader(url)
    except Exception as exc:  # a failed image leaves the block empty
        logger.error("cannot load image %s: %s", url, exc)
        return "", ""


def _content_blocks(parts: list[dict[str, Any]], image_loader: ImageLoader | None) -> list[dict[str, Any]]:
    blocks = []
    for part in parts:
        block: dict[str, Any] = {"type": part.get("type", ""), "text": part.get("text", "")}
        image_url = part.get("image_url")
        if image_url is not None:
            data, media_type = _load_image(image_url.get("url", ""), image_loader)
            block["image"] = {"source": {"type": "base64", "media_type": media_type, "data": data}}
        blocks.append(block)
    return blocks


def request_to_claude(request: dict[str, Any], image_loader: ImageLoader | None = None) -> dict[str, Any]:
    """Build a Claude messages request from an OpenAI chat request.

    ``image_loader`` turns an image URL into ``(base64 data, media type)``.
    """
    messages = []
    for message in request.get("messages") or []:
        content = message.get("content")
        if isinstance(content, str) and content:
            body: Any = content
        elif isinstance(content, list):
            body = _content_blocks(content, image_loader)
        else:
            body = ""
        messages.append({"role": message.get("role", ""), "content": body})

    max_tokens = request.get("max_tokens", 0)
    if max_tokens < 0:
        max_tokens = DEFAULT_MAX_TOKENS

    top_p = request.get("top_p", 0)
    claude_request: dict[str, Any] = {
        "model": request.get("model", ""),
        "messages": messages,
        "max_tokens": max_tokens,
        "stop_sequences": request.get("stop") or [],
        "stream": bool(request.get("stream", False)),
        "temperature": request.get("temperature", 0),
        "top_k": int(top_p),
        "top_p": top_p,
        "tool_choice": convert_tool_choice(request.get("tool_choice")),
        "tools": convert_tools(request.get("tools") or []),
    }
    user = request.get("user")
    if user:
        claude_request["metadata"] = {"user_id": user}
    return claude_request


def convert_tool_choice(tool_choice: Any) -> dict[str, str] | None:
    """Convert an OpenAI tool choice into a Claude one, or ``None``."""
    if isinstance(tool_choice, dict):
        function = tool_choice.get("function") or {}
        return {"type": tool_choice.get("type", ""), "name": function.get("name", "")}
    if isinstance(tool_choice, str):
        return {"type": "tool", "name": tool_choice}
    return None


def convert_tools(tools: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Wrap OpenAI function tools as Claude tools with a single ``parameters`` input."""
    converted = []
    for tool in tools:
        function = tool.get("function") or {}
        converted.append(
            {
                "name": function.get("name", ""),
                "description": function.get("description", ""),
                "input_schema": {
                    "type": "object",
                    "properties": {"parameters": function.get("parameters")},
                    "required": ["parameters"],
                },
            }
        )
    return converted


def stop_reason_to_finish_reason(stop_reason: str) -> str:
    """Map a Claude stop reason to an OpenAI finish reason."""
    return _FINISH_REASONS.get(stop_reason, "unknown")


def _usage(usage: dict[str, Any]) -> dict[str, int]:
    prompt = usage.get("input_tokens", 0)
    completion = usage.get("output_tokens", 0)
    return {"prompt_tokens": prompt, "completion_tokens": completion, "total_tokens": prompt + completion}


def response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert a Claude messages response into an OpenAI chat completion."""
    if response is None:
        return None
    finish_reason = stop_reason_to_finish_reason(response.get("stop_reason", ""))
    choices = [
        {
            "index": index,
            "message": {"role": response.get("role", ""), "content": block.get("text", "")},
            "finish_reason": finish_reason,
        }
        for index, block in enumerate(response.get("content") or [])
    ]
    return {
        "id": response.get("id", ""),
        "object": response.get("type", ""),
        "created": int(time.time()),
        "model": response.get("model", ""),
        "choices": choices,
        "usage": _usage(response.get("usage") or {}),
    }


def message_start_to_stream(message: dict[str, Any]) -> dict[str, Any]:
    """Convert a ``message_start`` stream event into an OpenAI stream chunk."""
    body = message.get("message") or {}
    return {
        "id": body.get("id", ""),
        "model": body.get("model", ""),
        "usage": _usage(body.get("usage") or {}),
        "choices": [{"index": 0, "delta": {"role": body.get("role", ""), "content": ""}}],
    }


def content_block_delta_to_stream(message: dict[str, Any]) -> dict[str, Any]:
    """Convert a ``content_block_delta`` stream event into an OpenAI stream chunk."""
    delta = message.get("delta") or {}
    return {
        "choices": [
            {
                "index": message.get("index", 0),
                "delta": {"role": ASSISTANT, "content": delta.get("text", "")},
            }
        ]
    }