"""Conversion between OpenAI chat requests and the iFlytek Spark (Xinghuo) API."""

from __future__ import annotations

import logging
import time
from typing import Any

logger = logging.getLogger(__name__)

MAX_TOP_K = 6


def _text(content: Any) -> str:
    return content if isinstance(content, str) else ""


def request_to_xinghuo(request: dict[str, Any]) -> dict[str, Any]:
    """Build a Spark chat request from an OpenAI chat request.

    With ``tool_choice`` set to ``auto`` the tool functions are passed on.
    """
    top_k = min(max(int(request.get("top_p") or 0), 0), MAX_TOP_K)
    temperature = min(max(float(request.get("temperature") or 0), 0.0), 1.0)
    body: dict[str, Any] = {
        "message": [
            {"role": message.get("role", ""), "content": _text(message.get("content"))}
            for message in request.get("messages") or []
        ],
        "topk": top_k,
        "temperature": temperature,
        "maxtokens": int(request.get("max_tokens") or 0),
    }

    tool_choice = request.get("tool_choice")
    if isinstance(tool_choice, str):
        if tool_choice == "auto":
            functions = [tool.get("function") for tool in request.get("tools") or []]
            if functions:
                body["functions"] = functions
    elif isinstance(tool_choice, dict):
        logger.warning("ToolChoice is an object, ignore")
    elif tool_choice is not None:
        logger.debug("Unhandled tool choice type, ignore: %r", type(tool_choice))
    return body


def _usage(response: dict[str, Any]) -> dict[str, int]:
    usage = ((response.get("payload") or {}).get("usage") or {}).get("text") or {}
    return {
        "prompt_tokens": usage.get("prompt_tokens", 0),
        "completion_tokens": usage.get("completion_tokens", 0),
        "total_tokens": usage.get("total_tokens", 0),
    }


def _texts(response: dict[str, Any]) -> list[dict[str, Any]]:
    return ((response.get("payload") or {}).get("choices") or {}).get("text") or []


def response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert a Spark reply into an OpenAI chat completion."""
    header = response.get("header") or {}
    return {
        "id": header.get("sid", ""),
        "object": "text_completion",
        "created": int(time.time()),
        "system_fingerprint": header.get("message", ""),
        "choices": [
            {
                "index": choice.get("index", 0),
                "message": {"role": choice.get("role", ""), "content": choice.get("content", "")},
                "finish_reason": "",
            }
            for choice in _texts(response)
        ],
        "usage": _usage(response),
    }


def stream_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert one Spark stream frame into an OpenAI stream chunk."""
    header = response.get("header") or {}
    return {
        "id": header.get("sid", ""),
        "object": "chat.completion.chunk",
        "created": int(time.time()),
        "system_fingerprint": header.get("message", ""),
        "choices": [
            {
                "index": choice.get("index", 0),
                "delta": {"role": choice.get("role", ""), "content": choice.get("content", "")},
            }
            for choice in _texts(response)
        ],
        "usage": _usage(response),
    }