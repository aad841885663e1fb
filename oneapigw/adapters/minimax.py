"""Conversion between OpenAI chat requests and the MiniMax chat API."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

BOT_NAME = "BOT"
ASSISTANT = "assistant"
ABAB6_CHAT = "abab6-chat"
ABAB6_CHAT_TOKENS = 8192


def _text(content: Any) -> str:
    return content if isinstance(content, str) else ""


def request_to_minimax(request: dict[str, Any]) -> dict[str, Any]:
    """Build a MiniMax chat request from an OpenAI chat request.

    A leading system message becomes the bot setting; assistant turns are sent as ``BOT``.
    """
    messages = list(request.get("messages") or [])
    bot_setting = {"bot_name": BOT_NAME, "content": BOT_NAME}

    if messages and str(messages[0].get("role", "")).upper() == "SYSTEM":
        bot_setting["content"] = _text(messages[0].get("content"))
        if len(messages) == 1:
            logger.info("message only has a SYSTEM message")
        messages = messages[1:]

    minimax_messages = []
    for message in messages:
        role = str(message.get("role", "")).upper()
        if role == "ASSISTANT":
            role = BOT_NAME
        minimax_messages.append(
            {"sender_type": role, "sender_name": role, "text": _text(message.get("content"))}
        )

    model = request.get("model", "")
    tokens = int(request.get("max_tokens") or 0)
    if model == ABAB6_CHAT:
        tokens = ABAB6_CHAT_TOKENS

    return {
        "model": model,
        "bot_setting": [bot_setting],
        "messages": minimax_messages,
        "reply_constraints": {"sender_type": BOT_NAME, "sender_name": BOT_NAME},
        "stream": bool(request.get("stream", False)),
        "top_p": request.get("top_p", 0),
        "temperature": request.get("temperature", 0),
        "tokens_to_generate": tokens,
    }


def _usage(response: dict[str, Any]) -> dict[str, int]:
    usage = response.get("usage") or {}
    return {"total_tokens": int(usage.get("total_tokens", 0))}


def stream_response_to_openai(response: dict[str, Any]) -> dict[str, Any]:
    """Convert one MiniMax stream chunk; every reply message becomes a choice."""
    choices = [
        {
            "index": int(choice.get("index", 0)),
            "delta": {"role": ASSISTANT, "content": message.get("text", "")},
            "finish_reason": choice.get("finish_reason"),
        }
        for choice in response.get("choices") or []
        for message in choice.get("messages") or []
    ]
    return {
        "id": response.get("id", ""),
        "object": "chat.completion.chunk",
        "created": response.get("created", 0),
        "model": response.get("model", ""),
        "choices": choices,
        "usage": _usage(response),
    }


def response_to_openai(response: dict[str, Any] | None) -> dict[str, Any] | None:
    """Convert a MiniMax reply into an OpenAI chat completion.

    Only the first message of each choice is kept.
    """
    if response is None:
        return None

    choices = []
    for choice in response.get("choices") or []:
        messages = choice.get("messages") or []
        if not messages:
            raise ValueError("choice has no messages")
        choices.append(
            {
                "index": int(choice.get("index", 0)),
                "message": {"role": ASSISTANT, "content": messages[0].get("text", "")},
                "logprobs": None,
                "finish_reason": choice.get("finish_reason", ""),
            }
        )

    result: dict[str, Any] = {
        "id": response.get("id", ""),
        "created": response.get("created", 0),
        "model": response.get("model", ""),
        "choices": choices,
        "usage": _usage(response),
    }
    base = response.get("base_resp") or {}
    status = base.get("status_code", 0)
    if status != 0:
        result["error"] = {"message": base.get("status_msg", ""), "code": status}
    return result