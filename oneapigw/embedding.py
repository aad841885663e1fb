"""Embedding requests to OpenAI-compatible and Baidu Qianfan services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

import requests

OPENAI_EMBEDDINGS_URL = "https://api.openai.com/v1/embeddings"
BAIDU_EMBEDDINGS_URL = (
    "https://aip.baidubce.com/rpc/2.0/ai_custom/v1/wenxinworkshop/embeddings/embedding-v1"
)
REQUEST_TIMEOUT = 60


@dataclass
class EmbeddingRequest:
    """An OpenAI-style embedding request."""

    input: Any = None
    model: str = ""
    user: str = ""
    encoding_format: str = ""
    dimensions: int = 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmbeddingRequest":
        if not isinstance(data, Mapping):
            raise ValueError("Invalid request data")
        return cls(
            input=data.get("input"),
            model=str(data.get("model") or ""),
            user=str(data.get("user") or ""),
            encoding_format=str(data.get("encoding_format") or ""),
            dimensions=int(data.get("dimensions") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"input": self.input, "model": self.model}
        if self.user:
            body["user"] = self.user
        if self.encoding_format:
            body["encoding_format"] = self.encoding_format
        if self.dimensions:
            body["dimensions"] = self.dimensions
        return body


@dataclass
class EmbeddingResponse:
    """An OpenAI-style embedding response."""

    object: str = ""
    data: list[dict[str, Any]] = field(default_factory=list)
    model: str = ""
    usage: dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EmbeddingResponse":
        return cls(
            object=str(data.get("object") or ""),
            data=list(data.get("data") or []),
            model=str(data.get("model") or ""),
            usage=dict(data.get("usage") or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"object": self.object, "data": self.data, "model": self.model, "usage": self.usage}


def _post_json(url: str, body: Any, headers: dict[str, str], proxies: Mapping[str, str] | None,
               params: dict[str, str] | None = None) -> Any:
    response = requests.post(
        url,
        json=body,
        headers=headers,
        params=params,
        proxies=dict(proxies) if proxies else None,
        timeout=REQUEST_TIMEOUT,
    )
    return response.json()


def openai_embedding(
    request: EmbeddingRequest, api_key: str, proxies: Mapping[str, str] | None = None
) -> EmbeddingResponse:
    """Send an embedding request to the OpenAI endpoint."""
    headers = {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}
    payload = _post_json(OPENAI_EMBEDDINGS_URL, request.to_dict(), headers, proxies)
    if not isinstance(payload, Mapping):
        raise ValueError("unexpected embedding response")
    return EmbeddingResponse.from_dict(payload)


def baidu_request_from_openai(request: EmbeddingRequest) -> dict[str, Any]:
    """Convert an OpenAI embedding request into a Qianfan one."""
    value = request.input
    if isinstance(value, str):
        inputs = [value]
    elif isinstance(value, (list, tuple)):
        inputs = [item for item in value if isinstance(item, str)]
    else:
        raise ValueError("Unsupported input type")
    body: dict[str, Any] = {"input": inputs}
    if request.user:
        body["user_id"] = request.user
    return body


def openai_response_from_baidu(data: Mapping[str, Any]) -> EmbeddingResponse:
    """Convert a decoded Qianfan embedding response to the OpenAI shape."""
    entries = [
        {
            "object": item.get("object", ""),
            "embedding": [float(v) for v in item.get("embedding") or []],
            "index": item.get("index", 0),
        }
        for item in data.get("data") or []
    ]
    usage = data.get("usage") or {}
    return EmbeddingResponse(
        object=str(data.get("object") or ""),
        data=entries,
        usage={
            "prompt_tokens": int(usage.get("prompt_tokens", 0)),
            "completion_tokens": 0,
            "total_tokens": int(usage.get("total_tokens", 0)),
        },
    )


def baidu_embeddings(
    request: EmbeddingRequest, access_token: str, proxies: Mapping[str, str] | None = None
) -> EmbeddingResponse:
    """Send an embedding request to Qianfan and convert the reply."""
    payload = _post_json(
        BAIDU_EMBEDDINGS_URL,
        baidu_request_from_openai(request),
        {"Content-Type": "application/json"},
        proxies,
        params={"access_token": access_token},
    )
    if not isinstance(payload, Mapping):
        raise ValueError("unexpected embedding response")
    return openai_response_from_baidu(payload)