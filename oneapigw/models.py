"""The model listing endpoints of the gateway."""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Mapping

RANDOM_MODEL = "random"
OWNER = "openai"


@dataclass(frozen=True)
class Model:
    """One entry of the model list."""

    id: str
    created: int
    object: str = "model"
    owned_by: str = OWNER

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _timestamp(now: int | None) -> int:
    return int(time.time()) if now is None else int(now)


def list_models(support_models: Mapping[str, str], now: int | None = None) -> dict[str, Any]:
    """Return the model list body; raise LookupError when no model is configured."""
    created = _timestamp(now)
    models = [Model(name, created) for name in sorted(support_models)]
    if not models:
        raise LookupError("No models found")
    models.append(Model(RANDOM_MODEL, created))
    return {"object": "list", "data": [model.to_dict() for model in models]}


def retrieve_model(
    model_to_service: Mapping[str, Any], model_id: str, now: int | None = None
) -> Model:
    """Return the model entry for a configured model; raise LookupError otherwise."""
    if model_id not in model_to_service:
        raise LookupError("Model not found")
    return Model("gpt-3.5-turbo-instruct", _timestamp(now))