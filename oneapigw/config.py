"""Gateway configuration: parsing, model routing and access checks."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .jsoncheck import find_line_and_character, get_error_context
from .loadbalance import LoadBalancer

logger = logging.getLogger(__name__)

SERVICE_TIMEOUT = 30

PROXY_STRATEGY_FORCE_ALL = "force_all"
PROXY_STRATEGY_ALL = "all"
PROXY_STRATEGY_DEFAULT = "default"
PROXY_STRATEGY_DISABLED = "disabled"

# Names of the fields a service's credentials may carry.
CREDENTIAL_FIELDS = (
    "api_key",
    "token",
    "secret_id",
    "secret_key",
    "group_id",
    "appid",
    "api_secret",
    "domain",
    "access_key",
    "addresss",
    "project_id",
    "location",
    "model_id",
    "json_file",
)

KEYNAME_RANDOM = "random"
KEYNAME_ALL = "all"

DEFAULT_SERVER_PORT = ":9090"
DEFAULT_LOAD_BALANCING = "random"

DEFAULT_SUPPORT_MODEL_MAP: dict[str, list[str]] = {
    "qianfan": ["yi_34b_chat", "ERNIE-Speed-8K", "ERNIE-Speed-128K", "ERNIE-Lite-8K", "ERNIE-Lite-8K-0922", "ERNIE-Tiny-8K"],
    "hunyuan": ["hunyuan-lite", "hunyuan-standard", "hunyuan-standard-256K", "hunyuan-pro"],
    "xinghuo": ["spark-lite", "spark-v2.0", "spark-pro", "spark-max"],
    "deepseek": ["deepseek-chat", "deepseek-coder"],
    "zhipu": ["glm-3-turbo", "glm-4-0520", "glm-4", "glm-4-air", "glm-4-airx", "glm-4-flash", "glm-4v"],
    "minimax": ["abab6.5", "abab6.5s", "abab6.5t", "abab6.5g", "abab5.5s"],
    "huoshan": ["Doubao-pro-4k", "Doubao-pro-32k", "Doubao-pro-128k", "Doubao-lite-4k", "Doubao-lite-32k", "Doubao-lite-128k"],
    "gemini": ["gemini-1.5-pro", "gemini-1.5-flash", "gemini-1.0-pro", "gemini-pro-vision"],
    "groq": ["llama3-70b-8192", "llama3-8b-8192", "gemma-7b-it", "mixtral-8x7b-32768"],
    "aliyun": ["qwen-turbo", "qwen-plus", "qwen-max", "qwen-max-longcontext"],
}

DEFAULT_MULTI_CONTENT_MODELS = ("gpt-4o", "gpt-4-turbo", "glm-4v", "gemini-*", "yi-vision", "gpt-4o*")


class ConfigError(Exception):
    """Raised when the configuration cannot be read or used."""


@dataclass
class Limit:
    qps: float = 0.0
    qpm: float = 0.0
    rpm: float = 0.0
    concurrency: float = 0.0
    timeout: int = 0


@dataclass
class Range:
    min: float = 0.0
    max: float = 0.0


@dataclass
class ModelParams:
    temperature_range: Range = field(default_factory=Range)
    top_p_range: Range = field(default_factory=Range)
    max_tokens: int = 0


@dataclass
class ServiceModel:
    provider: str = ""
    embedding_models: list[str] = field(default_factory=list)
    embedding_limit: Limit = field(default_factory=Limit)
    models: list[str] = field(default_factory=list)
    reasoning_models: dict[str, str] = field(default_factory=dict)
    enabled: bool = False
    credentials: dict[str, Any] = field(default_factory=dict)
    credential_list: list[dict[str, Any]] = field(default_factory=list)
    server_url: str = ""
    model_map: dict[str, str] = field(default_factory=dict)
    model_redirect: dict[str, str] = field(default_factory=dict)
    limit: Limit = field(default_factory=Limit)
    use_proxy: bool | None = None
    timeout: int = 0


@dataclass
class ProxyConf:
    strategy: str = ""
    type: str = ""
    http_proxy: str = ""
    https_proxy: str = ""
    socks5_proxy: str = ""
    timeout: int = 0


@dataclass
class Translation:
    enable: bool = False
    prompt_template: str = ""
    retry: int = 0
    concurrency: int = 0


@dataclass
class APIKeyConfig:
    api_key: str = ""
    supported_models: dict[str, list[str]] = field(default_factory=dict)


@dataclass
class Configuration:
    server_port: str = ""
    debug: bool = False
    log_level: str = ""
    proxy: ProxyConf = field(default_factory=ProxyConf)
    api_key: str = ""
    load_balancing: str = ""
    multi_content_models: list[str] = field(default_factory=list)
    model_redirect: dict[str, str] = field(default_factory=dict)
    params_range: dict[str, ModelParams] = field(default_factory=dict)
    services: dict[str, list[ServiceModel]] = field(default_factory=dict)
    translation: Translation = field(default_factory=Translation)
    enable_web: bool = False
    api_keys: list[APIKeyConfig] = field(default_factory=list)


@dataclass
class ModelDetails:
    """One configured service able to answer for a model name."""

    service_name: str
    service: ServiceModel
    service_id: str


def _mapping(value: Any, name: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{name!r} must be a mapping")
    return value


def _sequence(value: Any, name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ConfigError(f"{name!r} must be a list")
    return value


def _string(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"{key!r} must be a string")
    return value


def _text_fields(data: dict, names: tuple[str, ...]) -> dict[str, str]:
    return {name: _string(data, name) for name in names}


def _boolean(data: dict, key: str) -> bool:
    value = data.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ConfigError(f"{key!r} must be a boolean")
    return value


def _number(data: dict, key: str, kind: type) -> Any:
    value = data.get(key)
    if value is None:
        return kind(0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"{key!r} must be a number")
    return kind(value)


def _strings(value: Any, name: str) -> list[str]:
    items = _sequence(value, name)
    if not all(isinstance(item, str) for item in items):
        raise ConfigError(f"{name!r} must hold strings")
    return list(items)


def _string_map(value: Any, name: str) -> dict[str, str]:
    items = _mapping(value, name)
    if not all(isinstance(v, str) for v in items.values()):
        raise ConfigError(f"{name!r} must map names to strings")
    return {str(k): v for k, v in items.items()}


def _parse_limit(value: Any, name: str) -> Limit:
    data = _mapping(value, name)
    return Limit(
        qps=_number(data, "qps", float),
        qpm=_number(data, "qpm", float),
        rpm=_number(data, "rpm", float),
        concurrency=_number(data, "concurrency", float),
        timeout=_number(data, "timeout", int),
    )


def _parse_range(value: Any, name: str) -> Range:
    data = _mapping(value, name)
    return Range(min=_number(data, "min", float), max=_number(data, "max", float))


def _parse_params(value: Any, name: str) -> ModelParams:
    data = _mapping(value, name)
    return ModelParams(
        temperature_range=_parse_range(data.get("temperatureRange"), "temperatureRange"),
        top_p_range=_parse_range(data.get("topPRange"), "topPRange"),
        max_tokens=_number(data, "maxTokens", int),
    )


def _parse_service(value: Any) -> ServiceModel:
    data = _mapping(value, "service")
    use_proxy = data.get("use_proxy")
    if use_proxy is not None and not isinstance(use_proxy, bool):
        raise ConfigError("'use_proxy' must be a boolean")
    return ServiceModel(
        provider=_string(data, "provider"),
        embedding_models=_strings(data.get("embedding_models"), "embedding_models"),
        embedding_limit=_parse_limit(data.get("embedding_limit"), "embedding_limit"),
        models=_strings(data.get("models"), "models"),
        reasoning_models=_string_map(data.get("reasoning_models"), "reasoning_models"),
        enabled=_boolean(data, "enabled"),
        credentials=dict(_mapping(data.get("credentials"), "credentials")),
        credential_list=[
            dict(_mapping(item, "credential_list"))
            for item in _sequence(data.get("credential_list"), "credential_list")
        ],
        server_url=_string(data, "server_url"),
        model_map=_string_map(data.get("model_map"), "model_map"),
        model_redirect=_string_map(data.get("model_redirect"), "model_redirect"),
        limit=_parse_limit(data.get("limit"), "limit"),
        use_proxy=use_proxy,
        timeout=_number(data, "timeout", int),
    )


def _parse_proxy(value: Any) -> ProxyConf:
    data = _mapping(value, "proxy")
    return ProxyConf(
        strategy=_string(data, "strategy"),
        type=_string(data, "type"),
        http_proxy=_string(data, "http_proxy"),
        https_proxy=_string(data, "https_proxy"),
        socks5_proxy=_string(data, "socks5_proxy"),
        timeout=_number(data, "timeout", int),
    )


def _parse_translation(value: Any) -> Translation:
    data = _mapping(value, "translation")
    template_key = "promptTemplate" if "promptTemplate" in data else "prompt_template"
    return Translation(
        enable=_boolean(data, "enable"),
        prompt_template=_string(data, template_key),
        retry=_number(data, "retry", int),
        concurrency=_number(data, "concurrency", int),
    )


def _parse_api_key(value: Any) -> APIKeyConfig:
    data = _mapping(value, "api_keys")
    supported = _mapping(data.get("supported_models"), "supported_models")
    return APIKeyConfig(
        **_text_fields(data, ("api_key",)),
        supported_models={str(k): _strings(v, "supported_models") for k, v in supported.items()},
    )


def parse_configuration(data: Any) -> Configuration:
    """Build a :class:`Configuration` from a decoded JSON or YAML document."""
    if data is None:
        return Configuration()
    root = _mapping(data, "configuration")
    services = _mapping(root.get("services"), "services")
    params = _mapping(root.get("params_range"), "params_range")
    texts = _text_fields(root, ("server_port", "log_level", "api_key", "load_balancing"))
    key_entries = _sequence(root.get("api_keys"), "api_keys")
    return Configuration(
        **texts,
        debug=_boolean(root, "debug"),
        proxy=_parse_proxy(root.get("proxy")),
        multi_content_models=_strings(root.get("multi_content_models"), "multi_content_models"),
        model_redirect=_string_map(root.get("model_redirect"), "model_redirect"),
        params_range={str(k): _parse_params(v, str(k)) for k, v in params.items()},
        services={
            str(name): [_parse_service(item) for item in _sequence(entries, str(name))]
            for name, entries in services.items()
        },
        translation=_parse_translation(root.get("translation")),
        enable_web=_boolean(root, "enable_web"),
        api_keys=[_parse_api_key(item) for item in key_entries],
    )


def build_model_to_service(
    configuration: Configuration,
) -> tuple[dict[str, list[ModelDetails]], dict[str, str]]:
    """Map every model name to the enabled services serving it.

    Returns the routing table and the table of advertised model names.
    """
    model_to_service: dict[str, list[ModelDetails]] = {}
    support_models: dict[str, str] = {}

    for service_name, service_models in configuration.services.items():
        for configured in service_models:
            if not configured.enabled:
                continue
            service = dataclasses.replace(configured)
            logger.info(
                "models %s, timeout %s, limit %s, embedding models %s",
                service.models, service.timeout, service.limit, service.embedding_models,
            )
            if not service.models and service_name in DEFAULT_SUPPORT_MODEL_MAP:
                service.models = list(DEFAULT_SUPPORT_MODEL_MAP[service_name])
                logger.info("use default support models: %s", service.models)
            if service.timeout <= 0:
                service.timeout = SERVICE_TIMEOUT

            for model_name in service.models:
                detail = ModelDetails(service_name, service, str(uuid.uuid4()))
                model_to_service.setdefault(model_name, []).append(detail)
                support_models[model_name] = model_name
                for alias, target in service.model_redirect.items():
                    support_models[alias] = target
                    support_models.pop(target, None)
                    model_to_service.setdefault(alias, []).append(detail)

            for model_name in service.embedding_models:
                detail = ModelDetails(service_name, service, str(uuid.uuid4()))
                model_to_service.setdefault(model_name, []).append(detail)
                for alias in service.model_redirect:
                    model_to_service.setdefault(alias, []).append(detail)

    return model_to_service, support_models


def _decode_json(data: bytes) -> Configuration:
    text = data.decode("utf-8", errors="replace")
    try:
        raw = json.loads(text)
    except json.JSONDecodeError as exc:
        offset = len(exc.doc[: exc.pos].encode("utf-8"))
        line, character = find_line_and_character(data, offset)
        logger.error("JSON syntax error at line %d, character %d: %s", line, character, exc)
        logger.error("context: %s", get_error_context(data, offset))
        return Configuration()
    try:
        return parse_configuration(raw)
    except ConfigError as exc:
        logger.error("JSON decode error: %s", exc)
        return Configuration()


def load_configuration(path: str | os.PathLike[str]) -> "Settings":
    """Read a JSON or YAML configuration file, falling back to ``config/<path>``."""
    name = os.fspath(path)
    absolute = Path(os.path.abspath(name))
    if not absolute.is_file():
        logger.warning("config %s does not exist", absolute)
        name = "config/" + name
        absolute = Path(os.path.abspath(name))
    logger.info("config name: %s", absolute)

    try:
        data = absolute.read_bytes()
    except OSError as exc:
        raise ConfigError(f"cannot read {absolute}: {exc}") from exc

    file_type = Path(name).suffix.lstrip(".")
    if file_type in ("yml", "yaml"):
        try:
            configuration = parse_configuration(yaml.safe_load(data))
        except yaml.YAMLError as exc:
            raise ConfigError(f"unable to decode {absolute}: {exc}") from exc
    elif file_type == "json":
        configuration = _decode_json(data)
    else:
        raise ConfigError(f"unsupported config type: {file_type}")

    settings = Settings(configuration)
    logger.info("support models: %s", settings.support_model_names())
    logger.info("multi content models: %s", settings.support_multi_content_models)
    return settings


def get_model_mapping(details: ModelDetails, model: str) -> str:
    """Return the service's mapped name for ``model``, or ``model`` itself."""
    mapped = details.service.model_map.get(model)
    if mapped is not None:
        logger.info("model map found: %s -> %s", model, mapped)
        return mapped
    return model


def get_model_redirect(details: ModelDetails, model: str) -> str:
    """Return the service's redirect target for ``model``, or ``model`` itself."""
    redirect = details.service.model_redirect.get(model)
    if redirect is not None:
        logger.info("model redirect found: %s -> %s", model, redirect)
        return redirect
    return model


class Settings:
    """The effective gateway settings derived from a configuration."""

    def __init__(self, configuration: Configuration, balancer: LoadBalancer | None = None) -> None:
        self.configuration = configuration
        self.balancer = balancer or LoadBalancer()
        self.load_balancing_strategy = configuration.load_balancing or DEFAULT_LOAD_BALANCING
        self.server_port = configuration.server_port or DEFAULT_SERVER_PORT
        self.api_key = configuration.api_key
        self.debug = configuration.debug
        self.log_level = configuration.log_level
        self.enable_web = configuration.enable_web
        self.proxy = configuration.proxy
        self.translation = configuration.translation
        self.global_model_redirect = dict(configuration.model_redirect)
        self.support_multi_content_models = [
            *DEFAULT_MULTI_CONTENT_MODELS,
            *configuration.multi_content_models,
        ]
        self.api_key_map = {entry.api_key: entry for entry in configuration.api_keys}
        self.model_to_service, self.support_models = build_model_to_service(configuration)

    def get_model_service(self, model_name: str) -> ModelDetails:
        """Choose one enabled service for ``model_name``."""
        details = self.model_to_service.get(model_name)
        if details is None:
            raise ConfigError(f"model {model_name} not found in the configuration")
        enabled = [d for d in details if d.service.enabled]
        if not enabled:
            raise ConfigError(f"no enabled model {model_name} found in the configuration")
        index = self.balancer.index(self.load_balancing_strategy, model_name, len(enabled))
        return enabled[index]

    def get_random_enabled_model_details(self) -> ModelDetails:
        """Choose a model name, then one of its services."""
        if not self.model_to_service:
            raise ConfigError("no models found in the configuration")
        names = sorted(self.model_to_service)
        index = self.balancer.index(self.load_balancing_strategy, KEYNAME_RANDOM, len(names))
        model = names[index]
        details = self.model_to_service[model]
        return details[self.balancer.index(self.load_balancing_strategy, model, len(details))]

    def get_random_enabled_model_details_v1(self) -> tuple[ModelDetails, str]:
        """Choose a service and one of its chat models at random."""
        details = self.get_random_enabled_model_details()
        if not details.service.models:
            raise ConfigError(f"service {details.service_name} has no chat models")
        name = details.service.models[self.balancer.index(KEYNAME_RANDOM, "", len(details.service.models))]
        return details, name

    def get_global_model_redirect(self, model: str) -> str:
        """Apply the global redirect table to ``model``."""
        if KEYNAME_ALL in self.global_model_redirect:
            redirect = self.global_model_redirect[KEYNAME_ALL]
            return KEYNAME_RANDOM if redirect == KEYNAME_ALL else redirect
        return self.global_model_redirect.get(model, model)

    def support_model_names(self) -> list[str]:
        """Return the advertised model names, sorted."""
        return sorted(self.support_models)

    def is_support_multi_content(self, model: str) -> bool:
        """Tell whether ``model`` accepts multi-part message content."""
        for item in self.support_multi_content_models:
            if item.endswith("*"):
                if model.startswith(item[:-1]):
                    return True
            elif item == model:
                return True
        return False

    def is_proxy_enabled(self, details: ModelDetails) -> bool:
        """Tell whether requests to this service go through the proxy."""
        strategy = self.proxy.strategy
        use_proxy = details.service.use_proxy
        if strategy == PROXY_STRATEGY_FORCE_ALL:
            return True
        if strategy == PROXY_STRATEGY_ALL:
            return use_proxy is None or use_proxy
        if strategy == PROXY_STRATEGY_DEFAULT:
            return bool(use_proxy)
        return False

    def validate_api_key_and_model(self, api_key: str, model: str) -> tuple[bool, str]:
        """Return whether the key may use the model, and a reason when not."""
        if not self.api_key_map:
            return True, ""
        key_config = self.api_key_map.get(api_key)
        if key_config is None:
            logger.error("forbidden: invalid API key")
            return False, "Forbidden: invalid API key"
        for models in key_config.supported_models.values():
            if any(m == "*" or m == model for m in models):
                return True, ""
        return False, "Forbidden: model not supported"