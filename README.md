# oneapigw

Building blocks for a gateway that offers one OpenAI-compatible API in front of
many model providers: configuration and model routing, load balancing, proxy
settings, model listing, embeddings, and conversion of chat requests and
responses to and from each provider's format.

## Modules

- **`oneapigw.config`** reads a JSON or YAML configuration.
  - `load_configuration(path)` reads a file. If the path does not exist, it
    tries `config/<path>`. It returns a `Settings`. It raises `ConfigError` for
    an unreadable file, bad YAML or an unsupported file type. A JSON syntax
    error is logged with its line, character and context, and yields an empty
    configuration.
  - `parse_configuration(data)` builds a `Configuration` from an already decoded
    document.
  - `build_model_to_service(configuration)` returns two tables: the routing
    table from model name to `ModelDetails`, and the table of advertised model
    names. Only enabled services are counted. A service with no `models` gets
    the default list for its provider name, when one is known. A service with
    no timeout gets 30 seconds.
  - `get_model_mapping(details, model)` and `get_model_redirect(details, model)`
    apply a service's `model_map` and `model_redirect`.
  - `Settings` offers these methods:
    - `get_model_service`
    - `get_random_enabled_model_details`
    - `get_random_enabled_model_details_v1`
    - `get_global_model_redirect`
    - `support_model_names`
    - `is_support_multi_content`
    - `is_proxy_enabled`, which follows the strategies `force_all`, `all`,
      `default` and `disabled`
    - `validate_api_key_and_model`
- **`oneapigw.loadbalance`** provides `LoadBalancer.index(strategy, key, length)`
  and `get_lb_index`. The strategies are:
  - `first`
  - `random` and `rand`
  - `round_robin` and `rr`, which count per key
  - `hash`, an FNV-1a hash of the key plus a millisecond timestamp
  - Any other name falls back to random.
- **`oneapigw.proxy`** provides two functions that return `ProxySettings`, whose
  `proxies` property is a `requests`-style mapping:
  - `get_conf_proxy(proxy_conf)` turns the `proxy` section into settings.
  - `get_type_proxy(type, address, timeout)` builds settings from explicit
    values.
  - Supported types are `http` and `socks5`. Others raise `ProxyError`.
- **`oneapigw.models`** produces the `/v1/models` payloads:
  - `list_models(support_models, now)` returns the sorted names plus `random`.
  - `retrieve_model(model_to_service, model_id, now)` returns a `Model`.
  - Both raise `LookupError` when nothing matches.
- **`oneapigw.speech`**: `create_speech(body)` checks that `model`, `input` and
  `voice` are present and returns a simulated descriptive message. It produces
  no audio.
- **`oneapigw.embedding`** holds `EmbeddingRequest` and `EmbeddingResponse`.
  - `openai_embedding` posts to the OpenAI embeddings endpoint.
  - `baidu_embeddings` posts to Baidu Qianfan with an access token.
  - `baidu_request_from_openai` and `openai_response_from_baidu` convert between
    the two shapes.
- **`oneapigw.adapters`** holds one module per provider. Each works on plain
  dicts in the OpenAI chat shape:
  - `claude`
  - `cozecn` (Coze v2 and v3)
  - `dify`
  - `gemini`
  - `minimax`
  - `qianfan`
  - `xinghuo`
  - `dashscope`
  - `agentbuilder`
  - `ollama`
  - `openai_compat`, for OpenAI-compatible services

## Installing

```
pip install .
pip install .[test]   # with pytest and responses
```

## Example

```python
from oneapigw.config import load_configuration
from oneapigw.adapters.ollama import request_to_ollama

settings = load_configuration("config.json")
details = settings.get_model_service("deepseek-chat")
print(details.service_name, details.service.server_url)

body = request_to_ollama({
    "model": "llama3",
    "messages": [{"role": "user", "content": "Hello"}],
    "stream": False,
})
```

A minimal configuration:

```json
{
  "server_port": ":9090",
  "load_balancing": "random",
  "services": {
    "deepseek": [
      {"models": ["deepseek-chat"], "enabled": true,
       "credentials": {"api_key": "placeholder"}}
    ]
  }
}
```

## What this package does not do

- It does not run an HTTP server, and it has no command to start one.
- It does not send chat completions to providers. The adapters only convert
  request and response bodies. Sending them, streaming, and handling
  credentials per provider are left to the caller.
- The only network calls it makes are the two embedding functions.
- It does not enforce the rate limits (`limit`, `embedding_limit`) that the
  configuration can hold.
- It does not serve a web UI or a translation endpoint.