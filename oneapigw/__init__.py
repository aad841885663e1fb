"""Configuration, load balancing, proxies, embeddings and provider adapters for an OpenAI-compatible gateway."""

__version__ = "0.1.0"