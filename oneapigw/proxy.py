"""Resolution of the outbound proxy used when calling upstream services."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from .config import ProxyConf

PROXY_TYPE_HTTP = "http"
PROXY_TYPE_SOCKS5 = "socks5"
DEFAULT_PROXY_TIMEOUT = 30


class ProxyError(Exception):
    """Raised when a proxy cannot be configured."""


@dataclass(frozen=True)
class ProxySettings:
    """A resolved proxy: its kind, address and connection timeout in seconds."""

    proxy_type: str
    address: str
    timeout: int

    @property
    def url(self) -> str:
        """The proxy as a URL usable by an HTTP client."""
        if self.proxy_type == PROXY_TYPE_SOCKS5:
            return f"socks5://{self.address}"
        return self.address

    @property
    def proxies(self) -> dict[str, str]:
        """A ``requests``-style proxies mapping sending all traffic through the proxy."""
        return {"http": self.url, "https": self.url}


def _http_proxy(proxy_url: str, timeout: int) -> ProxySettings:
    try:
        urlsplit(proxy_url)
    except ValueError as exc:
        raise ProxyError(f"error parsing proxy URL {proxy_url}: {exc}") from exc
    return ProxySettings(PROXY_TYPE_HTTP, proxy_url, timeout)


def _socks5_proxy(proxy_addr: str, timeout: int) -> ProxySettings:
    if not proxy_addr:
        raise ProxyError("error creating SOCKS5 proxy: empty address")
    return ProxySettings(PROXY_TYPE_SOCKS5, proxy_addr, timeout)


def get_type_proxy(proxy_type: str, proxy_addr: str, timeout: int) -> ProxySettings:
    """Build proxy settings for an explicit proxy type and address."""
    if proxy_type == PROXY_TYPE_HTTP:
        return _http_proxy(proxy_addr, timeout)
    if proxy_type == PROXY_TYPE_SOCKS5:
        return _socks5_proxy(proxy_addr, timeout)
    raise ProxyError(f"unsupported proxy type: {proxy_type}")


def get_conf_proxy(proxy_conf: ProxyConf) -> ProxySettings:
    """Build proxy settings from the gateway's proxy configuration."""
    proxy_type = proxy_conf.type.lower()
    timeout = proxy_conf.timeout if proxy_conf.timeout > 0 else DEFAULT_PROXY_TIMEOUT

    if proxy_type == PROXY_TYPE_HTTP:
        return _http_proxy(proxy_conf.http_proxy, timeout)
    if proxy_type == PROXY_TYPE_SOCKS5:
        address = proxy_conf.socks5_proxy
        if address.startswith("socks5:"):
            try:
                netloc = urlsplit(address).netloc
            except ValueError as exc:
                raise ProxyError(f"error parsing proxy URL: {exc}") from exc
            address = netloc.rpartition("@")[2]
        return _socks5_proxy(address, timeout)
    raise ProxyError(f"unsupported proxy type: {proxy_type}")