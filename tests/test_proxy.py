import pytest

from oneapigw.config import ProxyConf
from oneapigw.proxy import (
    DEFAULT_PROXY_TIMEOUT,
    ProxyError,
    ProxySettings,
    get_conf_proxy,
    get_type_proxy,
)


def test_http_proxy_keeps_url_and_timeout():
    settings = get_type_proxy("http", "http://localhost:8080", 5)
    assert settings == ProxySettings("http", "http://localhost:8080", 5)
    assert settings.proxies == {"http": "http://localhost:8080", "https": "http://localhost:8080"}


def test_socks5_proxy_url_has_scheme():
    settings = get_type_proxy("socks5", "localhost:1080", 7)
    assert settings.url == "socks5://localhost:1080"
    assert settings.proxies["https"] == settings.url


def test_unsupported_type_raises():
    with pytest.raises(ProxyError):
        get_type_proxy("ftp", "localhost:21", 5)


def test_type_is_case_sensitive_for_explicit_call():
    with pytest.raises(ProxyError):
        get_type_proxy("HTTP", "http://localhost:8080", 5)


def test_bad_http_url_raises():
    with pytest.raises(ProxyError):
        get_type_proxy("http", "http://[::1", 5)


def test_conf_socks5_url_is_reduced_to_host():
    conf = ProxyConf(type="SOCKS5", socks5_proxy="socks5://localhost:1080")
    settings = get_conf_proxy(conf)
    assert settings.proxy_type == "socks5"
    assert settings.address == "localhost:1080"
    assert settings.timeout == DEFAULT_PROXY_TIMEOUT


def test_conf_socks5_plain_address_kept():
    conf = ProxyConf(type="socks5", socks5_proxy="localhost:1080", timeout=9)
    settings = get_conf_proxy(conf)
    assert settings.address == "localhost:1080"
    assert settings.timeout == 9


def test_conf_http_uses_http_proxy():
    conf = ProxyConf(type="Http", http_proxy="http://localhost:3128", timeout=-1)
    settings = get_conf_proxy(conf)
    assert settings.address == "http://localhost:3128"
    assert settings.timeout == DEFAULT_PROXY_TIMEOUT


def test_conf_unsupported_type_raises():
    with pytest.raises(ProxyError):
        get_conf_proxy(ProxyConf(type="none"))