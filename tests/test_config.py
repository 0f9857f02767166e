import pytest

from chatrelay.config import DEFAULT_ENDPOINT, RelayConfig, load_config, parse_endpoints


def test_parse_endpoints_keeps_http_urls_in_order():
    got = parse_endpoints(["https://b:1", "ftp://x", "http://a:2", "--verbose", "https://b:1"])
    assert got == ("https://b:1", "http://a:2")


def test_parse_endpoints_defaults_when_nothing_valid():
    assert parse_endpoints([]) == (DEFAULT_ENDPOINT,)
    assert parse_endpoints(["localhost:9090"]) == (DEFAULT_ENDPOINT,)


def test_defaults_without_any_source():
    cfg = load_config(env={})
    assert cfg == RelayConfig()
    assert cfg.default_endpoint == DEFAULT_ENDPOINT


def test_env_overrides():
    env = {
        "RELAY_ENDPOINTS": "http://gpu1:8080, http://gpu2:8080",
        "PORT": "8443",
        "RELAY_TLS": "off",
        "RELAY_READ_TIMEOUT_S": "0",
        "RELAY_LOG_LEVEL": "debug",
    }
    cfg = load_config(env=env)
    assert cfg.endpoints == ("http://gpu1:8080", "http://gpu2:8080")
    assert cfg.port == 8443
    assert cfg.tls is False
    assert cfg.read_timeout_s == 0
    assert cfg.log_level == "DEBUG"


def test_yaml_then_env_then_arguments(tmp_path):
    path = tmp_path / "relay.yaml"
    path.write_text(
        "endpoints:\n  - http://yaml:1\nport: 4000\nhost: 127.0.0.1\nlog_json: true\n",
        encoding="utf-8",
    )

    cfg = load_config(path=str(path), env={})
    assert cfg.endpoints == ("http://yaml:1",)
    assert cfg.port == 4000
    assert cfg.host == "127.0.0.1"
    assert cfg.log_json is True

    cfg = load_config(path=str(path), env={"PORT": "5000"}, endpoints=["http://cli:1"])
    assert cfg.port == 5000
    assert cfg.endpoints == ("http://cli:1",)


def test_config_path_from_env(tmp_path):
    path = tmp_path / "relay.yaml"
    path.write_text("port: 7000\n", encoding="utf-8")
    assert load_config(env={"RELAY_CONFIG": str(path)}).port == 7000


def test_invalid_endpoint_arguments_fall_back_to_default():
    cfg = load_config(env={"RELAY_ENDPOINTS": "http://env:1"}, endpoints=["nonsense"])
    assert cfg.endpoints == (DEFAULT_ENDPOINT,)


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "relay.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(path=str(path), env={})
