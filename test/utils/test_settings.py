import pytest

from configs.env_config import Env
from configs.settings import BridgeSettings
from utils.logger.config import LogLevel


def test_defaults_match_documented_values():
    settings = BridgeSettings()

    assert settings.cache_ttl == 30.0
    assert settings.metrics_interval == 5.0
    assert settings.ws_path == "/ws/metrics"
    assert (settings.rate_limit_max, settings.rate_limit_window) == (100, 900)


def test_adapter_timeout_must_be_shorter_than_interval():
    with pytest.raises(ValueError):
        BridgeSettings(metrics_interval=2.0, adapter_timeout=2.0)


def test_ws_path_must_be_absolute():
    with pytest.raises(ValueError):
        BridgeSettings(ws_path="ws/metrics")


def test_from_env_parses_values(monkeypatch):
    monkeypatch.setattr(Env, "API_KEY", "secret")
    monkeypatch.setattr(Env, "ALLOWED_ORIGINS", "https://a.example, https://b.example,")
    monkeypatch.setattr(Env, "METRICS_INTERVAL", "10")
    monkeypatch.setattr(Env, "DOCKER_ENABLED", "off")
    monkeypatch.setattr(Env, "LOG_LEVEL", "warn")
    monkeypatch.setattr(Env, "LOG_DIR", "")

    settings = BridgeSettings.from_env()

    assert settings.api_key == "secret"
    assert settings.allowed_origins == ["https://a.example", "https://b.example"]
    assert settings.metrics_interval == 10.0
    assert settings.docker_enabled is False
    assert settings.log_level == LogLevel.WARNING
    assert settings.log_dir is None


@pytest.mark.parametrize("field,value", [("CACHE_TTL", "-1"), ("PORT", "http"), ("LOG_STDOUT", "maybe")])
def test_from_env_rejects_bad_values(monkeypatch, field, value):
    monkeypatch.setattr(Env, field, value)

    with pytest.raises(ValueError):
        BridgeSettings.from_env()


def test_validate_requires_api_key(monkeypatch):
    monkeypatch.setattr(Env, "API_KEY", None)

    with pytest.raises(ValueError, match="API_KEY"):
        Env.validate()


def test_validate_requires_certificates_when_ssl_enabled(monkeypatch):
    monkeypatch.setattr(Env, "API_KEY", "secret")
    monkeypatch.setattr(Env, "SSL_ENABLED", "true")
    monkeypatch.setattr(Env, "SSL_KEY_PATH", None)
    monkeypatch.setattr(Env, "SSL_CERT_PATH", "/etc/ssl/cert.pem")

    with pytest.raises(ValueError, match="SSL_KEY_PATH"):
        Env.validate()
