"""Typed bridge settings assembled from :class:`configs.env_config.Env`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from configs.env_config import Env
from utils.casting import to_bool, to_csv_list, to_positive_float, to_positive_int
from utils.logger.config import LogLevel


@dataclass(frozen=True)
class BridgeSettings:
    """Immutable configuration consumed by the bridge service and HTTP app.

    All durations are seconds.
    """

    api_key: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3001
    allowed_origins: List[str] = field(default_factory=list)

    cache_ttl: float = 30.0
    cache_check_period: float = 600.0
    metrics_interval: float = 5.0
    adapter_timeout: float = 3.0
    ws_path: str = "/ws/metrics"

    rate_limit_window: int = 900
    rate_limit_max: int = 100

    docker_enabled: bool = True
    docker_socket: str = "/var/run/docker.sock"

    ssl_enabled: bool = False
    ssl_key_path: Optional[str] = None
    ssl_cert_path: Optional[str] = None

    log_level: LogLevel = LogLevel.INFO
    log_dir: Optional[str] = "logs"
    log_stdout: bool = True

    version: str = "1.0.0"

    def __post_init__(self) -> None:
        if self.adapter_timeout >= self.metrics_interval:
            raise ValueError(
                f"adapter_timeout ({self.adapter_timeout}s) must be shorter than "
                f"metrics_interval ({self.metrics_interval}s)"
            )
        if not self.ws_path.startswith("/"):
            raise ValueError(f"ws_path must start with '/', got {self.ws_path!r}")

    @classmethod
    def from_env(cls) -> "BridgeSettings":
        """Build settings from the process environment.

        :raises ValueError: If a value cannot be parsed or is out of range.
        """
        return cls(
            api_key=Env.API_KEY,
            host=Env.HOST,
            port=to_positive_int(Env.PORT, "PORT"),
            allowed_origins=to_csv_list(Env.ALLOWED_ORIGINS),
            cache_ttl=to_positive_float(Env.CACHE_TTL, "CACHE_TTL"),
            cache_check_period=to_positive_float(Env.CACHE_CHECK_PERIOD, "CACHE_CHECK_PERIOD"),
            metrics_interval=to_positive_float(Env.METRICS_INTERVAL, "METRICS_INTERVAL"),
            adapter_timeout=to_positive_float(Env.ADAPTER_TIMEOUT, "ADAPTER_TIMEOUT"),
            ws_path=Env.WS_PATH,
            rate_limit_window=to_positive_int(Env.RATE_LIMIT_WINDOW, "RATE_LIMIT_WINDOW"),
            rate_limit_max=to_positive_int(Env.RATE_LIMIT_MAX, "RATE_LIMIT_MAX"),
            docker_enabled=to_bool(Env.DOCKER_ENABLED),
            docker_socket=Env.DOCKER_SOCKET,
            ssl_enabled=to_bool(Env.SSL_ENABLED),
            ssl_key_path=Env.SSL_KEY_PATH,
            ssl_cert_path=Env.SSL_CERT_PATH,
            log_level=LogLevel.from_name(Env.LOG_LEVEL),
            log_dir=Env.LOG_DIR or None,
            log_stdout=to_bool(Env.LOG_STDOUT),
        )
