import os
from dotenv import load_dotenv

load_dotenv()


class Env:
    # Auth / server
    API_KEY = os.getenv("API_KEY")
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = os.getenv("PORT", "3001")
    ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "")

    # TLS
    SSL_ENABLED = os.getenv("SSL_ENABLED", "false")
    SSL_KEY_PATH = os.getenv("SSL_KEY_PATH")
    SSL_CERT_PATH = os.getenv("SSL_CERT_PATH")

    # Cache and push channel (seconds)
    CACHE_TTL = os.getenv("CACHE_TTL", "30")
    CACHE_CHECK_PERIOD = os.getenv("CACHE_CHECK_PERIOD", "600")
    METRICS_INTERVAL = os.getenv("METRICS_INTERVAL", "5")
    ADAPTER_TIMEOUT = os.getenv("ADAPTER_TIMEOUT", "3")
    WS_PATH = os.getenv("WS_PATH", "/ws/metrics")

    # Rate limiting
    RATE_LIMIT_WINDOW = os.getenv("RATE_LIMIT_WINDOW", "900")
    RATE_LIMIT_MAX = os.getenv("RATE_LIMIT_MAX", "100")

    # Docker
    DOCKER_ENABLED = os.getenv("DOCKER_ENABLED", "true")
    DOCKER_SOCKET = os.getenv("DOCKER_SOCKET", "/var/run/docker.sock")

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "info")
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_STDOUT = os.getenv("LOG_STDOUT", "true")

    @classmethod
    def validate(cls):
        required_vars = {"API_KEY": cls.API_KEY}
        if cls.SSL_ENABLED.strip().lower() in ("1", "true", "yes", "on"):
            required_vars["SSL_KEY_PATH"] = cls.SSL_KEY_PATH
            required_vars["SSL_CERT_PATH"] = cls.SSL_CERT_PATH

        missing_vars = [var for var, value in required_vars.items() if not value]
        if missing_vars:
            raise ValueError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )
