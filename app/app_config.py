from pydantic import BaseModel, ConfigDict

from app.shared.config import config


class AppEnvironConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    DEBUG: bool = config.get_bool("DEBUG")

    # OpenVidu server
    OPENVIDU_URL: str = config.get("OPENVIDU_URL", "http://localhost:4443").strip().rstrip("/")
    OPENVIDU_SECRET: str | None = (config.get("OPENVIDU_SECRET") or "").strip() or None
    OPENVIDU_TIMEOUT_SECONDS: float = config.get_float("OPENVIDU_TIMEOUT_SECONDS", 10.0)
    OPENVIDU_VERIFY_SSL: bool = config.get_bool("OPENVIDU_VERIFY_SSL", True)
    # Reject unknown option keys instead of ignoring them
    OPENVIDU_STRICT_OPTIONS: bool = config.get_bool("OPENVIDU_STRICT_OPTIONS")
    # Load the server session list into the cache when the app starts
    OPENVIDU_FETCH_ON_STARTUP: bool = config.get_bool("OPENVIDU_FETCH_ON_STARTUP", True)

    # HTTP server
    API_HOST: str = config.get("API_HOST", "0.0.0.0").strip()
    API_PORT: int = int((config.get("API_PORT") or "").strip() or 8000)
    # The session cache lives in process memory, keep a single worker
    API_WORKERS: int = int((config.get("API_WORKERS") or "").strip() or 1)
    API_CORS_ORIGINS: list[str] = config.get_list("API_CORS_ORIGINS", ["*"])
    API_DISABLED: list[str] = config.get_list("API_DISABLED")

    # Observability
    LOGFIRE_ENABLE: bool = config.get_bool("LOGFIRE_ENABLE")
    LOGFIRE_TOKEN: str | None = (config.get("LOGFIRE_TOKEN") or "").strip() or None


_app_environ_config = AppEnvironConfig()


def get_app_environ_config() -> AppEnvironConfig:
    return _app_environ_config
