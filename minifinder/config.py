from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MINIFINDER_",
        env_file=".env",
        extra="ignore",
    )

    # Device listener
    TCP_LISTEN_ADDR: str = "0.0.0.0"
    TCP_PORT: int = 5039
    READ_TIMEOUT: float = 2.0
    MAX_FRAME_LENGTH: int = 1024
    MAX_CONNECTIONS: int = 64

    # Identity resolution
    REGISTER_UNKNOWN_DEVICES: bool = True
    DEVICE_TIME_ZONE: str | None = None  # IANA name, e.g. "Europe/Stockholm"

    # WebSocket feed
    WS_QUEUE_SIZE: int = 10
    WS_IDLE_TIMEOUT: float = 30.0

    LOG_LEVEL: str = "INFO"


settings = Settings()
