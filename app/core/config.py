from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_NAME: str = "room_relay"
    ENV: str = "dev"
    LOG_LEVEL: str = "INFO"

    ROOMS_ENABLED: bool = True
    DEFAULT_ROOM: str = "general"
    SERVER_NICKNAME: str = "SERVER"
    MAX_NICKNAME_LENGTH: int = 32

    # Opt in to echoing Message frames back to their sender
    ECHO_TO_SENDER: bool = False
    OUTBOX_MAX_SIZE: int = 256
    SEND_TIMEOUT_SECONDS: float = 5.0

settings = Settings()
