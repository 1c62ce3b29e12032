from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env")

    APP_NAME: str = "Lane Import"
    LANE_API_URL: str = "http://localhost:8000"
    REQUEST_TIMEOUT_SECONDS: float = 60.0
    MAX_UPLOAD_SIZE_MB: int = 20
    PREVIEW_ROWS: int = 5
    MAX_ROW_ERRORS: int = 50
    LOG_LEVEL: str = "INFO"

settings = Settings()
