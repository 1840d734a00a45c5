from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    GEOPULSE_API_BASE_URL: str = "https://massaraksh.tech"
    GEOPULSE_TIMEOUT_SECONDS: float = 7.0
    LIVE_EVENTS_LIMIT: int = 60
    LIVE_EVENTS_SORT: str = "impact"
    LIVE_EVENTS_ENABLED: bool = True
    PORT: int = 8000

settings = Settings(_env_file=".env", _env_file_encoding="utf-8")
