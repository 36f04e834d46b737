from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENV: str = "local"
    DATABASE_URL: str = "sqlite:///./liftlog.db"

    # Model backend
    OPENAI_API_KEY: str | None = None
    MODEL_NAME: str = "gpt-4o-mini"
    MODEL_TEMPERATURE: float = 0.7
    MODEL_MAX_OUTPUT_TOKENS: int = 1024
    MODEL_TIMEOUT_SECONDS: float = 30.0

    # Exercise matching
    FUZZY_MATCH_THRESHOLD: float = 0.8
    SEARCH_MIN_CONFIDENCE: float = 0.3
    TOKEN_GUARD_CEILING: float = 0.95

    # Conversation loop
    MAX_TOOL_ROUNDS: int = 5
    TRANSCRIPT_WINDOW: int = 80
    MAX_RETRIES: int = 3
    RETRY_BASE_DELAY_SECONDS: float = 1.0

    # Workout bookkeeping
    STALE_SESSION_HOURS: float = 4.0
    REEVALUATE_PRS_ON_EDIT: bool = False
    BAR_WEIGHT_LBS: float = 45.0
    PLATE_WEIGHT_LBS: float = 45.0

    ALLOW_ORIGINS: str = "*"
    API_VERSION: str = "dev"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def allow_origins(self) -> list[str]:
        return [o.strip() for o in self.ALLOW_ORIGINS.split(",") if o.strip()]

@lru_cache
def get_settings() -> Settings:
    return Settings()
