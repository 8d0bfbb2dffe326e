from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    # ==========================================================================
    # ENVIRONMENT
    # ==========================================================================
    environment: str = "dev"  # "dev", "prod"
    debug: bool = True

    # ==========================================================================
    # DATABASE
    # ==========================================================================
    database_url: str = ""  # Empty = mock mode (in-memory fixture store)
    use_mock_data: bool = False  # Force mock mode even if a database is configured

    # ==========================================================================
    # CORS
    # ==========================================================================
    cors_origins: str = "*"  # Comma-separated origins, or "*" for all

    # ==========================================================================
    # CLASSIFICATION THRESHOLDS (spam_score, unbounded accumulator)
    # ==========================================================================
    spam_threshold: float = 50.0  # spam_score >= this = spam
    suspicious_threshold: float = 20.0  # spam_score >= this = suspicious (below = clean)

    # ==========================================================================
    # DISPLAY JITTER
    # ==========================================================================
    score_jitter: float = 5.0  # +/- noise on confidence/behavior/quality (0 disables)
    evaluator_seed: Optional[int] = None  # Seed for the jitter RNG (None = OS entropy)

    # ==========================================================================
    # SCAN HISTORY
    # ==========================================================================
    default_page_size: int = 20
    max_page_size: int = 100
    mock_fixture_size: int = 50  # Records seeded into the mock store

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ==========================================================================
    # COMPUTED PROPERTIES
    # ==========================================================================

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "prod"

    @property
    def mock_mode(self) -> bool:
        return self.use_mock_data or not self.database_url

    @property
    def cors_origins_list(self) -> List[str]:
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()
