from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False
    LOG_LEVEL: str = "INFO"

    # Storage collaborator
    DATABASE_URL: str = "postgresql://localhost:5432/fan_manager"

    # =================================================================
    # DATABASE POOL SETTINGS
    # =================================================================
    DB_POOL_MIN_SIZE: int = 2
    DB_POOL_MAX_SIZE: int = 10
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    # Output contract enforcement. None = strict outside production.
    STRICT_CONTRACTS: bool | None = None

    # Price per access grant type, used by the monetization rollup
    PACK_PRICES: dict[str, float] = Field(
        default_factory=lambda: {
            "trial": 0.0,
            "welcome": 0.0,
            "monthly": 25.0,
            "special": 49.0,
            "single": 49.0,
        }
    )

    # Queue flag: invitation accepted within the last N days
    NEW_FAN_FLAG_WINDOW_DAYS: int = 30

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def strict_contracts(self) -> bool:
        """Contract violations raise unless explicitly relaxed or running in production."""
        if self.STRICT_CONTRACTS is not None:
            return self.STRICT_CONTRACTS
        return self.environment != "production"

    def pack_price(self, grant_type: str | None) -> float:
        return float(self.PACK_PRICES.get((grant_type or "").lower(), 0.0))

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment in ("development", "test"):
            # More conservative for local development
            config.update(
                {
                    "min_size": min(self.DB_POOL_MIN_SIZE, 2),
                    "max_size": min(self.DB_POOL_MAX_SIZE, 5),
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
