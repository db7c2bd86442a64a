"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Financial Calculator"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Newton-Raphson (rates as decimals)
    irr_initial_rate: float = 0.1
    irr_max_iterations: int = 1000
    irr_tolerance: float = 1e-6
    irr_min_rate: float = -0.99
    irr_max_rate: float = 10.0

    # NPV curve
    npv_min_rate: float = -0.10
    npv_max_rate: float = 0.30
    npv_rate_step: float = 0.01

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    def solver_options(self) -> dict:
        """Keyword arguments for newton_raphson() and compute_irr()."""
        return {
            "guess": self.irr_initial_rate,
            "max_iterations": self.irr_max_iterations,
            "tolerance": self.irr_tolerance,
            "lower_bound": self.irr_min_rate,
            "upper_bound": self.irr_max_rate,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
