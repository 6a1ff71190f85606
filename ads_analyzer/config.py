"""
Configuration management for the Ad-Spend Analyzer
"""
from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Dict, Optional


DEFAULT_CURRENCY_RATES: Dict[str, float] = {
    "FCFA": 1.0,
    "XOF": 1.0,
    "XAF": 1.0,
    "CFA": 1.0,
    "USD": 600.0,
    "EUR": 650.0,
    "GBP": 750.0,
    "HKD": 78.0,
}


class Settings(BaseSettings):
    """Application settings"""

    # Application
    app_name: str = "Ad-Spend Analyzer"
    environment: str = "development"
    debug: bool = True
    log_level: str = "INFO"
    log_dir: str = "logs"
    enable_file_logging: bool = True

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Currency conversion (static table, not live FX)
    base_currency: str = "FCFA"
    currency_rates: Dict[str, float] = dict(DEFAULT_CURRENCY_RATES)

    # LLM Configuration
    anthropic_api_key: Optional[str] = None
    llm_model: str = "claude-sonnet-4-20250514"
    enable_llm_insights: bool = True
    llm_max_tokens: int = 800
    narrative_timeout_seconds: float = 30.0

    # Dashboard Basic Auth (gate for the whole app)
    dash_user: str = ""
    dash_pass: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
