"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class RetailBankingConfig(BaseSettings):
    """Retail banking service configuration"""
    
    model_config = SettingsConfigDict(
        env_prefix="RETAIL_BANK_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
    
    # Storage configuration (fixed for the process lifetime)
    storage_mode: str = "memory"  # memory, sqlite or file
    sqlite_path: str = "retail_banking.db"
    file_storage_dir: str = "retail_banking_data"
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # Business rules configuration (fractions, not percentages)
    savings_interest_rate: str = "0.02"
    credit_interest_rate: str = "0.05"
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090


# Global configuration instance
config = RetailBankingConfig()


def get_config() -> RetailBankingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> RetailBankingConfig:
    """Reload configuration from environment"""
    global config
    config = RetailBankingConfig()
    return config
