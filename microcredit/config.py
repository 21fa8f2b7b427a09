"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class MicrocreditConfig(BaseSettings):
    """Microcredit engine configuration"""
    
    # Storage configuration
    database_path: str = "microcredit.db"
    use_sqlite: bool = True  # False keeps everything in memory
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8090
    
    # Security configuration
    auth_enabled: bool = True
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 24
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    
    # Business rules configuration
    business_timezone: str = "UTC"  # IANA name used to build day windows
    renewal_window_days: int = 5
    money_precision: int = 2
    
    class Config:
        env_prefix = "MICROCREDIT_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = MicrocreditConfig()


def get_config() -> MicrocreditConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> MicrocreditConfig:
    """Reload configuration from environment"""
    global config
    config = MicrocreditConfig()
    return config
