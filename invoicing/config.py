"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class InvoicingConfig(BaseSettings):
    """Invoicing behaviours configuration"""
    
    # Default currency descriptor (used when a record has no known currency)
    default_currency_code: str = "EUR"
    default_currency_symbol: str = "€"
    default_rounding_unit: str = "0.01"  # Kept as string, parsed to Decimal
    default_symbol_suffix: bool = True
    default_symbol_space: bool = True
    
    # Formatting configuration
    negative_format: str = "minus"  # minus, hyphen or brackets
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    class Config:
        env_prefix = "INVOICING_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = InvoicingConfig()


def get_config() -> InvoicingConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> InvoicingConfig:
    """Reload configuration from environment"""
    global config
    config = InvoicingConfig()
    return config
