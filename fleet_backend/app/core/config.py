"""
Configuration settings for the Fleet Inventory Backend.

This module handles application configuration using Pydantic settings.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""
    
    # Application
    app_name: str = "Fleet Inventory Backend"
    api_version: str = "v1"
    debug: bool = False
    log_level: str = "INFO"
    
    # Database Configuration
    database_url: str = "sqlite+aiosqlite:///./data/fleet-inventory.db"
    db_echo: bool = False
    db_pool_size: int = 20  # ignored for SQLite
    db_max_overflow: int = 10  # ignored for SQLite
    db_isolation_level: str = "SERIALIZABLE"
    
    # Security Configuration (JWT)
    secret_key: str = "your-secret-key-change-this-in-production-min-32-chars"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24
    
    # Snapshot envelope
    export_source: str = "SubaruFleetInventory"
    export_version: str = "1.0"
    
    # Direct-create VIN duplicates: warn only unless promoted to a hard constraint
    enforce_unique_vin: bool = False
    
    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
