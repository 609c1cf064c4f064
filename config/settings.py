"""
Configuration management for the course schedule API.
"""
from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings."""
    
    # Application
    app_name: str = "Course Schedule API"
    app_version: str = "1.0.0"
    debug: bool = False
    
    # Server
    host: str = "0.0.0.0"
    port: int = 8080
    reload: bool = False
    
    # Logging
    log_level: str = "INFO"
    
    # CORS
    cors_origins: List[str] = ["http://localhost:3000"]
    
    # Storage
    store_backend: str = "json"  # "json" or "memory"
    data_file: str = "data/schedule_state.json"
    
    # Course defaults
    default_credits: int = 2
    
    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
