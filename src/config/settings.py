from __future__ import annotations
"""Application settings using environment variables."""

import json
from typing import Annotated, Any, List

from pydantic import ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


class Settings(BaseSettings):
    """Central configuration loaded from environment."""

    database_url: str = Field(default="sqlite:///./renstra.db", env="DATABASE_URL")
    db_echo: bool = Field(default=False, env="DB_ECHO")

    log_level: str = Field(default="INFO", env="LOG_LEVEL")
    log_structured: bool = Field(default=True, env="LOG_STRUCTURED")

    # HTTP API
    api_host: str = Field(default="0.0.0.0", env="API_HOST")
    api_port: int = Field(default=8000, env="API_PORT")
    # Comma-separated (http://a,http://b) or a JSON list
    cors_origins: Annotated[List[str], NoDecode] = Field(default_factory=lambda: ["*"], env="CORS_ORIGINS")

    # Hierarchy rules
    # Number of leading code characters a program shares with its urusan
    program_parent_code_length: int = Field(default=4, env="PROGRAM_PARENT_CODE_LENGTH")

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Ignore extra fields from .env file
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, v: Any) -> Any:
        if not isinstance(v, str):
            return v
        v = v.strip()
        if v.startswith("["):
            return json.loads(v)
        return [origin.strip() for origin in v.split(",") if origin.strip()]


settings = Settings()
