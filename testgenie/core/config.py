"""Application configuration settings."""
import os
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Optional, List
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


DEFAULT_INCLUSION_KEYWORDS = [
    "repository", "repositories",
    "service", "services",
    "util", "utils",
    "helper", "helpers",
    "routes",
]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TESTGENIE_",
        # Look for .env in project root (parent of the testgenie package)
        env_file=os.path.join(Path(__file__).parent.parent.parent, ".env"),
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "TestGenie API"
    app_version: str = "1.0.0"
    debug: bool = False
    environment: str = "development"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 5000

    # CORS
    cors_origins: List[str] = ["*"]

    # AI/GenAI
    genai_endpoint_url: str = ""
    genai_api_key: str = ""
    genai_bearer_token: Optional[str] = None
    genai_default_model: str = "vertex_ai.gemini-2.0-flash"
    genai_timeout: int = 180

    # Test generation
    test_root_dir: str = "tests"
    inclusion_keywords: List[str] = list(DEFAULT_INCLUSION_KEYWORDS)
    extra_exclude_patterns: List[str] = []
    max_file_size: int = 100_000
    tree_max_depth: int = 6

    @field_validator("test_root_dir")
    @classmethod
    def _test_root_inside_workspace(cls, value: str) -> str:
        parts = PurePosixPath(value.replace("\\", "/")).parts
        if not parts or parts[0] == "/" or ".." in parts or PureWindowsPath(value).drive:
            raise ValueError("test_root_dir must be a relative path inside the workspace")
        return value


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
