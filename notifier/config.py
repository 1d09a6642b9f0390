"""
Application configuration management.
"""

from pathlib import Path
from typing import List, Optional

from pydantic_settings import BaseSettings


class ConfigurationError(Exception):
    """Raised at startup when required configuration is missing."""
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Repositories
    repositories_file: Path = Path("config/repositories.yaml")
    repository_urls: List[str] = []
    repo_jail_dir: Path = Path("var")

    # Rendering
    # Restrict the size of the raw text (before converting to HTML)
    ansi_size_limit_bytes: Optional[int] = 1024 * 1000
    tabs_to_spaces: Optional[int] = 4
    hosted_provider_host: str = "github.com"

    # Email
    email_to: Optional[str] = None
    email_from: Optional[str] = None
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_secure: bool = False
    smtp_starttls: bool = False
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_timeout_seconds: float = 30.0

    # Git
    git_binary: str = "git"
    git_timeout_seconds: float = 120.0
    clone_depth: int = 1

    # Application
    log_level: str = "INFO"
    max_concurrent_repositories: int = 4

    class Config:
        env_file = ".env"
        case_sensitive = False


def require_email_addresses(config: Settings) -> None:
    """
    Fail fast when the sender or recipient address is not configured.

    Raises:
        ConfigurationError: If email_to or email_from is missing
    """
    missing = [
        name for name in ("email_to", "email_from")
        if not (getattr(config, name) or "").strip()
    ]
    if missing:
        raise ConfigurationError(f"Must configure {', '.join(missing)}")


# Global settings instance
settings = Settings()
