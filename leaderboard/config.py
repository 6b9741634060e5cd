"""
Leaderboard - Configuration.

============================================================
CONFIGURABLE SERVICE SETTINGS
============================================================

Configuration can be loaded from:
- Default values
- Environment variables (a local .env file is honoured)
- YAML config file

Tier thresholds are NOT configurable; see leaderboard.tiers.

============================================================
"""

import os
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv


logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./leaderboard.db"


def parse_email_list(raw: Optional[str]) -> List[str]:
    """Split a comma separated allow-list, normalising case and whitespace."""
    if not raw:
        return []
    return [e.strip().lower() for e in raw.split(",") if e.strip()]


# =============================================================
# PAGINATION
# =============================================================


@dataclass
class PaginationConfig:
    """Bounds applied to leaderboard queries."""
    default_page_size: int = 10
    max_page_size: int = 100

    def __post_init__(self) -> None:
        if self.max_page_size < 1:
            logger.warning(f"max_page_size {self.max_page_size} < 1, using 1")
            self.max_page_size = 1
        if not 1 <= self.default_page_size <= self.max_page_size:
            logger.warning(
                f"default_page_size {self.default_page_size} outside "
                f"[1, {self.max_page_size}], clamping"
            )
            self.default_page_size = min(max(self.default_page_size, 1), self.max_page_size)


# =============================================================
# MAIN CONFIGURATION
# =============================================================


@dataclass
class LeaderboardConfig:
    """Main configuration for the leaderboard service."""

    # Persistence
    database_url: str = DEFAULT_DATABASE_URL
    db_echo: bool = False

    # Reviewer allow-list (e-mail addresses)
    admin_emails: List[str] = field(default_factory=list)

    pagination: PaginationConfig = field(default_factory=PaginationConfig)

    # Server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    environment: str = "production"
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "LeaderboardConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - DATABASE_URL
        - DB_ECHO
        - ADMIN_EMAILS
        - LEADERBOARD_DEFAULT_PAGE_SIZE
        - LEADERBOARD_MAX_PAGE_SIZE
        - API_HOST / API_PORT (PORT also accepted)
        - ENVIRONMENT
        - LOG_LEVEL
        """
        load_dotenv()
        config = cls()

        url = os.getenv("DATABASE_URL")
        if url:
            config.database_url = url
        else:
            logger.warning(f"DATABASE_URL not set, using default: {DEFAULT_DATABASE_URL}")

        config.db_echo = os.getenv("DB_ECHO", "false").lower() == "true"
        config.admin_emails = parse_email_list(os.getenv("ADMIN_EMAILS"))

        default_size = int(os.getenv("LEADERBOARD_DEFAULT_PAGE_SIZE", "10"))
        max_size = int(os.getenv("LEADERBOARD_MAX_PAGE_SIZE", "100"))
        config.pagination = PaginationConfig(
            default_page_size=default_size,
            max_page_size=max_size,
        )

        config.api_host = os.getenv("API_HOST", config.api_host)
        config.api_port = int(os.getenv("API_PORT", os.getenv("PORT", str(config.api_port))))
        config.environment = os.getenv("ENVIRONMENT", config.environment)
        config.log_level = os.getenv("LOG_LEVEL", config.log_level).upper()

        return config

    @classmethod
    def from_yaml(cls, path: Path) -> "LeaderboardConfig":
        """Load configuration from a YAML file; missing keys keep defaults."""
        import yaml

        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "database_url" in data:
            config.database_url = data["database_url"]
        config.db_echo = bool(data.get("db_echo", config.db_echo))

        admins = data.get("admin_emails", [])
        if isinstance(admins, str):
            config.admin_emails = parse_email_list(admins)
        else:
            config.admin_emails = [str(e).strip().lower() for e in admins]

        if "pagination" in data:
            p = data["pagination"]
            config.pagination = PaginationConfig(
                default_page_size=p.get("default_page_size", 10),
                max_page_size=p.get("max_page_size", 100),
            )

        config.api_host = data.get("api_host", config.api_host)
        config.api_port = int(data.get("api_port", config.api_port))
        config.environment = data.get("environment", config.environment)
        config.log_level = str(data.get("log_level", config.log_level)).upper()

        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, without the database credentials."""
        return {
            "database": self.database_url.split("@")[-1],
            "admin_count": len(self.admin_emails),
            "default_page_size": self.pagination.default_page_size,
            "max_page_size": self.pagination.max_page_size,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "environment": self.environment,
        }


# =============================================================
# GLOBAL CONFIG SINGLETON
# =============================================================


_default_config: Optional[LeaderboardConfig] = None


def get_config() -> LeaderboardConfig:
    """Get the global service configuration."""
    global _default_config
    if _default_config is None:
        _default_config = LeaderboardConfig.from_env()
    return _default_config


def set_config(config: LeaderboardConfig) -> None:
    """Set the global service configuration."""
    global _default_config
    _default_config = config
