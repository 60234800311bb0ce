from dotenv import load_dotenv
from dataclasses import dataclass
from pathlib import Path
import json
import os

from seo_audit.constants import (
    DEFAULT_USER_AGENT,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_CONTENT_BYTES,
    DEFAULT_LINK_TIMEOUT_SECONDS,
    DEFAULT_LINK_MAX_REDIRECTS,
    DEFAULT_MAX_LINKS_TO_CHECK,
)

load_dotenv()  # Loads variables from .env file


class Settings:
    """
    Manages application settings loaded from environment variables.
    """
    USER_AGENT = os.getenv("USER_AGENT", DEFAULT_USER_AGENT)

    # Storage backend: 'memory' or 'sqlite'
    DB_BACKEND = os.getenv("DB_BACKEND", "sqlite")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///seo_audit.db")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE")


settings = Settings()


_TRUE_VALUES = ("1", "true", "yes", "on")


@dataclass
class AuditConfig:
    """Network limits and policy switches for a single audit run."""

    user_agent: str = DEFAULT_USER_AGENT

    # Root page fetch
    fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS  # total seconds
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    max_content_bytes: int = DEFAULT_MAX_CONTENT_BYTES

    # Link probing
    link_timeout: float = DEFAULT_LINK_TIMEOUT_SECONDS
    link_max_redirects: int = DEFAULT_LINK_MAX_REDIRECTS
    max_links_to_check: int = DEFAULT_MAX_LINKS_TO_CHECK

    # Let the request through when the DNS lookup itself fails
    dns_fail_open: bool = True

    # Record links that fail without any HTTP status as broken
    report_unreachable_links: bool = False

    @classmethod
    def from_env(cls) -> "AuditConfig":
        """Load audit limits from environment variables.

        Environment variables should be prefixed with SEO_AUDIT_
        e.g., SEO_AUDIT_FETCH_TIMEOUT=15

        Returns:
            AuditConfig with values from environment
        """
        config = cls(user_agent=settings.USER_AGENT)
        prefix = "SEO_AUDIT_"

        for field_name in config.__dataclass_fields__:
            env_key = f"{prefix}{field_name.upper()}"
            env_value = os.getenv(env_key)

            if env_value is not None:
                field_type = config.__dataclass_fields__[field_name].type
                try:
                    if field_type in (int, "int"):
                        setattr(config, field_name, int(env_value))
                    elif field_type in (float, "float"):
                        setattr(config, field_name, float(env_value))
                    elif field_type in (bool, "bool"):
                        setattr(config, field_name, env_value.strip().lower() in _TRUE_VALUES)
                    else:
                        setattr(config, field_name, env_value)
                except ValueError:
                    pass  # Keep default if conversion fails

        return config

    @classmethod
    def from_file(cls, path: str) -> "AuditConfig":
        """Load audit limits from a JSON configuration file.

        Args:
            path: Path to JSON configuration file

        Returns:
            AuditConfig with values from file
        """
        config = cls()
        file_path = Path(path)

        if not file_path.exists():
            return config

        with open(file_path, 'r') as f:
            data = json.load(f)

        audit_config = data.get('audit', data)

        for field_name in config.__dataclass_fields__:
            if field_name in audit_config:
                setattr(config, field_name, audit_config[field_name])

        return config

    def to_dict(self) -> dict:
        """Convert the config to a dictionary.

        Returns:
            Dictionary of all config values
        """
        return {
            field_name: getattr(self, field_name)
            for field_name in self.__dataclass_fields__
        }
