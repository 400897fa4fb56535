"""Configuration management for the Gitec sync."""

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from ..exceptions import ConfigurationError
from ..models.config import SyncSettings


def setup_logging(level: str = "INFO") -> None:
    """Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def load_environment(env_file: Optional[str] = None) -> None:
    """Load environment variables from .env file.

    Args:
        env_file: Path to .env file. If None, looks for .env in current directory.
    """
    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path('.env')

    if env_path.exists():
        load_dotenv(env_path)
        logging.info(f"Loaded environment from {env_path}")
    else:
        logging.warning(f"No .env file found at {env_path}")


def get_optional_env(key: str, default: str = "") -> str:
    """Get an optional environment variable.

    Args:
        key: Environment variable name
        default: Default value if not set

    Returns:
        Environment variable value or default
    """
    return os.getenv(key, default)


def get_allowed_origins() -> List[str]:
    """CORS origins from ALLOWED_ORIGINS (comma separated); all origins when unset."""
    origins = [origin.strip() for origin in get_optional_env("ALLOWED_ORIGINS").split(",") if origin.strip()]
    return origins or ["*"]


def load_settings(env_file: Optional[str] = None) -> SyncSettings:
    """Load the environment and build sync settings from it.

    Args:
        env_file: Optional path to a .env file

    Returns:
        Sync settings

    Raises:
        ConfigurationError: If an environment value cannot be parsed
    """
    load_environment(env_file)
    try:
        settings = SyncSettings.from_env()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
    if not settings.has_credentials:
        logging.warning("GITEC_API_USERNAME / GITEC_API_PASSWORD are not set; syncs will fail at the fetch stage")
    return settings
