"""
Centralized settings and logging configuration for the billing tool.
"""
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, default))
    except (TypeError, ValueError):
        return default


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    project_root: Path

    # Presentation
    currency: str = 'BRL'
    export_filename: str = 'conciliacao_faturamento.csv'

    # LLM summary
    openai_api_key: Optional[str] = None
    summary_model: str = 'gpt-4o-mini'
    summary_sample_size: int = 30
    summary_temperature: float = 0.2

    log_level: str = 'INFO'

    @property
    def summary_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the environment (and a .env file when present)."""
        root = project_root or get_project_root()

        env_file = root / '.env'
        if env_file.exists():
            load_dotenv(env_file)

        return cls(
            project_root=root,
            currency=os.getenv('BILLING_CURRENCY', 'BRL'),
            export_filename=os.getenv('BILLING_EXPORT_FILENAME', 'conciliacao_faturamento.csv'),
            openai_api_key=os.getenv('OPENAI_API_KEY') or None,
            summary_model=os.getenv('BILLING_SUMMARY_MODEL', 'gpt-4o-mini'),
            summary_sample_size=_env_int('BILLING_SUMMARY_SAMPLE_SIZE', 30),
            summary_temperature=_env_float('BILLING_SUMMARY_TEMPERATURE', 0.2),
            log_level=os.getenv('BILLING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reset_settings():
    """Drop the cached settings so the next get_settings() reloads them."""
    global _settings
    _settings = None


def configure_logging(level: Optional[str] = None):
    """Configure root logging for the API and UI entry points."""
    level_name = (level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)
