"""
Configuration management using Pydantic models loaded from YAML.
"""

import os
from pathlib import Path

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator

from .domain.hours_parser import parse_single_range
from .domain.models import Interval


class BookingDefaults(BaseModel):
    """Slot and booking policy settings."""
    interval_minutes: int = 45
    lead_time_minutes: int = 120
    fallback_hours: str = "12:00-20:00"
    enforce_lead_time: bool = True
    enforce_schedule: bool = True
    require_guest_contact: bool = False

    @field_validator("interval_minutes")
    @classmethod
    def validate_interval(cls, value: int) -> int:
        """Ensure the slot step is positive."""
        if value <= 0:
            raise ValueError("interval_minutes must be greater than zero")
        return value

    @field_validator("lead_time_minutes")
    @classmethod
    def validate_lead_time(cls, value: int) -> int:
        """Lead time may be zero but not negative."""
        if value < 0:
            raise ValueError("lead_time_minutes must not be negative")
        return value

    @field_validator("fallback_hours")
    @classmethod
    def validate_fallback_hours(cls, value: str) -> str:
        """Fallback hours must be a single valid range."""
        parse_single_range(value)
        return value

    def get_fallback_interval(self) -> Interval:
        """Get the fallback hours as an interval."""
        return parse_single_range(self.fallback_hours)


class StoreConfig(BaseModel):
    """Connection settings for the hosted reservation database."""
    url: str = ""
    api_key_env: str = "SUPABASE_SERVICE_ROLE_KEY"
    timeout_seconds: float = 10.0
    businesses_table: str = "companies"
    reservations_table: str = "reservations"

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        """Strip trailing slashes; an empty URL is allowed for mock mode."""
        value = value.strip().rstrip("/")
        if value and not value.startswith(("http://", "https://")):
            raise ValueError(f"url must start with http:// or https://, got '{value}'")
        return value

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Ensure requests can time out."""
        if value <= 0:
            raise ValueError("timeout_seconds must be greater than zero")
        return value

    def resolve_api_key(self) -> str:
        """
        Read the API key from the environment.

        Falls back to ``SUPABASE_ANON_KEY`` when the configured variable is unset.

        Raises:
            ValueError: If no key is available
        """
        key = os.environ.get(self.api_key_env) or os.environ.get("SUPABASE_ANON_KEY")
        if not key:
            raise ValueError(
                f"No API key found. Set {self.api_key_env} (or SUPABASE_ANON_KEY) in the environment."
            )
        return key


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    booking: BookingDefaults = Field(default_factory=BookingDefaults)
    store: StoreConfig = Field(default_factory=StoreConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA name."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: '{value}'") from exc
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load the configuration, falling back to defaults when no file exists
    and none was requested explicitly.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)
    return AppConfig()
