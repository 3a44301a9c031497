"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.preferences import SchedulingPreferences, parse_clock_minutes


class SearchDefaults(BaseModel):
    """Default settings for search."""
    duration_minutes: int = 30
    granularity_minutes: int = 30
    max_results: int = 200
    suggestion_limit: int = 5
    fetch_timeout_seconds: float = 30.0
    max_concurrent_fetches: int = 5

    @field_validator(
        "duration_minutes",
        "granularity_minutes",
        "suggestion_limit",
        "max_concurrent_fetches",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts and minute values are positive."""
        if value <= 0:
            raise ValueError(f"Value must be greater than zero, got {value}")
        return value

    @field_validator("max_results")
    @classmethod
    def validate_max_results(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"max_results must not be negative, got {value}")
        return value

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError(f"fetch_timeout_seconds must be greater than zero, got {value}")
        return value


class PreferencesConfig(BaseModel):
    """Default scheduling preferences; every rule is optional."""
    work_hours_start: Optional[str] = None
    work_hours_end: Optional[str] = None
    avoid_weekends: bool = False
    buffer_minutes: int = 0

    @field_validator("work_hours_start", "work_hours_end")
    @classmethod
    def validate_clock(cls, value: Optional[str]) -> Optional[str]:
        """Validate HH:MM format."""
        if value is not None:
            parse_clock_minutes(value, allow_end_of_day=True)
        return value

    @field_validator("buffer_minutes")
    @classmethod
    def validate_buffer(cls, value: int) -> int:
        if value < 0:
            raise ValueError(f"buffer_minutes must not be negative, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "PreferencesConfig":
        """Ensure the configured working day opens before it closes."""
        if self.work_hours_start and self.work_hours_end:
            start = parse_clock_minutes(self.work_hours_start)
            end = parse_clock_minutes(self.work_hours_end, allow_end_of_day=True)
            if end <= start:
                raise ValueError("work_hours_end must be later than work_hours_start")
        return self

    def to_domain(self) -> SchedulingPreferences:
        return SchedulingPreferences(
            work_hours_start=self.work_hours_start,
            work_hours_end=self.work_hours_end,
            avoid_weekends=self.avoid_weekends,
            buffer_minutes=self.buffer_minutes,
        )


class Colleague(BaseModel):
    """Colleague/Participant configuration."""
    name: str  # Used as alias
    email: str
    calendar_id: str = ""  # Optional: for mock data mapping
    token_env: str = ""  # Environment variable holding the OAuth access token


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    defaults: SearchDefaults = Field(default_factory=SearchDefaults)
    preferences: PreferencesConfig = Field(default_factory=PreferencesConfig)
    colleagues: List[Colleague] = Field(default_factory=list)
    google_api_base_url: str = "https://www.googleapis.com/calendar/v3"

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("colleagues")
    @classmethod
    def validate_colleagues(cls, value: List[Colleague]) -> List[Colleague]:
        """Ensure colleague aliases and emails are unique."""
        seen_names: set[str] = set()
        seen_emails: set[str] = set()
        for colleague in value:
            name_key = colleague.name.lower()
            email_key = colleague.email.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate colleague name detected: {colleague.name}")
            if email_key in seen_emails:
                raise ValueError(f"Duplicate colleague email detected: {colleague.email}")
            seen_names.add(name_key)
            seen_emails.add(email_key)
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

    def find_colleague_by_name(self, name: str) -> Colleague | None:
        """Find a colleague by their name (alias)."""
        for colleague in self.colleagues:
            if colleague.name.lower() == name.lower():
                return colleague
        return None

    def find_colleague_by_email(self, email: str) -> Colleague | None:
        """Find a colleague by their email."""
        for colleague in self.colleagues:
            if colleague.email.lower() == email.lower():
                return colleague
        return None

    def resolve_participant(self, identifier: str) -> str:
        """
        Resolve a participant identifier (name/alias or email) to an email address.

        Raises:
            ValueError: If identifier cannot be resolved
        """
        if "@" in identifier:
            return identifier.lower()

        colleague = self.find_colleague_by_name(identifier)
        if colleague:
            return colleague.email.lower()

        raise ValueError(
            f"Unknown participant identifier: '{identifier}'. "
            f"Use an email address or a configured name."
        )

    def resolve_participants(self, identifiers: Sequence[str]) -> List[str]:
        """
        Resolve multiple participant identifiers, ensuring uniqueness.

        Args:
            identifiers: Iterable of participant aliases or email addresses.

        Returns:
            List of unique participant email addresses.
        """
        if not identifiers:
            raise ValueError("No participants provided.")

        resolved_emails: List[str] = []
        unknown_identifiers: List[str] = []

        for identifier in identifiers:
            try:
                email = self.resolve_participant(identifier)
            except ValueError:
                unknown_identifiers.append(identifier)
                continue

            if email not in resolved_emails:
                resolved_emails.append(email)

        if unknown_identifiers:
            missing = ", ".join(sorted(set(unknown_identifiers)))
            raise ValueError(
                f"Unknown participant identifier(s): {missing}. "
                "Ensure they exist in the configuration or provide valid email addresses."
            )

        return resolved_emails


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
