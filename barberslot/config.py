"""
Configuration management with pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import Dict, List, Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import OperatingHours


class OperatingHoursConfig(BaseModel):
    """Opening hours of the shop or of a single professional."""
    open_hour: int = 8
    close_hour: int = 19
    closed_weekdays: List[int] = Field(default_factory=list)  # 0=Monday, 6=Sunday

    @field_validator("open_hour")
    @classmethod
    def validate_open_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError(f"open_hour must be between 0 and 23, got {v}")
        return v

    @field_validator("close_hour")
    @classmethod
    def validate_close_hour(cls, v: int) -> int:
        if not 1 <= v <= 24:
            raise ValueError(f"close_hour must be between 1 and 24, got {v}")
        return v

    @field_validator("closed_weekdays")
    @classmethod
    def validate_closed_weekdays(cls, value: List[int]) -> List[int]:
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"closed_weekdays must be between 0 and 6, got {invalid_days}")
        return sorted(set(value))

    @model_validator(mode="after")
    def validate_hours_order(self) -> "OperatingHoursConfig":
        """Ensure the shop opens before it closes."""
        if self.close_hour <= self.open_hour:
            raise ValueError("close_hour must be later than open_hour")
        return self

    def to_domain(self) -> OperatingHours:
        return OperatingHours(
            open_hour=self.open_hour,
            close_hour=self.close_hour,
            closed_weekdays=list(self.closed_weekdays),
        )


class BookingRulesConfig(BaseModel):
    """Rules applied when offering slots to clients."""
    slot_granularity_minutes: int = 10
    minimum_lead_time_minutes: int = 20
    default_service_minutes: int = 30

    @field_validator("slot_granularity_minutes", "default_service_minutes")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("value must be greater than zero")
        return value

    @field_validator("minimum_lead_time_minutes")
    @classmethod
    def validate_lead_time(cls, value: int) -> int:
        if value < 0:
            raise ValueError("minimum_lead_time_minutes must not be negative")
        return value


class AgendaGridConfig(BaseModel):
    """Geometry of the agenda timeline."""
    start_hour: int = 9
    hour_count: int = 14
    pixels_per_hour: float = 90
    rounding_minutes: int = 15

    @model_validator(mode="after")
    def validate_grid(self) -> "AgendaGridConfig":
        if not 0 <= self.start_hour <= 23:
            raise ValueError(f"start_hour must be between 0 and 23, got {self.start_hour}")
        if self.hour_count <= 0 or self.start_hour + self.hour_count > 24:
            raise ValueError("agenda grid must fit within a single day")
        if self.pixels_per_hour <= 0:
            raise ValueError("pixels_per_hour must be greater than zero")
        if self.rounding_minutes <= 0 or 60 % self.rounding_minutes:
            raise ValueError("rounding_minutes must divide 60")
        return self


class Professional(BaseModel):
    """A barber. ``id`` is the join key, ``name`` is for display only."""
    id: str
    name: str
    specialty: str = ""
    operating_hours: Optional[OperatingHoursConfig] = None


class StoreConfig(BaseModel):
    """Where bookings are read from and written to."""
    backend: Literal["memory", "rest"] = "memory"
    data_file: Optional[Path] = None
    base_url: str = ""
    api_key: str = ""
    table: str = "appointments"

    @model_validator(mode="after")
    def validate_rest_settings(self) -> "StoreConfig":
        if self.backend == "rest" and not (self.base_url and self.api_key):
            raise ValueError("store.base_url and store.api_key are required for the rest backend")
        return self


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "America/Sao_Paulo"
    operating_hours: OperatingHoursConfig = Field(default_factory=OperatingHoursConfig)
    booking: BookingRulesConfig = Field(default_factory=BookingRulesConfig)
    agenda: AgendaGridConfig = Field(default_factory=AgendaGridConfig)
    professionals: List[Professional] = Field(default_factory=list)
    store: StoreConfig = Field(default_factory=StoreConfig)

    @field_validator("professionals")
    @classmethod
    def validate_professionals(cls, value: List[Professional]) -> List[Professional]:
        """Ensure professional ids and names are unique."""
        seen_ids: set[str] = set()
        seen_names: set[str] = set()
        for professional in value:
            name_key = professional.name.lower()
            if professional.id in seen_ids:
                raise ValueError(f"Duplicate professional id detected: {professional.id}")
            if name_key in seen_names:
                raise ValueError(f"Duplicate professional name detected: {professional.name}")
            seen_ids.add(professional.id)
            seen_names.add(name_key)
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

    def find_professional(self, professional_id: str) -> Professional | None:
        for professional in self.professionals:
            if professional.id == professional_id:
                return professional
        return None

    def resolve_professional(self, identifier: str) -> str:
        """
        Resolve a configured id or display name to the professional id.

        Raises:
            ValueError: If identifier matches no configured professional
        """
        professional = self.find_professional(identifier)
        if professional:
            return professional.id

        for professional in self.professionals:
            if professional.name.lower() == identifier.lower():
                return professional.id

        raise ValueError(
            f"Unknown professional: '{identifier}'. "
            f"Use a configured id or name."
        )

    def hours_for(self, professional_id: str) -> OperatingHoursConfig:
        """Professional's own hours, falling back to the shop's."""
        professional = self.find_professional(professional_id)
        if professional and professional.operating_hours:
            return professional.operating_hours
        return self.operating_hours

    def hours_by_professional(self) -> Dict[str, OperatingHours]:
        """Domain operating hours for every professional with an override."""
        return {
            professional.id: professional.operating_hours.to_domain()
            for professional in self.professionals
            if professional.operating_hours
        }


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path
