"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        """Load settings from YAML file."""
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        # Flat keys (xp_per_correct, certificate, ...) pass straight through;
        # nested sections are flattened to match Settings field names
        flattened = {k: v for k, v in data.items() if k in Settings.model_fields}
        if "rewards" in data:
            rewards = data["rewards"]
            flattened["xp_per_correct"] = rewards.get("xp_per_correct")
            flattened["xp_per_text_complete"] = rewards.get("xp_per_text_complete")
            flattened["xp_per_level"] = rewards.get("xp_per_level")
        if "exam" in data:
            flattened["exam_total_minutes"] = data["exam"].get("total_minutes")
        if "skills" in data:
            flattened["skill_drill_max_questions"] = data["skills"].get("drill_max_questions")
        if "daily" in data:
            flattened["reference_timezone"] = data["daily"].get("timezone")
            flattened["daily_tips"] = data["daily"].get("tips")
        if "server" in data:
            flattened["host"] = data["server"].get("host")
            flattened["port"] = data["server"].get("port")
            flattened["app_secret"] = data["server"].get("app_secret")
        if "storage" in data:
            flattened["data_dir"] = data["storage"].get("data_dir")
            flattened["catalog_path"] = data["storage"].get("catalog_path")

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class CertificatePolicy(BaseModel):
    """Thresholds a student must meet before a certificate is issued."""

    min_texts: int = Field(default=10, ge=0)
    min_avg_percent: int = Field(default=80, ge=0, le=100)
    mastery_threshold: int = Field(default=80, ge=0, le=100)


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Rewards
    xp_per_correct: int = Field(default=10, ge=0)
    xp_per_text_complete: int = Field(default=50, ge=0)
    xp_per_level: int = Field(default=200, gt=0)

    # Certificate
    certificate: CertificatePolicy = Field(default_factory=CertificatePolicy)

    # Play modes
    exam_total_minutes: int = Field(default=30, gt=0)
    skill_drill_max_questions: int = Field(default=15, gt=0)
    reference_timezone: str = Field(default="Asia/Riyadh")
    daily_tips: list[str] = Field(default_factory=list)

    # Server
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000)
    app_secret: str | None = Field(default=None)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)
    data_dir: Path | None = Field(default=None)
    catalog_path: Path | None = Field(default=None)

    @property
    def state_dir(self) -> Path:
        d = self.data_dir or self.project_root / "data" / "state"
        d.mkdir(parents=True, exist_ok=True)
        return d

    @property
    def catalog_file(self) -> Path:
        return self.catalog_path or self.project_root / "config" / "catalog.yaml"

    @property
    def exam_total_seconds(self) -> int:
        return self.exam_total_minutes * 60

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
