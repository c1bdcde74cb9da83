#langlab/config/settings.py

import os
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from langlab.core.errors import ConfigurationInvalidError
from langlab.core.models import Component
from langlab.domain.components import get_definition


class InstallerSettings(BaseSettings):
    """Installer tunables from LANGLAB_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LANGLAB_",
        case_sensitive=False,
        extra="ignore"
    )

    config_dir: Path = Path("config")

    # Helm chart repository
    chart_repo_name: str = "langchain"
    chart_repo_url: str = "https://langchain-ai.github.io/helm/"

    # Apply
    apply_timeout: str = "30m"

    # Readiness polling
    readiness_initial_delay: float = 10.0
    readiness_interval: float = 10.0
    readiness_max_attempts: int = 30
    probe_timeout: float = 5.0

    @property
    def env_file(self) -> Path:
        return self.config_dir / ".env"

    @property
    def base_config(self) -> Path:
        return self.config_dir / "config.yaml"

    def overlay_path(self, component: Component) -> Path:
        return self.config_dir / get_definition(component).overlay_filename


class OperatorConfig(BaseSettings):
    """Operator identity read from the config/.env file."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Required (NO DEFAULTS)
    admin_email: str = Field(
        validation_alias=AliasChoices("initialOrgAdminEmail", "LANGLAB_ADMIN_EMAIL"),
    )
    license_key: str = Field(
        validation_alias=AliasChoices("LicenseKey", "LANGLAB_LICENSE_KEY"),
    )

    @field_validator("admin_email", "license_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


_FIELD_SOURCES = {
    "admin_email": "initialOrgAdminEmail",
    "license_key": "LicenseKey",
}


def load_operator_config(env_file: Path) -> OperatorConfig:
    """
    Load and validate the operator env file.

    Raises:
        ConfigurationInvalidError: If the file is missing, unreadable or
            lacks a non-empty initialOrgAdminEmail / LicenseKey
    """
    env_file = Path(env_file)

    if not env_file.is_file():
        raise ConfigurationInvalidError(f"Configuration file not found: {env_file}")

    if not os.access(env_file, os.R_OK):
        raise ConfigurationInvalidError(f"Configuration file is not readable: {env_file}")

    try:
        return OperatorConfig(_env_file=env_file)
    except UnicodeDecodeError as e:
        raise ConfigurationInvalidError(f"Configuration file is not valid UTF-8: {env_file} ({e})") from e
    except OSError as e:
        raise ConfigurationInvalidError(f"Configuration file is not readable: {env_file} ({e})") from e
    except SettingsError as e:
        raise ConfigurationInvalidError(f"Invalid configuration in {env_file}: {e}") from e
    except ValidationError as e:
        problems = []
        for error in e.errors():
            field_name = str(error["loc"][0]) if error["loc"] else "?"
            source = _FIELD_SOURCES.get(field_name, field_name)
            problems.append(f"{source} {error['msg'].lower()}")
        raise ConfigurationInvalidError(
            f"Invalid configuration in {env_file}: {'; '.join(problems)}"
        ) from e
