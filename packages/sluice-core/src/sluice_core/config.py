"""Project configuration loaded from sluice.yaml.

Example sluice.yaml:

    host: http://localhost:9100
    project:
      config:
        environment: production
        storage_path: gs://bucket/path
    jobs:
      path: ./jobs
    datastores:
      - type: bigquery
        path: ./datastore/bigquery
        resource_types: [dataset, table, view]
    plugins:
      tasks: [bq2bq]
      hooks: [transporter]

Relative paths are resolved against the directory holding sluice.yaml.
The ``SLUICE_HOST`` environment variable overrides ``host``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from sluice_core.errors import ConfigurationError
from sluice_core.plugins import NamedDatastore

logger = structlog.get_logger(__name__)

HOST_ENV_VAR = "SLUICE_HOST"

CONFIG_FILE_NAME = "sluice.yaml"

CONFIG_SEARCH_PATHS = (
    Path("."),
    Path(".sluice"),
)


class ConfigNotFoundError(ConfigurationError):
    """Raised when sluice.yaml cannot be found in any search path."""

    def __init__(self, searched: list[str]) -> None:
        super().__init__(f"Project configuration not found. Searched: {', '.join(searched)}")
        self.searched = searched


class ProjectSection(BaseModel):
    """Project settings sent when registering the project."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    config: dict[str, str] = Field(default_factory=dict, description="Project configuration")

    @field_validator("config", mode="before")
    @classmethod
    def validate_config(cls, v: Any) -> Any:
        """Require string values; YAML numbers and booleans must be quoted."""
        if v is None:
            return {}
        if isinstance(v, dict):
            for key, value in v.items():
                if not isinstance(value, str):
                    raise ValueError(f"project config value for {key!r} must be a string")
        return v


class JobsSection(BaseModel):
    """Location of job specs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: Path = Field(default=Path("./jobs"), description="Job spec root")


class DatastoreConfig(BaseModel):
    """A datastore and the location of its resource specs."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: str = Field(..., min_length=1, description="Datastore name, e.g. 'bigquery'")
    path: Path = Field(..., description="Resource spec root")
    resource_types: frozenset[str] | None = Field(
        default=None,
        description="Resource types the datastore accepts; None accepts any",
    )

    def to_datastore(self) -> NamedDatastore:
        """Build the datastore handle registered for this entry."""
        return NamedDatastore(name=self.type, resource_types=self.resource_types)


class PluginsSection(BaseModel):
    """Plugins declared by name."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    tasks: tuple[str, ...] = Field(default=(), description="Task plugin names")
    hooks: tuple[str, ...] = Field(default=(), description="Hook plugin names")
    discover: bool = Field(
        default=True,
        description="Also load plugins published through entry points",
    )


class ProjectConfig(BaseModel):
    """Root model of sluice.yaml.

    Attributes:
        host: Orchestrator base URL (http or https).
        project: Project settings.
        jobs: Job spec location.
        datastores: Datastores with resource spec locations.
        plugins: Declared plugins.
        dial_timeout_seconds: Connection timeout.
        deploy_timeout_seconds: Overall deployment deadline.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(..., description="Orchestrator base URL")
    project: ProjectSection = Field(default_factory=ProjectSection)
    jobs: JobsSection = Field(default_factory=JobsSection)
    datastores: tuple[DatastoreConfig, ...] = Field(default=())
    plugins: PluginsSection = Field(default_factory=PluginsSection)
    dial_timeout_seconds: float = Field(default=5.0, ge=0, description="Connection timeout")
    deploy_timeout_seconds: float = Field(default=300.0, gt=0, description="Deployment deadline")

    @field_validator("host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Validate host is an HTTP(S) URL."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("host must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("datastores", mode="before")
    @classmethod
    def empty_when_null(cls, v: Any) -> Any:
        """Treat an explicit YAML null list as empty."""
        return () if v is None else v

    @field_validator("datastores")
    @classmethod
    def validate_unique_datastores(
        cls, v: tuple[DatastoreConfig, ...]
    ) -> tuple[DatastoreConfig, ...]:
        """Reject two entries for the same datastore type."""
        seen: set[str] = set()
        for ds in v:
            if ds.type in seen:
                raise ValueError(f"duplicate datastore type: {ds.type}")
            seen.add(ds.type)
        return v

    def resolve_paths(self, base_dir: Path) -> ProjectConfig:
        """Return a copy with relative spec paths anchored at ``base_dir``."""

        def anchor(path: Path) -> Path:
            return path if path.is_absolute() else (base_dir / path)

        return self.model_copy(
            update={
                "jobs": self.jobs.model_copy(update={"path": anchor(self.jobs.path)}),
                "datastores": tuple(
                    ds.model_copy(update={"path": anchor(ds.path)}) for ds in self.datastores
                ),
            }
        )

    @classmethod
    def from_yaml(cls, path: str | Path) -> ProjectConfig:
        """Load and validate sluice.yaml.

        Raises:
            FileNotFoundError: If the file doesn't exist.
            ConfigurationError: If YAML syntax or validation fails.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"File not found: {path}")

        try:
            with path.open("r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                "Invalid YAML syntax", file_path=str(path), internal_details=str(e)
            ) from e

        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigurationError("Configuration must be a mapping", file_path=str(path))

        env_host = os.environ.get(HOST_ENV_VAR)
        if env_host:
            data = {**data, "host": env_host}

        try:
            config = cls.model_validate(data)
        except PydanticValidationError as e:
            first = e.errors()[0]
            raise ConfigurationError(
                f"Configuration validation failed: {first['msg']}",
                file_path=str(path),
                field_path=".".join(str(p) for p in first["loc"]) or None,
                internal_details=str(e),
            ) from e

        return config.resolve_paths(path.parent)


def find_config_file(search_paths: tuple[Path, ...] = CONFIG_SEARCH_PATHS) -> Path:
    """Find sluice.yaml in the search paths, in order.

    Raises:
        ConfigNotFoundError: If no file is found.
    """
    for base in search_paths:
        candidate = base / CONFIG_FILE_NAME
        if candidate.exists():
            logger.debug("config_found", path=str(candidate))
            return candidate
    raise ConfigNotFoundError([str(base / CONFIG_FILE_NAME) for base in search_paths])


def load_project_config(path: Path | None = None) -> ProjectConfig:
    """Load project configuration from an explicit path or by discovery.

    Raises:
        ConfigNotFoundError: If an explicit path is missing or discovery fails.
        ConfigurationError: If the file is invalid.
    """
    if path is not None:
        if not Path(path).exists():
            raise ConfigNotFoundError([str(path)])
        return ProjectConfig.from_yaml(path)
    return ProjectConfig.from_yaml(find_config_file())
