"""sluice-core: job and resource specifications for the sluice orchestrator client.

This package provides:
- Duration grammar for task windows (standard and month notation)
- On-disk spec models (JobSpecFile, ResourceSpecFile)
- Canonical domain model (JobSpec, ResourceSpec)
- Plugin and validator registries
- Adapters between on-disk and domain forms
- Plugin answer conversion and window presets
- Local spec repositories and project configuration
"""

from __future__ import annotations

__version__ = "0.1.0"

from sluice_core.adapter import (
    JobSpecAdapter,
    ResourceSpecAdapter,
    config_from_mapping,
    config_to_mapping,
)
from sluice_core.answers import (
    NumericAnswer,
    OptionAnswer,
    PluginAnswer,
    TextAnswer,
    answer_to_string,
    answers_to_config,
    window_for_preset,
)
from sluice_core.config import ConfigNotFoundError, ProjectConfig, load_project_config
from sluice_core.duration import (
    HOURS_IN_MONTH,
    format_duration,
    parse_duration,
    parse_month_duration,
    parse_window_duration,
)
from sluice_core.errors import (
    AdaptationError,
    ConfigurationError,
    ParseError,
    ResolutionError,
    SluiceError,
    SpecNotFoundError,
    ValidationError,
)
from sluice_core.models import (
    JOB_DATE_LAYOUT,
    DependencyType,
    JobSpec,
    JobSpecTaskWindow,
    ResourceSpec,
)
from sluice_core.plugins import NamedDatastore, NamedPlugin, PluginRegistry
from sluice_core.repository import JobSpecRepository, ResourceSpecRepository
from sluice_core.schemas import JobSpecFile, ResourceSpecFile
from sluice_core.validators import ValidatorRegistry, default_validators
from sluice_core.workspace import Workspace

__all__ = [
    "__version__",
    # Duration grammar
    "HOURS_IN_MONTH",
    "format_duration",
    "parse_duration",
    "parse_month_duration",
    "parse_window_duration",
    # Specs
    "JobSpecFile",
    "ResourceSpecFile",
    "JOB_DATE_LAYOUT",
    "DependencyType",
    "JobSpec",
    "JobSpecTaskWindow",
    "ResourceSpec",
    # Registries
    "NamedDatastore",
    "NamedPlugin",
    "PluginRegistry",
    "ValidatorRegistry",
    "default_validators",
    # Adapters and storage
    "JobSpecAdapter",
    "ResourceSpecAdapter",
    "config_from_mapping",
    "config_to_mapping",
    "JobSpecRepository",
    "ResourceSpecRepository",
    "Workspace",
    # Plugin answers
    "NumericAnswer",
    "OptionAnswer",
    "PluginAnswer",
    "TextAnswer",
    "answer_to_string",
    "answers_to_config",
    "window_for_preset",
    # Configuration
    "ConfigNotFoundError",
    "ProjectConfig",
    "load_project_config",
    # Errors
    "AdaptationError",
    "ConfigurationError",
    "ParseError",
    "ResolutionError",
    "SluiceError",
    "SpecNotFoundError",
    "ValidationError",
]
