"""Pydantic configuration models for sluice-deploy.

This module provides:
- DeployClientConfig: Orchestrator connection and deadline configuration
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

if TYPE_CHECKING:
    from sluice_core.config import ProjectConfig


class DeployClientConfig(BaseModel):
    """Orchestrator connection configuration.

    Attributes:
        host: Orchestrator base URL (required).
        dial_timeout_seconds: Bound on establishing the connection (default 5s).
        deploy_timeout_seconds: Overall deployment deadline (default 5 minutes).
        token: Optional bearer token sent with every request.

    Example:
        >>> config = DeployClientConfig(host="http://localhost:9100")
        >>> config.dial_timeout_seconds
        5.0
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    host: str = Field(
        ...,
        min_length=1,
        description="Orchestrator base URL",
    )
    dial_timeout_seconds: float = Field(
        default=5.0,
        ge=0.0,
        description="Connection deadline in seconds",
    )
    deploy_timeout_seconds: float = Field(
        default=300.0,
        gt=0.0,
        description="Overall deployment deadline in seconds",
    )
    token: SecretStr | None = Field(
        default=None,
        description="Bearer token",
    )

    @field_validator("host")
    @classmethod
    def validate_host_format(cls, v: str) -> str:
        """Validate host format (must be http:// or https://)."""
        if not v.startswith(("http://", "https://")):
            msg = f"host must start with http:// or https://, got: {v}"
            raise ValueError(msg)
        return v.rstrip("/")

    @classmethod
    def from_project_config(cls, config: ProjectConfig) -> DeployClientConfig:
        """Build the client configuration from a project's sluice.yaml."""
        return cls(
            host=config.host,
            dial_timeout_seconds=config.dial_timeout_seconds,
            deploy_timeout_seconds=config.deploy_timeout_seconds,
        )
