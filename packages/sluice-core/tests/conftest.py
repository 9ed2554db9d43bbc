"""Shared pytest fixtures for sluice-core tests."""

from __future__ import annotations

import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import structlog
import yaml

from sluice_core.adapter import JobSpecAdapter, ResourceSpecAdapter
from sluice_core.plugins import (
    NamedDatastore,
    PluginRegistry,
    datastore_registry,
    hook_registry,
    task_registry,
)


@pytest.fixture(autouse=True)
def configure_structlog_for_tests() -> None:
    """Configure structlog to output to stdout for test capture."""
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,  # Important for test isolation
    )


@pytest.fixture
def tasks() -> PluginRegistry[Any]:
    """Task registry with the bq2bq and python tasks."""
    return task_registry(["bq2bq", "python"])


@pytest.fixture
def hooks() -> PluginRegistry[Any]:
    """Hook registry with the transporter and predator hooks."""
    return hook_registry(["transporter", "predator"])


@pytest.fixture
def adapter(tasks: PluginRegistry[Any], hooks: PluginRegistry[Any]) -> JobSpecAdapter:
    """Job spec adapter over the test registries."""
    return JobSpecAdapter(tasks, hooks)


@pytest.fixture
def datastores() -> PluginRegistry[Any]:
    """Datastore registry with a typed bigquery and an untyped gcs datastore."""
    return datastore_registry(
        [
            NamedDatastore(name="bigquery", resource_types=frozenset({"dataset", "table", "view"})),
            NamedDatastore(name="gcs"),
        ]
    )


@pytest.fixture
def resource_adapter(datastores: PluginRegistry[Any]) -> ResourceSpecAdapter:
    """Resource spec adapter over the test datastores."""
    return ResourceSpecAdapter(datastores)


@pytest.fixture
def job_data() -> dict[str, Any]:
    """Return a complete job.yaml structure.

    Returns:
        Dictionary representing a valid job.yaml.
    """
    return {
        "version": 1,
        "name": "orders_daily",
        "owner": "data@example.com",
        "description": "Daily orders rollup",
        "schedule": {
            "start_date": "2021-02-18",
            "end_date": "2021-12-31",
            "interval": "0 3 * * *",
        },
        "behavior": {"depends_on_past": True, "catch_up": False},
        "task": {
            "name": "bq2bq",
            "config": {
                "PROJECT": "analytics",
                "DATASET": "sales",
                "TABLE": "orders_daily",
                "LOAD_METHOD": "REPLACE",
            },
            "window": {"size": "1M", "offset": "-1M", "truncate_to": "M"},
        },
        "asset": {"query.sql": "select * from orders"},
        "labels": {"team": "sales"},
        "dependencies": [
            {"job": "customers_daily"},
            {"job": "payments_daily", "type": "inter"},
        ],
        "hooks": [
            {"name": "transporter", "config": {"KAFKA_TOPIC": "orders"}},
        ],
    }


@pytest.fixture
def minimal_job_data() -> dict[str, Any]:
    """Return the smallest valid job.yaml structure."""
    return {
        "name": "minimal_job",
        "owner": "owner@example.com",
        "schedule": {"start_date": "2021-01-01", "interval": "@daily"},
        "task": {"name": "bq2bq"},
    }


@pytest.fixture
def write_yaml(tmp_path: Path) -> Callable[[str, dict[str, Any]], Path]:
    """Factory fixture writing a mapping as YAML under tmp_path.

    Returns:
        Function taking a relative path and data, returning the written path.
    """

    def _write(relative: str, data: dict[str, Any]) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(yaml.safe_dump(data, sort_keys=False))
        return path

    return _write
