"""Shared test fixtures for sluice-cli tests.

Provides CliRunner fixtures, a project laid out on disk, and an in-memory
orchestrator served through ``httpx.MockTransport``.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog
import yaml
from click.testing import CliRunner
from rich.console import Console

from sluice_cli import output

HOST = "http://orchestrator.test"


@pytest.fixture(autouse=True)
def configure_structlog_for_tests(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure structlog to output to stdout for test capture.

    The --log-level callback is disabled so that it cannot re-enable logger
    caching between tests.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )
    monkeypatch.setattr(
        "sluice_deploy.observability.configure_logging", lambda **kwargs: None
    )


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Plain, wide console so messages are never wrapped."""
    monkeypatch.setattr(
        output,
        "console",
        Console(width=200, no_color=True, force_terminal=False, highlight=False),
    )
    monkeypatch.delenv("SLUICE_HOST", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


def _write(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))


def job_data(name: str, /, **task: Any) -> dict[str, Any]:
    return {
        "name": name,
        "owner": "data@example.com",
        "schedule": {"start_date": "2021-02-18", "interval": "0 3 * * *"},
        "task": {
            "name": "bq2bq",
            "config": {"PROJECT": "analytics", "TABLE": name},
            "window": {"size": "24h", "offset": "0", "truncate_to": "d"},
            **task,
        },
    }


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """A project with sluice.yaml, 2 jobs and 1 bigquery resource."""
    _write(
        tmp_path / "sluice.yaml",
        {
            "host": HOST,
            "project": {"config": {"environment": "test"}},
            "jobs": {"path": "./jobs"},
            "datastores": [
                {"type": "bigquery", "path": "./bigquery", "resource_types": ["dataset"]}
            ],
            "plugins": {"tasks": ["bq2bq"], "hooks": [], "discover": False},
        },
    )
    for name in ("customers", "orders"):
        _write(tmp_path / "jobs" / name / "job.yaml", job_data(name))
    _write(
        tmp_path / "bigquery" / "sales" / "resource.yaml",
        {"name": "analytics.sales", "type": "dataset"},
    )
    return tmp_path


@pytest.fixture
def write_job(project_dir: Path) -> Callable[..., Path]:
    """Write (or overwrite) a job spec in the project."""

    def _write_job(name: str, /, **task: Any) -> Path:
        path = project_dir / "jobs" / name / "job.yaml"
        _write(path, job_data(name, **task))
        return path

    return _write_job


class FakeOrchestrator:
    """Acknowledges every item unless told to fail one.

    Attributes:
        fail_item: Name of a job or resource to reject.
        unreachable: Refuse every connection.
        requests: Paths requested, in order.
    """

    def __init__(self) -> None:
        self.fail_item: str | None = None
        self.unreachable = False
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request.url.path)
        if self.unreachable:
            raise httpx.ConnectTimeout("timed out", request=request)

        path = request.url.path
        if path == "/api/v1/ping":
            return httpx.Response(200, json={"status": "ok"})
        if path == "/api/v1/project":
            return httpx.Response(200, json={"success": True, "message": ""})

        body = json.loads(request.content)
        if path.endswith("/resource/deploy"):
            items, key = [r["name"] for r in body["resources"]], "resource_name"
        else:
            items, key = [j["name"] for j in body["jobs"]], "job_name"

        lines = []
        for item in items:
            ok = item != self.fail_item
            lines.append(
                {"ack": True, "success": ok, key: item, "message": "" if ok else "rejected"}
            )
            if not ok:
                break
        content = "".join(json.dumps(line) + "\n" for line in lines)
        return httpx.Response(
            200,
            content=content.encode(),
            headers={"Content-Type": "application/x-ndjson"},
        )


@pytest.fixture
def orchestrator(monkeypatch: pytest.MonkeyPatch) -> FakeOrchestrator:
    """Route every client built by the CLI to an in-memory orchestrator."""
    from sluice_deploy import client as client_module

    fake = FakeOrchestrator()
    real_client = client_module.RuntimeServiceClient

    def _client(config: Any, **kwargs: Any) -> Any:
        return real_client(config, transport=httpx.MockTransport(fake.handler), **kwargs)

    monkeypatch.setattr(client_module, "RuntimeServiceClient", _client)
    return fake
