"""Shared pytest fixtures for sluice-deploy tests.

The orchestrator is simulated in memory and served through
``httpx.MockTransport``, so the real client code (request encoding, NDJSON
streaming, status handling) runs in every test.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import httpx
import pytest
import structlog
import yaml

from sluice_core.config import DatastoreConfig, PluginsSection, ProjectConfig
from sluice_core.workspace import Workspace
from sluice_deploy.client import RuntimeServiceClient
from sluice_deploy.config import DeployClientConfig

HOST = "http://orchestrator.test"


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


class FakeOrchestrator:
    """In-memory orchestrator answering the runtime service API.

    By default every deploy call acknowledges each item successfully, in
    request order. Tests override behaviour through the attributes:

    Attributes:
        register_response: Body returned by project registration.
        resource_lines: Scripted NDJSON messages per datastore.
        job_lines: Scripted NDJSON messages for the jobs batch.
        status: Status codes to return, keyed by request path.
        raise_on: Exceptions to raise, keyed by request path.
        requests: Every request received, in order.
    """

    def __init__(self) -> None:
        self.register_response: dict[str, Any] = {"success": True, "message": ""}
        self.resource_lines: dict[str, list[dict[str, Any] | str]] = {}
        self.job_lines: list[dict[str, Any] | str] | None = None
        self.status: dict[str, int] = {}
        self.raise_on: dict[str, Exception] = {}
        self.requests: list[httpx.Request] = []

    def bodies(self, path_suffix: str) -> list[dict[str, Any]]:
        """Decoded JSON bodies of requests whose path ends with ``path_suffix``."""
        return [
            json.loads(r.content) for r in self.requests if r.url.path.endswith(path_suffix)
        ]

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.raise_on:
            raise self.raise_on[path]
        if path in self.status:
            return httpx.Response(self.status[path], json={"error": "boom"})

        if path == "/api/v1/ping":
            return httpx.Response(200, json={"status": "ok"})
        if path == "/api/v1/project":
            return httpx.Response(200, json=self.register_response)

        body = json.loads(request.content)
        if path.endswith("/resource/deploy"):
            datastore = body["datastore_name"]
            lines = self.resource_lines.get(datastore)
            if lines is None:
                lines = [
                    {"ack": True, "success": True, "resource_name": r["name"]}
                    for r in body["resources"]
                ]
            return self._ndjson(lines)
        if path.endswith("/job/deploy"):
            lines = self.job_lines
            if lines is None:
                lines = [
                    {"ack": True, "success": True, "job_name": j["name"]} for j in body["jobs"]
                ]
            return self._ndjson(lines)

        return httpx.Response(404, json={"error": "not found"})

    @staticmethod
    def _ndjson(lines: list[dict[str, Any] | str]) -> httpx.Response:
        content = "".join(
            (line if isinstance(line, str) else json.dumps(line)) + "\n" for line in lines
        )
        return httpx.Response(
            200,
            content=content.encode(),
            headers={"Content-Type": "application/x-ndjson"},
        )


@pytest.fixture
def orchestrator() -> FakeOrchestrator:
    """In-memory orchestrator."""
    return FakeOrchestrator()


@pytest.fixture
def client_config() -> DeployClientConfig:
    """Client configuration pointing at the fake orchestrator."""
    return DeployClientConfig(host=HOST, dial_timeout_seconds=5.0, deploy_timeout_seconds=60.0)


@pytest.fixture
def make_client(
    orchestrator: FakeOrchestrator, client_config: DeployClientConfig
) -> Iterator[Callable[..., RuntimeServiceClient]]:
    """Factory building clients wired to the fake orchestrator.

    Keyword arguments override fields of the default client configuration.
    """
    clients: list[RuntimeServiceClient] = []

    def _make(**overrides: Any) -> RuntimeServiceClient:
        config = client_config.model_copy(update=overrides) if overrides else client_config
        client = RuntimeServiceClient(config, transport=httpx.MockTransport(orchestrator.handler))
        clients.append(client)
        return client

    yield _make

    for client in clients:
        client.close()


def _write(path: Path, data: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data, sort_keys=False))


def _job(name: str) -> dict[str, Any]:
    return {
        "name": name,
        "owner": "data@example.com",
        "schedule": {"start_date": "2021-02-18", "interval": "0 3 * * *"},
        "task": {
            "name": "bq2bq",
            "config": {"PROJECT": "analytics", "TABLE": name},
            "window": {"size": "1M", "offset": "0", "truncate_to": "M"},
        },
        "dependencies": [{"job": "upstream", "type": "inter"}],
        "hooks": [{"name": "transporter", "config": {"KAFKA_TOPIC": name}}],
    }


@pytest.fixture
def project_config(tmp_path: Path) -> ProjectConfig:
    """A project with 3 jobs and 2 bigquery resources on disk."""
    for name in ("customers", "orders", "payments"):
        _write(tmp_path / "jobs" / name / "job.yaml", _job(name))
    _write(
        tmp_path / "bigquery" / "sales" / "resource.yaml",
        {"name": "analytics.sales", "type": "dataset", "spec": {"location": "EU"}},
    )
    _write(
        tmp_path / "bigquery" / "orders" / "resource.yaml",
        {"name": "analytics.sales.orders", "type": "table"},
    )

    return ProjectConfig(
        host=HOST,
        project={"config": {"environment": "test", "storage_path": "gs://bucket"}},
        jobs={"path": tmp_path / "jobs"},
        datastores=(
            DatastoreConfig(
                type="bigquery",
                path=tmp_path / "bigquery",
                resource_types=frozenset({"dataset", "table"}),
            ),
        ),
        plugins=PluginsSection(tasks=("bq2bq",), hooks=("transporter",), discover=False),
        deploy_timeout_seconds=60.0,
    )


@pytest.fixture
def workspace(project_config: ProjectConfig) -> Workspace:
    """Workspace over the sample project."""
    return Workspace(project_config)

