"""Plugin handles and registries.

Task, hook and datastore plugins are external units of work resolved by
name. Their internal schema is out of scope; a handle only needs a ``name``.

Registries are plain objects handed to the adapters, so tests and parallel
sessions can use different plugin sets. Plugins can be registered directly,
declared by name in project configuration (NamedPlugin), or discovered from
installed packages through entry points:

    [project.entry-points."sluice.tasks"]
    bq2bq = "my_plugins.bq2bq:plugin"
"""

from __future__ import annotations

from collections.abc import Iterable
from importlib.metadata import entry_points
from typing import Generic, Protocol, TypeVar, runtime_checkable

import structlog
from pydantic import BaseModel, ConfigDict, Field

from sluice_core.errors import ConfigurationError, ResolutionError

logger = structlog.get_logger(__name__)

TASK_ENTRY_POINT_GROUP = "sluice.tasks"
HOOK_ENTRY_POINT_GROUP = "sluice.hooks"
DATASTORE_ENTRY_POINT_GROUP = "sluice.datastores"


@runtime_checkable
class TaskPlugin(Protocol):
    """A task plugin resolvable by name."""

    @property
    def name(self) -> str: ...


@runtime_checkable
class HookPlugin(Protocol):
    """A hook plugin resolvable by name."""

    @property
    def name(self) -> str: ...


@runtime_checkable
class Datastore(Protocol):
    """A datastore that owns resource specs.

    ``resource_types`` is None when the datastore accepts any type.
    """

    @property
    def name(self) -> str: ...

    @property
    def resource_types(self) -> frozenset[str] | None: ...


class NamedPlugin(BaseModel):
    """Plugin handle known only by name (declared in configuration)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)


class NamedDatastore(BaseModel):
    """Datastore handle declared in configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(..., min_length=1)
    resource_types: frozenset[str] | None = None


T = TypeVar("T")


class PluginRegistry(Generic[T]):
    """Name-keyed registry of plugin handles.

    Example:
        >>> tasks = PluginRegistry[TaskPlugin]("task")
        >>> tasks.register(NamedPlugin(name="bq2bq"))
        >>> tasks.get_by_name("bq2bq").name
        'bq2bq'
    """

    def __init__(self, kind: str, plugins: Iterable[T] = ()) -> None:
        """Initialize the registry.

        Args:
            kind: Registry kind used in error messages (task, hook, datastore).
            plugins: Initial plugin handles.
        """
        self.kind = kind
        self._plugins: dict[str, T] = {}
        for plugin in plugins:
            self.register(plugin)

    def register(self, plugin: T) -> None:
        """Register a plugin under its ``name``; a later registration wins."""
        name = plugin.name  # type: ignore[attr-defined]
        if name in self._plugins:
            logger.debug("plugin_replaced", kind=self.kind, name=name)
        self._plugins[name] = plugin

    def get_by_name(self, name: str) -> T:
        """Resolve a plugin by name.

        Raises:
            ResolutionError: If no plugin is registered under ``name``.
        """
        try:
            return self._plugins[name]
        except KeyError:
            raise ResolutionError(kind=self.kind, name=name, available=self.names()) from None

    def get_all(self) -> list[T]:
        """Return all plugins sorted by name."""
        return [self._plugins[name] for name in self.names()]

    def names(self) -> list[str]:
        """Return registered names, sorted."""
        return sorted(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)

    def load_entry_points(self, group: str) -> int:
        """Register every plugin published under an entry-point group.

        Each entry point must load to a plugin handle (an object with a
        ``name``). Returns the number of plugins registered.

        Raises:
            ConfigurationError: If an entry point fails to import.
        """
        count = 0
        for ep in entry_points(group=group):
            try:
                plugin = ep.load()
            except Exception as exc:
                raise ConfigurationError(
                    f"Failed to load {self.kind} plugin '{ep.name}' from entry point group "
                    f"'{group}'",
                    internal_details=f"{type(exc).__name__}: {exc}",
                ) from exc
            self.register(plugin)
            count += 1
            logger.debug("plugin_discovered", kind=self.kind, name=ep.name, group=group)
        return count


def task_registry(
    names: Iterable[str] = (), *, discover: bool = False
) -> PluginRegistry[TaskPlugin]:
    """Build a task registry from declared names and, optionally, entry points."""
    registry: PluginRegistry[TaskPlugin] = PluginRegistry(
        "task", (NamedPlugin(name=n) for n in names)
    )
    if discover:
        registry.load_entry_points(TASK_ENTRY_POINT_GROUP)
    return registry


def hook_registry(
    names: Iterable[str] = (), *, discover: bool = False
) -> PluginRegistry[HookPlugin]:
    """Build a hook registry from declared names and, optionally, entry points."""
    registry: PluginRegistry[HookPlugin] = PluginRegistry(
        "hook", (NamedPlugin(name=n) for n in names)
    )
    if discover:
        registry.load_entry_points(HOOK_ENTRY_POINT_GROUP)
    return registry


def datastore_registry(
    datastores: Iterable[Datastore] = (), *, discover: bool = False
) -> PluginRegistry[Datastore]:
    """Build a datastore registry from handles and, optionally, entry points."""
    registry: PluginRegistry[Datastore] = PluginRegistry("datastore", datastores)
    if discover:
        registry.load_entry_points(DATASTORE_ENTRY_POINT_GROUP)
    return registry
