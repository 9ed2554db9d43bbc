"""Unit tests for plugin handles and registries."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from sluice_core.errors import ConfigurationError, ResolutionError
from sluice_core.plugins import (
    DATASTORE_ENTRY_POINT_GROUP,
    TASK_ENTRY_POINT_GROUP,
    Datastore,
    HookPlugin,
    NamedDatastore,
    NamedPlugin,
    PluginRegistry,
    TaskPlugin,
    datastore_registry,
    hook_registry,
    task_registry,
)


def _entry_point(name: str, plugin: object) -> MagicMock:
    ep = MagicMock()
    ep.name = name
    ep.load.return_value = plugin
    return ep


class TestHandles:
    """Tests for the name-only plugin handles."""

    def test_named_plugin_satisfies_protocols(self) -> None:
        """A named handle is both a task and a hook plugin."""
        plugin = NamedPlugin(name="bq2bq")
        assert isinstance(plugin, TaskPlugin)
        assert isinstance(plugin, HookPlugin)

    def test_named_datastore_satisfies_protocol(self) -> None:
        """A named datastore carries its resource types."""
        datastore = NamedDatastore(name="bigquery", resource_types=frozenset({"table"}))
        assert isinstance(datastore, Datastore)
        assert datastore.resource_types == frozenset({"table"})

    def test_empty_name_rejected(self) -> None:
        """Handles need a name."""
        with pytest.raises(ValueError):
            NamedPlugin(name="")


class TestPluginRegistry:
    """Tests for PluginRegistry."""

    def test_get_by_name(self) -> None:
        """Registered plugins resolve by name."""
        registry = task_registry(["bq2bq"])
        assert registry.get_by_name("bq2bq") == NamedPlugin(name="bq2bq")
        assert "bq2bq" in registry
        assert len(registry) == 1

    def test_unknown_name(self) -> None:
        """Unknown names raise with the available names listed."""
        registry = hook_registry(["transporter", "predator"])
        with pytest.raises(ResolutionError) as exc_info:
            registry.get_by_name("slack")
        assert exc_info.value.kind == "hook"
        assert "Available: predator, transporter" in str(exc_info.value)

    def test_empty_registry_message(self) -> None:
        """An empty registry says so."""
        with pytest.raises(ResolutionError, match="Available: none"):
            PluginRegistry("task").get_by_name("bq2bq")

    def test_get_all_sorted(self) -> None:
        """Plugins are listed in name order."""
        registry = task_registry(["python", "bq2bq", "spark"])
        assert [p.name for p in registry.get_all()] == ["bq2bq", "python", "spark"]

    def test_later_registration_wins(self) -> None:
        """Re-registering a name replaces the handle."""
        registry = datastore_registry([NamedDatastore(name="bigquery")])
        registry.register(NamedDatastore(name="bigquery", resource_types=frozenset({"table"})))
        assert registry.get_by_name("bigquery").resource_types == frozenset({"table"})
        assert len(registry) == 1

    def test_registries_are_independent(self) -> None:
        """Registries share no state."""
        first = task_registry(["bq2bq"])
        second = task_registry()
        assert "bq2bq" not in second
        assert len(first) == 1


class TestEntryPointDiscovery:
    """Tests for loading plugins from entry points."""

    def test_load_entry_points(self) -> None:
        """Each entry point's object is registered."""
        eps = [
            _entry_point("spark", NamedPlugin(name="spark")),
            _entry_point("dbt", NamedPlugin(name="dbt")),
        ]
        with patch("sluice_core.plugins.entry_points", return_value=eps) as mock_eps:
            registry = task_registry(["bq2bq"], discover=True)

        mock_eps.assert_called_once_with(group=TASK_ENTRY_POINT_GROUP)
        assert registry.names() == ["bq2bq", "dbt", "spark"]

    def test_discovery_disabled(self) -> None:
        """Entry points are not consulted unless asked."""
        with patch("sluice_core.plugins.entry_points") as mock_eps:
            task_registry(["bq2bq"])
        mock_eps.assert_not_called()

    def test_load_count(self) -> None:
        """load_entry_points reports how many plugins it registered."""
        eps = [_entry_point("postgres", NamedDatastore(name="postgres"))]
        registry = datastore_registry()
        with patch("sluice_core.plugins.entry_points", return_value=eps):
            assert registry.load_entry_points(DATASTORE_ENTRY_POINT_GROUP) == 1
        assert registry.names() == ["postgres"]

    def test_broken_entry_point(self) -> None:
        """An entry point that fails to import is reported by name."""
        broken = MagicMock()
        broken.name = "spark"
        broken.load.side_effect = ImportError("No module named 'spark_plugin'")
        eps = [_entry_point("dbt", NamedPlugin(name="dbt")), broken]

        with patch("sluice_core.plugins.entry_points", return_value=eps):
            with pytest.raises(ConfigurationError, match="task plugin 'spark'") as exc_info:
                task_registry(discover=True)

        assert TASK_ENTRY_POINT_GROUP in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ImportError)
