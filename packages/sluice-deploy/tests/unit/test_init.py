"""Unit tests for the sluice_deploy package exports."""

from __future__ import annotations

import pytest

import sluice_deploy
from sluice_deploy import client, errors, session


class TestPublicAPI:
    """Tests for lazily imported package members."""

    def test_all_members_resolve(self) -> None:
        for name in sluice_deploy.__all__:
            assert getattr(sluice_deploy, name) is not None

    def test_members_are_module_objects(self) -> None:
        assert sluice_deploy.RuntimeServiceClient is client.RuntimeServiceClient
        assert sluice_deploy.DeploymentSession is session.DeploymentSession
        assert sluice_deploy.ProtocolFailureError is errors.ProtocolFailureError

    def test_unknown_member(self) -> None:
        with pytest.raises(AttributeError, match="has no attribute 'Missing'"):
            sluice_deploy.Missing  # noqa: B018
