"""Unit tests for ClusterClient."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.config import ConfigException

from helm_release_tasks.core.config.models import ClusterConfig
from helm_release_tasks.integrations.helm.cluster import IN_CLUSTER_CONTEXT, ClusterClient
from helm_release_tasks.integrations.helm.exceptions import ClusterConnectionError

CONTEXTS = [
    {"name": "dev", "context": {"cluster": "dev", "namespace": "dev-apps"}},
    {"name": "prod", "context": {"cluster": "prod"}},
]


def _kubeconfig(mock_config: MagicMock, active: str = "dev") -> None:
    mock_config.list_kube_config_contexts.return_value = (
        CONTEXTS,
        next(c for c in CONTEXTS if c["name"] == active),
    )


@pytest.mark.unit
class TestClusterClientKubeconfig:
    """ClusterClient loading from kubeconfig."""

    @patch("kubernetes.config")
    def test_active_context(self, mock_config: MagicMock) -> None:
        _kubeconfig(mock_config)

        client = ClusterClient(ClusterConfig(kubeconfig="/kube/config"))

        mock_config.new_client_from_config.assert_called_once_with(
            config_file="/kube/config",
            context=None,
        )
        assert client.context == "dev"
        assert client.kubeconfig == "/kube/config"
        assert client.api_client is mock_config.new_client_from_config.return_value

    @patch("kubernetes.config")
    def test_context_namespace_is_default(self, mock_config: MagicMock) -> None:
        _kubeconfig(mock_config)
        assert ClusterClient(ClusterConfig()).namespace == "dev-apps"

    @patch("kubernetes.config")
    def test_configured_namespace_wins(self, mock_config: MagicMock) -> None:
        _kubeconfig(mock_config)
        assert ClusterClient(ClusterConfig(namespace="ops")).namespace == "ops"

    @patch("kubernetes.config")
    def test_selected_context_without_namespace(self, mock_config: MagicMock) -> None:
        _kubeconfig(mock_config)

        client = ClusterClient(ClusterConfig(context="prod"))

        assert client.context == "prod"
        assert client.namespace == "default"


@pytest.mark.unit
class TestClusterClientInCluster:
    """ClusterClient falling back to in-cluster configuration."""

    @patch("kubernetes.client.ApiClient")
    @patch("kubernetes.config")
    def test_falls_back_to_incluster(self, mock_config: MagicMock, mock_api: MagicMock) -> None:
        mock_config.new_client_from_config.side_effect = ConfigException("no kubeconfig")

        with patch.object(ClusterClient, "_read_service_account_namespace", return_value="team"):
            client = ClusterClient(ClusterConfig(kubeconfig="/kube/config"))

        mock_config.load_incluster_config.assert_called_once()
        assert client.context == IN_CLUSTER_CONTEXT
        assert client.kubeconfig is None
        assert client.namespace == "team"

    @patch("kubernetes.config")
    def test_no_configuration_raises(self, mock_config: MagicMock) -> None:
        mock_config.new_client_from_config.side_effect = ConfigException("no kubeconfig")
        mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

        with pytest.raises(ClusterConnectionError, match="Cannot load Kubernetes configuration"):
            ClusterClient(ClusterConfig())


@pytest.mark.unit
class TestClusterClientClose:
    """ClusterClient lifecycle."""

    @patch("kubernetes.config")
    def test_close_releases_api_client(self, mock_config: MagicMock) -> None:
        _kubeconfig(mock_config)
        client = ClusterClient(ClusterConfig())
        api_client = client.api_client

        client.close()
        client.close()

        api_client.close.assert_called_once()
        assert client.closed
        with pytest.raises(ClusterConnectionError, match="closed"):
            _ = client.api_client

    @patch("kubernetes.config")
    def test_context_manager(self, mock_config: MagicMock) -> None:
        _kubeconfig(mock_config)
        with ClusterClient(ClusterConfig()) as client:
            assert not client.closed
        assert client.closed
