"""Tests for shared handler utilities."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock, patch

from kubernetes import config as k8s_config

from seed_extension_operator.config import OperatorConfig
from seed_extension_operator.handlers.shared import (
    get_seed_client,
    load_default_config,
    resolve_management_identity,
)
from seed_extension_operator.services.kubernetes.seed import SeedClient


class TestLoadDefaultConfig:
    """Test cases for load_default_config function."""

    @patch("seed_extension_operator.handlers.shared.config.load_kube_config")
    @patch("seed_extension_operator.handlers.shared.config.load_incluster_config")
    def test_in_cluster(self, mock_incluster, mock_kube_config):
        """Test that in-cluster configuration is preferred."""
        load_default_config()

        mock_incluster.assert_called_once()
        mock_kube_config.assert_not_called()

    @patch("seed_extension_operator.handlers.shared.config.load_kube_config")
    @patch("seed_extension_operator.handlers.shared.config.load_incluster_config")
    def test_falls_back_to_kubeconfig(self, mock_incluster, mock_kube_config):
        """Test falling back to the local kubeconfig outside a cluster."""
        mock_incluster.side_effect = k8s_config.ConfigException("not in cluster")

        load_default_config()

        mock_kube_config.assert_called_once()


class TestGetSeedClient:
    """Test cases for get_seed_client function."""

    @patch("seed_extension_operator.handlers.shared.config.new_client_from_config")
    def test_separate_kubeconfig(self, mock_new_client):
        """Test that a seed kubeconfig gets its own API client."""
        mock_new_client.return_value = MagicMock()

        seed = get_seed_client(OperatorConfig(seed_kubeconfig="/etc/seed/kubeconfig"))

        mock_new_client.assert_called_once_with(config_file="/etc/seed/kubeconfig")
        assert isinstance(seed, SeedClient)

    @patch("seed_extension_operator.handlers.shared.client.ApiClient")
    @patch("seed_extension_operator.handlers.shared.load_default_config")
    def test_same_cluster(self, mock_load, mock_api_client):
        """Test that without kubeconfig the operator's cluster is the seed."""
        seed = get_seed_client(OperatorConfig())

        mock_load.assert_called_once()
        mock_api_client.assert_called_once_with()
        assert isinstance(seed, SeedClient)


class TestResolveManagementIdentity:
    """Test cases for resolve_management_identity function."""

    @patch("seed_extension_operator.handlers.shared.client.CoreV1Api")
    @patch("seed_extension_operator.handlers.shared.load_default_config")
    def test_uses_system_namespace_uid(self, mock_load, mock_core_api):
        """Test that the identity defaults to the system namespace UID."""
        namespace = Mock()
        namespace.metadata.uid = "ns-uid"
        mock_core_api.return_value.read_namespace.return_value = namespace

        config = resolve_management_identity(OperatorConfig(system_namespace="garden"))

        assert config.management_identity == "ns-uid"
        mock_core_api.return_value.read_namespace.assert_called_once_with(name="garden")

    @patch("seed_extension_operator.handlers.shared.client.CoreV1Api")
    def test_configured_identity_kept(self, mock_core_api):
        """Test that a configured identity is not overridden."""
        original = OperatorConfig(management_identity="configured")

        assert resolve_management_identity(original) is original
        mock_core_api.assert_not_called()
