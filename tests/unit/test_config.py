"""Tests for operator configuration."""

from __future__ import annotations

from seed_extension_operator.config import OperatorConfig, load_config


class TestLoadConfig:
    """Test cases for load_config function."""

    def test_defaults(self, monkeypatch) -> None:
        """Test the defaults without environment variables."""
        for var in (
            "PLATFORM_VERSION",
            "MANAGEMENT_IDENTITY",
            "SYSTEM_NAMESPACE",
            "DELETION_RECHECK_SECONDS",
            "SEED_KUBECONFIG",
        ):
            monkeypatch.delenv(var, raising=False)

        config = load_config()

        assert config.platform_version == "unknown"
        assert config.management_identity == ""
        assert config.system_namespace == "garden"
        assert config.deletion_recheck_seconds == 30.0
        assert config.seed_kubeconfig is None
        assert config.deployment_type == "helm"

    def test_from_environment(self, monkeypatch) -> None:
        """Test reading settings from the environment."""
        monkeypatch.setenv("PLATFORM_VERSION", "v1.90.0")
        monkeypatch.setenv("MANAGEMENT_CLUSTER_IDENTITY", "landscape-1")
        monkeypatch.setenv("DELETION_RECHECK_SECONDS", "5")
        monkeypatch.setenv("SEED_KUBECONFIG", "/etc/seed/kubeconfig")
        monkeypatch.setenv("METRICS_PORT", "9090")

        config = load_config()

        assert config.platform_version == "v1.90.0"
        assert config.management_cluster_identity == "landscape-1"
        assert config.deletion_recheck_seconds == 5.0
        assert config.seed_kubeconfig == "/etc/seed/kubeconfig"
        assert config.metrics_port == 9090


class TestOperatorConfig:
    """Test cases for OperatorConfig class."""

    def test_with_management_identity(self) -> None:
        """Test that the identity is filled in on a copy."""
        config = OperatorConfig(platform_version="v1")

        updated = config.with_management_identity("ns-uid")

        assert updated.management_identity == "ns-uid"
        assert updated.platform_version == "v1"
        assert config.management_identity == ""
