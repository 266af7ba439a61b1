"""Operator configuration read from the environment."""

from __future__ import annotations

import dataclasses
import os

from .constants import DEPLOYMENT_TYPE_HELM


@dataclasses.dataclass(frozen=True)
class OperatorConfig:
    """Settings of one operator process.

    The identity values are injected into every rendered chart, so they are
    passed explicitly to the handler instead of being read ad hoc.
    """

    platform_version: str = "unknown"
    management_identity: str = ""
    management_cluster_identity: str = ""
    system_namespace: str = "garden"
    managed_resource_class: str = "seed"
    deployment_type: str = DEPLOYMENT_TYPE_HELM
    deletion_recheck_seconds: float = 30.0
    resync_interval_seconds: float = 300.0
    helm_binary: str = "helm"
    helm_timeout_seconds: float = 60.0
    seed_kubeconfig: str | None = None
    metrics_port: int = 8080

    def with_management_identity(self, identity: str) -> OperatorConfig:
        """Return a copy with the management plane identity filled in."""
        return dataclasses.replace(self, management_identity=identity)


def load_config() -> OperatorConfig:
    """Read the operator configuration from environment variables.

    Environment Variables:
        PLATFORM_VERSION: Version reported to charts (default: unknown)
        MANAGEMENT_IDENTITY: Legacy identity of the management plane
            (default: UID of the system namespace, resolved at startup)
        MANAGEMENT_CLUSTER_IDENTITY: Cluster identity of the management plane
        SYSTEM_NAMESPACE: Namespace holding managed resources (default: garden)
        MANAGED_RESOURCE_CLASS: Class of created managed resources (default: seed)
        DELETION_RECHECK_SECONDS: Delay between deletion checks (default: 30)
        RESYNC_INTERVAL_SECONDS: Interval of the periodic resync (default: 300)
        HELM_BINARY: Path of the helm executable (default: helm)
        HELM_TIMEOUT_SECONDS: Timeout of a single render (default: 60)
        SEED_KUBECONFIG: Kubeconfig of the seed cluster (default: same cluster)
        METRICS_PORT: Port of the metrics and health server (default: 8080)
    """
    return OperatorConfig(
        platform_version=os.getenv("PLATFORM_VERSION", "unknown"),
        management_identity=os.getenv("MANAGEMENT_IDENTITY", ""),
        management_cluster_identity=os.getenv("MANAGEMENT_CLUSTER_IDENTITY", ""),
        system_namespace=os.getenv("SYSTEM_NAMESPACE", "garden"),
        managed_resource_class=os.getenv("MANAGED_RESOURCE_CLASS", "seed"),
        deletion_recheck_seconds=float(os.getenv("DELETION_RECHECK_SECONDS", "30")),
        resync_interval_seconds=float(os.getenv("RESYNC_INTERVAL_SECONDS", "300")),
        helm_binary=os.getenv("HELM_BINARY", "helm"),
        helm_timeout_seconds=float(os.getenv("HELM_TIMEOUT_SECONDS", "60")),
        seed_kubeconfig=os.getenv("SEED_KUBECONFIG") or None,
        metrics_port=int(os.getenv("METRICS_PORT", "8080")),
    )
