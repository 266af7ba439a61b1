"""Shared utilities for handlers."""

from __future__ import annotations

from kubernetes import client, config

from ..config import OperatorConfig
from ..services.kubernetes.garden import GardenClient
from ..services.kubernetes.seed import SeedClient, create_seed_client


def load_default_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


def get_garden_client() -> GardenClient:
    """Get a client for the management cluster the operator watches."""
    load_default_config()
    return GardenClient(client.CustomObjectsApi())


def get_seed_client(operator_config: OperatorConfig) -> SeedClient:
    """Get a client for the seed cluster.

    Without SEED_KUBECONFIG the seed is the cluster the operator runs in.
    """
    if operator_config.seed_kubeconfig:
        api_client = config.new_client_from_config(config_file=operator_config.seed_kubeconfig)
        return create_seed_client(api_client)
    load_default_config()
    return create_seed_client(client.ApiClient())


def resolve_management_identity(operator_config: OperatorConfig) -> OperatorConfig:
    """Fill in the legacy management identity from the system namespace UID."""
    if operator_config.management_identity:
        return operator_config
    load_default_config()
    namespace = client.CoreV1Api().read_namespace(name=operator_config.system_namespace)
    return operator_config.with_management_identity(namespace.metadata.uid or "")
