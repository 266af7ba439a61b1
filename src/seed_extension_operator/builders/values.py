"""Builder for the values injected into every rendered chart."""

from __future__ import annotations

import copy
from typing import Any

from ..config import OperatorConfig
from ..constants import INJECTED_VALUES_KEY, SEED_TAINT_PROTECTED
from ..utils.errors import SeedNotBootstrappedError


def get_ingress_domain(seed_spec: dict[str, Any]) -> str | None:
    """Ingress domain of a seed; the legacy DNS field wins when set."""
    legacy = (seed_spec.get("dns") or {}).get("ingressDomain")
    if legacy is not None:
        return legacy
    return (seed_spec.get("ingress") or {}).get("domain")


def taints_have(taints: list[dict[str, Any]] | None, key: str) -> bool:
    """Check whether a taint with the given key is present."""
    return any(taint.get("key") == key for taint in taints or [])


def create_seed_values(seed: dict[str, Any]) -> dict[str, Any]:
    """Create the seed part of the injected values.

    Args:
        seed: Seed object

    Returns:
        Values describing the seed

    Raises:
        SeedNotBootstrappedError: If the seed has no cluster identity yet
    """
    metadata = seed.get("metadata", {})
    spec = seed.get("spec", {})
    seed_name = metadata.get("name", "")

    cluster_identity = (seed.get("status") or {}).get("clusterIdentity")
    if not cluster_identity:
        raise SeedNotBootstrappedError(seed_name)

    volume_providers = (spec.get("volume") or {}).get("providers") or []
    volume_provider = volume_providers[0].get("name", "") if volume_providers else ""

    provider = spec.get("provider") or {}
    networks = spec.get("networks") or {}
    scheduling = (spec.get("settings") or {}).get("scheduling") or {}

    return {
        # 'identity' is kept for charts that predate 'clusterIdentity'
        "identity": seed_name,
        "clusterIdentity": cluster_identity,
        "annotations": metadata.get("annotations") or {},
        "labels": metadata.get("labels") or {},
        "provider": provider.get("type", ""),
        "region": provider.get("region", ""),
        "volumeProvider": volume_provider,
        "volumeProviders": volume_providers,
        "ingressDomain": get_ingress_domain(spec),
        "protected": taints_have(spec.get("taints"), SEED_TAINT_PROTECTED),
        "visible": scheduling.get("visible", True),
        "taints": spec.get("taints") or [],
        "networks": networks,
        "blockCIDRs": networks.get("blockCIDRs") or [],
        "spec": spec,
    }


def create_injected_values(seed: dict[str, Any], config: OperatorConfig) -> dict[str, Any]:
    """Create the values injected under the reserved top-level key."""
    return {
        INJECTED_VALUES_KEY: {
            "version": config.platform_version,
            "managementPlane": {
                # 'identity' is kept for charts that predate 'clusterIdentity'
                "identity": config.management_identity,
                "clusterIdentity": config.management_cluster_identity,
            },
            "seed": create_seed_values(seed),
        }
    }


def merge_values(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two value maps, values of ``override`` take precedence.

    Nested maps are merged key by key, any other value in ``override``
    replaces the one in ``base``. Neither input is modified.
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_values(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
