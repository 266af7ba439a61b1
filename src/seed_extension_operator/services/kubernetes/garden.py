"""Access to the operator's resources in the management cluster."""

from __future__ import annotations

import logging
from typing import Any, Callable

from kubernetes import client

from ... import metrics
from ...constants import (
    API_GROUP,
    API_VERSION,
    PLURAL_DEPLOYMENTS,
    PLURAL_INSTALLATIONS,
    PLURAL_REGISTRATIONS,
    PLURAL_SEEDS,
)
from ...utils.conditions import ConditionSet
from ...utils.errors import is_conflict

logger = logging.getLogger(__name__)


class GardenClient:
    """Reads and patches cluster-scoped resources of the management cluster.

    Errors surface as ``ApiException``; a missing object is signalled by
    status 404.
    """

    def __init__(self, api: client.CustomObjectsApi, max_conflict_retries: int = 3) -> None:
        """Initialize the client.

        Args:
            api: CustomObjectsApi of the management cluster
            max_conflict_retries: Attempts for optimistic-lock patches
        """
        self.api = api
        self.max_conflict_retries = max_conflict_retries

    def _call(self, operation: str, fn: Callable[..., Any], **kwargs: Any) -> Any:
        try:
            result = fn(group=API_GROUP, version=API_VERSION, **kwargs)
        except Exception:
            metrics.api_call_total.labels(cluster="garden", operation=operation, result="error").inc()
            raise
        metrics.api_call_total.labels(cluster="garden", operation=operation, result="success").inc()
        return result

    def _get(self, plural: str, name: str) -> dict[str, Any]:
        return self._call(f"get_{plural}", self.api.get_cluster_custom_object, plural=plural, name=name)

    def get_installation(self, name: str) -> dict[str, Any]:
        """Get a ControllerInstallation by name."""
        return self._get(PLURAL_INSTALLATIONS, name)

    def get_registration(self, name: str) -> dict[str, Any]:
        """Get a ControllerRegistration by name."""
        return self._get(PLURAL_REGISTRATIONS, name)

    def get_deployment(self, name: str) -> dict[str, Any]:
        """Get a ControllerDeployment by name."""
        return self._get(PLURAL_DEPLOYMENTS, name)

    def get_seed(self, name: str) -> dict[str, Any]:
        """Get a Seed by name."""
        return self._get(PLURAL_SEEDS, name)

    def _update_installation(
        self,
        name: str,
        operation: str,
        patch_fn: Callable[..., Any],
        build_body: Callable[[dict[str, Any]], dict[str, Any] | None],
    ) -> dict[str, Any]:
        """Read-modify-write an installation under optimistic locking.

        ``build_body`` receives the latest object and returns the patch body,
        or None if nothing needs to change. The patch carries the read
        resourceVersion and is retried on conflicts.
        """
        attempt = 0
        while True:
            attempt += 1
            current = self.get_installation(name)
            body = build_body(current)
            if body is None:
                return current
            body.setdefault("metadata", {})["resourceVersion"] = current.get("metadata", {}).get("resourceVersion")
            try:
                return self._call(operation, patch_fn, plural=PLURAL_INSTALLATIONS, name=name, body=body)
            except client.exceptions.ApiException as e:
                if not is_conflict(e) or attempt >= self.max_conflict_retries:
                    raise
                logger.debug(f"Conflict during {operation} of {name}, retrying ({attempt})")

    def add_finalizer(self, name: str, finalizer: str) -> dict[str, Any]:
        """Add a finalizer to an installation unless present."""

        def build_body(current: dict[str, Any]) -> dict[str, Any] | None:
            finalizers = list(current.get("metadata", {}).get("finalizers") or [])
            if finalizer in finalizers:
                return None
            return {"metadata": {"finalizers": finalizers + [finalizer]}}

        return self._update_installation(name, "add_finalizer", self.api.patch_cluster_custom_object, build_body)

    def remove_finalizer(self, name: str, finalizer: str) -> dict[str, Any]:
        """Remove a finalizer from an installation if present."""

        def build_body(current: dict[str, Any]) -> dict[str, Any] | None:
            finalizers = list(current.get("metadata", {}).get("finalizers") or [])
            if finalizer not in finalizers:
                return None
            finalizers.remove(finalizer)
            return {"metadata": {"finalizers": finalizers}}

        return self._update_installation(name, "remove_finalizer", self.api.patch_cluster_custom_object, build_body)

    def patch_installation_conditions(self, name: str, conditions: ConditionSet) -> dict[str, Any]:
        """Merge conditions into the status of an installation.

        The latest status is read and merged by condition type so conditions
        written by other parties survive.
        """

        def build_body(current: dict[str, Any]) -> dict[str, Any]:
            merged = conditions.merge_into((current.get("status") or {}).get("conditions"))
            return {"status": {"conditions": merged}}

        return self._update_installation(
            name, "patch_status", self.api.patch_cluster_custom_object_status, build_body
        )
