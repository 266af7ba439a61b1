"""Access to the target seed cluster."""

from __future__ import annotations

import base64
import logging
from typing import Any

from kubernetes import client

from ... import metrics
from ...constants import (
    FIELD_MANAGER,
    KIND_MANAGED_RESOURCE,
    PLURAL_MANAGED_RESOURCES,
    RESOURCES_API_GROUP,
    RESOURCES_API_VERSION,
)
from ...utils.errors import is_conflict, is_not_found

logger = logging.getLogger(__name__)


def _record(operation: str, result: str) -> None:
    metrics.api_call_total.labels(cluster="seed", operation=operation, result=result).inc()


class SeedClient:
    """Creates and deletes the resources an installation owns on the seed."""

    def __init__(self, core_api: client.CoreV1Api, custom_api: client.CustomObjectsApi) -> None:
        """Initialize the client.

        Args:
            core_api: CoreV1Api of the seed cluster
            custom_api: CustomObjectsApi of the seed cluster
        """
        self.core_api = core_api
        self.custom_api = custom_api

    def ensure_namespace(self, name: str, labels: dict[str, str]) -> str:
        """Create the namespace or merge the given labels into it.

        Only labels are reconciled; other fields of an existing namespace are
        left untouched.

        Returns:
            "created", "updated" or "unchanged"
        """
        try:
            existing = self.core_api.read_namespace(name=name)
        except client.exceptions.ApiException as e:
            if not is_not_found(e):
                _record("read_namespace", "error")
                raise
            body = client.V1Namespace(metadata=client.V1ObjectMeta(name=name, labels=labels))
            self.core_api.create_namespace(body=body, field_manager=FIELD_MANAGER)
            _record("create_namespace", "success")
            logger.info(f"Created namespace {name}")
            return "created"

        current_labels = existing.metadata.labels or {}
        if all(current_labels.get(key) == value for key, value in labels.items()):
            return "unchanged"

        self.core_api.patch_namespace(
            name=name,
            body={"metadata": {"labels": labels}},
            field_manager=FIELD_MANAGER,
        )
        _record("patch_namespace", "success")
        logger.info(f"Updated labels of namespace {name}")
        return "updated"

    def create_or_update_secret(self, namespace: str, name: str, data: dict[str, bytes]) -> None:
        """Create the secret or replace its data."""
        secret = client.V1Secret(
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
            type="Opaque",
            data={key: base64.b64encode(value).decode("ascii") for key, value in data.items()},
        )
        try:
            self.core_api.create_namespaced_secret(namespace=namespace, body=secret, field_manager=FIELD_MANAGER)
            _record("create_secret", "success")
        except client.exceptions.ApiException as e:
            if not is_conflict(e):
                _record("create_secret", "error")
                raise
            # Already exists; replace so stale template keys disappear
            self.core_api.replace_namespaced_secret(
                name=name, namespace=namespace, body=secret, field_manager=FIELD_MANAGER
            )
            _record("replace_secret", "success")

    def create_or_update_managed_resource(
        self,
        namespace: str,
        name: str,
        resource_class: str,
        data: dict[str, bytes],
        keep_objects: bool = False,
    ) -> None:
        """Materialize rendered manifests as a ManagedResource and its secret.

        Both objects are named ``name``. Safe to call repeatedly.

        Args:
            namespace: Namespace of the managed resource
            name: Name of the managed resource and its secret
            resource_class: Class of the resource manager that applies it
            data: Rendered manifests as secret data
            keep_objects: Keep applied objects when the resource is deleted
        """
        self.create_or_update_secret(namespace, name, data)

        spec = {
            "secretRefs": [{"name": name}],
            "class": resource_class,
            "keepObjects": keep_objects,
        }
        body = {
            "apiVersion": f"{RESOURCES_API_GROUP}/{RESOURCES_API_VERSION}",
            "kind": KIND_MANAGED_RESOURCE,
            "metadata": {"name": name, "namespace": namespace},
            "spec": spec,
        }
        try:
            self.custom_api.create_namespaced_custom_object(
                group=RESOURCES_API_GROUP,
                version=RESOURCES_API_VERSION,
                namespace=namespace,
                plural=PLURAL_MANAGED_RESOURCES,
                body=body,
            )
            _record("create_managed_resource", "success")
        except client.exceptions.ApiException as e:
            if not is_conflict(e):
                _record("create_managed_resource", "error")
                raise
            self.custom_api.patch_namespaced_custom_object(
                group=RESOURCES_API_GROUP,
                version=RESOURCES_API_VERSION,
                namespace=namespace,
                plural=PLURAL_MANAGED_RESOURCES,
                name=name,
                body={"spec": spec},
            )
            _record("patch_managed_resource", "success")

    def delete_managed_resource(self, namespace: str, name: str) -> None:
        """Request deletion of a ManagedResource.

        Raises:
            ApiException: With status 404 once the resource is gone
        """
        self.custom_api.delete_namespaced_custom_object(
            group=RESOURCES_API_GROUP,
            version=RESOURCES_API_VERSION,
            namespace=namespace,
            plural=PLURAL_MANAGED_RESOURCES,
            name=name,
        )
        _record("delete_managed_resource", "success")

    def delete_secret(self, namespace: str, name: str) -> None:
        """Delete a secret, raising ApiException like the API does."""
        self.core_api.delete_namespaced_secret(name=name, namespace=namespace)
        _record("delete_secret", "success")

    def delete_namespace(self, name: str) -> None:
        """Request deletion of a namespace.

        Raises:
            ApiException: With status 404 once the namespace is gone, 409 while
                it is terminating
        """
        self.core_api.delete_namespace(name=name)
        _record("delete_namespace", "success")


def create_seed_client(api_client: Any) -> SeedClient:
    """Create a SeedClient on top of an ApiClient."""
    return SeedClient(client.CoreV1Api(api_client), client.CustomObjectsApi(api_client))
