"""Resolution of the objects an installation refers to."""

from __future__ import annotations

from typing import Any, Callable

from ..constants import (
    COND_VALID,
    DEPLOYMENT_TYPE_HELM,
    KIND_REGISTRATION,
    KIND_SEED,
    REASON_REGISTRATION_NOT_FOUND,
    REASON_REGISTRATION_READ_ERROR,
    REASON_SEED_NOT_FOUND,
    REASON_SEED_READ_ERROR,
    STATUS_FALSE,
    STATUS_UNKNOWN,
)
from ..services.kubernetes.garden import GardenClient
from ..utils.conditions import ConditionSet
from ..utils.errors import describe_error, is_not_found


class DependencyResolver:
    """Fetches referenced objects and records failed reads on the Valid condition.

    A missing object sets Valid=False, any other read failure Valid=Unknown.
    The error is re-raised in both cases.
    """

    def __init__(self, garden: GardenClient, deployment_type: str = DEPLOYMENT_TYPE_HELM):
        self.garden = garden
        self.deployment_type = deployment_type

    def _resolve(
        self,
        conditions: ConditionSet,
        kind: str,
        getter: Callable[[str], dict[str, Any]],
        name: str,
        not_found_reason: str,
        read_error_reason: str,
    ) -> dict[str, Any]:
        try:
            return getter(name)
        except Exception as e:
            if is_not_found(e):
                conditions.update(
                    COND_VALID,
                    STATUS_FALSE,
                    not_found_reason,
                    f"Referenced {kind} {name!r} does not exist: {describe_error(e)}",
                )
            else:
                conditions.update(
                    COND_VALID,
                    STATUS_UNKNOWN,
                    read_error_reason,
                    f"Referenced {kind} {name!r} cannot be read: {describe_error(e)}",
                )
            raise

    def registration(self, name: str, conditions: ConditionSet) -> dict[str, Any]:
        """Resolve the ControllerRegistration."""
        return self._resolve(
            conditions,
            KIND_REGISTRATION,
            self.garden.get_registration,
            name,
            REASON_REGISTRATION_NOT_FOUND,
            REASON_REGISTRATION_READ_ERROR,
        )

    def seed(self, name: str, conditions: ConditionSet) -> dict[str, Any]:
        """Resolve the Seed."""
        return self._resolve(
            conditions,
            KIND_SEED,
            self.garden.get_seed,
            name,
            REASON_SEED_NOT_FOUND,
            REASON_SEED_READ_ERROR,
        )

    def deployment(self, installation: dict[str, Any]) -> dict[str, Any] | None:
        """Resolve the ControllerDeployment, None if the installation has no reference."""
        ref = installation.get("spec", {}).get("deploymentRef")
        if not ref:
            return None
        return self.garden.get_deployment(ref["name"])

    def is_responsible(self, installation: dict[str, Any]) -> bool:
        """Check whether the installation is deployed with the handled deployment type.

        Raises:
            ApiException: If the referenced deployment cannot be read
        """
        deployment = self.deployment(installation)
        if deployment is None:
            return False
        return deployment.get("type") == self.deployment_type
