"""Handler for ControllerInstallation CRD."""

from __future__ import annotations

import dataclasses
import threading
from contextlib import contextmanager
from typing import Any, Iterator

import kopf

from .. import metrics
from ..builders.package import create_package_from_provider_config
from ..builders.values import create_injected_values, merge_values
from ..config import OperatorConfig, load_config
from ..constants import (
    API_GROUP_VERSION,
    COND_INSTALLED,
    COND_VALID,
    KIND_INSTALLATION,
    LABEL_REGISTRATION_NAME,
    LABEL_ROLE,
    NAMESPACE_PREFIX,
    REASON_CHART_CANNOT_BE_RENDERED,
    REASON_CHART_INFORMATION_INVALID,
    REASON_DELETION_FAILED,
    REASON_DELETION_PENDING,
    REASON_DELETION_SUCCESSFUL,
    REASON_INSTALLATION_FAILED,
    REASON_INSTALLATION_PENDING,
    REASON_REGISTRATION_VALID,
    ROLE_EXTENSION,
    STATUS_FALSE,
    STATUS_TRUE,
    STATUS_UNKNOWN,
)
from ..services.kubernetes.garden import GardenClient
from ..services.kubernetes.seed import SeedClient
from ..services.render.base import ChartRenderer
from ..services.render.helm import HelmRenderer
from ..tracing import trace_span
from ..utils.conditions import ConditionSet
from ..utils.errors import InvalidPackageError, describe_error, is_conflict, is_not_found
from ..utils.events import (
    emit_deletion_pending,
    emit_deletion_succeeded,
    emit_installation_applied,
    emit_validate_succeeded,
)
from .base import BaseHandler
from .dependencies import DependencyResolver
from .shared import get_garden_client, get_seed_client


@dataclasses.dataclass(frozen=True)
class ReconcileResult:
    """Outcome of a pass.

    ``requeue_after`` asks for another pass after a delay. ``released`` tells
    that the operator holds nothing for the installation anymore.
    """

    requeue_after: float | None = None
    message: str = ""
    released: bool = False


def namespace_for_installation(installation: dict[str, Any]) -> str:
    """Name of the seed namespace the extension of an installation runs in."""
    return f"{NAMESPACE_PREFIX}{installation['metadata']['name']}"


def installation_changed(old: dict[str, Any] | None, new: dict[str, Any] | None) -> bool:
    """Decide whether an update of an installation needs a new pass.

    Only a deletion, a changed deployment reference or a changed
    resourceVersion of the referenced registration or seed count.
    """
    old = old or {}
    new = new or {}
    if new.get("metadata", {}).get("deletionTimestamp"):
        return True

    old_spec = old.get("spec") or {}
    new_spec = new.get("spec") or {}
    if old_spec.get("deploymentRef") != new_spec.get("deploymentRef"):
        return True
    for ref in ("registrationRef", "seedRef"):
        old_version = (old_spec.get(ref) or {}).get("resourceVersion")
        new_version = (new_spec.get(ref) or {}).get("resourceVersion")
        if old_version != new_version:
            return True
    return False


class InstallationHandler(BaseHandler):
    """Handler for ControllerInstallation resources."""

    def __init__(
        self,
        config: OperatorConfig,
        garden: GardenClient,
        seed: SeedClient,
        renderer: ChartRenderer,
    ):
        """Initialize installation handler.

        Args:
            config: Operator configuration, including the injected identities
            garden: Client of the management cluster
            seed: Client of the seed cluster
            renderer: Engine rendering chart archives
        """
        super().__init__(KIND_INSTALLATION, garden)
        self.config = config
        self.seed = seed
        self.renderer = renderer
        self.resolver = DependencyResolver(garden, config.deployment_type)

    @contextmanager
    def conditions_patched(
        self,
        installation: dict[str, Any],
        ignore_not_found: bool = False,
    ) -> Iterator[ConditionSet]:
        """Load the conditions and patch them into status when the block exits.

        The patch is attempted on every exit, including exceptions. A failing
        patch is logged; it never replaces the error of the block.
        """
        conditions = ConditionSet.load((installation.get("status") or {}).get("conditions"))
        try:
            yield conditions
        finally:
            try:
                self.garden.patch_installation_conditions(installation["metadata"]["name"], conditions)
            except Exception as e:
                if not (ignore_not_found and is_not_found(e)):
                    self.log_error(installation, "Failed to patch conditions", error=e, reason="StatusPatchFailed")

    def is_responsible(self, installation: dict[str, Any]) -> bool:
        """Check whether this operator deploys the installation."""
        return self.resolver.is_responsible(installation)

    def is_tracked(self, installation: dict[str, Any]) -> bool:
        """Check whether the installation should be followed at all.

        An installation holding the finalizer stays tracked until the finalizer
        is released, even if its deployment is gone by then. Any other
        installation is tracked only while this operator is responsible for
        it; if that cannot be decided it is left alone until its next change.
        """
        if self.has_finalizer(installation):
            return True
        try:
            return self.is_responsible(installation)
        except Exception as e:
            if not is_not_found(e):
                self.log_warning(
                    installation,
                    f"Cannot decide responsibility: {describe_error(e)}",
                    reason="ResponsibilityUnknown",
                )
            return False

    def process(self, name: str) -> ReconcileResult:
        """Run one pass for the named installation."""
        try:
            installation = self.garden.get_installation(name)
        except Exception as e:
            if is_not_found(e):
                self.logger.debug(f"{KIND_INSTALLATION} {name} is gone, stop reconciling")
                return ReconcileResult(released=True)
            raise

        # Teardown of what the finalizer guards does not depend on the deployment
        deleting = bool(installation["metadata"].get("deletionTimestamp"))
        if not (deleting and self.has_finalizer(installation)) and not self.is_responsible(installation):
            return ReconcileResult(released=True)

        if deleting:
            return self.reconcile_with_metrics(installation, lambda: self.delete(installation))
        return self.reconcile_with_metrics(installation, lambda: self.reconcile(installation))

    def reconcile(self, installation: dict[str, Any]) -> ReconcileResult:
        """Reconcile ControllerInstallation resource."""
        name = installation["metadata"]["name"]
        spec = installation.get("spec", {})

        with trace_span("reconcile_installation", kind=self.kind, attributes={"installation.name": name}):
            installation = self.ensure_finalizer(installation)

            with self.conditions_patched(installation) as conditions:
                registration = self.resolver.registration(spec["registrationRef"]["name"], conditions)
                registration_name = registration["metadata"]["name"]
                seed = self.resolver.seed(spec["seedRef"]["name"], conditions)

                deployment = self.resolver.deployment(installation)
                provider_config = deployment.get("providerConfig") if deployment else None
                try:
                    package = create_package_from_provider_config(provider_config)
                except InvalidPackageError as e:
                    conditions.update(
                        COND_VALID,
                        STATUS_FALSE,
                        REASON_CHART_INFORMATION_INVALID,
                        f"Chart Information cannot be unmarshalled: {e}",
                    )
                    raise

                namespace = namespace_for_installation(installation)
                self.seed.ensure_namespace(
                    namespace,
                    {LABEL_ROLE: ROLE_EXTENSION, LABEL_REGISTRATION_NAME: registration_name},
                )

                values = merge_values(package.values, create_injected_values(seed, self.config))

                with trace_span("render_chart", kind=self.kind):
                    try:
                        rendered = self.renderer.render_archive(package.chart, registration_name, namespace, values)
                    except Exception as e:
                        conditions.update(
                            COND_VALID,
                            STATUS_FALSE,
                            REASON_CHART_CANNOT_BE_RENDERED,
                            f"Chart rendering process failed: {describe_error(e)}",
                        )
                        raise
                conditions.update(
                    COND_VALID,
                    STATUS_TRUE,
                    REASON_REGISTRATION_VALID,
                    "Chart could be rendered successfully.",
                )
                emit_validate_succeeded(installation)

                with trace_span("apply_managed_resource", kind=self.kind):
                    try:
                        self.seed.create_or_update_managed_resource(
                            self.config.system_namespace,
                            name,
                            self.config.managed_resource_class,
                            rendered.as_secret_data(),
                        )
                    except Exception as e:
                        conditions.update(
                            COND_INSTALLED,
                            STATUS_FALSE,
                            REASON_INSTALLATION_FAILED,
                            f"Creation of ManagedResource {name!r} failed: {describe_error(e)}",
                        )
                        raise
                emit_installation_applied(installation, name)
                self.log_info(installation, f"ManagedResource {name} created or updated", reason="InstallationApplied")

                # Whether the resources got applied is reported by the resource
                # manager on the ManagedResource and propagated elsewhere.
                if conditions[COND_INSTALLED].status == STATUS_UNKNOWN:
                    conditions.update(
                        COND_INSTALLED,
                        STATUS_FALSE,
                        REASON_INSTALLATION_PENDING,
                        f"Installation of ManagedResource {name!r} is still pending.",
                    )

        return ReconcileResult()

    def _pending(self, installation: dict[str, Any], conditions: ConditionSet, message: str) -> ReconcileResult:
        conditions.update(COND_INSTALLED, STATUS_FALSE, REASON_DELETION_PENDING, message)
        self.log_info(installation, message, event="deletion", reason=REASON_DELETION_PENDING)
        emit_deletion_pending(installation, message)
        return ReconcileResult(requeue_after=self.config.deletion_recheck_seconds, message=message)

    def _delete_secret(self, namespace: str, name: str) -> str | None:
        """Delete the managed resource secret without blocking the teardown.

        Returns:
            A description of the failure, or None if the secret is gone
        """
        try:
            self.seed.delete_secret(namespace, name)
        except Exception as e:
            if is_not_found(e):
                return None
            metrics.deletion_step_total.labels(step="secret", result="failed").inc()
            return f"Deletion of ManagedResource secret {name!r} failed: {describe_error(e)}"
        return None

    def delete(self, installation: dict[str, Any]) -> ReconcileResult:
        """Tear down what the installation created on the seed, then release it."""
        name = installation["metadata"]["name"]
        system_namespace = self.config.system_namespace

        with trace_span("delete_installation", kind=self.kind, attributes={"installation.name": name}):
            with self.conditions_patched(installation, ignore_not_found=True) as conditions:
                self.resolver.seed(installation["spec"]["seedRef"]["name"], conditions)

                # A delete call that succeeds only starts the deletion; the
                # resource counts as gone once a later call reports 404.
                try:
                    self.seed.delete_managed_resource(system_namespace, name)
                except Exception as e:
                    if not is_not_found(e):
                        metrics.deletion_step_total.labels(step="managed_resource", result="failed").inc()
                        conditions.update(
                            COND_INSTALLED,
                            STATUS_FALSE,
                            REASON_DELETION_FAILED,
                            f"Deletion of ManagedResource {name!r} failed: {describe_error(e)}",
                        )
                        raise
                else:
                    metrics.deletion_step_total.labels(step="managed_resource", result="pending").inc()
                    return self._pending(
                        installation, conditions, f"Deletion of ManagedResource {name!r} is still pending."
                    )
                metrics.deletion_step_total.labels(step="managed_resource", result="gone").inc()

                secret_failure = self._delete_secret(system_namespace, name)
                note = f" {secret_failure}" if secret_failure else ""
                if secret_failure:
                    self.log_warning(installation, secret_failure, event="deletion", reason="SecretDeletionFailed")

                namespace = namespace_for_installation(installation)
                try:
                    self.seed.delete_namespace(namespace)
                except Exception as e:
                    if is_conflict(e):
                        metrics.deletion_step_total.labels(step="namespace", result="pending").inc()
                        return self._pending(
                            installation, conditions, f"Deletion of Namespace {namespace!r} is still pending.{note}"
                        )
                    if not is_not_found(e):
                        metrics.deletion_step_total.labels(step="namespace", result="failed").inc()
                        conditions.update(
                            COND_INSTALLED,
                            STATUS_FALSE,
                            REASON_DELETION_FAILED,
                            f"Deletion of Namespace {namespace!r} failed: {describe_error(e)}{note}",
                        )
                        raise
                else:
                    metrics.deletion_step_total.labels(step="namespace", result="pending").inc()
                    return self._pending(
                        installation, conditions, f"Deletion of Namespace {namespace!r} is still pending.{note}"
                    )
                metrics.deletion_step_total.labels(step="namespace", result="gone").inc()

                conditions.update(
                    COND_INSTALLED,
                    STATUS_FALSE,
                    REASON_DELETION_SUCCESSFUL,
                    f"Deletion of old resources succeeded.{note}",
                )
                emit_deletion_succeeded(installation)
                self.remove_finalizer(installation)

        return ReconcileResult(released=True)


# Global handler instance, created on first use or by init_handler() at startup
_handler: InstallationHandler | None = None

_locks: dict[str, threading.Lock] = {}
_locks_guard = threading.Lock()


def init_handler(config: OperatorConfig) -> InstallationHandler:
    """Create the global handler from the operator configuration."""
    global _handler
    _handler = InstallationHandler(
        config,
        get_garden_client(),
        get_seed_client(config),
        HelmRenderer(config.helm_binary, config.helm_timeout_seconds),
    )
    return _handler


def get_handler() -> InstallationHandler:
    """Return the global handler, creating it from the environment if needed."""
    if _handler is None:
        return init_handler(load_config())
    return _handler


def _lock_for(name: str) -> threading.Lock:
    with _locks_guard:
        return _locks.setdefault(name, threading.Lock())


def _release_lock(name: str) -> None:
    with _locks_guard:
        _locks.pop(name, None)


def run_pass(name: str) -> None:
    """Run a pass and translate a requested re-check into a delayed retry.

    Change handlers and the resync timer may fire concurrently; passes for the
    same installation are serialized.
    """
    with _lock_for(name):
        result = get_handler().process(name)
    if result.released:
        _release_lock(name)
    if result.requeue_after is not None:
        raise kopf.TemporaryError(result.message, delay=result.requeue_after)


def installation_is_tracked(body: kopf.Body, **_: Any) -> bool:
    """Filter for all handlers, keeps kopf away from installations of other controllers."""
    return get_handler().is_tracked(dict(body))


@kopf.on.create(API_GROUP_VERSION, KIND_INSTALLATION, when=installation_is_tracked)
@kopf.on.resume(API_GROUP_VERSION, KIND_INSTALLATION, when=installation_is_tracked)
def handle_installation(
    name: str,
    **kwargs: Any,
) -> None:
    """Handle ControllerInstallation resource reconciliation."""
    run_pass(name)


@kopf.on.update(API_GROUP_VERSION, KIND_INSTALLATION, when=installation_is_tracked)
def handle_installation_update(
    name: str,
    old: dict[str, Any] | None,
    new: dict[str, Any] | None,
    **kwargs: Any,
) -> None:
    """Handle ControllerInstallation updates that affect the deployment."""
    if not installation_changed(old, new):
        return
    run_pass(name)


@kopf.timer(
    API_GROUP_VERSION,
    KIND_INSTALLATION,
    interval=load_config().resync_interval_seconds,
    when=installation_is_tracked,
)
def resync_installation(
    name: str,
    **kwargs: Any,
) -> None:
    """Periodically reconcile ControllerInstallation resources."""
    run_pass(name)


# kopf blocks deletion with the operator's own finalizer (see main.configure),
# so this handler runs for every tracked installation marked for deletion.
@kopf.on.delete(API_GROUP_VERSION, KIND_INSTALLATION, when=installation_is_tracked)
def handle_installation_delete(
    name: str,
    **kwargs: Any,
) -> None:
    """Handle ControllerInstallation resource deletion."""
    run_pass(name)
