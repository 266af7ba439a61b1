"""Base handler class with common functionality for all CRD handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, TypeVar

from .. import metrics
from ..constants import FINALIZER
from ..logging import log_resource_event
from ..services.kubernetes.garden import GardenClient
from ..utils.errors import sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started

_T = TypeVar("_T")

CONTROLLER_NAME = "seed-extension-operator"


class BaseHandler:
    """Base class for all CRD handlers with common functionality."""

    def __init__(self, kind: str, garden: GardenClient):
        """Initialize base handler.

        Args:
            kind: The Kubernetes resource kind (e.g., "ControllerInstallation")
            garden: Client of the management cluster
        """
        self.kind = kind
        self.garden = garden
        self.logger = logging.getLogger(__name__)

    def _log(
        self,
        level: int,
        body: dict[str, Any],
        message: str,
        event: str,
        reason: str,
        **kwargs: Any,
    ) -> None:
        meta = body.get("metadata", {})
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=meta.get("name", "unknown"),
            uid=meta.get("uid", "unknown"),
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def log_info(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "info",
        reason: str = "Info",
        **kwargs: Any,
    ) -> None:
        """Log an info-level structured log message."""
        self._log(logging.INFO, body, message, event, reason, **kwargs)

    def log_warning(
        self,
        body: dict[str, Any],
        message: str,
        event: str = "warning",
        reason: str = "Warning",
        **kwargs: Any,
    ) -> None:
        """Log a warning-level structured log message."""
        self._log(logging.WARNING, body, message, event, reason, **kwargs)

    def log_error(
        self,
        body: dict[str, Any],
        message: str,
        error: BaseException | None = None,
        event: str = "error",
        reason: str = "Error",
        **kwargs: Any,
    ) -> None:
        """Log an error-level structured log message.

        Args:
            body: Resource the message refers to
            message: Log message
            error: Optional exception to include sanitized error details
            event: Event type (default: "error")
            reason: Reason for the event (default: "Error")
            **kwargs: Additional fields to include in the log
        """
        if error is not None:
            kwargs["error"] = sanitize_exception(error)
            kwargs["error_type"] = type(error).__name__
        self._log(logging.ERROR, body, message, event, reason, **kwargs)

    def has_finalizer(self, body: dict[str, Any]) -> bool:
        """Check whether the resource carries the operator's finalizer."""
        return FINALIZER in (body.get("metadata", {}).get("finalizers") or [])

    def ensure_finalizer(self, body: dict[str, Any]) -> dict[str, Any]:
        """Add the finalizer unless present.

        Returns:
            The resource as stored after the patch, or ``body`` if unchanged
        """
        if self.has_finalizer(body):
            return body

        self.log_info(body, "Adding finalizer", reason="FinalizerAdded")
        return self.garden.add_finalizer(body["metadata"]["name"], FINALIZER)

    def remove_finalizer(self, body: dict[str, Any]) -> None:
        """Remove the finalizer if present."""
        if not self.has_finalizer(body):
            return

        self.log_info(body, "Removing finalizer", reason="FinalizerRemoved")
        self.garden.remove_finalizer(body["metadata"]["name"], FINALIZER)

    def reconcile_with_metrics(
        self,
        body: dict[str, Any],
        reconcile_fn: Callable[[], _T],
    ) -> _T:
        """Execute reconciliation with metrics and error handling.

        Args:
            body: Resource being reconciled
            reconcile_fn: Function to execute for reconciliation

        Returns:
            Whatever ``reconcile_fn`` returns
        """
        emit_reconcile_started(body)
        metrics.reconcile_total.labels(kind=self.kind, result="started").inc()

        start_time = time.time()
        try:
            result = reconcile_fn()
            metrics.reconcile_total.labels(kind=self.kind, result="success").inc()
            return result
        except Exception as e:
            sanitized_error = sanitize_exception(e)
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(body, "Reconciliation failed", error=e, reason="ReconciliationFailed")
            emit_reconcile_failed(body, f"Reconciliation failed: {sanitized_error}")
            metrics.reconcile_total.labels(kind=self.kind, result="error").inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(duration)
