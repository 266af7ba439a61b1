"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_DELETION_PENDING,
    EVENT_REASON_DELETION_SUCCEEDED,
    EVENT_REASON_INSTALLATION_APPLIED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource the event refers to
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_succeeded(body: dict[str, Any]) -> None:
    """Emit validation succeeded event."""
    emit_event(body, EVENT_REASON_VALIDATE_SUCCEEDED, "Chart could be rendered successfully")


def emit_installation_applied(body: dict[str, Any], managed_resource: str) -> None:
    """Emit installation applied event."""
    emit_event(body, EVENT_REASON_INSTALLATION_APPLIED, f"ManagedResource {managed_resource} created or updated")


def emit_deletion_pending(body: dict[str, Any], message: str) -> None:
    """Emit deletion pending event."""
    emit_event(body, EVENT_REASON_DELETION_PENDING, message)


def emit_deletion_succeeded(body: dict[str, Any]) -> None:
    """Emit deletion succeeded event."""
    emit_event(body, EVENT_REASON_DELETION_SUCCEEDED, "Deletion of old resources succeeded")
