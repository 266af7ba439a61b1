"""Main entry point for the Seed Extension Operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging
from .config import load_config
from .constants import FINALIZER
from .handlers.installation import init_handler
from .handlers.shared import resolve_management_identity
from .tracing import initialize_tracing

logger = logging.getLogger(__name__)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    structured_logging.setup_structured_logging()
    initialize_tracing()

    # Progress in annotations keeps kopf away from the status conditions
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()
    # Deletion is blocked by the operator's own finalizer only, never by a kopf marker
    settings.persistence.finalizer = FINALIZER

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    operator_config = resolve_management_identity(load_config())
    init_handler(operator_config)
    logger.info(
        f"Handling deployments of type {operator_config.deployment_type!r}, "
        f"managed resources in namespace {operator_config.system_namespace!r}"
    )

    health.start_server(operator_config.metrics_port)
    health.mark_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Report not ready while the operator stops."""
    health.mark_not_ready()


def main() -> None:
    """Run the operator against all cluster-scoped installations."""
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
