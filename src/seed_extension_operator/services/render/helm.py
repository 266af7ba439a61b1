"""Chart renderer backed by the helm executable."""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
import time
from typing import Any

import yaml

from ... import metrics
from ...utils.errors import RenderError
from .base import RenderedChart

logger = logging.getLogger(__name__)

SOURCE_PREFIX = "# Source: "


def parse_template_output(output: str) -> dict[str, str]:
    """Split the output of ``helm template`` into manifests per template.

    Every document printed by helm starts with a ``# Source: <path>`` comment.
    Documents from the same template are joined again, documents without
    a source comment or without content are dropped.

    Raises:
        RenderError: If a document is not valid YAML
    """
    manifests: dict[str, list[str]] = {}

    for document in output.split("\n---"):
        lines = document.strip("\n").splitlines()
        if lines and lines[0].strip() == "---":
            lines = lines[1:]
        if not lines or not lines[0].startswith(SOURCE_PREFIX):
            continue

        source = lines[0][len(SOURCE_PREFIX):].strip()
        content = "\n".join(lines[1:]).strip()
        if not content:
            continue

        try:
            list(yaml.safe_load_all(content))
        except yaml.YAMLError as e:
            raise RenderError(f"template {source} produced invalid YAML: {e}") from e

        manifests.setdefault(source, []).append(content)

    return {source: "\n---\n".join(docs) + "\n" for source, docs in manifests.items()}


class HelmRenderer:
    """Render chart archives with ``helm template``."""

    def __init__(self, binary: str = "helm", timeout: float = 60.0) -> None:
        """Initialize the renderer.

        Args:
            binary: Path or name of the helm executable
            timeout: Timeout for a single render in seconds
        """
        self.binary = binary
        self.timeout = timeout

    def render_archive(
        self,
        chart: bytes,
        release_name: str,
        namespace: str,
        values: dict[str, Any],
    ) -> RenderedChart:
        """Render a packaged chart archive."""
        start_time = time.time()
        try:
            manifests = self._template(chart, release_name, namespace, values)
        except RenderError:
            metrics.render_total.labels(result="failed").inc()
            raise
        finally:
            metrics.render_duration_seconds.observe(time.time() - start_time)

        metrics.render_total.labels(result="success").inc()
        return RenderedChart(name=release_name, namespace=namespace, manifests=manifests)

    def _template(
        self,
        chart: bytes,
        release_name: str,
        namespace: str,
        values: dict[str, Any],
    ) -> dict[str, str]:
        with tempfile.TemporaryDirectory(prefix="chart-") as workdir:
            chart_path = os.path.join(workdir, "chart.tgz")
            values_path = os.path.join(workdir, "values.yaml")
            with open(chart_path, "wb") as f:
                f.write(chart)
            with open(values_path, "w", encoding="utf-8") as f:
                yaml.safe_dump(values, f, default_flow_style=False)

            command = [
                self.binary,
                "template",
                release_name,
                chart_path,
                "--namespace",
                namespace,
                "--values",
                values_path,
            ]
            logger.debug(f"Rendering chart for release {release_name} in namespace {namespace}")
            try:
                result = subprocess.run(
                    command,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except FileNotFoundError as e:
                raise RenderError(f"helm executable {self.binary!r} not found") from e
            except subprocess.TimeoutExpired as e:
                raise RenderError(f"rendering timed out after {self.timeout}s") from e

        if result.returncode != 0:
            raise RenderError(result.stderr.strip() or f"helm exited with code {result.returncode}")

        return parse_template_output(result.stdout)
