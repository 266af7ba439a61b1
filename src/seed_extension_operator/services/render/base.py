"""Chart renderer interface."""

from __future__ import annotations

import dataclasses
from typing import Any, Protocol


@dataclasses.dataclass(frozen=True)
class RenderedChart:
    """Manifests produced by rendering a chart, keyed by template path."""

    name: str
    namespace: str
    manifests: dict[str, str]

    def as_secret_data(self) -> dict[str, bytes]:
        """Return the manifests as secret data.

        Secret keys may not contain slashes, so template paths are flattened.
        """
        return {
            path.replace("/", "_"): content.encode("utf-8")
            for path, content in sorted(self.manifests.items())
        }


class ChartRenderer(Protocol):
    """Protocol defining chart rendering."""

    def render_archive(
        self,
        chart: bytes,
        release_name: str,
        namespace: str,
        values: dict[str, Any],
    ) -> RenderedChart:
        """Render a packaged chart archive.

        Raises:
            RenderError: If the chart cannot be rendered
        """
        ...
