"""Tests for the helm chart renderer."""

from __future__ import annotations

import subprocess
from unittest.mock import Mock, patch

import pytest
import yaml

from seed_extension_operator.services.render.base import RenderedChart
from seed_extension_operator.services.render.helm import HelmRenderer, parse_template_output
from seed_extension_operator.utils.errors import RenderError

TEMPLATE_OUTPUT = """---
# Source: ext/templates/serviceaccount.yaml
apiVersion: v1
kind: ServiceAccount
metadata:
  name: ext
---
# Source: ext/templates/deployment.yaml
apiVersion: apps/v1
kind: Deployment
metadata:
  name: ext
---
# Source: ext/templates/rbac.yaml
apiVersion: rbac.authorization.k8s.io/v1
kind: Role
metadata:
  name: ext
---
# Source: ext/templates/rbac.yaml
apiVersion: rbac.authorization.k8s.io/v1
kind: RoleBinding
metadata:
  name: ext
---
# Source: ext/templates/empty.yaml
"""


class TestParseTemplateOutput:
    """Test cases for parse_template_output function."""

    def test_splits_by_source(self) -> None:
        """Test that manifests are keyed by template path."""
        manifests = parse_template_output(TEMPLATE_OUTPUT)

        assert sorted(manifests) == [
            "ext/templates/deployment.yaml",
            "ext/templates/rbac.yaml",
            "ext/templates/serviceaccount.yaml",
        ]
        assert "kind: Deployment" in manifests["ext/templates/deployment.yaml"]

    def test_documents_of_same_template_joined(self) -> None:
        """Test that documents of one template stay together."""
        manifests = parse_template_output(TEMPLATE_OUTPUT)

        docs = list(yaml.safe_load_all(manifests["ext/templates/rbac.yaml"]))
        assert [d["kind"] for d in docs] == ["Role", "RoleBinding"]

    def test_document_without_source_dropped(self) -> None:
        """Test that documents without a source comment are ignored."""
        assert parse_template_output("---\nkind: ConfigMap\n") == {}

    def test_invalid_yaml(self) -> None:
        """Test that invalid YAML fails rendering."""
        output = "---\n# Source: ext/templates/bad.yaml\nkey: [unclosed\n"
        with pytest.raises(RenderError, match="ext/templates/bad.yaml"):
            parse_template_output(output)


class TestRenderedChart:
    """Test cases for RenderedChart class."""

    def test_as_secret_data(self) -> None:
        """Test that template paths are flattened into secret keys."""
        rendered = RenderedChart(
            name="ext",
            namespace="extension-ext",
            manifests={"ext/templates/deployment.yaml": "kind: Deployment\n"},
        )

        assert rendered.as_secret_data() == {"ext_templates_deployment.yaml": b"kind: Deployment\n"}


class TestHelmRenderer:
    """Test cases for HelmRenderer class."""

    @patch("seed_extension_operator.services.render.helm.subprocess.run")
    def test_render_archive(self, mock_run) -> None:
        """Test rendering a chart archive with helm template."""
        mock_run.return_value = Mock(returncode=0, stdout=TEMPLATE_OUTPUT, stderr="")
        renderer = HelmRenderer(binary="/usr/bin/helm", timeout=5.0)

        rendered = renderer.render_archive(b"archive", "ext", "extension-ext", {"replicas": 1})

        assert rendered.name == "ext"
        assert rendered.namespace == "extension-ext"
        assert "ext/templates/deployment.yaml" in rendered.manifests

        command = mock_run.call_args[0][0]
        assert command[:3] == ["/usr/bin/helm", "template", "ext"]
        assert command[command.index("--namespace") + 1] == "extension-ext"
        assert "--values" in command
        assert mock_run.call_args[1]["timeout"] == 5.0

    @patch("seed_extension_operator.services.render.helm.subprocess.run")
    def test_render_failure(self, mock_run) -> None:
        """Test that a failing helm invocation raises RenderError."""
        mock_run.return_value = Mock(returncode=1, stdout="", stderr="Error: parse error in deployment.yaml\n")

        with pytest.raises(RenderError, match="parse error"):
            HelmRenderer().render_archive(b"archive", "ext", "extension-ext", {})

    @patch("seed_extension_operator.services.render.helm.subprocess.run")
    def test_missing_binary(self, mock_run) -> None:
        """Test that a missing helm executable raises RenderError."""
        mock_run.side_effect = FileNotFoundError("helm")

        with pytest.raises(RenderError, match="not found"):
            HelmRenderer().render_archive(b"archive", "ext", "extension-ext", {})

    @patch("seed_extension_operator.services.render.helm.subprocess.run")
    def test_timeout(self, mock_run) -> None:
        """Test that a render exceeding the timeout raises RenderError."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="helm", timeout=1.0)

        with pytest.raises(RenderError, match="timed out"):
            HelmRenderer(timeout=1.0).render_archive(b"archive", "ext", "extension-ext", {})
