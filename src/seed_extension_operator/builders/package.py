"""Builder for chart packages from deployment provider configuration."""

from __future__ import annotations

import base64
import binascii
import dataclasses
import json
from typing import Any

from ..utils.errors import InvalidPackageError


@dataclasses.dataclass(frozen=True)
class PackageDescriptor:
    """Chart archive plus the values shipped with it."""

    chart: bytes
    values: dict[str, Any]


def _decode_chart(raw: Any) -> bytes:
    if isinstance(raw, bytes):
        return raw
    if not isinstance(raw, str):
        raise InvalidPackageError(f"chart must be a base64 encoded string, got {type(raw).__name__}")
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidPackageError(f"chart is not valid base64: {e}") from e


def create_package_from_provider_config(provider_config: Any) -> PackageDescriptor:
    """Decode the provider configuration of a helm deployment.

    The configuration arrives either as the decoded JSON object of the
    ControllerDeployment or as its raw JSON text.

    Args:
        provider_config: ``providerConfig`` of the ControllerDeployment

    Returns:
        The decoded package

    Raises:
        InvalidPackageError: If the configuration cannot be decoded
    """
    if provider_config is None:
        raise InvalidPackageError("deployment has no provider configuration")

    if isinstance(provider_config, (str, bytes)):
        try:
            provider_config = json.loads(provider_config)
        except ValueError as e:
            raise InvalidPackageError(f"provider configuration is not valid JSON: {e}") from e

    if not isinstance(provider_config, dict):
        raise InvalidPackageError(
            f"provider configuration must be an object, got {type(provider_config).__name__}"
        )

    if not provider_config.get("chart"):
        raise InvalidPackageError("provider configuration does not contain a chart")
    chart = _decode_chart(provider_config["chart"])

    values = provider_config.get("values") or {}
    if not isinstance(values, dict):
        raise InvalidPackageError(f"values must be an object, got {type(values).__name__}")

    return PackageDescriptor(chart=chart, values=values)
