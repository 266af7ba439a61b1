"""Builders for rendered packages and their values."""

from .package import PackageDescriptor, create_package_from_provider_config
from .values import create_injected_values, merge_values

__all__ = [
    "PackageDescriptor",
    "create_package_from_provider_config",
    "create_injected_values",
    "merge_values",
]
