"""Error classification and sanitization utilities."""

from __future__ import annotations

import re

from kubernetes.client.exceptions import ApiException


class InvalidPackageError(ValueError):
    """The provider configuration of a deployment cannot be decoded."""


class RenderError(RuntimeError):
    """The chart of a deployment cannot be rendered."""


class SeedNotBootstrappedError(RuntimeError):
    """The seed has no cluster identity yet."""

    def __init__(self, seed_name: str):
        super().__init__(f"cluster-identity of seed '{seed_name}' not set")
        self.seed_name = seed_name


def is_not_found(error: BaseException) -> bool:
    """Check whether an error is a Kubernetes 404."""
    return isinstance(error, ApiException) and error.status == 404


def is_conflict(error: BaseException) -> bool:
    """Check whether an error is a Kubernetes 409."""
    return isinstance(error, ApiException) and error.status == 409


def describe_error(error: BaseException) -> str:
    """Short description of an error for condition messages.

    ApiException renders its full HTTP response by default which is too noisy
    for a status message.
    """
    if isinstance(error, ApiException):
        return f"({error.status}) {error.reason}"
    return str(error)


# Patterns that might expose sensitive information
SENSITIVE_PATTERNS = [
    r"bearer\s+([A-Za-z0-9\-_\.=]+)",
    r"client[_\-\s]?key[_\-\s]?data[:\s]+([A-Za-z0-9/+=]+)",
    r"token[:\s]+([A-Za-z0-9\-_\.=/+]+)",
    r"password[:\s]+([^\s,;\)]+)",
]


def sanitize_error_message(message: str) -> str:
    """Sanitize error message to remove sensitive information.

    Args:
        message: Original error message

    Returns:
        Sanitized error message with sensitive data redacted
    """
    sanitized = message
    for pattern in SENSITIVE_PATTERNS:
        sanitized = re.sub(
            pattern,
            lambda match: match.group(0).replace(match.group(1), "[REDACTED]"),
            sanitized,
            flags=re.IGNORECASE,
        )
    return sanitized


def sanitize_exception(error: BaseException) -> str:
    """Sanitize exception message."""
    return sanitize_error_message(describe_error(error))
