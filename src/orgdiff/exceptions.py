"""Exception hierarchy for orgdiff.

All failures raised by orgdiff derive from OrgDiffError. Every class carries an
``ErrorKind`` so boundary code can turn an exception into a discriminated
failure result without inspecting message text.

Hierarchy:
----------
OrgDiffError
├── ConfigError
├── InvalidRequestError               (caller supplied unusable arguments)
└── GatewayError
    ├── EnvironmentUnavailableError   (connectivity / auth / expired org)
    ├── NotFoundError                 (entry vanished since it was listed)
    ├── UnsupportedCategoryError      (type not enabled in this org)
    ├── ResourceLimitError
    │   ├── GatewayTimeoutError
    │   └── OutputTooLargeError
    ├── ResponseParseError            (CLI returned non-conforming output)
    └── CommandFailedError            (CLI reported a non-zero status)

Example:
--------
>>> try:
...     await gateway.fetch_content("ApexClass", "Foo", "orgA")
... except NotFoundError as e:
...     print(e.kind, e.message)
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

__all__ = [
    "ErrorKind",
    "OrgDiffError",
    "ConfigError",
    "InvalidRequestError",
    "GatewayError",
    "EnvironmentUnavailableError",
    "NotFoundError",
    "UnsupportedCategoryError",
    "ResourceLimitError",
    "GatewayTimeoutError",
    "OutputTooLargeError",
    "ResponseParseError",
    "CommandFailedError",
]


class ErrorKind(str, Enum):
    """Failure classes surfaced to callers."""

    CONNECTIVITY = "connectivity"
    NOT_FOUND = "not_found"
    UNSUPPORTED = "unsupported"
    RESOURCE_LIMIT = "resource_limit"
    PARSE = "parse"
    COMMAND = "command"
    CONFIG = "config"
    INVALID_REQUEST = "invalid_request"
    UNEXPECTED = "unexpected"


class OrgDiffError(Exception):
    """Base exception for all orgdiff errors.

    Attributes:
        message: Human-readable message suitable for direct display
        context: Optional structured details (alias, category, command...)
    """

    kind: ErrorKind = ErrorKind.UNEXPECTED

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ConfigError(OrgDiffError):
    """Invalid or unreadable configuration."""

    kind = ErrorKind.CONFIG


class InvalidRequestError(OrgDiffError):
    """Request arguments are unusable (identical aliases, unsafe member path...)."""

    kind = ErrorKind.INVALID_REQUEST


class GatewayError(OrgDiffError):
    """Base class for failures originating at the remote gateway."""

    kind = ErrorKind.COMMAND


class EnvironmentUnavailableError(GatewayError):
    """Environment cannot be reached or authenticated (expired, revoked, CLI missing)."""

    kind = ErrorKind.CONNECTIVITY


class NotFoundError(GatewayError):
    """Category or entry is absent at fetch time.

    Distinct from a content difference: the entry may have been removed since
    the listing was loaded.
    """

    kind = ErrorKind.NOT_FOUND


class UnsupportedCategoryError(GatewayError):
    """Category is not enabled or not available in an environment/version."""

    kind = ErrorKind.UNSUPPORTED


class ResourceLimitError(GatewayError):
    """Gateway-enforced resource ceiling was hit; no partial data is returned."""

    kind = ErrorKind.RESOURCE_LIMIT


class GatewayTimeoutError(ResourceLimitError):
    """CLI command exceeded the configured timeout."""

    pass


class OutputTooLargeError(ResourceLimitError):
    """CLI output exceeded the configured size ceiling."""

    pass


class ResponseParseError(GatewayError):
    """CLI returned output that could not be parsed."""

    kind = ErrorKind.PARSE


class CommandFailedError(GatewayError):
    """CLI reported a failure status.

    Attributes:
        status: Exit status reported in the JSON envelope (or process return code)
        name: Error name reported by the CLI, when present
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, context)
        self.status = status
        self.name = name
