"""Remote listing gateway.

The sole point of contact with the outside world. Every operation is read-only
and independent; failures are raised as ``GatewayError`` subclasses.

Package Structure:
-----------------
- protocols: RemoteGateway structural interface
- runner: CommandRunner (subprocess, timeout, output ceiling, JSON envelope)
- normalize: envelope shapes -> EnvironmentInfo / Category / Entry
- retrieve: file lookup inside retrieved source trees
- core: CliGateway

Example:
--------
>>> from orgdiff.gateway import CliGateway
>>> gateway = CliGateway()
>>> envs = await gateway.list_environments()
"""

from orgdiff.gateway.core import CliGateway, is_unsupported_failure
from orgdiff.gateway.normalize import (
    extract_fingerprint,
    is_composite_category,
    is_third_party,
    normalize_categories,
    normalize_entries,
    normalize_environments,
)
from orgdiff.gateway.protocols import RemoteGateway
from orgdiff.gateway.runner import CommandRunner, classify_failure

__all__ = [
    "RemoteGateway",
    "CliGateway",
    "CommandRunner",
    "classify_failure",
    "is_unsupported_failure",
    "extract_fingerprint",
    "is_composite_category",
    "is_third_party",
    "normalize_environments",
    "normalize_categories",
    "normalize_entries",
]
