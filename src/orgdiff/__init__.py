"""orgdiff: read-only metadata comparison between two orgs.

Unions per-environment listings into cached, annotated views and compares
individual components on demand, through the ``sf`` CLI.

Package Structure:
-----------------
- domain: Pydantic value types
- gateway: RemoteGateway protocol and the sf CLI implementation
- reconcile: pure union/annotation functions
- cache: on-demand cache, staleness tracking, rate-limited prefetch queue
- compare: concurrent two-sided content comparison
- ledger: promotion/review bookkeeping
- session: state scoped to one environment pair
- service: OperationResult boundary for UI collaborators
- cli: Typer command line
"""

__version__ = "0.1.0"
