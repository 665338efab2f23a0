"""Asynchronous runner for ``sf`` CLI commands with JSON output.

Commands are executed as an argument vector (no shell), so environment aliases
containing spaces are passed through unchanged. The runner enforces a timeout
and an output-size ceiling, and turns every failure mode into a typed
``GatewayError``.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from pathlib import Path
import shlex
from typing import Any, Dict, List, Optional, Sequence

from orgdiff.exceptions import (
    CommandFailedError,
    EnvironmentUnavailableError,
    GatewayError,
    GatewayTimeoutError,
    OutputTooLargeError,
    ResponseParseError,
)
from orgdiff.utils import time_block

__all__ = ["CommandRunner", "classify_failure", "AUTH_ERROR_NAMES"]

logger = logging.getLogger(__name__)

_CHUNK_SIZE = 64 * 1024

AUTH_ERROR_NAMES = frozenset(
    {
        "NoOrgFound",
        "NamedOrgNotFoundError",
        "NoAuthInfoFound",
        "AuthInfoCreationError",
        "RefreshTokenAuthError",
        "INVALID_SESSION_ID",
        "NoDefaultEnvError",
    }
)

_AUTH_MARKERS = (
    "expired",
    "invalid_session_id",
    "invalid_grant",
    "no authorization information",
    "not authorized",
    "authentication",
)


def classify_failure(payload: Dict[str, Any], alias: Optional[str]) -> GatewayError:
    """Turn a non-zero JSON status envelope into a typed error.

    Authentication and expiry failures become ``EnvironmentUnavailableError``;
    everything else becomes ``CommandFailedError`` carrying the status.
    """
    message = payload.get("message") or "Command failed"
    name = payload.get("name")
    status = payload.get("status")
    context = {"alias": alias, "name": name, "status": status}

    lowered = str(message).lower()
    if name in AUTH_ERROR_NAMES or any(marker in lowered for marker in _AUTH_MARKERS):
        target = f"Environment '{alias}'" if alias else "Environment"
        return EnvironmentUnavailableError(f"{target} is unavailable: {message}", context)

    return CommandFailedError(str(message), status=status if isinstance(status, int) else None, name=name, context=context)


class CommandRunner:
    """Run CLI commands and return parsed JSON envelopes.

    Attributes:
        executable: CLI executable name or path
        timeout_s: Per-command timeout in seconds
        max_output_bytes: Ceiling on captured stdout (and stderr)
        cwd: Default working directory
    """

    def __init__(
        self,
        executable: str = "sf",
        timeout_s: float = 300.0,
        max_output_bytes: int = 100 * 1024 * 1024,
        cwd: Optional[Path] = None,
    ):
        self.executable = executable
        self.timeout_s = timeout_s
        self.max_output_bytes = max_output_bytes
        self.cwd = cwd

    def build_argv(self, args: Sequence[str], alias: Optional[str] = None) -> List[str]:
        """Full argument vector: executable, args, ``--json`` and target org."""
        argv = [self.executable, *args, "--json"]
        if alias:
            argv += ["--target-org", alias]
        return argv

    async def run_json(
        self,
        args: Sequence[str],
        alias: Optional[str] = None,
        cwd: Optional[Path] = None,
    ) -> Dict[str, Any]:
        """Run one command and return its JSON envelope.

        Args:
            args: Subcommand and flags (without ``--json`` / ``--target-org``)
            alias: Target environment alias, appended as ``--target-org``
            cwd: Working directory overriding the runner default

        Returns:
            Parsed envelope with ``status == 0`` (or no status)

        Raises:
            EnvironmentUnavailableError: CLI missing, or auth/expiry failure
            GatewayTimeoutError: Command exceeded timeout_s
            OutputTooLargeError: Output exceeded max_output_bytes
            ResponseParseError: Output was empty or not a JSON object
            CommandFailedError: CLI reported a non-zero status
        """
        argv = self.build_argv(args, alias)
        command = shlex.join(argv)
        logger.debug(f"Running: {command}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd or self.cwd) if (cwd or self.cwd) else None,
            )
        except FileNotFoundError:
            raise EnvironmentUnavailableError(
                f"CLI executable not found: {self.executable}. Is the Salesforce CLI installed and on PATH?",
                {"command": command},
            ) from None

        try:
            with time_block(command, logger):
                stdout, stderr = await asyncio.wait_for(self._communicate(proc), timeout=self.timeout_s)
        except asyncio.TimeoutError:
            await self._terminate(proc)
            logger.error(f"Timeout detected for command: {command}")
            raise GatewayTimeoutError(
                f"Command timed out after {self.timeout_s:g} seconds. The operation may be too large.",
                {"command": command, "alias": alias},
            ) from None
        except OutputTooLargeError as e:
            await self._terminate(proc)
            logger.error(f"Output ceiling exceeded for command: {command}")
            e.context.update({"command": command, "alias": alias})
            raise

        return self._parse(stdout, stderr, proc.returncode, alias, command)

    async def _communicate(self, proc: asyncio.subprocess.Process) -> tuple[bytes, bytes]:
        stdout_task = asyncio.ensure_future(self._read_limited(proc.stdout))
        stderr_task = asyncio.ensure_future(self._read_limited(proc.stderr))
        try:
            stdout = await stdout_task
            stderr = await stderr_task
            await proc.wait()
        finally:
            for task in (stdout_task, stderr_task):
                if not task.done():
                    task.cancel()
        return stdout, stderr

    async def _read_limited(self, stream: Optional[asyncio.StreamReader]) -> bytes:
        if stream is None:
            return b""

        chunks = []
        total = 0
        while True:
            chunk = await stream.read(_CHUNK_SIZE)
            if not chunk:
                break
            total += len(chunk)
            if total > self.max_output_bytes:
                limit_mib = self.max_output_bytes / (1024 * 1024)
                raise OutputTooLargeError(
                    f"Command output too large (exceeded {limit_mib:g}MB). "
                    "The metadata type may have too many components.",
                    {"limit_bytes": self.max_output_bytes},
                )
            chunks.append(chunk)
        return b"".join(chunks)

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()

    @staticmethod
    def _parse(
        stdout: bytes,
        stderr: bytes,
        returncode: Optional[int],
        alias: Optional[str],
        command: str,
    ) -> Dict[str, Any]:
        text = stdout.decode("utf-8", errors="replace").strip()
        err_text = stderr.decode("utf-8", errors="replace").strip()

        if not text:
            if err_text:
                logger.debug(f"stderr: {err_text[:500]}")
                raise CommandFailedError(err_text, status=returncode, context={"command": command, "alias": alias})
            raise ResponseParseError("CLI returned no output", {"command": command, "alias": alias})

        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise ResponseParseError(f"Failed to parse JSON output: {e}", {"command": command, "alias": alias}) from e

        if not isinstance(payload, dict):
            raise ResponseParseError(
                f"Expected a JSON object, got {type(payload).__name__}", {"command": command, "alias": alias}
            )

        status = payload.get("status")
        if status is not None and status != 0:
            error = classify_failure(payload, alias)
            error.context["command"] = command
            logger.debug(f"Command failed ({error.kind.value}): {error.message}")
            raise error

        return payload
