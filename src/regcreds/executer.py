"""Invocation of ``docker-credential-*`` helper programs.

A credential helper is an executable named ``docker-credential-<suffix>``
that takes a single action argument (``get``, ``store``, ``erase``), reads
its input from stdin, and writes its answer to stdout.  On failure it exits
non-zero with the error message on stdout.

:class:`Executer` is the seam used by
:class:`~regcreds.stores.native_store.NativeStore`; :class:`HelperExecuter`
is the real implementation built on :mod:`subprocess`.  Tests and embedders
can substitute any object with a matching ``execute`` method.
"""

from __future__ import annotations

import logging
import os
import subprocess
from typing import Optional, Protocol

from regcreds.context import Context, check
from regcreds.exceptions import CredentialsNotFoundError, HelperExecutionError

logger = logging.getLogger(__name__)

CREDENTIALS_NOT_FOUND_MESSAGE = "credentials not found in native keychain"
"""Output of a helper that holds no credential for the requested server."""

_POLL_INTERVAL = 0.05


class Executer(Protocol):
    """Runs one helper action and returns its stdout."""

    def execute(self, action: str, input_data: bytes, ctx: Optional[Context] = None) -> bytes:
        """Run *action* with *input_data* on stdin.

        Raises:
            CredentialsNotFoundError: If the helper reports a missing credential.
            HelperExecutionError: If the helper cannot be run or fails.
            OperationCancelledError: If *ctx* is cancelled before or during
                the run.
        """
        ...


class HelperExecuter:
    """Execute a helper binary found on ``PATH``.

    The helper inherits the environment and stderr of the current process.
    When a context is given, the process is killed as soon as the context
    is cancelled or its deadline passes.

    Args:
        name: The executable name, e.g. ``"docker-credential-pass"``.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def execute(self, action: str, input_data: bytes, ctx: Optional[Context] = None) -> bytes:
        check(ctx)
        trace = ctx.trace if ctx is not None else None
        if trace is not None and trace.execute_start is not None:
            trace.execute_start(self.name, action)

        error: Optional[Exception] = None
        try:
            return self._run(action, input_data, ctx)
        except Exception as exc:
            error = exc
            raise
        finally:
            if trace is not None and trace.execute_done is not None:
                trace.execute_done(self.name, action, error)

    def _run(self, action: str, input_data: bytes, ctx: Optional[Context]) -> bytes:
        logger.debug("Running credential helper %s %s", self.name, action)
        try:
            proc = subprocess.Popen(
                [self.name, action],
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                env=os.environ.copy(),
            )
        except OSError as exc:
            raise HelperExecutionError(
                f"failed to run credential helper {self.name}: {exc}",
                helper=self.name,
                action=action,
            ) from exc

        output = self._communicate(proc, input_data, ctx)
        if proc.returncode != 0:
            message = output.decode("utf-8", errors="replace").strip()
            if message == CREDENTIALS_NOT_FOUND_MESSAGE:
                raise CredentialsNotFoundError(
                    message,
                    helper=self.name,
                    action=action,
                    returncode=proc.returncode,
                    output=message,
                )
            raise HelperExecutionError(
                message or f"{self.name} {action} exited with status {proc.returncode}",
                helper=self.name,
                action=action,
                returncode=proc.returncode,
                output=message,
            )
        return output

    @staticmethod
    def _communicate(proc: subprocess.Popen, input_data: bytes, ctx: Optional[Context]) -> bytes:
        if ctx is None:
            stdout, _ = proc.communicate(input_data)
            return stdout

        pending: Optional[bytes] = input_data
        while True:
            try:
                stdout, _ = proc.communicate(pending, timeout=_POLL_INTERVAL)
                return stdout
            except subprocess.TimeoutExpired:
                # input may only be sent on the first call
                pending = None
                if ctx.cancelled:
                    proc.kill()
                    proc.communicate()
                    ctx.check()
