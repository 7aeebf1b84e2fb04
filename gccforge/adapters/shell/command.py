"""
Shell command adapter — run one external program and capture its tail.

This is the most fundamental adapter: configure scripts, make, tar,
patch and friends all go through it. Commands are argv lists (never a
shell string). Output is streamed line by line to the
``gccforge.output`` logger at DEBUG, so it is invisible on the console
unless running verbose, always lands in the run log, and the last
lines are kept on the receipt for error reports.
"""

from __future__ import annotations

import logging
import os
import shutil
import signal
import subprocess
import time
from collections import deque
from pathlib import Path

from gccforge.adapters.base import Adapter, ExecutionContext
from gccforge.core.models.action import Receipt

logger = logging.getLogger(__name__)
output_logger = logging.getLogger("gccforge.output")

# Lines of output kept on the receipt.
TAIL_LINES = 40

# Seconds a child gets between SIGTERM and SIGKILL when a run is cut short.
STOP_GRACE = 5


def needs_sudo_prefix() -> bool:
    """Whether privileged commands must go through sudo."""
    return os.geteuid() != 0


def stop_process(proc: subprocess.Popen) -> None:
    """Terminate a child and everything in its process group.

    Children are started in their own session, so ``make -jN`` workers
    share the leader's group and are signalled even after the leader
    exits. SIGTERM first, SIGKILL after STOP_GRACE.
    """
    try:
        os.killpg(proc.pid, signal.SIGTERM)
        proc.wait(timeout=STOP_GRACE)
    except ProcessLookupError:
        return
    except subprocess.TimeoutExpired:
        logger.warning("pid %d ignored SIGTERM; killing its process group", proc.pid)
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            return
        proc.wait()


def run_streaming(
    argv: list[str],
    cwd: str,
    env: dict[str, str] | None = None,
    stdin_path: str | None = None,
    timeout: int | None = None,
) -> tuple[int, str]:
    """Run a command, streaming combined output to the output logger.

    Anything raised while the child runs (a timeout, or BuildAborted
    from the signal handler) stops the child's process group before
    it propagates.

    Args:
        argv: Program and arguments.
        cwd: Working directory.
        env: Full child environment (default: inherited).
        stdin_path: Optional file fed to the child's stdin.
        timeout: Optional wall-clock limit in seconds.

    Returns:
        (return_code, tail) where tail is the last TAIL_LINES lines.

    Raises:
        OSError: If the program cannot be started.
        subprocess.TimeoutExpired: If the timeout elapses.
    """
    tail: deque[str] = deque(maxlen=TAIL_LINES)
    stdin = open(stdin_path, "rb") if stdin_path else subprocess.DEVNULL
    try:
        with subprocess.Popen(
            argv,
            cwd=cwd,
            env=env,
            stdin=stdin,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            start_new_session=True,
        ) as proc:
            deadline = time.monotonic() + timeout if timeout else None
            try:
                for line in proc.stdout:
                    line = line.rstrip("\n")
                    tail.append(line)
                    output_logger.debug("%s", line)
                    if deadline and time.monotonic() > deadline:
                        raise subprocess.TimeoutExpired(argv, timeout)
                proc.wait(timeout=timeout)
            except BaseException:
                stop_process(proc)
                raise
            return proc.returncode, "\n".join(tail)
    finally:
        if stdin_path:
            stdin.close()


def run_captured(
    argv: list[str],
    cwd: str,
    env: dict[str, str] | None = None,
    timeout: int | None = None,
) -> subprocess.CompletedProcess:
    """Run a short command and capture stdout and stderr separately.

    Same process-group handling as ``run_streaming``.

    Raises:
        OSError: If the program cannot be started.
        subprocess.TimeoutExpired: If the timeout elapses.
    """
    with subprocess.Popen(
        argv,
        cwd=cwd,
        env=env,
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=True,
        errors="replace",
        start_new_session=True,
    ) as proc:
        try:
            stdout, stderr = proc.communicate(timeout=timeout)
        except BaseException:
            stop_process(proc)
            raise
    return subprocess.CompletedProcess(argv, proc.returncode, stdout, stderr)


class ShellCommandAdapter(Adapter):
    """Run external programs and capture their output.

    Action params:
        argv (list[str]): Program and arguments.
        cwd (str): Working directory, relative to the workspace root.
        env (dict): Extra environment variables.
        stdin_path (str): File fed to stdin (``patch -Np1 < file``).
        sudo (bool): Prefix with ``sudo`` unless already root.
        timeout (int): Optional timeout in seconds (default: none).
        secrets (list[str]): Values masked in logs and receipts.
    """

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        argv = context.action.params.get("argv")
        if not argv or not isinstance(argv, list):
            return False, "Missing required param: 'argv'"

        cwd = context.working_dir
        if not Path(cwd).is_dir():
            return False, f"Working directory does not exist: {cwd}"

        stdin_path = context.action.params.get("stdin_path")
        if stdin_path and not Path(stdin_path).is_file():
            return False, f"Input file does not exist: {stdin_path}"

        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        params = context.action.params
        argv = [str(a) for a in params["argv"]]
        if params.get("sudo") and needs_sudo_prefix():
            argv = ["sudo", *argv]
        cwd = context.working_dir
        timeout = params.get("timeout")
        command = context.redact(" ".join(argv))

        logger.debug("Executing: %s (cwd=%s)", command, cwd)
        start = time.monotonic()

        try:
            code, tail = run_streaming(
                argv,
                cwd=cwd,
                env=context.environment(),
                stdin_path=params.get("stdin_path"),
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=f"Command timed out after {timeout}s",
                metadata={"command": command, "timeout": timeout},
            )
        except OSError as e:
            return Receipt.failure(
                adapter=self.name,
                action_id=context.action.id,
                error=context.redact(f"Cannot run {argv[0]}: {e}"),
                metadata={"command": command},
            )

        elapsed_ms = int((time.monotonic() - start) * 1000)
        tail = context.redact(tail)
        metadata = {"command": command, "cwd": cwd, "return_code": code, "tail": tail}

        if code == 0:
            return Receipt.success(
                adapter=self.name,
                action_id=context.action.id,
                output=tail,
                duration_ms=elapsed_ms,
                metadata=metadata,
            )
        return Receipt.failure(
            adapter=self.name,
            action_id=context.action.id,
            error=f"`{command}` exited with code {code}",
            duration_ms=elapsed_ms,
            metadata=metadata,
        )
