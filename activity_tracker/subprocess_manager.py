#!/usr/bin/env python3
"""
Subprocess management for the external version-control calls.

Every call returns a result dict instead of raising, so callers can apply their
own interpretation of exit codes. Cancelling the awaiting task kills the child.
"""
import asyncio
import contextlib
from typing import Optional, Dict, Any, List

from activity_tracker.logger import get_logger

logger = get_logger(__name__)

# Processes that are still running, keyed by a local sequence number
_ACTIVE_PROCESSES: Dict[int, asyncio.subprocess.Process] = {}
_PROCESS_COUNTER = 0

# Return codes used when no real exit status exists
TIMEOUT_CODE = -1
LAUNCH_FAILED_CODE = -2


def _result(code: int, stdout: bytes = b"", stderr: bytes = b"") -> Dict[str, Any]:
    return {
        "ok": code == 0,
        "code": code,
        "stdout": stdout.decode("utf-8", errors="ignore") if stdout else "",
        "stderr": stderr.decode("utf-8", errors="ignore") if stderr else "",
    }


class SubprocessManager:
    """Async context manager owning one child process."""

    def __init__(self, timeout: Optional[float] = None, cwd: Optional[str] = None):
        self.timeout = timeout
        self.cwd = cwd
        self.process: Optional[asyncio.subprocess.Process] = None
        self._id: Optional[int] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self._cleanup()

    async def run(self, cmd: List[str]) -> Dict[str, Any]:
        """Run cmd to completion and collect its output."""
        global _PROCESS_COUNTER

        _PROCESS_COUNTER += 1
        self._id = _PROCESS_COUNTER

        try:
            self.process = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=self.cwd,
            )
        except (OSError, ValueError) as e:
            logger.debug(f"[git] Failed to launch {cmd[0]} in {self.cwd}: {e}")
            return _result(LAUNCH_FAILED_CODE, stderr=str(e).encode("utf-8"))

        _ACTIVE_PROCESSES[self._id] = self.process

        try:
            stdout, stderr = await asyncio.wait_for(
                self.process.communicate(),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[git] Subprocess {self._id} timed out after {self.timeout}s, terminating")
            self._kill()
            return _result(TIMEOUT_CODE, stderr=f"Command timed out after {self.timeout}s".encode("utf-8"))
        except asyncio.CancelledError:
            self._kill()
            raise
        return _result(self.process.returncode, stdout, stderr)

    def _kill(self) -> None:
        if self.process is not None and self.process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                self.process.kill()

    async def _cleanup(self):
        """Reap the child and drop it from the registry."""
        if self.process is None:
            return
        try:
            if self.process.returncode is None:
                self._kill()
                # Reaping must not be interrupted by the cancellation that got us here
                with contextlib.suppress(Exception, asyncio.CancelledError):
                    await asyncio.shield(self.process.wait())
        finally:
            _ACTIVE_PROCESSES.pop(self._id, None)
            self.process = None
            self._id = None


def active_process_count() -> int:
    """Number of child processes that have not been reaped yet."""
    return len(_ACTIVE_PROCESSES)


def cleanup_all_processes() -> None:
    """Force termination of all registered child processes."""
    for pid, proc in list(_ACTIVE_PROCESSES.items()):
        if proc.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
        _ACTIVE_PROCESSES.pop(pid, None)


async def run_subprocess_async(cmd: List[str], cwd: Optional[str] = None,
                               timeout: Optional[float] = None) -> Dict[str, Any]:
    """Convenience function to run a subprocess with proper cleanup."""
    async with SubprocessManager(timeout=timeout, cwd=cwd) as manager:
        return await manager.run(cmd)
