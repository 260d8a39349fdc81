"""Subprocess execution utilities with automatic logging."""

import subprocess
from collections.abc import Iterator
from pathlib import Path

from depotpilot.logger import get_logger

logger = get_logger(__name__)


class SubprocessExecutor:
    """Executes subprocess commands with automatic debug logging."""

    @staticmethod
    def run_sync(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        check: bool = False,
        timeout: float | None = None,
    ) -> subprocess.CompletedProcess[bytes]:
        """
        Execute a synchronous subprocess command with automatic debug logging.

        Args:
            *args: Command arguments
            cwd: Working directory
            env: Environment variables
            check: Whether to raise exception on non-zero exit code
            timeout: Timeout in seconds

        Returns:
            subprocess.CompletedProcess object

        Raises:
            subprocess.CalledProcessError: If check=True and returncode != 0
            subprocess.TimeoutExpired: If timeout is exceeded
        """
        cmd_str = " ".join(args[:3])
        logger.debug(f"Executing sync subprocess: {cmd_str}")
        if cwd:
            logger.debug(f"Working directory: {cwd}")

        cwd_arg = str(cwd) if cwd else None

        try:
            result = subprocess.run(args, check=check, capture_output=True, cwd=cwd_arg, env=env, timeout=timeout)

            if result.stdout:
                stdout_str = result.stdout.decode("utf-8", errors="replace")
                logger.debug(f"Subprocess stdout: {stdout_str}")
            if result.stderr:
                stderr_str = result.stderr.decode("utf-8", errors="replace")
                logger.debug(f"Subprocess stderr: {stderr_str}")

            return result

        except subprocess.TimeoutExpired:
            logger.error(f"Subprocess timeout after {timeout}s: {cmd_str}")
            raise
        except Exception as e:
            logger.error(f"Subprocess execution failed: {cmd_str} - {e}")
            raise

    @staticmethod
    def iter_lines_sync(
        *args: str,
        cwd: Path | str | None = None,
        env: dict[str, str] | None = None,
        encoding: str = "utf-8",
        errors: str = "replace",
    ) -> Iterator[str]:
        """
        Generator that yields output lines of a subprocess as they are produced.

        stderr is merged into stdout. Intended for worker threads, where
        blocking reads are fine.

        Raises:
            subprocess.CalledProcessError: After all lines are yielded, if the
                process exited with a non-zero code.
        """
        cmd_str = " ".join(args[:3])
        logger.debug(f"Executing subprocess with streaming: {cmd_str}")

        process = subprocess.Popen(
            args,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            cwd=str(cwd) if cwd else None,
            env=env,
        )
        assert process.stdout is not None
        try:
            for raw in process.stdout:
                line = raw.decode(encoding, errors=errors).rstrip("\n\r")
                logger.debug(f"Subprocess: {line}")
                yield line
            process.wait()
        finally:
            # Consumer stopped early or raised; don't leave the child behind
            if process.poll() is None:
                process.kill()
                process.wait()
            process.stdout.close()

        if process.returncode != 0:
            raise subprocess.CalledProcessError(process.returncode, list(args))
