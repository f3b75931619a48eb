"""Launch the isolated comparison worker and collect its result."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from pydantic import ValidationError

from pagediff.errors import WorkerFailure
from pagediff.models.comparison import ComparisonResult
from pagediff.models.config import ComparisonConfig
from pagediff.worker.process import format_color

logger = logging.getLogger(__name__)

WORKER_MODULE = "pagediff.worker.process"


class WorkerRunner:
    """Runs one pixel comparison in a disposable child process.

    The child is killed in every exit path, including timeouts and
    cancellation of the awaiting task.
    """

    def __init__(self, config: ComparisonConfig, command: Optional[Sequence[str]] = None):
        self.config = config
        self.command = list(command) if command else [sys.executable, "-m", WORKER_MODULE]

    def build_args(
        self, original_path: Path, upgraded_path: Path, output_dir: Path, url_prefix: str
    ) -> list[str]:
        pd = self.config.pixel_diff
        return [
            *self.command,
            str(original_path),
            str(upgraded_path),
            "--output-dir", str(output_dir),
            "--url-prefix", url_prefix,
            "--threshold", str(pd.threshold),
            "--chunk-rows", str(pd.chunk_rows),
            "--max-dimension", str(pd.max_dimension),
            "--max-file-size-mb", str(pd.max_file_size_mb),
            "--alpha", str(pd.alpha),
            "--ignore-antialiasing" if pd.ignore_antialiasing else "--include-antialiasing",
            "--diff-color", format_color(pd.diff_color),
            "--diff-color-alt", format_color(pd.diff_color_alt),
            "--aa-color", format_color(pd.aa_color),
        ]

    async def run(
        self, original_path: Path, upgraded_path: Path, output_dir: Path, url_prefix: str
    ) -> ComparisonResult:
        """Spawn the worker and parse its single-line JSON result."""
        args = self.build_args(original_path, upgraded_path, output_dir, url_prefix)
        timeout = self.config.worker_timeout_seconds
        logger.debug("Launching comparison worker: %s", " ".join(args))

        process = await asyncio.create_subprocess_exec(
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            try:
                stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
            except asyncio.TimeoutError:
                raise WorkerFailure(
                    f"Comparison worker timed out after {timeout:.0f}s",
                    exit_code=None,
                ) from None
        finally:
            if process.returncode is None:
                logger.debug("Killing comparison worker (pid %d)", process.pid)
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
                await process.wait()

        stderr_text = stderr.decode("utf-8", errors="replace")
        if stderr_text:
            logger.debug("Worker stderr:\n%s", stderr_text.rstrip())

        if process.returncode != 0:
            raise WorkerFailure(
                f"Comparison worker exited with status {process.returncode}",
                exit_code=process.returncode,
                stderr=stderr_text,
            )

        return self._parse_result(stdout.decode("utf-8", errors="replace"), stderr_text)

    @staticmethod
    def _parse_result(stdout_text: str, stderr_text: str = "") -> ComparisonResult:
        lines = [line for line in stdout_text.splitlines() if line.strip()]
        if not lines:
            raise WorkerFailure("Comparison worker produced no output", exit_code=0, stderr=stderr_text)
        try:
            return ComparisonResult.model_validate(json.loads(lines[-1]))
        except (json.JSONDecodeError, ValidationError) as e:
            raise WorkerFailure(
                f"Failed to parse comparison worker output: {e}",
                exit_code=0,
                stderr=stderr_text,
            ) from e
