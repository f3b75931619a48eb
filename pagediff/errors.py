"""Error taxonomy for page comparisons.

Structural failures (render, worker, artifact writes) propagate to the
caller as a single ``ComparisonError`` subclass. ``ResourceFetchFailure`` is
raised and absorbed inside the resource fetcher and never escapes it.
"""

from __future__ import annotations

from typing import Any


class ComparisonError(Exception):
    """Base class for all comparison failures."""

    code = "COMPARISON_FAILED"

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form for logs and the web layer."""
        return {"code": self.code, "error": self.message, **self.context}


class RenderFailure(ComparisonError):
    """The renderer could not produce a usable capture."""

    code = "RENDER_FAILED"


class ResourceFetchFailure(ComparisonError):
    """A linked resource could not be fetched within its timeout."""

    code = "RESOURCE_FETCH_FAILED"


class WorkerFailure(ComparisonError):
    """The isolated worker failed, timed out, or produced unparseable output."""

    code = "WORKER_FAILED"

    def __init__(self, message: str, exit_code: int | None = None, stderr: str = "", **context: Any) -> None:
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(message, exit_code=exit_code, stderr=stderr, **context)

    def __str__(self) -> str:
        if self.stderr:
            return f"{self.message}\n{self.stderr.strip()}"
        return self.message


class ArtifactWriteError(ComparisonError):
    """Writing a diff or report artifact failed."""

    code = "ARTIFACT_WRITE_FAILED"
