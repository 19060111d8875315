"""Error taxonomy for the upload core.

Every failure is scoped to a single upload session. Nothing here is fatal
to the process: callers display the error and let the user retry.
"""

from sonicshare.models import CommittedResource, UploadState


class UploadCoreError(Exception):
    """Base class for all upload core errors."""


class AnalysisError(UploadCoreError):
    """The audio blob could not be analyzed (unreadable or invalid values)."""


class ValidationError(UploadCoreError):
    """Input was rejected before any I/O took place."""


class ConfigurationError(UploadCoreError):
    """A backend adapter is missing required settings."""


class LyricsLookupError(UploadCoreError):
    """The lyrics service could not be reached."""


class InvalidTransitionError(UploadCoreError):
    """An operation was attempted in a state that does not allow it."""

    def __init__(self, operation: str, state: UploadState) -> None:
        super().__init__(f"Cannot {operation} while session is {state.value}")
        self.operation = operation
        self.state = state


class CompensationWarning(UserWarning):
    """A compensating delete failed during rollback.

    Never raised. Carried on the `UploadError` that triggered the rollback
    so callers can report the orphaned blob.
    """

    def __init__(self, resource: CommittedResource, cause: BaseException) -> None:
        super().__init__(
            f"Failed to delete {resource.kind.value} blob '{resource.key}': {cause}"
        )
        self.resource = resource
        self.cause = cause


class UploadError(UploadCoreError):
    """A store write failed during commit.

    Carries the stage that failed and any warnings raised while undoing the
    writes that had already succeeded.
    """

    STAGES = ("audio", "cover", "metadata")

    def __init__(
        self,
        stage: str,
        message: str | None = None,
        compensation_warnings: list[CompensationWarning] | None = None,
    ) -> None:
        if stage not in self.STAGES:
            raise ValueError(f"Unknown upload stage: {stage!r}")
        super().__init__(message or f"Upload failed at {stage} stage")
        self.stage = stage
        self.compensation_warnings = list(compensation_warnings or [])

    def __str__(self) -> str:
        text = self.args[0]
        if self.compensation_warnings:
            text += f" ({len(self.compensation_warnings)} blob(s) could not be rolled back)"
        return text
