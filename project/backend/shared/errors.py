"""
Error hierarchy shared by all modules.

Assembly errors carry the pipeline stage that failed and the HTTP status the
gateway maps them to. Collaborator errors carry the status to surface.
"""

from typing import Optional


class PipelineError(Exception):
    """Base class for all service errors."""


class ConfigError(PipelineError):
    """Invalid or missing configuration."""


class RetryableError(PipelineError):
    """Transient failure that may succeed on retry."""


class AssemblyError(PipelineError):
    """Fatal failure of an assembly run."""

    stage = "assembly"
    status_code = 500

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def __str__(self) -> str:
        if self.detail:
            return f"{self.message}: {self.detail}"
        return self.message


class InputMissingError(AssemblyError):
    stage = "input"
    status_code = 400


class ProbeFailedError(AssemblyError):
    stage = "probe"


class TranscodeFailedError(AssemblyError):
    stage = "transcode"

    def __init__(self, message: str, detail: Optional[str] = None, clip_index: Optional[int] = None):
        super().__init__(message, detail)
        self.clip_index = clip_index


class ConcatFailedError(AssemblyError):
    stage = "concat"


class MuxFailedError(AssemblyError):
    stage = "mux"


class DeadlineExceededError(AssemblyError):
    stage = "deadline"


class ExternalServiceError(PipelineError):
    """Failure talking to a third-party collaborator."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class StockFootageError(ExternalServiceError):
    pass


class TranscriptionError(ExternalServiceError):
    pass


class TranscriptionFailedError(TranscriptionError):
    """Provider reported a terminal error status."""


class TranscriptionTimeoutError(TranscriptionError):
    """Polling attempts exhausted before the transcript completed."""


class PaymentVerificationError(ExternalServiceError):
    pass
