class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class PipelineFailure(ProcessorError):
    """Raised when an unexpected error escapes a pipeline run."""


class DocumentNotFoundError(ProcessorError):
    """Raised when a document cannot be found in the database."""


class DocumentAlreadyProcessingError(ProcessorError):
    """Raised when a run is requested for a document that already has one in flight."""


class UnsupportedStorageDiskError(ProcessorError):
    """Raised when a document uses an unsupported storage disk type."""
