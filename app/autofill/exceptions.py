class AutoFillFailure(Exception):
    """Raised when the auto-fill operation fails as a whole."""


class FormMergeConflictError(AutoFillFailure):
    """Raised when a form kept changing underneath every merge attempt."""
