class AnalysisFailure(Exception):
    """Raised when the analysis engine hits an unexpected error it cannot degrade around."""
