class AnalysisError(Exception):
    """Raised when the external analysis function fails or answers garbage."""


class AnalysisNetworkError(AnalysisError):
    """Raised when the analysis function cannot be reached."""
