"""
Error types raised at the capability seams of the diagnosis pipeline.
"""


class PipelineError(Exception):
    """Base class for diagnosis pipeline errors."""


class ProviderError(PipelineError):
    """An external capability (embedding, knowledge store, completion, video search) failed."""

    def __init__(self, message: str, provider: str = None):
        super().__init__(message)
        self.provider = provider


class ValidationError(PipelineError):
    """A completion payload was missing or did not have the expected shape."""


class ConfigurationError(PipelineError):
    """A required capability is not configured (e.g. no video search API key)."""

    def __init__(self, message: str, feature: str = None):
        super().__init__(message)
        self.feature = feature
