class LlmError(Exception):
    """Raised when a completion cannot be obtained from the LLM provider."""


class LlmNetworkError(LlmError):
    """Raised when the provider call fails due to network/infrastructure issues."""


class LlmResponseError(LlmError):
    """Raised when the provider answers without usable content."""
