from abc import ABC, abstractmethod


class BaseLlmClient(ABC):
    """Contract for provider-specific chat completion clients."""

    @abstractmethod
    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        """Return provider response as plain text.

        Raises:
            LlmNetworkError: on connection, timeout or API errors.
            LlmResponseError: when the reply has no content.
        """
