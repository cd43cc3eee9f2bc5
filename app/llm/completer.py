from app.llm.client_base import BaseLlmClient
from app.logging.logger import Log


class Completer:
    """Binds a provider client to a model name: prompt in, text out."""

    def __init__(self, *, client: BaseLlmClient, model: str) -> None:
        self._client = client
        self._model = model

    @property
    def model(self) -> str:
        return self._model

    def complete(
        self,
        prompt: str,
        *,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        system_prompt: str = "",
    ) -> str:
        """Send a single prompt and return the generated text.

        Raises:
            LlmError: on any provider failure.
        """
        Log.debug(f"LLM prompt ({self._model}):\n{prompt}")
        reply = self._client.create_chat_completion(
            model=self._model,
            temperature=max(0.0, min(1.0, temperature)),
            max_tokens=max_tokens,
            system_prompt=system_prompt,
            user_prompt=prompt,
        )
        Log.debug(f"LLM raw reply:\n{reply}")
        return reply
