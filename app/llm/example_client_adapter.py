"""Example LLM client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseLlmClient and register the provider in LlmFactory.
"""

from typing import ClassVar

from app.llm.client_base import BaseLlmClient


class ExampleClientAdapter(BaseLlmClient):
    """Example adapter that answers every prompt with an empty JSON object.

    No network calls. Every consumer treats "{}" as "nothing learned", so the
    pipeline runs end to end on pattern matching and OCR data alone.
    """

    DEFAULT_RESPONSE: ClassVar[str] = "{}"

    def create_chat_completion(
        self,
        *,
        model: str,
        temperature: float,
        max_tokens: int,
        system_prompt: str,
        user_prompt: str,
    ) -> str:
        _ = model, temperature, max_tokens, system_prompt, user_prompt
        return self.DEFAULT_RESPONSE
