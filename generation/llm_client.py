"""
LLM client wrapper for grounded answer generation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from deployment.circuit_breaker import CircuitBreaker, CircuitOpenError, get_completion_breaker
from shared.config import LLMConfig
from shared.errors import ProviderError

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """LLM response with metadata."""

    content: str
    model: str
    usage: Dict[str, int]
    raw_response: Any = None


class LLMClient:
    """
    Chat completion client with circuit breaker protection.

    Usage:
        client = LLMClient(api_key=key, base_url=url)
        answer = client.complete(system_prompt, user_prompt)
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        api_key: str = None,
        base_url: str = None,
        breaker: Optional[CircuitBreaker] = None,
    ):
        self.config = config or LLMConfig()
        self.api_key = api_key
        self.base_url = base_url
        self.breaker = breaker or get_completion_breaker()
        self._client = None

    @property
    def client(self):
        """Lazy load OpenAI client."""
        if self._client is None:
            from openai import OpenAI

            self._client = OpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                timeout=self.config.timeout,
            )
        return self._client

    def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        """
        Generate a response from the LLM.

        Raises:
            ProviderError: If the call fails or the circuit is open
        """
        kwargs = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        # Some reasoning models reject an explicit temperature
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature

        try:
            response = self.breaker.call(self.client.chat.completions.create, **kwargs)
        except CircuitOpenError as e:
            logger.error("Completion circuit breaker is open")
            raise ProviderError(f"Completion provider unavailable: {e}") from e
        except Exception as e:
            logger.error(f"LLM generation failed: {e}")
            raise ProviderError(f"Completion request failed: {e}") from e

        usage = {}
        if getattr(response, "usage", None) is not None:
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            usage=usage,
            raw_response=response,
        )

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return only the completion text."""
        return self.generate(system_prompt, user_prompt).content
