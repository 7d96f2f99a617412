"""
app/ai/llm_client.py

Purpose: Chat-completions client for the prompt flows

- Talks to any OpenAI-compatible endpoint (Gemini by default)
- One request per call: no retries, no streaming
- Tracks token usage of the last call
"""

from typing import Any, Dict, Optional

from openai import AsyncOpenAI, OpenAIError

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.core.logging import get_logger

logger = get_logger(__name__)


class LlmClient:
    """Async JSON-mode completion client."""

    last_usage: Optional[Dict[str, int]]

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model_name = model or settings.LLM_MODEL
        self._client = client or AsyncOpenAI(
            api_key=api_key or settings.LLM_API_KEY or "not-configured",
            base_url=base_url or settings.LLM_BASE_URL,
            timeout=timeout or settings.LLM_TIMEOUT,
            max_retries=0,
        )
        self.last_usage = None

    def _record_usage(self, resp: Any) -> None:
        usage = getattr(resp, "usage", None)
        if usage is None:
            self.last_usage = None
            return
        self.last_usage = {
            "prompt_tokens": getattr(usage, "prompt_tokens", 0) or 0,
            "completion_tokens": getattr(usage, "completion_tokens", 0) or 0,
            "total_tokens": getattr(usage, "total_tokens", 0) or 0,
        }

    async def complete_json(self, prompt: str, system: Optional[str] = None) -> str:
        """
        Sends one prompt and returns the raw text of the reply, which the
        model is asked to format as a JSON object.

        Raises:
            ExternalServiceError: On transport or provider errors, or an
                empty reply
        """
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        try:
            resp = await self._client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.error(f"LLM request failed: {e}")
            raise ExternalServiceError("LLM request failed") from e

        self._record_usage(resp)

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise ExternalServiceError("LLM returned an empty reply")

        return content

    async def close(self) -> None:
        await self._client.close()
