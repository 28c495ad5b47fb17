"""Language-model client used for keyword extraction and suggestion review.

Any OpenAI-compatible chat-completions endpoint works; the default
settings point at Groq. The client is constructed explicitly and handed
to the engine components that need it.
"""

from __future__ import annotations

import logging
from typing import Any

import openai
from django.conf import settings

from .engine.errors import OracleError

logger = logging.getLogger(__name__)


class ChatOracle:
    """Thin wrapper returning the raw text of a single chat completion."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = 60.0,
        client: Any | None = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls) -> "ChatOracle":
        return cls(
            api_key=settings.BACKLINKER_ORACLE_API_KEY,
            model=settings.BACKLINKER_ORACLE_MODEL,
            base_url=settings.BACKLINKER_ORACLE_BASE_URL,
            timeout=settings.BACKLINKER_ORACLE_TIMEOUT,
        )

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self.api_key:
                raise OracleError("No oracle API key configured. Set BACKLINKER_ORACLE_API_KEY or GROQ_API_KEY.")
            self._client = openai.OpenAI(api_key=self.api_key, base_url=self.base_url, timeout=self.timeout)
        return self._client

    def complete(self, system_prompt: str, user_prompt: str, *, temperature: float = 0.3) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except openai.OpenAIError as exc:
            logger.error("Oracle call failed: %s", exc)
            raise OracleError(f"Oracle request failed: {exc}") from exc

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise OracleError("Oracle returned an empty response")
        return content.strip()
