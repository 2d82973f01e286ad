"""
LLM Integration Client

Single-prompt completions against:
- Local LLM via LM Studio (OpenAI-compatible API)
- OpenAI API
- Anthropic API

Used by the content reviewer for page review, issue translation and the
executive summary.
"""

from typing import Optional, Dict, Any
from enum import Enum
from dataclasses import dataclass
import httpx

from seoaudit.config import settings


class LLMProvider(str, Enum):
    LOCAL = "local"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


@dataclass
class LLMConfig:
    provider: LLMProvider
    base_url: str
    api_key: str
    model: str
    temperature: float = 0.3
    max_tokens: int = 4096
    timeout: float = 120.0


class LLMClient:
    """Prompt-in, text-out client over the configured provider."""

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if config is None:
            config = LLMConfig(
                provider=LLMProvider(settings.LLM_PROVIDER),
                base_url=settings.LLM_BASE_URL,
                api_key=settings.LLM_API_KEY,
                model=settings.LLM_MODEL,
            )
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        """Local servers run without a key; hosted providers need one."""
        return self.config.provider == LLMProvider.LOCAL or bool(self.config.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}

        if self.config.provider == LLMProvider.OPENAI:
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        elif self.config.provider == LLMProvider.ANTHROPIC:
            headers["x-api-key"] = self.config.api_key
            headers["anthropic-version"] = "2023-06-01"
        elif self.config.provider == LLMProvider.LOCAL:
            if self.config.api_key and self.config.api_key != "not-needed":
                headers["Authorization"] = f"Bearer {self.config.api_key}"

        return headers

    async def complete(self, prompt: str, max_tokens: Optional[int] = None) -> str:
        """Single user prompt in, response text out."""
        if self.config.provider == LLMProvider.ANTHROPIC:
            return await self._complete_anthropic(prompt, max_tokens)
        return await self._complete_openai_compatible(prompt, max_tokens)

    async def _complete_openai_compatible(self, prompt: str, max_tokens: Optional[int]) -> str:
        """OpenAI-compatible API (works with LM Studio and OpenAI)."""
        client = await self._get_client()

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self.config.temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }

        response = await client.post(f"{self.config.base_url}/chat/completions", json=payload)
        response.raise_for_status()
        data = response.json()

        return data["choices"][0]["message"]["content"] or ""

    async def _complete_anthropic(self, prompt: str, max_tokens: Optional[int]) -> str:
        client = await self._get_client()

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": max_tokens or self.config.max_tokens,
        }

        response = await client.post(f"{self.config.base_url}/messages", json=payload)
        response.raise_for_status()
        data = response.json()

        return "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
