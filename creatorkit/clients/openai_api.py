import asyncio
import logging
from typing import Callable, Dict, List, Optional
import httpx

from creatorkit.core.errors import (
    CompletionError,
    CompletionConfigError,
    CompletionAuthError,
    CompletionRateLimitError,
    CompletionServerError,
    CompletionNetworkError,
)
from creatorkit.utils.stream_parser import aggregate_stream

logger = logging.getLogger(__name__)


class CompletionClient:
    """Chat completion and image generation over the OpenAI-compatible HTTP API"""

    def __init__(self, api_key: Optional[str], base_url: str = "https://api.openai.com/v1",
                 model: str = "gpt-4o-mini", image_model: str = "dall-e-3",
                 timeout: float = 60.0, http_client: Optional[httpx.AsyncClient] = None):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.image_model = image_model
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

        if not self.api_key:
            logger.warning("⚠️ WARNING: OPENAI_API_KEY is not set!")

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise CompletionConfigError(
                "Completion API key not configured. Set OPENAI_API_KEY in your environment."
            )
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response) -> None:
        status = response.status_code
        if 200 <= status < 300:
            return

        logger.error(f"❌ Completion request failed: Status {status}")
        logger.debug(f"Response: {response.text[:500]}")
        if status == 401:
            raise CompletionAuthError("Invalid API key. Please check your completion API key.", status)
        if status == 429:
            raise CompletionRateLimitError("Rate limit exceeded. Please try again later.", status)
        if status >= 500:
            raise CompletionServerError("Completion service error. Please try again later.", status)
        raise CompletionError(f"Failed to generate content (status {status}).", status)

    async def chat_completion(self, messages: List[Dict], n: int = 1, temperature: float = 0.7,
                              max_tokens: int = 1000) -> List[str]:
        """Non-streaming completion; one string per returned choice"""
        headers = self._headers()
        logger.info(f"🤖 Sending completion request (messages: {len(messages)}, n: {n})")
        try:
            response = await self._client.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json={
                    "model": self.model,
                    "messages": messages,
                    "n": n,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                },
            )
        except httpx.HTTPError as e:
            raise CompletionNetworkError(
                "Network error. Please check your internet connection and try again."
            ) from e

        self._raise_for_status(response)
        choices = response.json().get("choices") or []
        results = [((choice or {}).get("message") or {}).get("content") or "" for choice in choices]
        logger.info(f"✅ Completion received, choices: {len(results)}")
        return results

    async def stream_chat_completion(self, messages: List[Dict],
                                     on_fragment: Optional[Callable[[str], None]] = None,
                                     cancel_event: Optional[asyncio.Event] = None,
                                     temperature: float = 0.7, max_tokens: int = 1000) -> str:
        """Streaming completion; fragments go to on_fragment as they arrive"""
        headers = self._headers()
        try:
            async with self._client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                headers=headers,
                json={
                    "model": self.model,
                    "messages": messages,
                    "stream": True,
                    "temperature": temperature,
                    "max_tokens": max_tokens,
                },
            ) as response:
                if not 200 <= response.status_code < 300:
                    await response.aread()
                    self._raise_for_status(response)
                text = await aggregate_stream(response.aiter_bytes(), on_fragment, cancel_event)
        except httpx.HTTPError as e:
            raise CompletionNetworkError(
                "Network error. Please check your internet connection and try again."
            ) from e

        logger.info(f"✅ Streaming completed, length: {len(text)} chars")
        return text

    async def generate_image(self, prompt: str, size: str = "1024x1024") -> str:
        """Generate one image and return its URL"""
        headers = self._headers()
        try:
            response = await self._client.post(
                f"{self.base_url}/images/generations",
                headers=headers,
                json={
                    "model": self.image_model,
                    "prompt": prompt,
                    "size": size,
                    "quality": "standard",
                    "n": 1,
                },
            )
        except httpx.HTTPError as e:
            raise CompletionNetworkError(
                "Network error. Please check your internet connection and try again."
            ) from e

        self._raise_for_status(response)
        data = response.json().get("data") or []
        return (data[0] or {}).get("url", "") if data else ""

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
