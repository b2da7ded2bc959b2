"""HTTP clients for model backends."""
import asyncio
import json
from typing import Any, Dict, Optional, Tuple

import aiohttp

from seqthink.config import BackendConfig, settings
from seqthink.models.internal import GenerationResult
from seqthink.utils.logging import get_logger
from seqthink.utils.retry import create_retry_decorator

logger = get_logger(__name__)

CONTENT_SEPARATOR = "\n\n=== CONTENT ===\n"


class ModelClient:
    """Async HTTP client for calling model APIs."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: Optional[int] = None,
        retry_attempts: Optional[int] = None,
    ):
        """Initialize client with a shared session."""
        self.session = session
        self.timeout = timeout or settings.http_timeout
        self._call_count = 0
        attempts = retry_attempts if retry_attempts is not None else settings.http_retry_attempts
        self._post = create_retry_decorator(max(1, attempts))(self._post_once)

    async def _post_once(
        self,
        url: str,
        payload: Dict[str, Any],
        headers: Dict[str, str],
    ) -> Tuple[int, str]:
        async with self.session.post(
            url,
            json=payload,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.timeout),
        ) as response:
            return response.status, await response.text()

    async def call_model(
        self,
        backend: BackendConfig,
        system_prompt: str,
        user_prompt: str,
        api_key: str,
        call_id: str = "",
    ) -> GenerationResult:
        """Call a model API once and return a tagged result."""
        self._call_count += 1

        if not api_key:
            logger.warning("model_missing_api_key", call_id=call_id, backend=backend.name)
            return GenerationResult.failure(
                f"No API key configured for provider '{backend.provider}'"
            )

        if backend.provider == "google":
            url, payload, headers = self._google_request(backend, system_prompt, user_prompt, api_key)
            parse = _parse_google
        else:
            url, payload, headers = self._openrouter_request(backend, system_prompt, user_prompt, api_key)
            parse = _parse_openrouter

        try:
            logger.info(
                "calling_model",
                call_id=call_id,
                backend=backend.name,
                model=backend.model,
            )

            status, response_text = await self._post(url, payload, headers)

            if status != 200:
                logger.error(
                    "model_error",
                    call_id=call_id,
                    status=status,
                    response=response_text[:200],
                )
                return GenerationResult.failure(f"HTTP {status}: {response_text[:200]}")

            content = parse(json.loads(response_text))
            if not content.strip():
                logger.error("model_empty_response", call_id=call_id)
                return GenerationResult.failure("No content generated")

            logger.info(
                "model_success",
                call_id=call_id,
                content_length=len(content),
            )
            return GenerationResult.success(content)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error("model_transport_error", call_id=call_id, error=repr(e))
            return GenerationResult.failure(str(e) or type(e).__name__)
        except (ValueError, KeyError, IndexError, TypeError) as e:
            logger.exception("model_bad_response", call_id=call_id, error=str(e))
            return GenerationResult.failure(f"Malformed response: {e}")

    def _openrouter_request(
        self,
        backend: BackendConfig,
        system_prompt: str,
        user_prompt: str,
        api_key: str,
    ) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}"
        }
        payload = {
            "model": backend.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": backend.temperature,
            "max_tokens": backend.max_tokens,
        }
        return backend.api_url, payload, headers

    def _google_request(
        self,
        backend: BackendConfig,
        system_prompt: str,
        user_prompt: str,
        api_key: str,
    ) -> Tuple[str, Dict[str, Any], Dict[str, str]]:
        headers = {
            "Content-Type": "application/json",
            "x-goog-api-key": api_key,
        }
        payload = {
            "systemInstruction": {"parts": [{"text": system_prompt}]},
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "generationConfig": {
                "temperature": backend.temperature,
                "maxOutputTokens": backend.max_tokens,
            },
        }
        url = f"{backend.api_url.rstrip('/')}/{backend.model}:generateContent"
        return url, payload, headers

    @property
    def total_calls(self) -> int:
        """Get total number of API calls made."""
        return self._call_count


def _parse_openrouter(data: Dict[str, Any]) -> str:
    """Extract text from an OpenAI-compatible chat completion.

    Reasoning models report their chain of thought in a separate
    ``reasoning`` field; it is kept ahead of the final content.
    """
    if "error" in data:
        error = data["error"]
        message = error.get("message") if isinstance(error, dict) else error
        raise ValueError(f"provider error: {message}")

    message = data["choices"][0]["message"]
    reasoning = message.get("reasoning") or ""
    content = message.get("content") or ""
    if reasoning:
        return reasoning + (CONTENT_SEPARATOR + content if content else "")
    return content


def _parse_google(data: Dict[str, Any]) -> str:
    """Extract text from a Gemini generateContent response."""
    candidates = data.get("candidates") or []
    if not candidates:
        reason = (data.get("promptFeedback") or {}).get("blockReason", "no candidates")
        raise ValueError(f"provider returned no candidates ({reason})")
    parts = candidates[0].get("content", {}).get("parts", [])
    return "".join(part.get("text", "") for part in parts)


class ModelBackend:
    """One configured model behind the ``generate`` capability."""

    def __init__(self, config: BackendConfig, client: ModelClient, api_key: str):
        self.config = config
        self.client = client
        self.api_key = api_key
        self._calls = 0

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def display_name(self) -> str:
        return self.config.display_name

    async def generate(self, system_prompt: str, user_prompt: str) -> GenerationResult:
        self._calls += 1
        return await self.client.call_model(
            self.config,
            system_prompt,
            user_prompt,
            self.api_key,
            call_id=f"{self.name}_{self._calls}",
        )
