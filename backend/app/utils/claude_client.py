from anthropic import AsyncAnthropic, APIStatusError, APIError, APIConnectionError, APITimeoutError
from typing import Optional, Dict, Any
import asyncio
import random
import httpx
from app.core.config import settings
from app.core.logging_config import logger

RETRYABLE_ERRORS = ['overloaded_error', 'rate_limit_error', 'api_error']
RETRYABLE_STATUS_CODES = [429, 500, 502, 503, 529]


class ClaudeClient:
    """Thin async wrapper over the Anthropic Messages API with retry and backoff"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        request_timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ):
        self.model = model or settings.CLASSIFIER_MODEL
        self.max_retries = settings.CLAUDE_MAX_RETRIES if max_retries is None else max_retries
        self.base_delay = settings.CLAUDE_RETRY_BASE_DELAY
        self.max_delay = settings.CLAUDE_RETRY_MAX_DELAY

        request_timeout = float(request_timeout or settings.CLASSIFIER_TIMEOUT_SECONDS)
        client_kwargs: Dict[str, Any] = {
            "api_key": api_key if api_key is not None else settings.ANTHROPIC_API_KEY,
            "timeout": httpx.Timeout(
                connect=float(settings.CLAUDE_CONNECT_TIMEOUT),
                read=request_timeout,
                write=request_timeout,
                pool=request_timeout,
            ),
            # Retries are handled below so they can be logged
            "max_retries": 0,
        }

        base_url = base_url if base_url is not None else settings.ANTHROPIC_BASE_URL
        if base_url and base_url.strip():
            client_kwargs["base_url"] = base_url.strip()
            logger.info(f"Using custom Claude API base URL: {base_url}")

        self.async_client = AsyncAnthropic(**client_kwargs)

    def _is_retryable_error(self, error: Exception) -> bool:
        """Overload, rate limit and network errors are worth another attempt"""
        if isinstance(error, (APIConnectionError, APITimeoutError)):
            return True

        if isinstance(error, (httpx.ConnectError, httpx.TimeoutException, httpx.NetworkError)):
            return True

        if isinstance(error, APIStatusError):
            if isinstance(error.body, dict):
                error_type = (error.body.get('error') or {}).get('type', '')
                if error_type in RETRYABLE_ERRORS:
                    return True
            return error.status_code in RETRYABLE_STATUS_CODES

        if isinstance(error, APIError):
            return False

        error_str = str(error).lower()
        return any(err in error_str for err in ['overload', 'rate_limit', 'connection', 'timeout'])

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with up to 25% jitter"""
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        return delay + delay * random.uniform(0, 0.25)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> Dict[str, Any]:
        """
        Single-turn, non-streaming completion.

        Returns:
            Dict with "content" (text of the first block) plus usage metadata
        """
        if max_tokens is None:
            max_tokens = settings.CLASSIFIER_MAX_TOKENS
        if temperature is None:
            temperature = settings.CLASSIFIER_TEMPERATURE

        logger.debug(f"Claude API: model={self.model}, max_tokens={max_tokens}, prompt_len={len(prompt)}")

        for attempt in range(self.max_retries + 1):
            try:
                response = await self.async_client.messages.create(
                    model=self.model,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    system=system_prompt or "",
                    messages=[{"role": "user", "content": prompt}],
                )

                content = response.content[0].text if response.content else ""
                return {
                    "content": content,
                    "model": self.model,
                    "input_tokens": response.usage.input_tokens,
                    "output_tokens": response.usage.output_tokens,
                    "stop_reason": response.stop_reason,
                    "id": response.id,
                }

            except Exception as e:
                error_type = type(e).__name__
                if self._is_retryable_error(e) and attempt < self.max_retries:
                    delay = self._calculate_retry_delay(attempt)
                    logger.warning(
                        f"Claude API error [{error_type}] (attempt {attempt + 1}/{self.max_retries + 1}), retrying in {delay:.1f}s...",
                        extra={
                            "event_type": "claude_api_retry",
                            "error_type": error_type,
                            "attempt": attempt + 1,
                            "retry_delay": delay,
                        }
                    )
                    await asyncio.sleep(delay)
                else:
                    logger.error(
                        f"Claude API error (non-retryable or max retries exceeded): {error_type}: {e}",
                        extra={
                            "event_type": "claude_api_error",
                            "error_type": error_type,
                            "attempt": attempt + 1,
                        }
                    )
                    raise

    async def close(self) -> None:
        await self.async_client.close()
