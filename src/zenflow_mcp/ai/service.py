"""
AI Advisory Service.

`AIService` is the capability the rest of the package depends on.
`ChatCompletionService` is its single implementation, configured with a
ProviderProfile and an API key.

None of the public coroutines raise: transport, HTTP and parse failures
are logged and replaced by fixed fallback replies.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Protocol, Sequence

import httpx

from zenflow_mcp.ai import prompts
from zenflow_mcp.ai.providers import ProviderProfile
from zenflow_mcp.exceptions import ZenFlowAIError
from zenflow_mcp.models import SchulteResult, Task

logger = logging.getLogger(__name__)

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


class AIService(Protocol):
    """Natural-language advice over tasks and exercise results."""

    async def get_end_day_review(self, tasks: Sequence[Task]) -> str: ...

    async def get_task_priority_suggestion(self, tasks: Sequence[Task]) -> list[str]: ...

    async def get_schulte_focus_analysis(self, results: Sequence[SchulteResult]) -> str: ...


class ChatCompletionService:
    """
    AIService backed by an OpenAI-style chat-completion endpoint.

    Args:
        profile: Endpoint, model and prompt style of the provider
        api_key: Bearer token
        http_client: Shared client; a short-lived one is created per call
            when omitted
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        profile: ProviderProfile,
        api_key: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.profile = profile
        self._api_key = api_key
        self._http_client = http_client
        self._timeout = timeout

    @property
    def provider(self) -> str:
        return self.profile.provider.value

    # =========================================================================
    # Transport
    # =========================================================================

    async def _post(self, client: httpx.AsyncClient, prompt: str) -> httpx.Response:
        return await client.post(
            self.profile.endpoint,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
            json={
                "model": self.profile.model,
                "messages": [{"role": "user", "content": prompt}],
            },
            timeout=self._timeout,
        )

    async def _complete(self, prompt: str) -> str:
        """
        Send a single-turn prompt and return the reply text.

        Raises:
            ZenFlowAIError: On request-building or transport errors, non-2xx
                status, an unexpected response shape or non-text content
        """
        try:
            if self._http_client is not None:
                response = await self._post(self._http_client, prompt)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await self._post(client, prompt)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise ZenFlowAIError(
                f"{self.profile.label} returned HTTP {e.response.status_code}",
                provider=self.provider,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ZenFlowAIError(f"{self.profile.label} request failed: {e}", provider=self.provider) from e
        except (httpx.InvalidURL, ValueError) as e:
            # Header values must be ASCII; a pasted key with other characters fails here.
            raise ZenFlowAIError(
                f"{self.profile.label} request could not be built: {type(e).__name__}",
                provider=self.provider,
            ) from e

        try:
            data: Any = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ZenFlowAIError(f"{self.profile.label} returned an unexpected payload", provider=self.provider) from e
        if content is None:
            return ""
        if not isinstance(content, str):
            raise ZenFlowAIError(f"{self.profile.label} returned non-text content", provider=self.provider)
        return content

    # =========================================================================
    # Capabilities
    # =========================================================================

    async def get_end_day_review(self, tasks: Sequence[Task]) -> str:
        try:
            reply = await self._complete(self.profile.review_prompt(tasks))
        except ZenFlowAIError as e:
            logger.error("%s review error: %s", self.profile.label, e)
            return prompts.REVIEW_FAILURE_REPLY
        return reply or prompts.REVIEW_EMPTY_REPLY

    async def get_task_priority_suggestion(self, tasks: Sequence[Task]) -> list[str]:
        unfinished = [t.text for t in tasks if not t.completed]
        if not unfinished:
            return []
        fallback = unfinished[: prompts.PRIORITY_SUGGESTION_COUNT]

        try:
            reply = await self._complete(prompts.priority_prompt(unfinished))
        except ZenFlowAIError as e:
            logger.error("%s priority error: %s", self.profile.label, e)
            return fallback

        match = _JSON_ARRAY.search(reply)
        if match is None:
            return fallback
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.warning("%s priority reply is not valid JSON", self.profile.label)
            return fallback
        if not isinstance(parsed, list):
            return fallback
        return [str(item) for item in parsed]

    async def get_schulte_focus_analysis(self, results: Sequence[SchulteResult]) -> str:
        if not results:
            return prompts.SCHULTE_NO_RESULTS_REPLY
        try:
            reply = await self._complete(prompts.schulte_prompt(results))
        except ZenFlowAIError as e:
            logger.error("%s Schulte analysis error: %s", self.profile.label, e)
            return prompts.SCHULTE_FAILURE_REPLY
        return reply or prompts.SCHULTE_EMPTY_REPLY
