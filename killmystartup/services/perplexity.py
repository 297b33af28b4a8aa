"""Perplexity client: web search and chat completions.

Search goes through the Search API with httpx; chat completions use the
OpenAI-compatible endpoint through AsyncOpenAI. Payloads are validated
here, so callers only ever see SearchResults / ChatCompletionResult.
"""

from __future__ import annotations

from typing import Any

import httpx
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from killmystartup.config import Settings, get_settings
from killmystartup.core.errors import ProviderError, ProviderNotConfigured
from killmystartup.core.logging import get_logger
from killmystartup.schemas.provider import ChatCompletionResult, SearchHit, SearchResults

logger = get_logger(__name__)


def parse_search_payload(queries: list[str], data: Any) -> SearchResults:
    """Validate a raw search response body, dropping malformed hits."""
    if not isinstance(data, dict):
        raise ProviderError("Perplexity search returned a non-object body")

    raw_results = data.get("results") or []
    if not isinstance(raw_results, list):
        raise ProviderError("Perplexity search returned malformed results")

    hits: list[SearchHit] = []
    dropped = 0
    for item in raw_results:
        if not isinstance(item, dict):
            dropped += 1
            continue
        try:
            hits.append(
                SearchHit(
                    title=item.get("title") or "",
                    url=item.get("url") or "",
                    snippet=item.get("snippet") or "",
                    date=item.get("date"),
                )
            )
        except ValidationError:
            dropped += 1

    if dropped:
        logger.warning("perplexity_hits_dropped", dropped=dropped, kept=len(hits))

    return SearchResults(queries=queries, hits=hits, dropped=dropped)


class PerplexityClient:
    """External search provider."""

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._chat_client: AsyncOpenAI | None = None

    @property
    def configured(self) -> bool:
        return bool(self.settings.perplexity_api_key)

    def _require_key(self) -> str:
        if not self.configured:
            raise ProviderNotConfigured("perplexity")
        return self.settings.perplexity_api_key

    @property
    def chat_client(self) -> AsyncOpenAI:
        if self._chat_client is None:
            self._chat_client = AsyncOpenAI(
                api_key=self._require_key(),
                base_url=self.settings.perplexity_base_url,
                timeout=self.settings.perplexity_timeout_seconds,
            )
        return self._chat_client

    async def search(
        self,
        queries: list[str],
        *,
        max_results: int,
        return_snippets: bool = True,
    ) -> SearchResults:
        """Run a multi-query web search. Raises ProviderError on any failure."""
        api_key = self._require_key()

        try:
            async with httpx.AsyncClient(
                timeout=self.settings.perplexity_timeout_seconds
            ) as client:
                resp = await client.post(
                    f"{self.settings.perplexity_base_url}/search",
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                    json={
                        "query": queries,
                        "max_results": max_results,
                        "return_snippets": return_snippets,
                        "country": self.settings.perplexity_search_country,
                    },
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "perplexity_search_failed",
                status_code=e.response.status_code,
                error=str(e),
            )
            raise ProviderError(
                f"Perplexity search failed with status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            logger.warning("perplexity_search_failed", error=str(e))
            raise ProviderError(f"Perplexity search request failed: {e}") from e
        except ValueError as e:
            raise ProviderError("Perplexity search returned invalid JSON") from e

        results = parse_search_payload(queries, data)
        logger.info(
            "perplexity_search_completed",
            query_count=len(queries),
            result_count=len(results.hits),
        )
        return results

    async def chat_completion(
        self,
        *,
        model: str,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int = 2000,
        temperature: float = 0.1,
        top_p: float = 0.9,
    ) -> ChatCompletionResult:
        """Single-turn chat completion. Raises ProviderError on any failure."""
        try:
            response = await self.chat_client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
                top_p=top_p,
            )
        except OpenAIError as e:
            logger.warning("perplexity_chat_failed", model=model, error=str(e))
            raise ProviderError(f"Perplexity chat completion failed: {e}") from e

        if not response.choices:
            raise ProviderError("Perplexity chat completion returned no choices")

        content = response.choices[0].message.content or ""
        logger.info("perplexity_chat_completed", model=model, content_length=len(content))
        return ChatCompletionResult(model=model, content=content)

    async def close(self) -> None:
        if self._chat_client is not None:
            await self._chat_client.close()
            self._chat_client = None
