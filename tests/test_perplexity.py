"""Tests for the Perplexity provider boundary."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from pydantic import TypeAdapter

from killmystartup.config import Settings
from killmystartup.core.errors import ProviderError, ProviderNotConfigured
from killmystartup.schemas.provider import ChatCompletionResult, ProviderResult, SearchResults
from killmystartup.services.perplexity import PerplexityClient, parse_search_payload

# ── Helper ─────────────────────────────────────────────────────────


def _settings(**overrides) -> Settings:
    return Settings(perplexity_api_key="pplx-test", **overrides)


def _mock_http_client(response=None, side_effect=None) -> AsyncMock:
    mock_client = AsyncMock()
    mock_client.post = AsyncMock(return_value=response, side_effect=side_effect)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


# ── Payload validation ────────────────────────────────────────────


class TestParseSearchPayload:
    def test_valid_hits(self):
        results = parse_search_payload(
            ["q"],
            {"results": [{"title": "A", "url": "https://a.com", "snippet": "s", "date": "2026-01-01"}]},
        )
        assert results.kind == "search"
        assert results.hits[0].title == "A"
        assert results.hits[0].date == "2026-01-01"
        assert results.dropped == 0

    def test_malformed_hits_dropped(self):
        results = parse_search_payload(
            ["q"],
            {
                "results": [
                    {"title": "", "url": "https://a.com"},
                    {"title": "No url"},
                    "junk",
                    {"title": "Ok", "url": "https://ok.com", "snippet": None},
                ]
            },
        )
        assert [h.title for h in results.hits] == ["Ok"]
        assert results.hits[0].snippet == ""
        assert results.dropped == 3

    def test_missing_results_is_empty(self):
        assert parse_search_payload(["q"], {}).hits == []

    def test_non_object_body_raises(self):
        with pytest.raises(ProviderError):
            parse_search_payload(["q"], ["not", "an", "object"])

    def test_discriminated_union(self):
        adapter = TypeAdapter(ProviderResult)
        assert isinstance(adapter.validate_python({"kind": "search"}), SearchResults)
        assert isinstance(adapter.validate_python({"kind": "chat", "model": "sonar"}), ChatCompletionResult)


# ── Search ────────────────────────────────────────────────────────


class TestPerplexitySearch:
    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = PerplexityClient(Settings(perplexity_api_key=""))
        with pytest.raises(ProviderNotConfigured, match="Perplexity API key not configured"):
            await client.search(["q"], max_results=5)

    @pytest.mark.asyncio
    async def test_success_posts_queries(self):
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "results": [{"title": "Acme raises", "url": "https://acme.com", "snippet": "s"}]
        }
        mock_response.raise_for_status = MagicMock()
        mock_client = _mock_http_client(mock_response)

        with patch("killmystartup.services.perplexity.httpx.AsyncClient", return_value=mock_client):
            results = await PerplexityClient(_settings()).search(["q1", "q2"], max_results=7)

        assert len(results.hits) == 1
        assert results.queries == ["q1", "q2"]
        call = mock_client.post.call_args
        assert call.args[0] == "https://api.perplexity.ai/search"
        assert call.kwargs["json"]["query"] == ["q1", "q2"]
        assert call.kwargs["json"]["max_results"] == 7
        assert call.kwargs["json"]["country"] == "US"
        assert call.kwargs["headers"]["Authorization"] == "Bearer pplx-test"

    @pytest.mark.asyncio
    async def test_http_status_error(self):
        request = httpx.Request("POST", "https://api.perplexity.ai/search")
        response = httpx.Response(429, request=request)
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("rate limited", request=request, response=response)
        )
        mock_client = _mock_http_client(mock_response)

        with patch("killmystartup.services.perplexity.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ProviderError, match="429"):
                await PerplexityClient(_settings()).search(["q"], max_results=5)

    @pytest.mark.asyncio
    async def test_network_error(self):
        mock_client = _mock_http_client(side_effect=httpx.ConnectError("boom"))

        with patch("killmystartup.services.perplexity.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ProviderError):
                await PerplexityClient(_settings()).search(["q"], max_results=5)

    @pytest.mark.asyncio
    async def test_invalid_json(self):
        mock_response = MagicMock()
        mock_response.json.side_effect = ValueError("Expecting value")
        mock_response.raise_for_status = MagicMock()
        mock_client = _mock_http_client(mock_response)

        with patch("killmystartup.services.perplexity.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(ProviderError, match="invalid JSON"):
                await PerplexityClient(_settings()).search(["q"], max_results=5)


# ── Chat ──────────────────────────────────────────────────────────


class TestPerplexityChat:
    @pytest.mark.asyncio
    async def test_returns_content(self):
        client = PerplexityClient(_settings())
        completion = MagicMock()
        completion.choices = [MagicMock(message=MagicMock(content='[{"name": "Acme"}]'))]
        chat = MagicMock()
        chat.chat.completions.create = AsyncMock(return_value=completion)
        client._chat_client = chat

        result = await client.chat_completion(model="sonar", system_prompt="s", user_prompt="u")

        assert result.kind == "chat"
        assert result.content == '[{"name": "Acme"}]'
        kwargs = chat.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "sonar"
        assert kwargs["temperature"] == 0.1
        assert kwargs["messages"][0] == {"role": "system", "content": "s"}

    @pytest.mark.asyncio
    async def test_no_choices_raises(self):
        client = PerplexityClient(_settings())
        chat = MagicMock()
        chat.chat.completions.create = AsyncMock(return_value=MagicMock(choices=[]))
        client._chat_client = chat

        with pytest.raises(ProviderError):
            await client.chat_completion(model="sonar", system_prompt="s", user_prompt="u")

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = PerplexityClient(Settings(perplexity_api_key=""))
        with pytest.raises(ProviderNotConfigured):
            await client.chat_completion(model="sonar", system_prompt="s", user_prompt="u")
