"""Validated payloads returned by the external search provider.

Provider calls come in two shapes (web search, chat completion). Each is a
tagged variant so callers can tell them apart without inspecting fields.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, Field


class SearchHit(BaseModel):
    """One web search result."""

    title: str = Field(min_length=1)
    url: str = Field(min_length=1)
    snippet: str = ""
    date: str | None = None


class SearchResults(BaseModel):
    kind: Literal["search"] = "search"
    queries: list[str] = Field(default_factory=list)
    hits: list[SearchHit] = Field(default_factory=list)
    dropped: int = 0  # malformed hits rejected at the boundary


class ChatCompletionResult(BaseModel):
    kind: Literal["chat"] = "chat"
    model: str
    content: str = ""


ProviderResult = Annotated[SearchResults | ChatCompletionResult, Field(discriminator="kind")]
