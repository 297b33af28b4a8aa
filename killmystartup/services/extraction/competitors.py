"""Turn provider output into competitor drafts.

Two inputs are supported: raw web search hits (full discovery) and the
JSON array returned by a chat completion (parameter update).
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from killmystartup.core.logging import get_logger
from killmystartup.models.competitor import RiskLevel
from killmystartup.schemas.competitor import CompetitorDraft
from killmystartup.schemas.provider import SearchHit
from killmystartup.services.extraction.company_name import extract_company_name
from killmystartup.services.extraction.signals import (
    determine_risk_level,
    extract_employee_count,
    extract_founded_year,
    extract_funding_info,
    extract_valuation,
    extract_website,
    valid_founded_year,
)

logger = get_logger(__name__)

MAX_PROVIDER_QUERIES = 5
MAX_SEARCH_COMPETITORS = 6
MAX_JSON_COMPETITORS = 8
DESCRIPTION_MAX_CHARS = 200
RECENT_NEWS_MAX_CHARS = 100


def _truncate(text: str, limit: int) -> str:
    return f"{text[:limit]}..." if len(text) > limit else text


def generate_competitor_queries(
    industry: str,
    context: str | None = None,
    *,
    now: datetime | None = None,
) -> list[str]:
    """Discovery queries for an industry, capped at the provider's query limit."""
    year = (now or datetime.now(UTC)).year
    queries = [
        f"list of companies in {industry} industry {year}",
        f"{industry} startups companies founded {year - 1} {year}",
        f"major players {industry} market companies",
        f"{industry} software companies products platforms",
    ]
    if context:
        queries.append(f"companies building {context} tools {industry}")
    else:
        queries.append(f"unicorn companies {industry} billion valuation")
    return queries[:MAX_PROVIDER_QUERIES]


def competitor_from_hit(
    hit: SearchHit,
    industry: str,
    *,
    now: datetime | None = None,
) -> CompetitorDraft | None:
    """Extract one competitor from a search hit; None when no name is found."""
    name = extract_company_name(hit.title, hit.snippet, hit.url)
    if not name:
        return None

    text = f"{hit.title} {hit.snippet}"
    funding = extract_funding_info(hit.title, hit.snippet)
    return CompetitorDraft(
        name=name,
        description=_truncate(hit.snippet, DESCRIPTION_MAX_CHARS) if hit.snippet else None,
        website=extract_website(hit.url, text),
        industry=industry,
        founded_year=extract_founded_year(text, now=now),
        employee_count=extract_employee_count(text),
        last_funding=funding.last_funding,
        funding_amount=funding.funding_amount,
        valuation=extract_valuation(text),
        recent_news=_truncate(hit.title, RECENT_NEWS_MAX_CHARS),
        risk_level=determine_risk_level(hit.title, hit.snippet),
    )


def parse_competitor_results(
    hits: Iterable[SearchHit],
    industry: str,
    *,
    limit: int = MAX_SEARCH_COMPETITORS,
    now: datetime | None = None,
) -> list[CompetitorDraft]:
    """Drafts from search hits, deduplicated case-insensitively by name."""
    seen: set[str] = set()
    competitors: list[CompetitorDraft] = []
    for hit in hits:
        draft = competitor_from_hit(hit, industry, now=now)
        if draft is None:
            continue
        key = draft.name.lower()
        if key in seen:
            continue
        seen.add(key)
        competitors.append(draft)
        if len(competitors) >= limit:
            break

    logger.debug("competitors_extracted", industry=industry, competitor_count=len(competitors))
    return competitors


# ── Chat completion JSON ──────────────────────────────────────────

# camelCase keys the prompt asks for -> draft fields
_JSON_FIELDS = {
    "name": "name",
    "description": "description",
    "website": "website",
    "industry": "industry",
    "foundedYear": "founded_year",
    "employeeCount": "employee_count",
    "lastFunding": "last_funding",
    "fundingAmount": "funding_amount",
    "valuation": "valuation",
    "recentNews": "recent_news",
    "riskLevel": "risk_level",
}


def _extract_json_array(content: str) -> list[Any] | None:
    text = content.replace("```json", "").replace("```", "").strip()
    start, end = text.find("["), text.rfind("]")
    if start == -1 or end <= start:
        return None
    try:
        data = json.loads(text[start : end + 1])
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, list) else None


def _coerce_risk_level(value: Any) -> RiskLevel:
    try:
        return RiskLevel(str(value).upper())
    except ValueError:
        return RiskLevel.MEDIUM


def _coerce_founded_year(value: Any, now: datetime | None) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return valid_founded_year(value, now=now)
    if isinstance(value, str) and value.strip().isdigit():
        return valid_founded_year(int(value.strip()), now=now)
    return None


def _draft_from_json(item: Any, industry: str, now: datetime | None) -> CompetitorDraft | None:
    if not isinstance(item, dict):
        return None

    fields: dict[str, Any] = {}
    for key, field_name in _JSON_FIELDS.items():
        value = item.get(key, item.get(field_name))
        if value is None:
            continue
        if field_name == "risk_level":
            value = _coerce_risk_level(value)
        elif field_name == "founded_year":
            value = _coerce_founded_year(value, now)
        elif not isinstance(value, str):
            value = str(value)
        fields[field_name] = value

    name = fields.get("name", "").strip()
    if not name:
        return None
    fields["name"] = name
    fields["industry"] = industry

    try:
        return CompetitorDraft(**fields)
    except ValidationError as e:
        logger.debug("competitor_json_item_rejected", name=name, error=str(e))
        return None


def parse_competitor_json(
    content: str,
    industry: str,
    *,
    limit: int = MAX_JSON_COMPETITORS,
    now: datetime | None = None,
) -> list[CompetitorDraft]:
    """Drafts from a chat completion that should contain a JSON array.

    Markdown fences are stripped and the outermost [...] is parsed.
    Unparseable content yields an empty list.
    """
    items = _extract_json_array(content)
    if items is None:
        logger.warning("competitor_json_unparseable", content_length=len(content))
        return []

    seen: set[str] = set()
    competitors: list[CompetitorDraft] = []
    for item in items:
        draft = _draft_from_json(item, industry, now)
        if draft is None or draft.name.lower() in seen:
            continue
        seen.add(draft.name.lower())
        competitors.append(draft)
        if len(competitors) >= limit:
            break
    return competitors


PARAMETER_UPDATE_SYSTEM_PROMPT = (
    "You are a competitive intelligence expert. Return valid JSON arrays with "
    "updated competitor parameters. Focus on recent changes and developments."
)


def build_parameter_update_prompt(
    industry: str,
    context: str | None = None,
    *,
    max_results: int = MAX_JSON_COMPETITORS,
) -> str:
    focus = f" building {context}" if context else ""
    return (
        f"Provide updated information for the top {max_results} competitors in the "
        f"{industry} industry{focus}. Focus on recent funding rounds, headcount "
        "changes, product launches and news from the last few weeks.\n\n"
        "Return ONLY a JSON array where each element has these fields:\n"
        '{"name": "", "description": "", "website": "", "industry": "", '
        '"foundedYear": 2020, "employeeCount": "", "lastFunding": "", '
        '"fundingAmount": "", "recentNews": "", '
        '"riskLevel": "LOW|MEDIUM|HIGH|CRITICAL"}'
    )
