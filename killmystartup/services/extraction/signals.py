"""Field extractors for competitor signals in search result text.

Every extractor is independent and best-effort: a missing or ambiguous
signal yields None for that field and never raises.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import UTC, datetime
from urllib.parse import urlparse

from killmystartup.models.competitor import RiskLevel

# ── Risk level ────────────────────────────────────────────────────


@dataclass(frozen=True)
class RiskRule:
    """Keywords that put a competitor at a given risk level."""

    level: RiskLevel
    keywords: tuple[str, ...]

    def matches(self, content: str) -> bool:
        # Keywords anchor at a word start: "ipo" must not hit "hippo"
        return any(re.search(rf"\b{re.escape(kw)}", content) for kw in self.keywords)


# Highest tier first; the first matching rule wins
RISK_RULES: tuple[RiskRule, ...] = (
    RiskRule(RiskLevel.CRITICAL, ("unicorn", "billion", "series c", "series d", "ipo")),
    RiskRule(
        RiskLevel.HIGH,
        ("series b", "100m", "market leader", "acquires", "acquisition", "partnership"),
    ),
    RiskRule(RiskLevel.MEDIUM, ("series a", "funding", "raises", "grows", "expands")),
)


def determine_risk_level(title: str, snippet: str = "") -> RiskLevel:
    content = f"{title} {snippet}".lower()
    for rule in RISK_RULES:
        if rule.matches(content):
            return rule.level
    return RiskLevel.LOW


# ── Funding / valuation ───────────────────────────────────────────

_ROUND_RE = re.compile(r"\b(pre-seed|seed|series [a-d])\b", re.IGNORECASE)
_AMOUNT = r"\$(\d+(?:\.\d+)?)\s*(million|billion|m|b)\b"
_AMOUNT_RE = re.compile(_AMOUNT, re.IGNORECASE)
_VALUATION_RES = (
    re.compile(
        rf"valu(?:ed|ation)\s+(?:at|of)\s+(?:over\s+|about\s+|nearly\s+|roughly\s+)?{_AMOUNT}",
        re.IGNORECASE,
    ),
    re.compile(rf"{_AMOUNT}\s+valuation\b", re.IGNORECASE),
)


@dataclass
class FundingInfo:
    last_funding: str | None = None
    funding_amount: str | None = None


def _format_amount(number: str, unit: str) -> str:
    return f"${number}{unit[0].upper()}"


def _format_round(raw: str) -> str:
    lowered = raw.lower()
    if lowered.startswith("series"):
        return f"Series {lowered[-1].upper()}"
    return "Pre-Seed" if lowered == "pre-seed" else "Seed"


def extract_funding_info(title: str, snippet: str = "") -> FundingInfo:
    content = f"{title} {snippet}"
    info = FundingInfo()

    round_match = _ROUND_RE.search(content)
    if round_match:
        info.last_funding = _format_round(round_match.group(1))

    amount_match = _AMOUNT_RE.search(content)
    if amount_match:
        info.funding_amount = _format_amount(amount_match.group(1), amount_match.group(2))

    return info


def extract_valuation(text: str) -> str | None:
    for pattern in _VALUATION_RES:
        match = pattern.search(text)
        if match:
            return _format_amount(match.group(1), match.group(2))
    return None


# ── Founded year / headcount ──────────────────────────────────────

MIN_FOUNDED_YEAR = 1990

_FOUNDED_RE = re.compile(
    r"\b(?:founded|established|started|launched)\s+(?:in\s+)?(\d{4})\b", re.IGNORECASE
)
_EMPLOYEES_RE = re.compile(
    r"\b(\d{1,3}(?:,\d{3})+|\d+)\+?\s+(?:employees|staff|people|team members|workers)\b",
    re.IGNORECASE,
)

# (threshold, label), largest first
EMPLOYEE_BUCKETS: tuple[tuple[int, str], ...] = (
    (10_000, "10000+"),
    (1_000, "1000+"),
    (500, "500+"),
    (100, "100+"),
    (50, "50+"),
)


def valid_founded_year(year: int, *, now: datetime | None = None) -> int | None:
    current_year = (now or datetime.now(UTC)).year
    return year if MIN_FOUNDED_YEAR <= year <= current_year else None


def extract_founded_year(text: str, *, now: datetime | None = None) -> int | None:
    match = _FOUNDED_RE.search(text)
    if not match:
        return None
    return valid_founded_year(int(match.group(1)), now=now)


def bucket_employee_count(count: int) -> str | None:
    if count <= 0:
        return None
    for threshold, label in EMPLOYEE_BUCKETS:
        if count >= threshold:
            return label
    return "<50"


def extract_employee_count(text: str) -> str | None:
    match = _EMPLOYEES_RE.search(text)
    if not match:
        return None
    return bucket_employee_count(int(match.group(1).replace(",", "")))


# ── Website ───────────────────────────────────────────────────────

NEWS_SITES: frozenset[str] = frozenset(
    {
        "techcrunch.com",
        "venturebeat.com",
        "forbes.com",
        "bloomberg.com",
        "reuters.com",
        "cnbc.com",
        "businessinsider.com",
        "wsj.com",
        "theverge.com",
        "crunchbase.com",
        "news.ycombinator.com",
        "medium.com",
        "linkedin.com",
        "wikipedia.org",
    }
)

_TEXT_DOMAIN_RE = re.compile(
    r"\b((?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)+(?:com|io|ai|co|net|org))\b",
    re.IGNORECASE,
)


def _bare_host(value: str) -> str:
    host = value.lower().strip()
    host = re.sub(r"^https?://", "", host)
    host = host.split("/", 1)[0]
    return host.removeprefix("www.")


def is_news_site(value: str) -> bool:
    """True for a URL or hostname that belongs to a news aggregator."""
    host = _bare_host(value)
    return any(host == site or host.endswith(f".{site}") for site in NEWS_SITES)


def extract_website(url: str | None, text: str = "") -> str | None:
    """The result URL's domain, or a domain named in the text when the URL is a news site."""
    if url:
        host = urlparse(url).hostname
        if host and not is_news_site(host):
            return host.removeprefix("www.")

    for match in _TEXT_DOMAIN_RE.finditer(text):
        candidate = _bare_host(match.group(1))
        if not is_news_site(candidate):
            return candidate
    return None
