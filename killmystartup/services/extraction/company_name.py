"""Company-name extraction from search result titles and snippets.

Rules are tried in the order of COMPANY_NAME_RULES; the first candidate
that survives cleaning wins. No match means the result is skipped, never
that a name is invented.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from killmystartup.services.extraction.signals import is_news_site

_NAME_START = r"[A-Z][a-zA-Z0-9\s&.]"

_VERBS = (
    "is|has|was|will|announced|announces|launched|launches|raised|raises|"
    "founded|offers|provides|builds|creates|secures|secured"
)
_DESCRIPTORS = "AI|startup|company|platform|software|app|tool|service|Inc|Corp|Ltd|LLC"
_LISTING_CUES = "founded|based|headquartered|offers|provides|specializes"

_LEADING_ARTICLE = re.compile(r"^(?:The|A)\s+", re.IGNORECASE)
_TRAILING_SUFFIX = re.compile(
    r"\s+(?:Inc|Corp|Ltd|LLC|AI|Platform|Software|App)\.?$", re.IGNORECASE
)
_GENERIC_TERMS = re.compile(
    r"(?:startup|company|platform|software|app|tool|service|solution|system|product)s?",
    re.IGNORECASE,
)

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 29


@dataclass(frozen=True)
class NameRule:
    """One named extraction pattern; group 1 is the candidate name."""

    name: str
    pattern: re.Pattern[str]
    include_url: bool = False  # also search the result URL
    is_domain: bool = False  # candidate is a domain label

    def candidates(self, text: str, url: str | None = None) -> list[str]:
        haystack = f"{text} {url}" if self.include_url and url else text
        found = []
        for match in self.pattern.finditer(haystack):
            if self.is_domain and is_news_site(match.group(0)):
                continue
            found.append(match.group(1))
        return found


COMPANY_NAME_RULES: tuple[NameRule, ...] = (
    NameRule(
        "name_before_verb",
        re.compile(rf"^({_NAME_START}+?)\s+(?:{_VERBS})\b", re.IGNORECASE),
    ),
    NameRule(
        "name_before_descriptor",
        re.compile(rf"({_NAME_START}+?)\s+(?:{_DESCRIPTORS})\b", re.IGNORECASE),
    ),
    NameRule(
        "name_before_punctuation",
        re.compile(rf"^({_NAME_START}+?)\s*[:,\-|]", re.IGNORECASE),
    ),
    NameRule(
        "name_in_listing",
        re.compile(
            rf"(?:^|\s)([A-Z][a-zA-Z0-9\s&.]{{2,25}})(?=\s+(?:{_LISTING_CUES})\b)",
            re.IGNORECASE,
        ),
    ),
    NameRule(
        "domain_from_url",
        re.compile(
            r"(?:https?://)?(?:www\.)?([a-zA-Z0-9][a-zA-Z0-9\-]{1,61}[a-zA-Z0-9])\.(?:com|io|ai|co|net|org)\b",
            re.IGNORECASE,
        ),
        include_url=True,
        is_domain=True,
    ),
)


def clean_company_name(raw: str) -> str | None:
    """Strip articles and corporate suffixes; None if what is left is not a plausible name."""
    name = raw.strip()
    name = _LEADING_ARTICLE.sub("", name)
    name = _TRAILING_SUFFIX.sub("", name).strip(" .")

    if _GENERIC_TERMS.fullmatch(name):
        return None
    if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
        return None
    return name


def extract_company_name(
    title: str,
    snippet: str = "",
    url: str | None = None,
    rules: tuple[NameRule, ...] = COMPANY_NAME_RULES,
) -> str | None:
    content = f"{title} {snippet}".strip()
    for rule in rules:
        for candidate in rule.candidates(content, url):
            name = clean_company_name(candidate)
            if name:
                return name
    return None
