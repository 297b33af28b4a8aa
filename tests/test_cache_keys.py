"""Tests for cache key generation."""

from __future__ import annotations

from killmystartup.services.cache_keys import canonical_fields, generate_cache_key
from killmystartup.services.competitor_cache import CompetitorQuery
from killmystartup.services.news_cache import NewsQuery


class TestGenerateCacheKey:
    def test_deterministic(self):
        fields = {"industry": "X", "context": "Y"}
        assert generate_cache_key(fields) == generate_cache_key(dict(fields))

    def test_different_context_different_key(self):
        for industry in ("X", "fintech", "AI/education"):
            a = generate_cache_key({"industry": industry, "context": "Y"})
            b = generate_cache_key({"industry": industry, "context": "Z"})
            assert a != b

    def test_missing_field_equals_empty_string(self):
        a = generate_cache_key({"industry": "X", "context": None})
        b = generate_cache_key({"industry": "X", "context": ""})
        assert a == b

    def test_sha256_hex(self):
        key = generate_cache_key({"industry": "X"})
        assert len(key) == 64
        int(key, 16)

    def test_field_boundaries_not_ambiguous(self):
        a = generate_cache_key({"industry": "ab", "context": "c"})
        b = generate_cache_key({"industry": "a", "context": "bc"})
        assert a != b

    def test_canonical_fields_keep_order(self):
        canonical = canonical_fields({"b": None, "a": "1"})
        assert list(canonical) == ["b", "a"]
        assert canonical["b"] == ""


class TestQueryKeys:
    def test_news_query_key_stable(self):
        q1 = NewsQuery(industry="fintech", context="payments")
        q2 = NewsQuery(industry="fintech", context="payments")
        assert q1.cache_key == q2.cache_key

    def test_news_query_user_info_changes_key(self):
        q1 = NewsQuery(industry="fintech", user_info="founder")
        q2 = NewsQuery(industry="fintech")
        assert q1.cache_key != q2.cache_key

    def test_competitor_query_key_stable(self):
        q1 = CompetitorQuery(industry="SaaS", context="crm")
        q2 = CompetitorQuery(industry="SaaS", context="crm")
        assert q1.cache_key == q2.cache_key
        assert q1.cache_key != CompetitorQuery(industry="SaaS").cache_key

    def test_parameter_update_key_is_separate(self):
        discovery = CompetitorQuery(industry="SaaS", context="crm")
        update = discovery.with_update_type("parameters")

        assert update.cache_key != discovery.cache_key
        assert update.with_update_type(None).cache_key == discovery.cache_key
        assert "updateType" not in discovery.key_fields()
