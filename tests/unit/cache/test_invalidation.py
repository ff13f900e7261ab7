"""
Unit tests for pattern-based cache invalidation.
"""

import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..'))
from fixtures.fake_clock import ManualClock
from fixtures.sample_records import ORG_1, ORG_2, SAMPLE_COMPANIES

from orbit.cache.invalidation import (
    INVALIDATION_TABLE,
    ExactPattern,
    GlobPattern,
    InvalidationPatterns,
    compile_pattern,
    invalidate,
    invalidate_entity,
    patterns_for,
)
from orbit.cache.keys import CacheKeys
from orbit.cache.tiers import CacheRegistry, CacheTier


@pytest.fixture
def registry():
    return CacheRegistry(clock=ManualClock())


class TestCompilePattern:

    def test_plain_string_is_exact(self):
        pattern = compile_pattern("companies:org-1")
        assert isinstance(pattern, ExactPattern)
        assert pattern.matches("companies:org-1")
        assert not pattern.matches("companies:org-1:{}")

    def test_wildcard_is_glob(self):
        pattern = compile_pattern("stats:org-1:*")
        assert isinstance(pattern, GlobPattern)
        assert pattern.matches("stats:org-1:companies")
        assert pattern.matches("stats:org-1:")
        assert not pattern.matches("stats:org-2:companies")

    def test_glob_is_anchored(self):
        pattern = compile_pattern("stats:org-1:*")
        assert not pattern.matches("xstats:org-1:companies")

    def test_glob_escapes_regex_metacharacters(self):
        pattern = compile_pattern('companies:org-1:{"q":"a.b"}*')
        assert pattern.matches('companies:org-1:{"q":"a.b"}')
        assert not pattern.matches('companies:org-1:{"q":"axb"}')

    def test_wildcard_in_the_middle(self):
        pattern = compile_pattern("stats:*:companies")
        assert pattern.matches("stats:org-1:companies")
        assert not pattern.matches("stats:org-1:contacts")

    def test_compiled_once(self):
        assert compile_pattern("counts:*") is compile_pattern("counts:*")


class TestInvalidate:

    def test_mixed_exact_and_glob(self, registry):
        for key in [
            "companies:ORG1",
            "stats:ORG1:companies",
            "stats:ORG1:contacts",
            "stats:ORG2:companies",
        ]:
            registry.set("dynamic", key, 1)

        removed = invalidate(["companies:ORG1", "stats:ORG1:*"], "dynamic", registry=registry)

        assert removed == 3
        assert registry.keys("dynamic") == ["stats:ORG2:companies"]

    def test_no_matches_is_noop(self, registry):
        registry.set("dynamic", "counts:org-1", 3)

        assert invalidate(["counts:org-9", "stats:org-9:*"], registry=registry) == 0
        assert registry.keys("dynamic") == ["counts:org-1"]

    def test_is_tier_scoped(self, registry):
        registry.set("dynamic", "counts:org-1", 3)
        registry.set("query", "counts:org-1", 3)

        invalidate(["counts:org-1"], CacheTier.DYNAMIC, registry=registry)

        assert registry.get("dynamic", "counts:org-1") is None
        assert registry.get("query", "counts:org-1") is not None

    def test_accepts_compiled_patterns(self, registry):
        registry.set("dynamic", "company:c1", 1)

        assert invalidate([ExactPattern("company:c1")], registry=registry) == 1


class TestInvalidationPatterns:

    def test_companies_patterns(self):
        patterns = InvalidationPatterns.companies(ORG_1)

        assert f"companies:{ORG_1}" in patterns
        assert f"counts:{ORG_1}" in patterns
        assert f"stats:{ORG_1}:companies" in patterns

    def test_company_mutation_clears_filtered_lists_and_aggregates(self, registry):
        keep = [
            CacheKeys.contacts(ORG_1),
            CacheKeys.companies(ORG_2),
            CacheKeys.stats(ORG_1, "contacts"),
        ]
        drop = [
            CacheKeys.companies(ORG_1),
            CacheKeys.companies(ORG_1, {"status": "active"}),
            CacheKeys.counts(ORG_1),
            CacheKeys.stats(ORG_1, "companies"),
        ]
        for key in keep + drop:
            registry.set("dynamic", key, SAMPLE_COMPANIES)

        removed = invalidate(InvalidationPatterns.companies(ORG_1), registry=registry)

        assert removed == len(drop)
        assert sorted(registry.keys("dynamic")) == sorted(keep)

    def test_organization_mutation_clears_everything_for_org(self, registry):
        org_keys = [
            CacheKeys.organization(ORG_1),
            CacheKeys.markets(ORG_1),
            CacheKeys.companies(ORG_1, {"page": 3}),
            CacheKeys.activities(ORG_1),
            CacheKeys.stats(ORG_1, "campaigns"),
            CacheKeys.counts(ORG_1),
        ]
        for key in org_keys + [CacheKeys.markets(ORG_2), CacheKeys.company("c1")]:
            registry.set("dynamic", key, 1)

        invalidate(InvalidationPatterns.organization(ORG_1), registry=registry)

        assert sorted(registry.keys("dynamic")) == sorted([
            CacheKeys.markets(ORG_2),
            CacheKeys.company("c1"),
        ])

    def test_patterns_for_known_entities(self):
        for entity in INVALIDATION_TABLE:
            assert patterns_for(entity, ORG_1)

    def test_patterns_for_unknown_entity(self):
        with pytest.raises(ValueError, match="No invalidation patterns"):
            patterns_for("playbooks", ORG_1)

    def test_invalidate_entity_per_tier(self, registry):
        registry.set("dynamic", CacheKeys.contacts(ORG_1), 1)
        registry.set("query", CacheKeys.contacts(ORG_1), 1)
        registry.set("static", CacheKeys.contacts(ORG_1), 1)

        removed = invalidate_entity(
            "contacts", ORG_1, tiers=["dynamic", "query"], registry=registry,
        )

        assert removed == 2
        assert registry.keys("static") == [CacheKeys.contacts(ORG_1)]
