"""FreshnessPolicy tests."""
from datetime import timedelta

import pytest

from fakes import T0, quote_record
from quotecache.core.data.freshness import FreshnessPolicy
from quotecache.core.data.models import DataType


class TestFreshnessPolicy:

    def test_default_ttls(self):
        policy = FreshnessPolicy()
        assert policy.ttl_for(DataType.QUOTE) == timedelta(minutes=15)
        assert policy.ttl_for(DataType.TRENDING) == timedelta(minutes=30)

    def test_valid_until(self):
        policy = FreshnessPolicy()
        assert policy.valid_until(DataType.QUOTE, T0) == T0 + timedelta(minutes=15)
        assert policy.valid_until(DataType.TRENDING, T0) == T0 + timedelta(minutes=30)

    def test_quote_ttl_must_be_shorter(self):
        with pytest.raises(ValueError):
            FreshnessPolicy(timedelta(minutes=30), timedelta(minutes=30))

    def test_ttls_must_be_positive(self):
        with pytest.raises(ValueError):
            FreshnessPolicy(timedelta(0), timedelta(minutes=30))

    def test_from_minutes(self):
        policy = FreshnessPolicy.from_minutes(5, 10)
        assert policy.ttl_for(DataType.QUOTE) == timedelta(minutes=5)

    def test_fresh_until_valid_until(self):
        record = quote_record("AAPL", 1.0, T0)
        assert FreshnessPolicy.is_fresh(record, T0)
        assert FreshnessPolicy.is_fresh(record, T0 + timedelta(minutes=14, seconds=59))
        assert not FreshnessPolicy.is_fresh(record, T0 + timedelta(minutes=15))

    def test_staleness_never_reverses(self):
        record = quote_record("AAPL", 1.0, T0)
        instants = [T0 + timedelta(minutes=m) for m in range(0, 40, 3)]
        seen_stale = False
        for t in instants:
            fresh = FreshnessPolicy.is_fresh(record, t)
            if seen_stale:
                assert not fresh
            seen_stale = seen_stale or not fresh
        assert seen_stale

    def test_agrees_with_record(self):
        record = quote_record("AAPL", 1.0, T0)
        for minutes in (0, 10, 15, 20):
            t = T0 + timedelta(minutes=minutes)
            assert FreshnessPolicy.is_fresh(record, t) == record.is_usable(t)
