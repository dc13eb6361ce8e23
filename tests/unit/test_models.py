"""BatchRequest parsing and the region registry."""
import pytest

from quotecache.core.data.models import BatchRequest, QuoteRecord, TrendingRecord
from quotecache.core.regions import RegionCode, get_region, is_supported_region, supported_regions
from quotecache.core.result import ErrorKind


class TestBatchRequest:

    def test_parses_comma_string(self):
        r = BatchRequest.parse("aapl, msft ,GOOGL").unwrap()
        assert r.symbols == ["AAPL", "MSFT", "GOOGL"]
        assert r.requested == ["aapl", "msft", "GOOGL"]
        assert r.region == "US"
        assert r.language == "en"
        assert r.joined == "AAPL,MSFT,GOOGL"

    def test_accepts_list(self):
        assert BatchRequest.parse(["BRK-B", "^GSPC", "EURUSD=X", "RELIANCE.NS"]).is_success

    def test_dedupes_case_insensitively_keeping_first(self):
        r = BatchRequest.parse("msft,AAPL,MSFT,aapl").unwrap()
        assert r.symbols == ["MSFT", "AAPL"]

    @pytest.mark.parametrize("symbols", [None, "", " , ,", []])
    def test_empty_is_rejected(self, symbols):
        o = BatchRequest.parse(symbols)
        assert o.error.kind == ErrorKind.VALIDATION
        assert "required" in o.error.message

    @pytest.mark.parametrize("bad", ["AA PL", "AAPL$", "A" * 21, "APPLE;DROP"])
    def test_bad_token_is_rejected(self, bad):
        assert BatchRequest.parse(["MSFT", bad]).error.kind == ErrorKind.VALIDATION

    def test_limit_counts_distinct_symbols(self):
        assert BatchRequest.parse([f"S{i}" for i in range(10)]).is_success
        assert BatchRequest.parse([f"S{i}" for i in range(11)]).is_failure

    def test_custom_limit(self):
        assert BatchRequest.parse("A,B,C", max_symbols=2).is_failure

    def test_region_is_normalised(self):
        assert BatchRequest.parse("AAPL", region=" gb ").unwrap().region == "GB"

    def test_unknown_region_is_rejected(self):
        o = BatchRequest.parse("AAPL", region="XX")
        assert o.error.kind == ErrorKind.VALIDATION
        assert "region" in o.error.message

    def test_language_is_lowercased(self):
        assert BatchRequest.parse("AAPL", language="FR").unwrap().language == "fr"
        assert BatchRequest.parse("AAPL", language=None).unwrap().language == "en"


class TestPayloads:

    def test_quote_payload_ignores_unknown_keys(self):
        record = QuoteRecord(symbol="AAPL", regular_market_price=190.0, trailing_pe=29.1)
        payload = record.to_payload()
        payload["legacyColumn"] = "x"
        assert QuoteRecord.from_payload(payload) == record

    def test_trending_payload(self):
        record = TrendingRecord(symbol="NVDA", short_name="NVIDIA")
        assert TrendingRecord.from_payload(record.to_payload()) == record


class TestRegions:

    def test_ten_regions(self):
        assert supported_regions() == ["US", "AU", "CA", "FR", "DE", "HK", "IT", "ES", "GB", "IN"]

    def test_lookup_is_case_insensitive(self):
        assert get_region("gb").code == RegionCode.GB
        assert "^FTSE" in get_region("GB").indices

    def test_unknown_region_raises(self):
        with pytest.raises(ValueError, match="Unknown region"):
            get_region("XX")

    def test_is_supported(self):
        assert is_supported_region("us")
        assert not is_supported_region(None)
        assert not is_supported_region("USA")
