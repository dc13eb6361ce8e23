"""
Region Registry — single source of truth for the market regions the upstream serves.
Adding a region = add one RegionConfig entry here.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class RegionCode(str, Enum):
    US = "US"
    AU = "AU"
    CA = "CA"
    FR = "FR"
    DE = "DE"
    HK = "HK"
    IT = "IT"
    ES = "ES"
    GB = "GB"
    IN = "IN"


@dataclass(frozen=True)
class RegionConfig:
    code:          RegionCode
    name:          str
    currency:      str                     # ISO 4217
    indices:       dict[str, str] = field(default_factory=dict)   # upstream symbol -> display name


REGION_REGISTRY: dict[RegionCode, RegionConfig] = {
    RegionCode.US: RegionConfig(
        RegionCode.US, "United States", "USD",
        {"^GSPC": "S&P 500", "^DJI": "Dow Jones Industrial Average", "^IXIC": "NASDAQ Composite", "^RUT": "Russell 2000"},
    ),
    RegionCode.AU: RegionConfig(RegionCode.AU, "Australia", "AUD", {"^AXJO": "S&P/ASX 200", "^AORD": "All Ordinaries"}),
    RegionCode.CA: RegionConfig(RegionCode.CA, "Canada", "CAD", {"^GSPTSE": "S&P/TSX Composite"}),
    RegionCode.FR: RegionConfig(RegionCode.FR, "France", "EUR", {"^FCHI": "CAC 40"}),
    RegionCode.DE: RegionConfig(RegionCode.DE, "Germany", "EUR", {"^GDAXI": "DAX"}),
    RegionCode.HK: RegionConfig(RegionCode.HK, "Hong Kong", "HKD", {"^HSI": "Hang Seng Index"}),
    RegionCode.IT: RegionConfig(RegionCode.IT, "Italy", "EUR", {"FTSEMIB.MI": "FTSE MIB"}),
    RegionCode.ES: RegionConfig(RegionCode.ES, "Spain", "EUR", {"^IBEX": "IBEX 35"}),
    RegionCode.GB: RegionConfig(RegionCode.GB, "United Kingdom", "GBP", {"^FTSE": "FTSE 100"}),
    RegionCode.IN: RegionConfig(RegionCode.IN, "India", "INR", {"^NSEI": "NIFTY 50", "^BSESN": "S&P BSE SENSEX"}),
}

SUPPORTED_LANGUAGES = ["en", "fr", "de", "it", "es", "zh"]
SUPPORTED_ASSET_TYPES = ["EQUITY", "ETF", "MUTUAL_FUND", "INDEX", "CURRENCY", "CRYPTOCURRENCY"]


def normalize_region(region: str | None) -> str:
    return (region or "").strip().upper()


def is_supported_region(region: str | None) -> bool:
    return normalize_region(region) in RegionCode.__members__


def get_region(code: str) -> RegionConfig:
    try:
        return REGION_REGISTRY[RegionCode(normalize_region(code))]
    except (ValueError, KeyError):
        raise ValueError(f"Unknown region '{code}'. Valid: {supported_regions()}")


def supported_regions() -> list[str]:
    return [c.value for c in REGION_REGISTRY]
