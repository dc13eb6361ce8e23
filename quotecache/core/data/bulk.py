"""Grouped quote fan-out — every group goes through the cached quote path on its own."""
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from quotecache.core.data.models import QuoteRecord
from quotecache.core.data.providers.cached import CachedQuoteProvider, utc_now

logger = structlog.get_logger()

BULK_ENDPOINT = "/api/yh/bulk-quotes"


@dataclass(frozen=True)
class SymbolGroup:
    name: str
    symbols: list[str]


@dataclass(frozen=True)
class GroupResult:
    name: str
    quotes: list[QuoteRecord] = field(default_factory=list)
    success_count: int = 0
    error_count: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class BulkResult:
    region: str
    language: str
    groups: list[GroupResult]
    timestamp: datetime
    total_symbols: int = 0
    successful_quotes: int = 0
    failed_quotes: int = 0
    errors: list[str] = field(default_factory=list)


async def fetch_bulk(
    provider: CachedQuoteProvider,
    groups: list[SymbolGroup],
    region: str = "US",
    language: str = "en",
) -> BulkResult:
    """
    Resolve each group as an independent batch. A failed group is reported in
    its GroupResult and in the top-level errors; it never fails the others.
    """
    results: list[GroupResult] = []
    global_errors: list[str] = []
    total = successful = failed = 0

    # Sequential: a symbol shared by two groups is fetched once, then served from cache
    for group in groups:
        total += len(group.symbols)
        outcome = await provider.get_quotes(
            group.symbols, region, language, endpoint=BULK_ENDPOINT, method="POST"
        )
        if outcome.is_failure:
            failed += len(group.symbols)
            global_errors.append(f"Group '{group.name}': {outcome.error.message}")
            logger.warning("bulk.group_failed", group=group.name, code=outcome.error.code)
            results.append(
                GroupResult(
                    name=group.name,
                    error_count=len(group.symbols),
                    errors=[outcome.error.message],
                )
            )
            continue

        batch = outcome.value
        missing = max(len(group.symbols) - len(batch.quotes), 0)
        successful += len(batch.quotes)
        failed += missing
        results.append(
            GroupResult(
                name=group.name,
                quotes=list(batch.quotes),
                success_count=len(batch.quotes),
                error_count=missing,
                errors=[batch.error_message] if batch.error_message else [],
            )
        )

    logger.info("bulk.completed", groups=len(groups), total=total, successful=successful, failed=failed)
    return BulkResult(
        region=region.upper(),
        language=language,
        groups=results,
        timestamp=utc_now(),
        total_symbols=total,
        successful_quotes=successful,
        failed_quotes=failed,
        errors=global_errors,
    )
