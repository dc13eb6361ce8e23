"""Abstract QuoteProvider — the direct upstream client and the caching decorator both implement this."""
from abc import ABC, abstractmethod

from quotecache.core.data.models import BatchRequest, QuoteBatch, TrendingList
from quotecache.core.regions import normalize_region
from quotecache.core.result import Outcome


class QuoteProvider(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique key: 'yahoo', 'cached_yahoo'"""
        ...

    @property
    @abstractmethod
    def supported_regions(self) -> list[str]:
        ...

    def is_valid_region(self, region: str | None) -> bool:
        return normalize_region(region) in self.supported_regions

    @abstractmethod
    async def fetch_quotes(self, request: BatchRequest) -> Outcome[QuoteBatch]:
        """
        Quotes for exactly request.symbols. Symbols the upstream does not know
        are simply absent from the result; that is not a failure.
        """
        ...

    @abstractmethod
    async def fetch_trending(self, region: str) -> Outcome[TrendingList]:
        """The region's full trending list, in upstream rank order."""
        ...
