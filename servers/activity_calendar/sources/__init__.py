"""
Activity source adapters.

Each locale may define:
- a structured JSON API (fetch_structured + parse_structured_records)
- a scraped calendar page (fetch_scraped over a PageFetcher)

Both produce RawEventRecord lists that pass a validity filter.
"""

from .filters import DEFAULT_NOISE_KEYWORDS, filter_scraped, filter_structured
from .scraped import HttpPageFetcher, PageFetcher, PlaywrightPageFetcher, fetch_scraped
from .structured import fetch_structured, parse_structured_records

__all__ = [
    "DEFAULT_NOISE_KEYWORDS",
    "filter_scraped",
    "filter_structured",
    "HttpPageFetcher",
    "PageFetcher",
    "PlaywrightPageFetcher",
    "fetch_scraped",
    "fetch_structured",
    "parse_structured_records",
]
