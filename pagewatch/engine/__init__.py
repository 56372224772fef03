"""Engine components: fetch → parse → dedup."""

from .dedup import JsonSeenStore, SeenStore, SQLiteSeenStore, build_store
from .extractor import Extractor, PageExtractor
from .fetcher import FetchResponse, PageFetcher
from .parser import Parser
from .record import Field, Record

__all__ = [
    "Extractor",
    "FetchResponse",
    "Field",
    "JsonSeenStore",
    "PageExtractor",
    "PageFetcher",
    "Parser",
    "Record",
    "SQLiteSeenStore",
    "SeenStore",
    "build_store",
]
